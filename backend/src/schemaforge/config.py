"""Engine settings and logging setup."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path

DEFAULT_SCHEMA_PATH = "schema/crud6"
DEFAULT_PER_PAGE = 25
MAX_PER_PAGE = 100

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


@dataclass
class EngineSettings:
    """Listing defaults and schema location.

    ``max_per_page`` is a hard cap; it is never raised above MAX_PER_PAGE.
    """

    schema_path: Path = Path(DEFAULT_SCHEMA_PATH)
    default_per_page: int = DEFAULT_PER_PAGE
    max_per_page: int = MAX_PER_PAGE
    log_level: str = "WARNING"

    def __post_init__(self) -> None:
        self.max_per_page = max(1, min(self.max_per_page, MAX_PER_PAGE))
        self.default_per_page = max(1, min(self.default_per_page, self.max_per_page))

    @classmethod
    def from_env(cls) -> EngineSettings:
        """Create settings from environment variables.

        - SCHEMAFORGE_SCHEMA_PATH (default: schema/crud6)
        - SCHEMAFORGE_DEFAULT_PER_PAGE (default: 25)
        - SCHEMAFORGE_MAX_PER_PAGE (default: 100, capped at 100)
        - SCHEMAFORGE_LOG_LEVEL (default: WARNING)
        """
        return cls(
            schema_path=Path(os.environ.get("SCHEMAFORGE_SCHEMA_PATH", DEFAULT_SCHEMA_PATH)),
            default_per_page=_env_int("SCHEMAFORGE_DEFAULT_PER_PAGE", DEFAULT_PER_PAGE),
            max_per_page=_env_int("SCHEMAFORGE_MAX_PER_PAGE", MAX_PER_PAGE),
            log_level=os.environ.get("SCHEMAFORGE_LOG_LEVEL", "WARNING").upper(),
        )


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        logging.getLogger(__name__).warning(
            "Ignoring non-integer %s=%r, using %d", name, raw, default
        )
        return default


def configure_logging(level: str | int = "WARNING") -> None:
    """Configure root logging for the CLI."""
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.WARNING
    logging.basicConfig(level=level, format=LOG_FORMAT, force=True)
