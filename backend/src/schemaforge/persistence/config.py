"""Database configuration: where the engine's URL and options come from."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Any

from sqlalchemy.engine import URL, make_url
from sqlalchemy.pool import StaticPool

if TYPE_CHECKING:
    from schemaforge.persistence.database import Database

SUPPORTED_BACKENDS = ("sqlite", "postgresql")
DEFAULT_DB_FILE = "schemaforge.db"

# PostgreSQL URLs without an explicit driver get psycopg v3
_POSTGRES_DRIVER = "postgresql+psycopg"


def _env_flag(name: str) -> bool:
    return os.environ.get(name, "").strip().lower() in ("1", "true", "yes")


@dataclass
class DatabaseConfig:
    """URL plus engine options for one database.

    ``url`` is any SQLAlchemy URL string; SQLite and PostgreSQL are supported.
    """

    url: str
    echo: bool = False

    @classmethod
    def from_env(cls, base_path: Path | None = None) -> DatabaseConfig:
        """Read the database location from the environment.

        ``DATABASE_URL`` wins, then ``SCHEMAFORGE_DB_PATH`` (a SQLite file).
        Without either, the file lives under ``<base_path>/data`` or, with
        no base path, in the working directory. ``SCHEMAFORGE_DB_ECHO``
        turns on SQL echo.
        """
        url = os.environ.get("DATABASE_URL") or None
        if url is None:
            db_path = os.environ.get("SCHEMAFORGE_DB_PATH")
            if not db_path:
                db_path = str(base_path / "data" / DEFAULT_DB_FILE) if base_path else DEFAULT_DB_FILE
            url = f"sqlite:///{db_path}"
        return cls(url=url, echo=_env_flag("SCHEMAFORGE_DB_ECHO"))

    @property
    def parsed_url(self) -> URL:
        return make_url(self.url)

    @property
    def backend(self) -> str:
        return self.parsed_url.get_backend_name()

    @property
    def is_sqlite(self) -> bool:
        return self.backend == "sqlite"

    @property
    def is_postgresql(self) -> bool:
        return self.backend == "postgresql"

    @property
    def is_memory(self) -> bool:
        return self.is_sqlite and self.parsed_url.database in (None, "", ":memory:")

    @property
    def sqlalchemy_url(self) -> str:
        url = self.parsed_url
        if url.drivername == "postgresql":
            url = url.set(drivername=_POSTGRES_DRIVER)
        return url.render_as_string(hide_password=False)

    def engine_options(self) -> dict[str, Any]:
        """Keyword arguments for ``sqlalchemy.create_engine``."""
        options: dict[str, Any] = {"echo": self.echo}
        if self.is_memory:
            # every checkout must see the same in-memory database
            options["poolclass"] = StaticPool
            options["connect_args"] = {"check_same_thread": False}
        elif self.is_postgresql:
            options["pool_pre_ping"] = True
        return options


def create_database(
    config: DatabaseConfig | None = None, base_path: Path | None = None
) -> Database:
    """Build a Database, reading the environment when no config is given.

    Raises:
        ValueError: For unsupported URL schemes.
    """
    config = config or DatabaseConfig.from_env(base_path)
    if config.backend not in SUPPORTED_BACKENDS:
        raise ValueError(f"Unsupported database URL scheme: {config.url}")

    from schemaforge.persistence.database import Database

    return Database(config)
