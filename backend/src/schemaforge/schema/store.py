"""Schema stores: where raw schema documents come from.

Stores return raw (un-normalized) documents as dicts. Parsing,
normalization and validation happen in the resolver.
"""

import copy
import json
import logging
from pathlib import Path
from typing import Any, Protocol, runtime_checkable

import yaml

logger = logging.getLogger(__name__)

SCHEMA_SUFFIXES = (".json", ".yaml", ".yml")


@runtime_checkable
class SchemaStore(Protocol):
    """Read-only source of raw schema documents keyed by model name."""

    def load(self, model: str, connection: str | None = None) -> dict[str, Any] | None: ...

    def list_models(self, connection: str | None = None) -> list[str]: ...


class FileSchemaStore:
    """Loads schema documents from a directory tree.

    Layout::

        <root>/<model>.json              default document
        <root>/<connection>/<model>.json connection-specific document

    A connection-specific document wins over the default one. YAML files
    are accepted alongside JSON.
    """

    def __init__(self, root: Path | str):
        self.root = Path(root)

    def path_for(self, model: str, connection: str | None = None) -> Path | None:
        """Return the file backing a model, or None if there is none."""
        base = self.root / connection if connection else self.root
        for suffix in SCHEMA_SUFFIXES:
            candidate = base / f"{model}{suffix}"
            if candidate.is_file():
                return candidate
        return None

    def load(self, model: str, connection: str | None = None) -> dict[str, Any] | None:
        """Load a raw document, trying the connection directory first."""
        path = None
        if connection is not None:
            path = self.path_for(model, connection)
        if path is None:
            path = self.path_for(model)
        if path is None:
            return None

        logger.debug("Loading schema for %s from %s", model, path)
        with path.open() as fh:
            if path.suffix == ".json":
                data = json.load(fh)
            else:
                data = yaml.safe_load(fh)

        if not isinstance(data, dict):
            return None
        return data

    def list_models(self, connection: str | None = None) -> list[str]:
        """List model names available at the root (or a connection directory)."""
        base = self.root / connection if connection else self.root
        if not base.is_dir():
            return []
        names = {
            path.stem
            for path in base.iterdir()
            if path.is_file() and path.suffix in SCHEMA_SUFFIXES
        }
        return sorted(names)


class DictSchemaStore:
    """In-memory store, for embedding and tests.

    Documents are keyed by model name; connection-specific documents are
    keyed by ``(connection, model)`` in ``by_connection``.
    """

    def __init__(
        self,
        documents: dict[str, dict[str, Any]] | None = None,
        by_connection: dict[tuple[str, str], dict[str, Any]] | None = None,
    ):
        self.documents = dict(documents or {})
        self.by_connection = dict(by_connection or {})
        self.load_count = 0

    def add(self, document: dict[str, Any], connection: str | None = None) -> None:
        model = document["model"]
        if connection is None:
            self.documents[model] = document
        else:
            self.by_connection[(connection, model)] = document

    def load(self, model: str, connection: str | None = None) -> dict[str, Any] | None:
        self.load_count += 1
        data = None
        if connection is not None:
            data = self.by_connection.get((connection, model))
        if data is None:
            data = self.documents.get(model)
        # Callers normalize in place; hand out copies so stored documents stay pristine
        return copy.deepcopy(data) if data is not None else None

    def list_models(self, connection: str | None = None) -> list[str]:
        if connection is None:
            return sorted(self.documents)
        return sorted(m for (c, m) in self.by_connection if c == connection)
