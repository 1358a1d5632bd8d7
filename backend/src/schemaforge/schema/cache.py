"""In-memory cache for resolved schema documents and context projections.

Full documents are keyed ``"{model}:{connection}"`` (``default`` when no
connection is given). Projections are keyed by model, connection and
context so a projection is always derived from the matching document.

The cache is safe for concurrent readers. Every clear bumps a generation
counter; a load that started before a clear must present the generation
it observed, and ``set`` drops its result when the counter has moved, so
pre-clear data never re-enters the cache.
"""

import logging
import threading
from typing import Any

logger = logging.getLogger(__name__)

DEFAULT_CONNECTION = "default"


def cache_key(model: str, connection: str | None = None) -> str:
    """Cache key in format "model:connection" or "model:default"."""
    return f"{model}:{connection or DEFAULT_CONNECTION}"


class SchemaCache:
    """Thread-safe two-map cache (documents, projections)."""

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._documents: dict[str, Any] = {}
        self._projections: dict[tuple[str, str], Any] = {}
        self._generation = 0

    @property
    def generation(self) -> int:
        with self._lock:
            return self._generation

    # ------------------------------------------------------------------
    # Documents
    # ------------------------------------------------------------------

    def get(self, model: str, connection: str | None = None) -> Any | None:
        key = cache_key(model, connection)
        with self._lock:
            value = self._documents.get(key)
        if value is not None:
            logger.debug("Schema cache hit: %s", key)
        return value

    def set(
        self,
        value: Any,
        model: str,
        connection: str | None = None,
        generation: int | None = None,
    ) -> bool:
        """Store a document. Returns False when a clear raced the load."""
        key = cache_key(model, connection)
        with self._lock:
            if generation is not None and generation != self._generation:
                logger.debug("Discarding stale schema load for %s", key)
                return False
            self._documents[key] = value
        logger.debug("Schema cached: %s", key)
        return True

    # ------------------------------------------------------------------
    # Projections
    # ------------------------------------------------------------------

    def get_projection(
        self, model: str, context: str, connection: str | None = None
    ) -> Any | None:
        with self._lock:
            return self._projections.get((cache_key(model, connection), context))

    def set_projection(
        self,
        value: Any,
        model: str,
        context: str,
        connection: str | None = None,
        generation: int | None = None,
    ) -> bool:
        with self._lock:
            if generation is not None and generation != self._generation:
                return False
            self._projections[(cache_key(model, connection), context)] = value
        return True

    # ------------------------------------------------------------------
    # Invalidation
    # ------------------------------------------------------------------

    def clear(self, model: str | None = None, connection: str | None = None) -> int:
        """Evict cached entries and return how many were removed.

        - no model: everything
        - model only: that model under every connection
        - model and connection: that one document and its projections
        """
        with self._lock:
            self._generation += 1
            if model is None:
                removed = len(self._documents) + len(self._projections)
                self._documents.clear()
                self._projections.clear()
            else:
                if connection is None:
                    matches = lambda key: key.split(":", 1)[0] == model  # noqa: E731
                else:
                    matches = lambda key: key == cache_key(model, connection)  # noqa: E731
                doc_keys = [k for k in self._documents if matches(k)]
                proj_keys = [k for k in self._projections if matches(k[0])]
                for k in doc_keys:
                    del self._documents[k]
                for k in proj_keys:
                    del self._projections[k]
                removed = len(doc_keys) + len(proj_keys)

        logger.debug(
            "Schema cache cleared (model=%s, connection=%s): %d entries",
            model or "*",
            connection or "*",
            removed,
        )
        return removed

    def __len__(self) -> int:
        with self._lock:
            return len(self._documents)
