"""Schema resolution with caching."""

import logging
from pathlib import Path

from schemaforge.schema.cache import SchemaCache
from schemaforge.schema.filter import filter_for_context
from schemaforge.schema.loader import SchemaLoader
from schemaforge.schema.store import FileSchemaStore, SchemaStore
from schemaforge.schema.types import ContextProjection, SchemaDocument

logger = logging.getLogger(__name__)

FULL_CONTEXT = "full"


class SchemaResolver:
    """Resolves model names to schema documents and context projections.

    The resolver owns its cache. Repeated lookups of the same model and
    connection return the same document object until the cache is cleared.
    """

    def __init__(self, store: SchemaStore, cache: SchemaCache | None = None):
        self.store = store
        self.loader = SchemaLoader(store)
        self.cache = cache if cache is not None else SchemaCache()

    @classmethod
    def from_path(cls, root: Path | str) -> "SchemaResolver":
        """Resolver over a schema directory on disk."""
        return cls(FileSchemaStore(root))

    def resolve(self, model: str, connection: str | None = None) -> SchemaDocument:
        """Return the full schema document for a model.

        Raises:
            SchemaNotFoundError: No document exists for the model.
            SchemaValidationError: The document is malformed.
        """
        cached = self.cache.get(model, connection)
        if cached is not None:
            return cached

        generation = self.cache.generation
        logger.debug("Schema cache miss: %s (connection=%s)", model, connection or "default")
        document = self.loader.load(model, connection)
        self.cache.set(document, model, connection, generation=generation)
        return document

    def project_for_context(
        self,
        model: str,
        context: str | None,
        connection: str | None = None,
    ) -> ContextProjection:
        """Return a context-scoped projection of a model's document."""
        context_key = context or FULL_CONTEXT
        cached = self.cache.get_projection(model, context_key, connection)
        if cached is not None:
            return cached

        generation = self.cache.generation
        document = self.resolve(model, connection)
        projection = filter_for_context(document, context)
        self.cache.set_projection(
            projection, model, context_key, connection, generation=generation
        )
        return projection

    def clear_cache(self, model: str | None = None, connection: str | None = None) -> int:
        """Evict one model's cached entries, or everything when no model is given."""
        return self.cache.clear(model, connection)

    def list_models(self, connection: str | None = None) -> list[str]:
        return self.store.list_models(connection)
