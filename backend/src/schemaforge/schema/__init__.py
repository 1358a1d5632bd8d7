"""Schema documents: stores, normalization, validation, resolution and caching."""

from schemaforge.schema.cache import SchemaCache
from schemaforge.schema.filter import KNOWN_CONTEXTS, filter_for_context
from schemaforge.schema.loader import SchemaLoader
from schemaforge.schema.resolver import SchemaResolver
from schemaforge.schema.store import DictSchemaStore, FileSchemaStore, SchemaStore
from schemaforge.schema.types import (
    ContextProjection,
    DetailDeclaration,
    FieldDescriptor,
    ManyToManyRelationship,
    Relationship,
    RelationshipKind,
    SchemaDocument,
    SortDirection,
    ThroughRelationship,
)

__all__ = [
    "KNOWN_CONTEXTS",
    "ContextProjection",
    "DetailDeclaration",
    "DictSchemaStore",
    "FieldDescriptor",
    "FileSchemaStore",
    "ManyToManyRelationship",
    "Relationship",
    "RelationshipKind",
    "SchemaCache",
    "SchemaDocument",
    "SchemaLoader",
    "SchemaResolver",
    "SchemaStore",
    "SortDirection",
    "ThroughRelationship",
    "filter_for_context",
]
