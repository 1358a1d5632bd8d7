"""Exception hierarchy for the SchemaForge data-access engine.

Callers (routing layers, the CLI) translate these into transport
responses:
- SchemaNotFoundError, RecordNotFoundError: not found
- RelationshipNotFoundError, UnsupportedRelationshipError,
  InvalidCriteriaError, RecordValidationError: client errors
- AccessDeniedError: forbidden
- SchemaValidationError: schema-authoring defect (configuration error)
- PersistenceError: database failure, raised after rollback
"""


class SchemaForgeError(Exception):
    """Base class for all engine errors."""


class SchemaNotFoundError(SchemaForgeError):
    """No schema document exists for the requested model."""

    def __init__(self, model: str, connection: str | None = None):
        self.model = model
        self.connection = connection
        where = f" (connection '{connection}')" if connection else ""
        super().__init__(f"Schema not found for model: {model}{where}")


class SchemaValidationError(SchemaForgeError):
    """A schema document is structurally or semantically invalid."""

    def __init__(self, model: str, message: str, issues: list[str] | None = None):
        self.model = model
        self.issues = issues or [message]
        super().__init__(f"Invalid schema for model '{model}': {message}")


class RelationshipNotFoundError(SchemaForgeError):
    """The schema declares no relationship (or detail) with that name."""

    def __init__(self, model: str, name: str):
        self.model = model
        self.name = name
        super().__init__(f"Relationship '{name}' not found in schema for model '{model}'")


class UnsupportedRelationshipError(SchemaForgeError):
    """The relationship kind does not support the requested operation."""

    def __init__(self, model: str, name: str, kind: str, operation: str):
        self.model = model
        self.name = name
        self.kind = kind
        self.operation = operation
        super().__init__(
            f"Cannot {operation} relationship '{name}' on model '{model}': "
            f"kind '{kind}' is read-only"
        )


class InvalidCriteriaError(SchemaForgeError):
    """A sort/filter/search field failed schema validation (strict mode only)."""

    def __init__(self, model: str, field: str, capability: str):
        self.model = model
        self.field = field
        self.capability = capability
        super().__init__(f"Field '{field}' is not {capability} on model '{model}'")


class RecordNotFoundError(SchemaForgeError):
    """No record exists with the given primary key."""

    def __init__(self, model: str, id: object):
        self.model = model
        self.id = id
        super().__init__(f"{model} record '{id}' not found")


class RecordValidationError(SchemaForgeError):
    """Record data is missing required fields."""

    def __init__(self, model: str, errors: list[str]):
        self.model = model
        self.errors = errors
        super().__init__(f"Invalid {model} record: {'; '.join(errors)}")


class AccessDeniedError(SchemaForgeError):
    """The caller's access checker refused the action."""

    def __init__(self, model: str, action: str, permission: str):
        self.model = model
        self.action = action
        self.permission = permission
        super().__init__(f"Access denied: '{action}' on {model} requires '{permission}'")


class PersistenceError(SchemaForgeError):
    """An underlying database operation failed.

    The originating driver exception is available as ``__cause__``.
    """
