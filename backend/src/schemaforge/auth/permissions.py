"""Access guard for schema-described entities.

The engine does not make authorization decisions. A schema maps logical
actions (read, create, update, delete) to access-check identifiers and
the host supplies a checker that answers yes or no for an identifier.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

from schemaforge.errors import AccessDeniedError

if TYPE_CHECKING:
    from schemaforge.schema.types import SchemaDocument


class AccessChecker(Protocol):
    def __call__(self, permission: str) -> bool: ...


def permission_for(schema: SchemaDocument, action: str) -> str | None:
    """Access-check identifier the schema declares for an action, if any."""
    return schema.permissions.get(action) or None


def has_permission(schema: SchemaDocument, action: str) -> bool:
    """Whether the schema guards the action with an identifier."""
    return permission_for(schema, action) is not None


def can_access(
    schema: SchemaDocument,
    action: str,
    checker: AccessChecker | None,
) -> tuple[bool, str | None]:
    """Check an action against the caller's checker.

    Returns:
        Tuple of (allowed, error_message). error_message is None if allowed.
    """
    permission = permission_for(schema, action)
    if permission is None:
        return True, None
    if checker is None or not checker(permission):
        return False, f"'{action}' on {schema.model} requires '{permission}'"
    return True, None


def require_access(
    schema: SchemaDocument,
    action: str,
    checker: AccessChecker | None,
) -> None:
    """Raise AccessDeniedError unless the checker grants the action.

    Actions the schema does not guard are always allowed.
    """
    allowed, _ = can_access(schema, action, checker)
    if not allowed:
        raise AccessDeniedError(schema.model, action, permission_for(schema, action) or "")
