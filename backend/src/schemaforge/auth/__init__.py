"""Access guard consumed by the record service and host layers."""

from schemaforge.auth.permissions import (
    AccessChecker,
    can_access,
    has_permission,
    permission_for,
    require_access,
)

__all__ = [
    "AccessChecker",
    "can_access",
    "has_permission",
    "permission_for",
    "require_access",
]
