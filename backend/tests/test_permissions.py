"""Tests for the schema access guard."""

import pytest

from schemaforge.auth.permissions import (
    can_access,
    has_permission,
    permission_for,
    require_access,
)
from schemaforge.errors import AccessDeniedError


@pytest.fixture
def users(resolver):
    return resolver.resolve("users")


class TestPermissionLookup:
    def test_declared(self, users):
        assert permission_for(users, "read") == "uri_users"
        assert has_permission(users, "delete")

    def test_undeclared(self, users):
        assert permission_for(users, "create") is None
        assert not has_permission(users, "create")


class TestRequireAccess:
    def test_granted(self, users):
        require_access(users, "read", lambda p: p == "uri_users")

    def test_refused(self, users):
        with pytest.raises(AccessDeniedError) as exc_info:
            require_access(users, "delete", lambda p: False)
        assert exc_info.value.action == "delete"
        assert exc_info.value.permission == "delete_user"
        assert "requires 'delete_user'" in str(exc_info.value)

    def test_no_checker_refuses_guarded_action(self, users):
        with pytest.raises(AccessDeniedError):
            require_access(users, "read", None)

    def test_unguarded_action_always_allowed(self, users):
        require_access(users, "create", None)

    def test_can_access_tuple(self, users):
        assert can_access(users, "create", None) == (True, None)
        allowed, message = can_access(users, "read", lambda p: False)
        assert allowed is False
        assert message == "'read' on users requires 'uri_users'"
