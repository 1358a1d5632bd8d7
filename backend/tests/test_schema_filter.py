"""Tests for context-scoped schema projections."""

import pytest

from schemaforge.schema.filter import filter_for_context


@pytest.fixture
def users(resolver):
    return resolver.resolve("users")


class TestListContext:
    def test_only_listable_fields(self, users):
        projection = filter_for_context(users, "list")
        assert "password" not in projection.fields
        assert "user_name" in projection.fields
        assert not projection.is_full

    def test_list_keys(self, users):
        data = filter_for_context(users, "list").to_dict()
        assert set(data["fields"]["email"]) <= {
            "type", "label", "sortable", "filterable", "filter_type", "width",
        }
        assert data["fields"]["email"]["filter_type"] == "like"
        assert data["default_sort"] == {"user_name": "asc"}
        assert data["permissions"] == {"read": "uri_users", "delete": "delete_user"}


class TestFormContexts:
    def test_create_and_edit_exclude_readonly(self, users):
        for context in ("create", "edit", "form"):
            fields = filter_for_context(users, context).fields
            assert "id" not in fields
            assert "created_at" not in fields
            assert "user_name" in fields

    def test_form_keys_include_required(self, users):
        data = filter_for_context(users, "form").to_dict()
        assert data["fields"]["user_name"]["required"] is True
        assert "sortable" not in data["fields"]["user_name"]

    def test_form_is_union_of_create_and_edit(self, resolver, store):
        store.add({
            "model": "notes",
            "table": "notes",
            "fields": {
                "id": {"readonly": True},
                "slug": {"show_in": ["create"]},
                "body": {"show_in": ["edit", "detail"]},
            },
        })
        notes = resolver.resolve("notes")
        assert list(filter_for_context(notes, "create").fields) == ["slug"]
        assert list(filter_for_context(notes, "edit").fields) == ["body"]
        assert list(filter_for_context(notes, "form").fields) == ["slug", "body"]


class TestDetailAndMeta:
    def test_detail_hides_password_and_carries_relationships(self, resolver):
        orders = resolver.resolve("orders")
        data = filter_for_context(orders, "detail").to_dict()
        assert [d["model"] for d in data["details"]] == ["order_details", "order_notes"]

        users = resolver.resolve("users")
        assert "password" not in filter_for_context(users, "detail").fields

    def test_detail_relationships(self, resolver):
        data = filter_for_context(resolver.resolve("roles"), "detail").to_dict()
        assert data["relationships"][0]["name"] == "permissions"
        assert data["relationships"][0]["type"] == "many_to_many"

    def test_meta_has_no_fields(self, users):
        data = filter_for_context(users, "meta").to_dict()
        assert data == {
            "model": "users",
            "title": "Users",
            "primary_key": "id",
            "permissions": {"read": "uri_users", "delete": "delete_user"},
        }


class TestFullAndMultiple:
    @pytest.mark.parametrize("context", [None, "full", "unknown-context"])
    def test_full_document(self, users, context):
        projection = filter_for_context(users, context)
        assert projection.is_full
        assert list(projection.fields) == list(users.fields)
        assert projection.to_dict() == users.to_dict()

    def test_comma_separated_contexts(self, users):
        projection = filter_for_context(users, "list, form,bogus")
        assert list(projection.contexts) == ["list", "form"]
        data = projection.to_dict()
        assert set(data["contexts"]) == {"list", "form"}
        assert "password" not in data["contexts"]["list"]["fields"]
        assert "required" in data["contexts"]["form"]["fields"]["user_name"]
