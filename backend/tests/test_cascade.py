"""Tests for cascading deletes of declared child collections."""

import pytest

from schemaforge.errors import PersistenceError, RecordNotFoundError
from schemaforge.query.criteria import QueryCriteria


@pytest.fixture
def orders(resolver):
    return resolver.resolve("orders")


class TestCascadeCoordinator:
    def test_soft_parent_hard_deletes_child_without_soft_delete(self, db, cascade, orders, scalar):
        with db.unit_of_work() as conn:
            counts = cascade.cascade_delete(conn, orders, {"id": 5}, is_soft_delete=True)

        assert counts == {"order_details": 2, "order_notes": 1}
        assert scalar("SELECT COUNT(*) FROM order_details WHERE order_id = 5") == 0
        # soft-delete child keeps its row with a marker
        assert scalar("SELECT COUNT(*) FROM order_notes WHERE order_id = 5") == 1
        assert scalar(
            "SELECT COUNT(*) FROM order_notes WHERE order_id = 5 AND deleted_at IS NOT NULL"
        ) == 1

    def test_hard_parent_hard_deletes_every_child(self, db, cascade, orders, scalar):
        with db.unit_of_work() as conn:
            cascade.cascade_delete(conn, orders, {"id": 5}, is_soft_delete=False)
        assert scalar("SELECT COUNT(*) FROM order_notes WHERE order_id = 5") == 0

    def test_other_parents_untouched(self, db, cascade, orders, scalar):
        with db.unit_of_work() as conn:
            cascade.cascade_delete(conn, orders, {"id": 5}, is_soft_delete=False)
        assert scalar("SELECT COUNT(*) FROM order_details WHERE order_id = 6") == 1
        assert scalar("SELECT COUNT(*) FROM order_notes WHERE order_id = 6") == 1

    def test_no_details_is_noop(self, db, cascade, resolver):
        with db.unit_of_work() as conn:
            assert cascade.cascade_delete(conn, resolver.resolve("roles"), {"id": 3}, False) == {}


class TestDeleteWithCascade:
    def test_orders_scenario(self, records, orders, scalar):
        outcome = records.delete(orders, 5)

        assert outcome.soft is True
        assert outcome.cascaded == {"order_details": 2, "order_notes": 1}
        assert scalar("SELECT COUNT(*) FROM order_details WHERE order_id = 5") == 0
        assert scalar("SELECT deleted_at FROM orders WHERE id = 5") is not None
        assert records.get(orders, 5) is None
        assert records.get(orders, 5, include_deleted=True)["customer"] == "Acme"

    def test_soft_deleted_children_visible_with_include_deleted(
        self, records, relationships, orders
    ):
        records.delete(orders, 5)

        hidden = relationships.list_details(orders, 5, "order_notes")
        assert hidden.rows == []

        visible = relationships.list_details(
            orders, 5, "order_notes", QueryCriteria(include_deleted=True)
        )
        assert [r["body"] for r in visible.rows] == ["Leave at the door"]

    def test_failing_child_rolls_back_everything(self, records, resolver, store, scalar):
        store.add({
            "model": "orders",
            "table": "orders",
            "soft_delete": True,
            "fields": {"id": {}, "customer": {}},
            "details": [
                {"model": "order_details", "foreign_key": "order_id"},
                {"model": "ghost_lines", "foreign_key": "order_id"},
            ],
        })
        store.add({"model": "ghost_lines", "table": "ghost_lines", "fields": {"id": {}}})
        resolver.clear_cache("orders")
        orders = resolver.resolve("orders")

        with pytest.raises(PersistenceError):
            records.delete(orders, 5)

        assert scalar("SELECT COUNT(*) FROM order_details WHERE order_id = 5") == 2
        assert scalar("SELECT deleted_at FROM orders WHERE id = 5") is None

    def test_missing_parent(self, records, orders, scalar):
        with pytest.raises(RecordNotFoundError):
            records.delete(orders, 999)

    def test_already_soft_deleted_parent_is_missing(self, records, orders):
        records.delete(orders, 5)
        with pytest.raises(RecordNotFoundError):
            records.delete(orders, 5)

    def test_hard_delete_parent(self, records, resolver, scalar):
        roles = resolver.resolve("roles")
        outcome = records.delete(roles, 3)
        assert outcome.soft is False
        assert outcome.to_dict() == {"id": 3, "soft": False, "cascaded": {}}
        assert scalar("SELECT COUNT(*) FROM roles WHERE id = 3") == 0
