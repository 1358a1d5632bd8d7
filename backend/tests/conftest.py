"""Shared fixtures: schema documents, an in-memory database and seeded tables."""

import pytest
import sqlalchemy as sa

from schemaforge.config import EngineSettings
from schemaforge.engine.cascade import CascadeCoordinator
from schemaforge.engine.listing import ListingEngine
from schemaforge.engine.records import RecordService
from schemaforge.engine.relationships import RelationshipEngine
from schemaforge.persistence.database import Database
from schemaforge.schema.resolver import SchemaResolver
from schemaforge.schema.store import DictSchemaStore


# ── Schema documents ─────────────────────────────────────────────────────────


USERS = {
    "model": "users",
    "table": "users",
    "title": "Users",
    "soft_delete": True,
    "default_sort": {"user_name": "asc"},
    "permissions": {"read": "uri_users", "delete": "delete_user"},
    "fields": {
        "id": {"type": "integer", "readonly": True, "sortable": True},
        "user_name": {
            "type": "string", "sortable": True, "filterable": True,
            "searchable": True, "required": True,
        },
        "email": {
            "type": "email", "sortable": True, "filterable": True,
            "searchable": True, "filter_type": "like",
        },
        "age": {"type": "integer", "sortable": True, "filterable": True},
        "password": {"type": "password", "listable": False},
        "flag_enabled": {"type": "boolean", "filterable": True},
        "created_at": {"type": "datetime", "readonly": True},
        "updated_at": {"type": "datetime", "readonly": True},
    },
}

ROLES = {
    "model": "roles",
    "table": "roles",
    "fields": {
        "id": {"type": "integer", "readonly": True},
        "slug": {"type": "string", "sortable": True, "searchable": True, "required": True},
        "name": {"type": "string", "sortable": True},
    },
    "relationships": [
        {
            "name": "permissions",
            "type": "many_to_many",
            "pivot_table": "permission_roles",
            "foreign_key": "role_id",
            "related_key": "permission_id",
        },
    ],
}

PERMISSIONS = {
    "model": "permissions",
    "table": "permissions",
    "fields": {
        "id": {"type": "integer", "readonly": True},
        "slug": {"type": "string", "sortable": True, "filterable": True, "searchable": True},
        "name": {"type": "string", "sortable": True, "searchable": True},
    },
}

ORDERS = {
    "model": "orders",
    "table": "orders",
    "soft_delete": True,
    "timestamps": False,
    "fields": {
        "id": {"type": "integer", "readonly": True},
        "customer": {"type": "string", "sortable": True, "searchable": True},
        "total": {"type": "decimal", "sortable": True, "filterable": True},
    },
    "details": [
        {"model": "order_details", "foreign_key": "order_id", "list_fields": ["sku", "qty"]},
        {"model": "order_notes", "foreign_key": "order_id"},
    ],
}

ORDER_DETAILS = {
    "model": "order_details",
    "table": "order_details",
    "fields": {
        "id": {"type": "integer", "readonly": True},
        "order_id": {"type": "integer", "filterable": True},
        "sku": {"type": "string", "sortable": True, "searchable": True},
        "qty": {"type": "integer", "sortable": True},
    },
}

ORDER_NOTES = {
    "model": "order_notes",
    "table": "order_notes",
    "soft_delete": True,
    "fields": {
        "id": {"type": "integer", "readonly": True},
        "order_id": {"type": "integer"},
        "body": {"type": "text", "searchable": True},
    },
}

COMPANIES = {
    "model": "companies",
    "table": "companies",
    "fields": {
        "id": {"type": "integer", "readonly": True},
        "name": {"type": "string", "sortable": True},
    },
    "relationships": [
        {
            "name": "employees",
            "type": "belongs_to_many_through",
            "through": "departments",
            "through_key": "company_id",
            "foreign_key": "department_id",
        },
    ],
}

DEPARTMENTS = {
    "model": "departments",
    "table": "departments",
    "soft_delete": True,
    "fields": {
        "id": {"type": "integer", "readonly": True},
        "company_id": {"type": "integer"},
        "name": {"type": "string"},
    },
}

EMPLOYEES = {
    "model": "employees",
    "table": "employees",
    "fields": {
        "id": {"type": "integer", "readonly": True},
        "department_id": {"type": "integer"},
        "name": {"type": "string", "sortable": True, "searchable": True},
    },
}

ALL_DOCUMENTS = [
    USERS, ROLES, PERMISSIONS, ORDERS, ORDER_DETAILS, ORDER_NOTES,
    COMPANIES, DEPARTMENTS, EMPLOYEES,
]


# ── Tables ───────────────────────────────────────────────────────────────────


def _define_tables(metadata: sa.MetaData) -> None:
    sa.Table(
        "users", metadata,
        sa.Column("id", sa.Integer, primary_key=True),
        sa.Column("user_name", sa.String(50), nullable=False),
        sa.Column("email", sa.String(100)),
        sa.Column("age", sa.Integer),
        sa.Column("password", sa.String(100)),
        sa.Column("flag_enabled", sa.Boolean, default=True),
        sa.Column("created_at", sa.String(40)),
        sa.Column("updated_at", sa.String(40)),
        sa.Column("deleted_at", sa.String(40)),
    )
    sa.Table(
        "roles", metadata,
        sa.Column("id", sa.Integer, primary_key=True),
        sa.Column("slug", sa.String(50), nullable=False),
        sa.Column("name", sa.String(100)),
    )
    sa.Table(
        "permissions", metadata,
        sa.Column("id", sa.Integer, primary_key=True),
        sa.Column("slug", sa.String(50)),
        sa.Column("name", sa.String(100)),
    )
    sa.Table(
        "permission_roles", metadata,
        sa.Column("role_id", sa.Integer, primary_key=True),
        sa.Column("permission_id", sa.Integer, primary_key=True),
    )
    sa.Table(
        "orders", metadata,
        sa.Column("id", sa.Integer, primary_key=True),
        sa.Column("customer", sa.String(100)),
        sa.Column("total", sa.Numeric(10, 2)),
        sa.Column("deleted_at", sa.String(40)),
    )
    sa.Table(
        "order_details", metadata,
        sa.Column("id", sa.Integer, primary_key=True),
        sa.Column("order_id", sa.Integer),
        sa.Column("sku", sa.String(20)),
        sa.Column("qty", sa.Integer),
    )
    sa.Table(
        "order_notes", metadata,
        sa.Column("id", sa.Integer, primary_key=True),
        sa.Column("order_id", sa.Integer),
        sa.Column("body", sa.Text),
        sa.Column("deleted_at", sa.String(40)),
    )
    sa.Table(
        "companies", metadata,
        sa.Column("id", sa.Integer, primary_key=True),
        sa.Column("name", sa.String(100)),
    )
    sa.Table(
        "departments", metadata,
        sa.Column("id", sa.Integer, primary_key=True),
        sa.Column("company_id", sa.Integer),
        sa.Column("name", sa.String(100)),
        sa.Column("deleted_at", sa.String(40)),
    )
    sa.Table(
        "employees", metadata,
        sa.Column("id", sa.Integer, primary_key=True),
        sa.Column("department_id", sa.Integer),
        sa.Column("name", sa.String(100)),
    )


SEED = {
    "users": [
        {"id": 1, "user_name": "alice", "email": "alice@example.com", "age": 34,
         "password": "x", "flag_enabled": True},
        {"id": 2, "user_name": "bob", "email": "bob@example.org", "age": 27,
         "password": "x", "flag_enabled": True},
        {"id": 3, "user_name": "carol", "email": "carol@example.com", "age": 41,
         "password": "x", "flag_enabled": False},
        {"id": 4, "user_name": "dave_100%", "email": "dave@example.net", "age": 19,
         "password": "x", "flag_enabled": True},
        {"id": 5, "user_name": "erin", "email": "ERIN@EXAMPLE.COM", "age": 52,
         "password": "x", "flag_enabled": True},
        {"id": 6, "user_name": "frank", "email": "frank@example.com", "age": 30,
         "password": "x", "flag_enabled": True, "deleted_at": "2024-01-01T00:00:00"},
    ],
    "roles": [
        {"id": 3, "slug": "admin", "name": "Administrator"},
        {"id": 4, "slug": "editor", "name": "Editor"},
    ],
    "permissions": [
        {"id": 7, "slug": "uri_users", "name": "View users"},
        {"id": 8, "slug": "delete_user", "name": "Delete users"},
        {"id": 9, "slug": "uri_roles", "name": "View roles"},
    ],
    "permission_roles": [
        {"role_id": 4, "permission_id": 7},
        {"role_id": 4, "permission_id": 9},
    ],
    "orders": [
        {"id": 5, "customer": "Acme", "total": 120},
        {"id": 6, "customer": "Globex", "total": 80},
    ],
    "order_details": [
        {"id": 1, "order_id": 5, "sku": "A-1", "qty": 2},
        {"id": 2, "order_id": 5, "sku": "B-2", "qty": 1},
        {"id": 3, "order_id": 6, "sku": "A-1", "qty": 5},
    ],
    "order_notes": [
        {"id": 1, "order_id": 5, "body": "Leave at the door"},
        {"id": 2, "order_id": 6, "body": "Gift wrap"},
    ],
    "companies": [
        {"id": 1, "name": "Initech"},
        {"id": 2, "name": "Hooli"},
    ],
    "departments": [
        {"id": 10, "company_id": 1, "name": "Engineering"},
        {"id": 11, "company_id": 1, "name": "Sales", "deleted_at": "2024-01-01T00:00:00"},
        {"id": 20, "company_id": 2, "name": "Research"},
    ],
    "employees": [
        {"id": 100, "department_id": 10, "name": "Peter"},
        {"id": 101, "department_id": 10, "name": "Milton"},
        {"id": 102, "department_id": 11, "name": "Bill"},
        {"id": 200, "department_id": 20, "name": "Gavin"},
    ],
}


# ── Fixtures ─────────────────────────────────────────────────────────────────


@pytest.fixture
def store():
    s = DictSchemaStore()
    for document in ALL_DOCUMENTS:
        s.add(document)
    return s


@pytest.fixture
def resolver(store):
    return SchemaResolver(store)


@pytest.fixture
def db():
    """In-memory SQLite database with every test table created and seeded."""
    database = Database("sqlite://")
    metadata = sa.MetaData()
    _define_tables(metadata)
    metadata.create_all(database.engine)
    with database.engine.begin() as conn:
        # one statement per row: executemany takes its columns from the first row only
        for name, rows in SEED.items():
            for row in rows:
                conn.execute(metadata.tables[name].insert().values(row))
    yield database
    database.dispose()


@pytest.fixture
def settings():
    return EngineSettings()


@pytest.fixture
def listing(db, settings):
    return ListingEngine(db, settings)


@pytest.fixture
def relationships(db, resolver):
    return RelationshipEngine(db, resolver)


@pytest.fixture
def cascade(resolver):
    return CascadeCoordinator(resolver)


@pytest.fixture
def records(db, cascade):
    return RecordService(db, cascade)


@pytest.fixture
def scalar(db):
    """Run a raw SQL scalar query against the test database."""

    def run(sql: str, **params):
        with db.engine.connect() as conn:
            return conn.execute(sa.text(sql), params).scalar()

    return run
