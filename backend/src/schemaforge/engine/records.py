"""Single-record reads and writes over schema-described tables."""

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

import sqlalchemy as sa
from sqlalchemy.engine import Connection

from schemaforge.auth.permissions import AccessChecker, require_access
from schemaforge.engine.cascade import CascadeCoordinator
from schemaforge.errors import RecordNotFoundError, RecordValidationError
from schemaforge.persistence.database import Database
from schemaforge.query.builder import soft_delete_scope, table_for
from schemaforge.schema.types import SchemaDocument

logger = logging.getLogger(__name__)

CREATED_AT = "created_at"
UPDATED_AT = "updated_at"


@dataclass
class DeleteOutcome:
    """Result of deleting one record and its child collections."""

    id: Any
    soft: bool
    cascaded: dict[str, int] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "soft": self.soft, "cascaded": dict(self.cascaded)}


class RecordService:
    """get / create / update / update_field / delete / restore for one record.

    When an access checker is given, each call is guarded by the schema's
    permission for the matching action.
    """

    def __init__(
        self,
        db: Database,
        cascade: CascadeCoordinator,
        checker: AccessChecker | None = None,
    ):
        self.db = db
        self.cascade = cascade
        self.checker = checker

    def get(
        self, schema: SchemaDocument, id: Any, include_deleted: bool = False
    ) -> dict[str, Any] | None:
        """Fetch a single record by primary key."""
        self._guard(schema, "read")
        with self.db.connect() as conn:
            return self._fetch(conn, schema, id, include_deleted)

    def create(self, schema: SchemaDocument, data: Mapping[str, Any]) -> dict[str, Any]:
        """Insert a new record.

        Only declared, editable fields are written (plus an explicit
        primary key). Missing fields fall back to their declared default.

        Raises:
            RecordValidationError: A required field is missing.
        """
        self._guard(schema, "create")
        editable = schema.editable_fields()
        values = {name: data[name] for name in editable if name in data}
        for name in editable:
            default = schema.fields[name].default
            if name not in values and default is not None:
                values[name] = default

        missing = [
            name for name in schema.required_fields()
            if name in editable and _is_blank(values.get(name))
        ]
        if missing:
            raise RecordValidationError(
                schema.model, [f"'{name}' is required" for name in missing]
            )

        pk = schema.primary_key
        if data.get(pk) is not None:
            values[pk] = data[pk]
        self._stamp(schema, values, created=True)

        table = table_for(schema)
        with self.db.unit_of_work() as conn:
            if pk in values:
                conn.execute(sa.insert(table).values(values))
                record_id = values[pk]
            else:
                record_id = conn.execute(
                    sa.insert(table).values(values).returning(table.c[pk])
                ).scalar_one()
            record = self._fetch(conn, schema, record_id, include_deleted=True)

        logger.debug("Created %s %s", schema.model, record_id)
        return record

    def update(
        self, schema: SchemaDocument, id: Any, data: Mapping[str, Any]
    ) -> dict[str, Any]:
        """Update editable fields of an existing record.

        The primary key and non-editable fields in ``data`` are ignored.
        """
        self._guard(schema, "update")
        values = {name: data[name] for name in schema.editable_fields() if name in data}
        for name in schema.required_fields():
            if name in values and _is_blank(values[name]):
                raise RecordValidationError(schema.model, [f"'{name}' is required"])
        return self._write(schema, id, values)

    def update_field(
        self, schema: SchemaDocument, id: Any, field_name: str, value: Any
    ) -> dict[str, Any]:
        """Update one field of an existing record."""
        self._guard(schema, "update")
        if field_name not in schema.editable_fields():
            raise RecordValidationError(
                schema.model, [f"'{field_name}' is not an editable field"]
            )
        if schema.fields[field_name].required and _is_blank(value):
            raise RecordValidationError(schema.model, [f"'{field_name}' is required"])
        return self._write(schema, id, {field_name: value})

    def delete(self, schema: SchemaDocument, id: Any) -> DeleteOutcome:
        """Cascade to child collections, then delete the record, in one transaction.

        Soft-delete schemas get their deletion marker set; everything else
        is removed.
        """
        self._guard(schema, "delete")
        table = table_for(schema)
        pk = table.c[schema.primary_key]

        with self.db.unit_of_work() as conn:
            record = self._fetch(conn, schema, id)
            if record is None:
                raise RecordNotFoundError(schema.model, id)

            cascaded = self.cascade.cascade_delete(conn, schema, record, schema.soft_delete)

            if schema.soft_delete:
                conn.execute(
                    sa.update(table)
                    .where(pk == id)
                    .values({schema.deleted_at: _now()})
                )
            else:
                conn.execute(sa.delete(table).where(pk == id))

        logger.debug(
            "%s %s %s", "Soft-deleted" if schema.soft_delete else "Deleted", schema.model, id
        )
        return DeleteOutcome(id=id, soft=schema.soft_delete, cascaded=cascaded)

    def restore(self, schema: SchemaDocument, id: Any) -> dict[str, Any]:
        """Clear the deletion marker of a soft-deleted record."""
        self._guard(schema, "update")
        if not schema.soft_delete:
            raise RecordValidationError(schema.model, ["schema does not support soft delete"])

        table = table_for(schema)
        deleted_at = table.c[schema.deleted_at]
        with self.db.unit_of_work() as conn:
            restored = conn.execute(
                sa.update(table)
                .where(table.c[schema.primary_key] == id, deleted_at.is_not(None))
                .values({schema.deleted_at: None})
            ).rowcount
            if not restored:
                raise RecordNotFoundError(schema.model, id)
            return self._fetch(conn, schema, id)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _guard(self, schema: SchemaDocument, action: str) -> None:
        if self.checker is not None:
            require_access(schema, action, self.checker)

    def _fetch(
        self,
        conn: Connection,
        schema: SchemaDocument,
        id: Any,
        include_deleted: bool = False,
    ) -> dict[str, Any] | None:
        table = table_for(schema)
        stmt = sa.select(table).where(
            table.c[schema.primary_key] == id,
            *soft_delete_scope(schema, table, include_deleted),
        )
        row = conn.execute(stmt).mappings().first()
        return dict(row) if row else None

    def _write(
        self, schema: SchemaDocument, id: Any, values: dict[str, Any]
    ) -> dict[str, Any]:
        table = table_for(schema)
        with self.db.unit_of_work() as conn:
            if self._fetch(conn, schema, id) is None:
                raise RecordNotFoundError(schema.model, id)
            if values:
                self._stamp(schema, values, created=False)
                conn.execute(
                    sa.update(table)
                    .where(table.c[schema.primary_key] == id)
                    .values(values)
                )
                logger.debug("Updated %s %s: %s", schema.model, id, ", ".join(values))
            return self._fetch(conn, schema, id)

    def _stamp(self, schema: SchemaDocument, values: dict[str, Any], created: bool) -> None:
        """Set audit timestamps for declared timestamp columns."""
        if not schema.timestamps:
            return
        now = _now()
        if created and CREATED_AT in schema.fields:
            values.setdefault(CREATED_AT, now)
        if UPDATED_AT in schema.fields:
            values[UPDATED_AT] = now


def _now() -> str:
    return datetime.now(UTC).isoformat()


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())
