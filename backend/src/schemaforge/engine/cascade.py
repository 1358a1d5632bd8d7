"""Cascade deletion of declared child collections.

Runs inside the caller's unit of work, before the parent row is removed.
Children are processed in declaration order, one level deep. When the
parent deletion is soft and the child schema supports soft delete, child
rows are marked deleted; otherwise they are hard-deleted.
"""

import logging
from collections.abc import Mapping
from datetime import UTC, datetime
from typing import Any

import sqlalchemy as sa
from sqlalchemy.engine import Connection

from schemaforge.query.builder import table_for
from schemaforge.schema.resolver import SchemaResolver
from schemaforge.schema.types import SchemaDocument

logger = logging.getLogger(__name__)


class CascadeCoordinator:
    def __init__(self, resolver: SchemaResolver):
        self.resolver = resolver

    def cascade_delete(
        self,
        conn: Connection,
        schema: SchemaDocument,
        parent_record: Mapping[str, Any],
        is_soft_delete: bool,
    ) -> dict[str, int]:
        """Delete or soft-delete every child collection of one parent record.

        Args:
            conn: Connection of the enclosing transaction.
            schema: Parent schema.
            parent_record: The parent row; must carry the primary key.
            is_soft_delete: Whether the parent itself is being soft-deleted.

        Returns:
            Affected row count per child model, in declaration order.
        """
        parent_id = parent_record[schema.primary_key]
        counts: dict[str, int] = {}

        for detail in schema.details:
            child = self.resolver.resolve(detail.model, schema.connection)
            table = table_for(child, extra=[detail.foreign_key])
            match = table.c[detail.foreign_key] == parent_id

            if is_soft_delete and child.soft_delete:
                deleted_at = table.c[child.deleted_at]
                stmt = (
                    sa.update(table)
                    .where(match, deleted_at.is_(None))
                    .values({child.deleted_at: datetime.now(UTC).isoformat()})
                )
                mode = "soft-deleted"
            else:
                stmt = sa.delete(table).where(match)
                mode = "deleted"

            affected = conn.execute(stmt).rowcount
            counts[detail.model] = counts.get(detail.model, 0) + affected
            logger.debug(
                "Cascade from %s %s: %s %d %s row(s)",
                schema.model, parent_id, mode, affected, child.model,
            )

        return counts
