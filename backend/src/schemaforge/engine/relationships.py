"""Relationship traversal: attach/detach and joined read paths.

Many-to-many relationships are writable through their pivot table.
Through relationships are read-only; they are listed by joining the
related table to the intermediate entity. Detail (one-to-many) child
collections share the same read path.

Every read validates criteria against the *related* entity's schema.
"""

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Any

import sqlalchemy as sa
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.engine import Connection
from sqlalchemy.sql.expression import Insert

from schemaforge.errors import (
    RecordValidationError,
    RelationshipNotFoundError,
    UnsupportedRelationshipError,
)
from schemaforge.engine.listing import ListingResult
from schemaforge.persistence.database import Database
from schemaforge.query.builder import fetch_page, soft_delete_scope, table_for
from schemaforge.query.criteria import QueryCriteria
from schemaforge.query.whitelist import check_criteria, select_columns
from schemaforge.schema.resolver import SchemaResolver
from schemaforge.schema.types import (
    ManyToManyRelationship,
    SchemaDocument,
    ThroughRelationship,
)

logger = logging.getLogger(__name__)


@dataclass
class RelationshipResult:
    """Outcome of an attach or detach call."""

    operation: str
    count: int
    success: bool = True

    def to_dict(self) -> dict[str, Any]:
        return {"success": self.success, "count": self.count}


class RelationshipEngine:
    def __init__(self, db: Database, resolver: SchemaResolver):
        self.db = db
        self.resolver = resolver

    # ------------------------------------------------------------------
    # Mutation path (many-to-many only)
    # ------------------------------------------------------------------

    def attach(
        self,
        schema: SchemaDocument,
        parent_id: Any,
        name: str,
        related_ids: Iterable[Any],
    ) -> int:
        """Link related ids to the parent. Returns the number of new links.

        Ids already linked, and repeats within the request, are skipped.
        A link written by a concurrent caller between the existence check
        and the insert is skipped too, via the pivot's uniqueness.
        """
        relationship = self._writable(schema, name, "attach")
        ids = _unique(related_ids)
        if not ids:
            return 0

        pivot = _pivot_table(relationship)
        foreign = pivot.c[relationship.foreign_key]
        related = pivot.c[relationship.related_key]

        attached = 0
        with self.db.unit_of_work() as conn:
            existing = {
                str(value)
                for value in conn.execute(
                    sa.select(related).where(foreign == parent_id, related.in_(ids))
                ).scalars()
            }
            insert = _insert_ignoring_duplicates(conn, pivot)
            for i in ids:
                if str(i) in existing:
                    continue
                attached += conn.execute(
                    insert.values(
                        {relationship.foreign_key: parent_id, relationship.related_key: i}
                    )
                ).rowcount

        logger.debug(
            "Attached %d of %d %s to %s %s",
            attached, len(ids), name, schema.model, parent_id,
        )
        return attached

    def detach(
        self,
        schema: SchemaDocument,
        parent_id: Any,
        name: str,
        related_ids: Iterable[Any],
    ) -> int:
        """Unlink related ids from this parent only. Returns rows removed."""
        relationship = self._writable(schema, name, "detach")
        ids = _unique(related_ids)
        if not ids:
            return 0

        pivot = _pivot_table(relationship)
        stmt = sa.delete(pivot).where(
            pivot.c[relationship.foreign_key] == parent_id,
            pivot.c[relationship.related_key].in_(ids),
        )
        with self.db.unit_of_work() as conn:
            removed = conn.execute(stmt).rowcount

        logger.debug("Detached %d %s from %s %s", removed, name, schema.model, parent_id)
        return removed

    def apply_payload(
        self,
        schema: SchemaDocument,
        parent_id: Any,
        name: str,
        payload: Mapping[str, Any],
        operation: str = "attach",
    ) -> RelationshipResult:
        """Attach or detach the ids of an ``{"ids": [...]}`` payload."""
        ids = payload.get("ids")
        if not isinstance(ids, (list, tuple)):
            raise RecordValidationError(schema.model, ["'ids' must be a list of identifiers"])
        if operation == "attach":
            count = self.attach(schema, parent_id, name, ids)
        elif operation == "detach":
            count = self.detach(schema, parent_id, name, ids)
        else:
            raise ValueError(f"Unknown relationship operation: {operation}")
        return RelationshipResult(operation=operation, count=count)

    # ------------------------------------------------------------------
    # Read path
    # ------------------------------------------------------------------

    def list_related(
        self,
        schema: SchemaDocument,
        parent_id: Any,
        name: str,
        criteria: QueryCriteria | None = None,
        strict: bool = False,
    ) -> ListingResult:
        """List one page of related records for a parent."""
        relationship = self._relationship(schema, name)
        criteria = criteria or QueryCriteria()
        related_schema = self.resolver.resolve(relationship.model, schema.connection)

        if isinstance(relationship, ManyToManyRelationship):
            related = table_for(related_schema)
            pivot = _pivot_table(relationship)
            source = related.join(
                pivot, related.c[related_schema.primary_key] == pivot.c[relationship.related_key]
            )
            scope = [pivot.c[relationship.foreign_key] == parent_id]
        else:
            through_schema = self.resolver.resolve(relationship.through, schema.connection)
            related = table_for(related_schema, extra=[relationship.foreign_key])
            through = table_for(through_schema, extra=[relationship.through_key])
            source = related.join(
                through,
                related.c[relationship.foreign_key] == through.c[through_schema.primary_key],
            )
            scope = [through.c[relationship.through_key] == parent_id]
            scope.extend(soft_delete_scope(through_schema, through, criteria.include_deleted))

        scope.extend(soft_delete_scope(related_schema, related, criteria.include_deleted))
        return self._page(related_schema, related, source, scope, criteria, strict)

    def list_details(
        self,
        schema: SchemaDocument,
        parent_id: Any,
        detail_model: str,
        criteria: QueryCriteria | None = None,
        strict: bool = False,
    ) -> ListingResult:
        """List one page of a declared child collection for a parent."""
        detail = schema.get_detail(detail_model)
        if detail is None:
            raise RelationshipNotFoundError(schema.model, detail_model)

        criteria = criteria or QueryCriteria()
        child_schema = self.resolver.resolve(detail.model, schema.connection)
        table = table_for(child_schema, extra=[detail.foreign_key])
        scope = [table.c[detail.foreign_key] == parent_id]
        scope.extend(soft_delete_scope(child_schema, table, criteria.include_deleted))
        return self._page(
            child_schema, table, table, scope, criteria, strict, names=detail.list_fields
        )

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _page(
        self,
        schema: SchemaDocument,
        table: sa.TableClause,
        source: Any,
        scope: list[Any],
        criteria: QueryCriteria,
        strict: bool,
        names: tuple[str, ...] = (),
    ) -> ListingResult:
        checked = check_criteria(schema, criteria, strict=strict)
        columns = [table.c[n] for n in select_columns(schema, names)]
        with self.db.connect() as conn:
            rows, count, count_filtered = fetch_page(
                conn,
                columns=columns,
                source=source,
                scope=scope,
                checked=checked,
                table=table,
                offset=criteria.offset,
                limit=criteria.per_page,
            )
        return ListingResult(
            rows=rows,
            count=count,
            count_filtered=count_filtered,
            page=criteria.page,
            per_page=criteria.per_page,
        )

    def _relationship(
        self, schema: SchemaDocument, name: str
    ) -> ManyToManyRelationship | ThroughRelationship:
        relationship = schema.get_relationship(name)
        if relationship is None:
            raise RelationshipNotFoundError(schema.model, name)
        return relationship

    def _writable(
        self, schema: SchemaDocument, name: str, operation: str
    ) -> ManyToManyRelationship:
        relationship = self._relationship(schema, name)
        if not isinstance(relationship, ManyToManyRelationship):
            raise UnsupportedRelationshipError(
                schema.model, name, relationship.kind.value, operation
            )
        return relationship


def _pivot_table(relationship: ManyToManyRelationship) -> sa.TableClause:
    return sa.table(
        relationship.pivot_table,
        sa.column(relationship.foreign_key),
        sa.column(relationship.related_key),
    )


def _insert_ignoring_duplicates(conn: Connection, pivot: sa.TableClause) -> Insert:
    """INSERT that skips rows colliding with the pivot's unique key."""
    dialect = conn.dialect.name
    if dialect == "sqlite":
        return sqlite.insert(pivot).on_conflict_do_nothing()
    if dialect == "postgresql":
        return postgresql.insert(pivot).on_conflict_do_nothing()
    return sa.insert(pivot)


def _unique(ids: Iterable[Any]) -> list[Any]:
    """Drop empty and repeated ids, keeping first-seen order."""
    seen: set[str] = set()
    result = []
    for value in ids:
        if value is None or value == "":
            continue
        key = str(value)
        if key not in seen:
            seen.add(key)
            result.append(value)
    return result
