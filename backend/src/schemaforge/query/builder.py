"""SQLAlchemy Core query construction for schema-described tables.

Tables are built on the fly from schema documents with ``sa.table`` /
``sa.column``, so identifiers are always quoted by the dialect and values
are always bound parameters. Only names that passed the whitelist (or
were authored in a schema document) are handed to these helpers.
"""

import logging
from collections.abc import Iterable, Sequence
from typing import Any

import sqlalchemy as sa
from sqlalchemy.engine import Connection
from sqlalchemy.sql.expression import ColumnElement, FromClause, Select, TableClause

from schemaforge.query.criteria import FilterOperator
from schemaforge.query.whitelist import CheckedCriteria, CheckedFilter
from schemaforge.schema.types import SchemaDocument, SortDirection

logger = logging.getLogger(__name__)


def table_for(schema: SchemaDocument, extra: Iterable[str] = ()) -> TableClause:
    """Lightweight table construct with the schema's declared columns."""
    names = [schema.primary_key]
    names.extend(n for n in schema.fields if n != schema.primary_key)
    if schema.soft_delete and schema.deleted_at not in names:
        names.append(schema.deleted_at)
    names.extend(n for n in extra if n not in names)
    return sa.table(schema.table, *(sa.column(n) for n in names))


def soft_delete_scope(
    schema: SchemaDocument, table: TableClause, include_deleted: bool = False
) -> list[ColumnElement[bool]]:
    """Predicate hiding soft-deleted rows (empty when not applicable)."""
    if not schema.soft_delete or include_deleted:
        return []
    return [table.c[schema.deleted_at].is_(None)]


def filter_clause(column: ColumnElement[Any], checked: CheckedFilter) -> ColumnElement[bool]:
    op = checked.operator
    value = checked.value
    if op is FilterOperator.LIKE:
        return sa.cast(column, sa.String).icontains(str(value), autoescape=True)
    if op is FilterOperator.STARTS_WITH:
        return sa.cast(column, sa.String).istartswith(str(value), autoescape=True)
    if op is FilterOperator.ENDS_WITH:
        return sa.cast(column, sa.String).iendswith(str(value), autoescape=True)
    if op is FilterOperator.GREATER_THAN:
        return column > value
    if op is FilterOperator.LESS_THAN:
        return column < value
    if op is FilterOperator.BETWEEN:
        low, high = value
        return column.between(low, high)
    return column == value


def search_clause(
    table: TableClause, fields: Sequence[str], term: str
) -> ColumnElement[bool]:
    """Case-insensitive OR of substring matches across searchable fields."""
    return sa.or_(
        *(sa.cast(table.c[name], sa.String).icontains(term, autoescape=True) for name in fields)
    )


def criteria_predicates(
    table: TableClause, checked: CheckedCriteria
) -> list[ColumnElement[bool]]:
    predicates = [filter_clause(table.c[f.field], f) for f in checked.filters]
    if checked.search and checked.search_fields:
        predicates.append(search_clause(table, checked.search_fields, checked.search))
    return predicates


def order_by_clauses(
    table: TableClause, order: Sequence[tuple[str, SortDirection]]
) -> list[ColumnElement[Any]]:
    return [
        table.c[name].desc() if direction is SortDirection.DESC else table.c[name].asc()
        for name, direction in order
    ]


def count_rows(
    conn: Connection, source: FromClause, where: Sequence[ColumnElement[bool]]
) -> int:
    stmt = sa.select(sa.func.count()).select_from(source)
    if where:
        stmt = stmt.where(*where)
    return conn.execute(stmt).scalar_one()


def fetch_page(
    conn: Connection,
    *,
    columns: Sequence[ColumnElement[Any]],
    source: FromClause,
    scope: Sequence[ColumnElement[bool]],
    checked: CheckedCriteria,
    table: TableClause,
    offset: int,
    limit: int,
) -> tuple[list[dict[str, Any]], int, int]:
    """Run the count / filter / count / sort / paginate sequence.

    ``scope`` holds the predicates every row set is restricted to (parent
    match, soft-delete scope); the unfiltered count uses only those.

    Returns:
        (rows, count, count_filtered)
    """
    count = count_rows(conn, source, scope)

    predicates = criteria_predicates(table, checked)
    where = [*scope, *predicates]
    count_filtered = count_rows(conn, source, where) if predicates else count

    stmt: Select = sa.select(*columns).select_from(source)
    if where:
        stmt = stmt.where(*where)
    stmt = stmt.order_by(*order_by_clauses(table, checked.order)).offset(offset).limit(limit)

    logger.debug("Listing %s: count=%d filtered=%d", table.name, count, count_filtered)
    rows = [dict(row) for row in conn.execute(stmt).mappings()]
    return rows, count, count_filtered
