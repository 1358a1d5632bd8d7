"""Field whitelist shared by the listing and relationship engines.

No field name reaches SQL unless it passed one of these checks against
the schema of the entity being queried. Requested fields that fail the
check are dropped (logged at debug level) or, in strict mode, raised as
InvalidCriteriaError.
"""

import logging
from dataclasses import dataclass
from typing import Any

from schemaforge.errors import InvalidCriteriaError
from schemaforge.query.criteria import FilterCondition, FilterOperator, QueryCriteria
from schemaforge.schema.types import SchemaDocument, SortDirection

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CheckedFilter:
    field: str
    operator: FilterOperator
    value: Any


@dataclass(frozen=True)
class CheckedCriteria:
    """Criteria whose every field name has been validated against one schema."""

    filters: tuple[CheckedFilter, ...]
    search: str | None
    search_fields: tuple[str, ...]
    order: tuple[tuple[str, SortDirection], ...]
    ignored: tuple[str, ...] = ()


def is_sortable(schema: SchemaDocument, name: str) -> bool:
    f = schema.fields.get(name)
    return f is not None and f.sortable


def is_filterable(schema: SchemaDocument, name: str) -> bool:
    f = schema.fields.get(name)
    return f is not None and f.filterable


def is_searchable(schema: SchemaDocument, name: str) -> bool:
    f = schema.fields.get(name)
    return f is not None and f.searchable


def select_columns(schema: SchemaDocument, names: list[str] | tuple[str, ...] = ()) -> list[str]:
    """Columns returned to the caller: the requested (or listable) fields plus the primary key."""
    if names:
        columns = [n for n in names if n in schema.fields]
    else:
        columns = schema.listable_fields()
    if schema.primary_key not in columns:
        columns.insert(0, schema.primary_key)
    return columns


def check_criteria(
    schema: SchemaDocument,
    criteria: QueryCriteria,
    strict: bool = False,
) -> CheckedCriteria:
    """Validate criteria field names against a schema's capability flags."""
    ignored: list[str] = []

    def reject(name: str, capability: str) -> None:
        if strict:
            raise InvalidCriteriaError(schema.model, name, capability)
        logger.debug("Ignoring %s field '%s' on %s", capability, name, schema.model)
        ignored.append(name)

    filters = []
    for condition in criteria.filters:
        if not is_filterable(schema, condition.field):
            reject(condition.field, "filterable")
            continue
        checked = _check_filter(schema, condition)
        if checked is None:
            reject(condition.field, "filterable")
            continue
        filters.append(checked)

    search_fields = tuple(schema.searchable_fields()) if criteria.search else ()

    order: list[tuple[str, SortDirection]] = []
    if criteria.sort:
        if is_sortable(schema, criteria.sort):
            order.append((criteria.sort, criteria.direction))
        else:
            reject(criteria.sort, "sortable")
    if not order:
        # Declared defaults are authored, not requested; they need only be declared fields
        order.extend(
            (name, direction) for name, direction in schema.default_sort
            if name in schema.fields or name == schema.primary_key
        )
    if all(name != schema.primary_key for name, _ in order):
        order.append((schema.primary_key, SortDirection.ASC))

    return CheckedCriteria(
        filters=tuple(filters),
        search=criteria.search if search_fields else None,
        search_fields=search_fields,
        order=tuple(order),
        ignored=tuple(ignored),
    )


def _check_filter(schema: SchemaDocument, condition: FilterCondition) -> CheckedFilter | None:
    descriptor = schema.fields[condition.field]
    operator = (
        condition.operator
        or FilterOperator.parse(descriptor.filter_type)
        or FilterOperator.EQUALS
    )
    value = condition.value

    if operator is FilterOperator.BETWEEN:
        if isinstance(value, str):
            value = [part.strip() for part in value.split(",")]
        if not isinstance(value, (list, tuple)) or len(value) != 2:
            return None
        value = tuple(value)
    elif isinstance(value, (list, tuple, dict)):
        return None

    return CheckedFilter(field=condition.field, operator=operator, value=value)
