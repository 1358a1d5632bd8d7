"""Query criteria: the per-call listing parameters.

Criteria are rebuilt on every call from raw request parameters and are
never trusted: field names are only candidates until the whitelist has
checked them against a schema.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from schemaforge.config import DEFAULT_PER_PAGE, MAX_PER_PAGE, EngineSettings
from schemaforge.schema.types import SortDirection

logger = logging.getLogger(__name__)

# Parameters with a fixed meaning; every other top-level key is a candidate filter
RESERVED_PARAMS = frozenset({
    "page", "per_page", "size", "sort", "order", "direction",
    "search", "filters", "include_deleted", "context",
})

_TRUE_STRINGS = ("1", "true", "yes", "on")


class FilterOperator(Enum):
    EQUALS = "equals"
    LIKE = "like"
    STARTS_WITH = "starts_with"
    ENDS_WITH = "ends_with"
    GREATER_THAN = "greater_than"
    LESS_THAN = "less_than"
    BETWEEN = "between"

    @classmethod
    def parse(cls, value: Any) -> FilterOperator | None:
        if isinstance(value, FilterOperator):
            return value
        if isinstance(value, str):
            try:
                return cls(value.strip().lower())
            except ValueError:
                return None
        return None


@dataclass(frozen=True)
class FilterCondition:
    """One requested filter.

    ``operator`` is None when the caller gave a bare value; the field's
    declared ``filter_type`` (or equals) applies then.
    """

    field: str
    value: Any
    operator: FilterOperator | None = None


@dataclass
class QueryCriteria:
    page: int = 1
    per_page: int = DEFAULT_PER_PAGE
    sort: str | None = None
    direction: SortDirection = SortDirection.ASC
    filters: list[FilterCondition] = field(default_factory=list)
    search: str | None = None
    include_deleted: bool = False

    def __post_init__(self) -> None:
        self.page = max(1, self.page)
        self.per_page = max(1, min(self.per_page, MAX_PER_PAGE))

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.per_page

    @classmethod
    def from_params(
        cls,
        params: Mapping[str, Any] | None = None,
        settings: EngineSettings | None = None,
    ) -> QueryCriteria:
        """Build criteria from raw request parameters.

        Recognised keys: ``page``, ``per_page``/``size``, ``sort``,
        ``order``/``direction``, ``search``, ``include_deleted`` and
        ``filters`` (a field -> value mapping). Any other key is taken as a
        filter on the field of that name. Filter values are scalars or
        ``{"operator": ..., "value": ...}`` mappings. Unparseable numbers
        fall back to the defaults.
        """
        params = params or {}
        settings = settings or EngineSettings()

        per_page_raw = params.get("per_page", params.get("size"))
        per_page = _to_int(per_page_raw, settings.default_per_page)
        per_page = max(1, min(per_page, settings.max_per_page))

        sort = params.get("sort")
        sort = sort.strip() if isinstance(sort, str) and sort.strip() else None

        search = params.get("search")
        search = search.strip() if isinstance(search, str) and search.strip() else None

        raw_filters: dict[str, Any] = {
            k: v for k, v in params.items() if k not in RESERVED_PARAMS
        }
        nested = params.get("filters")
        if isinstance(nested, Mapping):
            raw_filters.update(nested)

        return cls(
            page=_to_int(params.get("page"), 1),
            per_page=per_page,
            sort=sort,
            direction=SortDirection.parse(params.get("order", params.get("direction"))),
            filters=_parse_filters(raw_filters),
            search=search,
            include_deleted=_to_bool(params.get("include_deleted")),
        )


def _parse_filters(raw: Mapping[str, Any]) -> list[FilterCondition]:
    conditions = []
    for name, value in raw.items():
        if not isinstance(name, str):
            continue
        operator = None
        if isinstance(value, Mapping):
            operator = FilterOperator.parse(value.get("operator"))
            if value.get("operator") is not None and operator is None:
                logger.debug("Ignoring filter on '%s': unknown operator %r", name, value.get("operator"))
                continue
            value = value.get("value")
        if value is None or value == "" or value == []:
            continue
        conditions.append(FilterCondition(field=name, value=value, operator=operator))
    return conditions


def _to_int(value: Any, default: int) -> int:
    if value is None or isinstance(value, bool):
        return default
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def _to_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in _TRUE_STRINGS
    return bool(value)
