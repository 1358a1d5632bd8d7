"""Generic record listing over schema-described tables."""

import logging
import math
from dataclasses import dataclass, field
from typing import Any

from schemaforge.config import EngineSettings
from schemaforge.persistence.database import Database
from schemaforge.query.builder import fetch_page, soft_delete_scope, table_for
from schemaforge.query.criteria import QueryCriteria
from schemaforge.query.whitelist import check_criteria, select_columns
from schemaforge.schema.types import SchemaDocument

logger = logging.getLogger(__name__)


@dataclass
class ListingResult:
    """One page of rows plus the unfiltered and filtered totals.

    ``count`` is the total before filters and search (soft-delete scope
    still applies); ``count_filtered`` is the total after them, before
    pagination.
    """

    rows: list[dict[str, Any]] = field(default_factory=list)
    count: int = 0
    count_filtered: int = 0
    page: int = 1
    per_page: int = 0

    @property
    def total_pages(self) -> int:
        if self.per_page <= 0:
            return 0
        return math.ceil(self.count_filtered / self.per_page)

    def to_dict(self) -> dict[str, Any]:
        return {
            "rows": self.rows,
            "count": self.count,
            "count_filtered": self.count_filtered,
            "page": self.page,
            "per_page": self.per_page,
            "total_pages": self.total_pages,
        }


class ListingEngine:
    """Sort / filter / search / paginate any table described by a schema."""

    def __init__(self, db: Database, settings: EngineSettings | None = None):
        self.db = db
        self.settings = settings or EngineSettings()

    def criteria(self, params: dict[str, Any] | None = None) -> QueryCriteria:
        """Build criteria from request parameters using this engine's settings."""
        return QueryCriteria.from_params(params, self.settings)

    def list(
        self,
        schema: SchemaDocument,
        criteria: QueryCriteria | None = None,
        strict: bool = False,
    ) -> ListingResult:
        """List one page of a schema's records.

        Args:
            schema: Resolved schema of the entity to list.
            criteria: Paging, sort, filter and search parameters.
            strict: Raise InvalidCriteriaError instead of ignoring fields
                    that are not declared with the needed capability.
        """
        criteria = criteria or QueryCriteria(per_page=self.settings.default_per_page)
        checked = check_criteria(schema, criteria, strict=strict)

        table = table_for(schema)
        columns = [table.c[name] for name in select_columns(schema)]
        scope = soft_delete_scope(schema, table, criteria.include_deleted)

        with self.db.connect() as conn:
            rows, count, count_filtered = fetch_page(
                conn,
                columns=columns,
                source=table,
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
