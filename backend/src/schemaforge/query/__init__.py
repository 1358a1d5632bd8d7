"""Listing criteria, field whitelist and SQLAlchemy Core query helpers."""

from schemaforge.query.criteria import FilterCondition, FilterOperator, QueryCriteria
from schemaforge.query.whitelist import CheckedCriteria, check_criteria

__all__ = [
    "CheckedCriteria",
    "FilterCondition",
    "FilterOperator",
    "QueryCriteria",
    "check_criteria",
]
