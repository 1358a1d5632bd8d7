"""Data-access engines driven by resolved schema documents."""

from schemaforge.engine.cascade import CascadeCoordinator
from schemaforge.engine.listing import ListingEngine, ListingResult
from schemaforge.engine.records import DeleteOutcome, RecordService
from schemaforge.engine.relationships import RelationshipEngine, RelationshipResult

__all__ = [
    "CascadeCoordinator",
    "DeleteOutcome",
    "ListingEngine",
    "ListingResult",
    "RecordService",
    "RelationshipEngine",
    "RelationshipResult",
]
