"""
Domain Layer - Material Search Entities

Pure value objects with no I/O. See entities.material for the record,
routing and merge types.
"""

from .entities import (
    Availability,
    AvailabilityReport,
    CollectionStats,
    CollectionTarget,
    MaterialRecord,
    MergedResult,
    RawMatch,
    RoutingDecision,
    SearchMode,
)

__all__ = [
    "Availability",
    "AvailabilityReport",
    "CollectionStats",
    "CollectionTarget",
    "MaterialRecord",
    "MergedResult",
    "RawMatch",
    "RoutingDecision",
    "SearchMode",
]
