"""Domain entities."""

from .material import (
    Availability,
    AvailabilityReport,
    CollectionStats,
    CollectionTarget,
    MaterialRecord,
    MergedResult,
    RawMatch,
    RoutingDecision,
    SearchMode,
    parse_text_list,
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
    "parse_text_list",
]
