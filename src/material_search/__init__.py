"""
Material Search - Collection routing and result merging for raw materials

Searches cosmetic raw materials across two collections, the materials
currently in stock and the full registered-ingredient catalog, and merges
the results with an in-stock-first policy.

Usage:
    from material_search import ApplicationContainer

    container = ApplicationContainer()
    container.config.from_dict({"mongodb_uri": "mongodb://localhost:27017", ...})
    service = container.unified_search_service()

    outcome = await service.unified_search("มี Vitamin C ไหม?")
    for result in outcome.results:
        print(result.record.code, result.availability.value)

Features:
    - Thai/English routing to in-stock, full-catalog or both collections
    - Concurrent per-collection search with timeouts and fault isolation
    - Dedup by material code, in-stock copy wins
    - Availability checks with catalog alternatives
"""

from .application.search import (
    AvailabilityAnnotator,
    CollectionRouter,
    CollectionSearchExecutor,
    MergePolicy,
    ResultMerger,
    SearchOptions,
    UnifiedSearchService,
)
from .container import ApplicationContainer
from .domain.entities import (
    Availability,
    CollectionTarget,
    MaterialRecord,
    MergedResult,
    RoutingDecision,
    SearchMode,
)

__version__ = "0.1.0"

__all__ = [
    "ApplicationContainer",
    "AvailabilityAnnotator",
    "CollectionRouter",
    "CollectionSearchExecutor",
    "MergePolicy",
    "ResultMerger",
    "SearchOptions",
    "UnifiedSearchService",
    "Availability",
    "CollectionTarget",
    "MaterialRecord",
    "MergedResult",
    "RoutingDecision",
    "SearchMode",
]
