"""
Application Layer - Use Cases and Business Logic Orchestration

Contains:
- search: collection routing, per-collection search, merging, availability
"""

from .search import (
    AvailabilityAnnotator,
    CollectionRouter,
    CollectionSearchExecutor,
    MergePolicy,
    ResultMerger,
    SearchOptions,
    UnifiedSearchService,
)

__all__ = [
    "AvailabilityAnnotator",
    "CollectionRouter",
    "CollectionSearchExecutor",
    "MergePolicy",
    "ResultMerger",
    "SearchOptions",
    "UnifiedSearchService",
]
