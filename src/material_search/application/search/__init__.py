"""
Unified Material Search

Routes raw-material queries to the in-stock and/or full-catalog
collections and merges the results with an in-stock-first policy.

Key Components:
- CollectionRouter: Decides which collection(s) a query targets
- CollectionSearchExecutor: Concurrent, fault-isolated per-collection search
- ResultMerger: Availability tagging, dedup and priority ranking
- AvailabilityAnnotator: "Do we have X?" checks and result statistics
- UnifiedSearchService: Facade over the whole pipeline

Architecture:
    User Query
        │
        ▼
    ┌──────────────────┐
    │ CollectionRouter │  ← stock / catalog markers
    └────────┬─────────┘
             │ RoutingDecision
             ▼
    ┌─────────────────────────────┐
    │  CollectionSearchExecutor   │  ← in_stock ‖ full_catalog
    └────────┬────────────────────┘
             │ RawMatch lists
             ▼
    ┌──────────────────┐
    │   ResultMerger   │  ← dedup by material code, in-stock first
    └────────┬─────────┘
             ▼
      MergedResult list
"""

from .availability import AvailabilityAnnotator, collection_stats
from .collection_router import CollectionRouter, RoutingKeywordTable
from .query_classifier import ClassifiedQuery, MaterialQueryClassifier
from .result_merger import MergePolicy, MergeStats, ResultMerger
from .search_executor import (
    CollectionSearchExecutor,
    CollectionSearchResult,
    SearchOptions,
)
from .unified_search import MaterialFilter, UnifiedSearchOutcome, UnifiedSearchService

__all__ = [
    "AvailabilityAnnotator",
    "collection_stats",
    "CollectionRouter",
    "RoutingKeywordTable",
    "ClassifiedQuery",
    "MaterialQueryClassifier",
    "MergePolicy",
    "MergeStats",
    "ResultMerger",
    "CollectionSearchExecutor",
    "CollectionSearchResult",
    "SearchOptions",
    "MaterialFilter",
    "UnifiedSearchOutcome",
    "UnifiedSearchService",
]
