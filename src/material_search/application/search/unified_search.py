"""
UnifiedSearchService - Route, search, merge and annotate in one call.

Flow:
    query
      │
      ▼
    CollectionRouter.route()          which collection(s)?
      │
      ▼
    CollectionSearchExecutor          concurrent, fault-isolated
      │
      ▼
    ResultMerger.merge()              availability, dedup, priority
      │
      ▼
    MaterialFilter (optional)         use case / benefit / supplier / max cost
      │
      ▼
    UnifiedSearchOutcome              results + stats + diagnostics
"""

from __future__ import annotations

import logging
import time
from collections.abc import Iterable
from dataclasses import dataclass, field, replace
from typing import Any

from material_search.core.async_utils import gather_with_errors, timeout_with_fallback
from material_search.domain.entities import (
    AvailabilityReport,
    CollectionStats,
    CollectionTarget,
    MaterialRecord,
    MergedResult,
    RawMatch,
    RoutingDecision,
)

from .availability import AvailabilityAnnotator, collection_stats
from .collection_router import CollectionRouter
from .result_merger import MergeStats, ResultMerger
from .search_executor import CollectionSearchExecutor, CollectionSearchResult, SearchOptions

logger = logging.getLogger(__name__)

# Profile and use-case lookups accept looser matches than free search.
RELAXED_THRESHOLD = 0.45


@dataclass(frozen=True)
class MaterialFilter:
    """Post-merge filter on record fields (all criteria must hold)."""

    benefit: str | None = None
    supplier: str | None = None
    max_cost: float | None = None
    use_case: str | None = None

    @property
    def active(self) -> bool:
        return bool(
            self.benefit or self.supplier or self.use_case or self.max_cost is not None
        )

    def matches(self, record: MaterialRecord) -> bool:
        if self.use_case:
            needle = self.use_case.casefold()
            if not any(needle in text.casefold() for text in record.use_cases):
                return False
        if self.benefit:
            needle = self.benefit.casefold()
            haystack = [*record.benefits, *record.use_cases, *record.functions]
            if not any(needle in text.casefold() for text in haystack):
                return False
        if self.supplier:
            if not record.supplier or self.supplier.casefold() not in record.supplier.casefold():
                return False
        if self.max_cost is not None and record.cost is not None:
            if record.cost > self.max_cost:
                return False
        return True


@dataclass
class UnifiedSearchOutcome:
    """Everything the presentation layer needs to render a search."""

    query: str
    decision: RoutingDecision
    results: list[MergedResult] = field(default_factory=list)
    stats: CollectionStats = field(default_factory=CollectionStats)
    merge_stats: MergeStats = field(default_factory=MergeStats)
    collections: dict[CollectionTarget, CollectionSearchResult] = field(default_factory=dict)
    filtered_out: int = 0
    elapsed_ms: float = 0.0

    @property
    def failed_collections(self) -> list[str]:
        return [t.value for t, r in self.collections.items() if not r.ok]

    @property
    def is_empty(self) -> bool:
        return not self.results

    def to_dict(self) -> dict[str, Any]:
        return {
            "query": self.query,
            "routing": self.decision.to_dict(),
            "results": [r.to_dict() for r in self.results],
            "statistics": self.stats.to_dict(),
            "merge": self.merge_stats.to_dict(),
            "collections": {t.value: r.to_dict() for t, r in self.collections.items()},
            "failed_collections": self.failed_collections,
            "filtered_out": self.filtered_out,
            "elapsed_ms": round(self.elapsed_ms, 1),
        }


class UnifiedSearchService:
    """
    Facade over routing, per-collection search and merging.

    Usage:
        service = UnifiedSearchService(router, executor, merger, annotator)
        outcome = await service.unified_search("มี Vitamin C ไหม?")
        for result in outcome.results:
            print(result.record.code, result.availability.value)
    """

    def __init__(
        self,
        router: CollectionRouter,
        executor: CollectionSearchExecutor,
        merger: ResultMerger,
        annotator: AvailabilityAnnotator,
        default_options: SearchOptions | None = None,
    ):
        self._router = router
        self._executor = executor
        self._merger = merger
        self._annotator = annotator
        self._default_options = default_options or SearchOptions()

    @property
    def default_options(self) -> SearchOptions:
        return self._default_options

    def route(
        self,
        query: str,
        collection: CollectionTarget | str | None = None,
    ) -> RoutingDecision:
        return self._router.route(query, explicit_override=collection)

    async def unified_search(
        self,
        query: str,
        collection: CollectionTarget | str | None = None,
        options: SearchOptions | None = None,
        material_filter: MaterialFilter | None = None,
    ) -> UnifiedSearchOutcome:
        """
        Search with automatic (or explicit) collection routing.

        Args:
            query: Free-text query
            collection: Force a single collection instead of routing
            options: Per-collection search options
            material_filter: Optional post-merge field filter

        Raises:
            UnknownCollectionError: if `collection` names no collection
        """
        start = time.perf_counter()
        query = (query or "").strip()
        options = options or self._default_options
        decision = self._router.route(query, explicit_override=collection)

        if not query:
            return UnifiedSearchOutcome(query=query, decision=decision)

        logger.info(
            f"Unified search: {query!r} -> {[t.value for t in decision.targets]} "
            f"({decision.search_mode.value}, {decision.confidence:.2f}): {decision.reasoning}"
        )

        collections = await self._executor.search_targets(query, decision.targets, options)
        in_stock = self._matches(collections, CollectionTarget.IN_STOCK)
        catalog = self._matches(collections, CollectionTarget.FULL_CATALOG)

        results, merge_stats = self._merger.merge_with_stats(
            in_stock, catalog, decision.search_mode
        )

        filtered_out = 0
        if material_filter is not None and material_filter.active:
            kept = [r for r in results if material_filter.matches(r.record)]
            filtered_out = len(results) - len(kept)
            results = kept

        outcome = UnifiedSearchOutcome(
            query=query,
            decision=decision,
            results=results,
            stats=collection_stats(results),
            merge_stats=merge_stats,
            collections=collections,
            filtered_out=filtered_out,
            elapsed_ms=(time.perf_counter() - start) * 1000,
        )
        if outcome.failed_collections:
            logger.warning(
                f"Unified search {query!r} degraded; failed: {outcome.failed_collections}"
            )
        return outcome

    async def search_in_stock(
        self,
        query: str,
        options: SearchOptions | None = None,
    ) -> list[MergedResult]:
        outcome = await self.unified_search(query, CollectionTarget.IN_STOCK, options)
        return outcome.results

    async def search_full_catalog(
        self,
        query: str,
        options: SearchOptions | None = None,
    ) -> list[MergedResult]:
        outcome = await self.unified_search(query, CollectionTarget.FULL_CATALOG, options)
        return outcome.results

    async def material_profile(self, material: str, limit: int = 3) -> UnifiedSearchOutcome:
        """
        Catalog profiles for a named material, best match first.

        Fetches three candidates per requested profile (at most 15) from the
        full catalog at a relaxed threshold and keeps the top `limit`.
        """
        options = replace(
            self._default_options,
            top_k=min(limit * 3, 15),
            similarity_threshold=RELAXED_THRESHOLD,
            offset=0,
            exclude_codes=frozenset(),
        )
        outcome = await self.unified_search(material, CollectionTarget.FULL_CATALOG, options)
        outcome.results = outcome.results[:limit]
        outcome.stats = collection_stats(outcome.results)
        return outcome

    async def search_by_usecase(
        self,
        usecase: str,
        benefit: str | None = None,
        limit: int = 5,
        offset: int = 0,
        exclude_codes: frozenset[str] = frozenset(),
    ) -> UnifiedSearchOutcome:
        """
        Catalog materials suited to a product type ("serum", "eye cream").

        Results whose use cases mention `usecase` (and whose benefits mention
        `benefit`, when given) are preferred; if none do, the unfiltered
        matches are returned instead. `offset` and `limit` page the list.
        """
        usecase = (usecase or "").strip()
        benefit = (benefit or "").strip() or None
        if not usecase:
            query = ""
        elif benefit:
            query = f"{usecase} ingredients for {benefit}"
        else:
            query = f"ingredients for {usecase}"

        options = replace(
            self._default_options,
            top_k=min(limit + offset + len(exclude_codes) + 10, 60),
            similarity_threshold=RELAXED_THRESHOLD,
            offset=0,
            exclude_codes=exclude_codes,
        )
        outcome = await self.unified_search(query, CollectionTarget.FULL_CATALOG, options)

        wanted = MaterialFilter(use_case=usecase or None, benefit=benefit)
        matching = [r for r in outcome.results if wanted.matches(r.record)]
        if matching:
            outcome.filtered_out = len(outcome.results) - len(matching)
            candidates = matching
        else:
            candidates = outcome.results
        outcome.results = candidates[offset:offset + limit]
        outcome.stats = collection_stats(outcome.results)
        return outcome

    async def check_availability(self, code_or_name: str) -> AvailabilityReport:
        return await self._annotator.check_availability(code_or_name)

    def collection_stats(self, results: Iterable[MergedResult]) -> CollectionStats:
        return collection_stats(results)

    async def collection_sizes(self, timeout: float = 5.0) -> dict[str, int | None]:
        """Document count per collection; None where the count failed."""
        targets = list(CollectionTarget)
        counts = await gather_with_errors(
            *(
                timeout_with_fallback(self._executor.count(t), timeout, None)
                for t in targets
            ),
            return_exceptions=True,
        )
        sizes: dict[str, int | None] = {}
        for target, count in zip(targets, counts, strict=True):
            if isinstance(count, Exception):
                logger.warning(f"Count failed for {target.value}: {count}")
                count = None
            sizes[target.value] = count
        return sizes

    @staticmethod
    def _matches(
        collections: dict[CollectionTarget, CollectionSearchResult],
        target: CollectionTarget,
    ) -> list[RawMatch]:
        result = collections.get(target)
        return result.matches if result is not None else []
