"""
AvailabilityAnnotator - Answer "do we have X?" and summarise result lists.

check_availability():
    1. Search in_stock for the single best match.
    2. If it scores at or above the strict threshold, report in_stock=True
       with that match as details.
    3. Otherwise search full_catalog and return a few alternatives.

collection_stats() is a pure aggregation over merged results.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from material_search.domain.entities import (
    Availability,
    AvailabilityReport,
    CollectionStats,
    CollectionTarget,
    MergedResult,
)

from .search_executor import CollectionSearchExecutor, SearchOptions

logger = logging.getLogger(__name__)

STRICT_MATCH_THRESHOLD = 0.8
MAX_ALTERNATIVES = 5
ALTERNATIVE_THRESHOLD = 0.5


def collection_stats(results: Iterable[MergedResult]) -> CollectionStats:
    """Count in-stock vs catalog-only results; 0% for an empty list."""
    results = list(results)
    total = len(results)
    in_stock = sum(1 for r in results if r.availability is Availability.IN_STOCK)
    return CollectionStats(
        total=total,
        in_stock_count=in_stock,
        catalog_only_count=total - in_stock,
        in_stock_percentage=(in_stock / total * 100) if total else 0.0,
    )


class AvailabilityAnnotator:
    """
    Usage:
        annotator = AvailabilityAnnotator(executor)
        report = await annotator.check_availability("Vitamin C")
        if report.in_stock:
            print(report.details.record.code)
    """

    def __init__(
        self,
        executor: CollectionSearchExecutor,
        strict_threshold: float = STRICT_MATCH_THRESHOLD,
        max_alternatives: int = MAX_ALTERNATIVES,
        timeout: float = 10.0,
    ):
        self._executor = executor
        self.strict_threshold = strict_threshold
        self.max_alternatives = max_alternatives
        self.timeout = timeout

    async def check_availability(self, code_or_name: str) -> AvailabilityReport:
        identifier = (code_or_name or "").strip()
        if not identifier:
            return AvailabilityReport(query=identifier, in_stock=False)

        best = await self._executor.search(
            identifier,
            CollectionTarget.IN_STOCK,
            SearchOptions(top_k=1, similarity_threshold=0.0, timeout=self.timeout),
        )
        if best and best[0].score >= self.strict_threshold:
            logger.info(f"'{identifier}' in stock as {best[0].record.code} ({best[0].score:.2f})")
            return AvailabilityReport(
                query=identifier,
                in_stock=True,
                details=MergedResult.from_match(best[0]),
            )

        alternatives = await self._executor.search(
            identifier,
            CollectionTarget.FULL_CATALOG,
            SearchOptions(
                top_k=self.max_alternatives,
                similarity_threshold=ALTERNATIVE_THRESHOLD,
                timeout=self.timeout,
            ),
        )
        logger.info(f"'{identifier}' not in stock; {len(alternatives)} catalog alternatives")
        return AvailabilityReport(
            query=identifier,
            in_stock=False,
            alternatives=[MergedResult.from_match(m) for m in alternatives],
        )

    @staticmethod
    def collection_stats(results: Iterable[MergedResult]) -> CollectionStats:
        return collection_stats(results)
