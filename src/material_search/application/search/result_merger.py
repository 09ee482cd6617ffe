"""
ResultMerger - Combine per-collection matches into one ranked list.

Merge rules:
1. Availability is taken from the list a match came from:
   in-stock list -> in_stock, catalog list -> catalog_only.
2. Cross-collection dedup by identity key (material code, exact and
   case-sensitive). When both collections return the same key, the in-stock
   copy is kept and the catalog copy dropped, whatever their scores.
   Records without a key are never treated as duplicates. Repeats of a key
   inside a single list are left alone.
3. Ranking:
   - single_collection: stable sort by score, descending.
   - dual_priority with prioritize_in_stock: every in-stock result comes
     before every catalog-only result; each bucket keeps its input order.
   - dual_priority without prioritize_in_stock: stable sort by score.

The merger never truncates; top_k is applied per collection by the
executor.

Example:
    >>> merger = ResultMerger()
    >>> merged = merger.merge(in_stock, catalog, SearchMode.DUAL_PRIORITY)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from material_search.domain.entities import (
    Availability,
    MergedResult,
    RawMatch,
    SearchMode,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MergePolicy:
    """
    Ranking policy for dual-priority merges.

    Presets:
    - stock_first(): in-stock results always lead (default)
    - score_only(): pure score order across both collections
    """

    prioritize_in_stock: bool = True

    @classmethod
    def default(cls) -> MergePolicy:
        return cls.stock_first()

    @classmethod
    def stock_first(cls) -> MergePolicy:
        return cls(prioritize_in_stock=True)

    @classmethod
    def score_only(cls) -> MergePolicy:
        return cls(prioritize_in_stock=False)


@dataclass
class MergeStats:
    """Statistics from a merge."""

    in_stock_input: int = 0
    catalog_input: int = 0
    duplicates_removed: int = 0
    keyless_records: int = 0
    output: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "in_stock_input": self.in_stock_input,
            "catalog_input": self.catalog_input,
            "duplicates_removed": self.duplicates_removed,
            "keyless_records": self.keyless_records,
            "output": self.output,
        }


class ResultMerger:
    """Merge, dedup and rank in-stock and catalog matches."""

    def __init__(self, policy: MergePolicy | None = None):
        self._policy = policy or MergePolicy.default()

    @property
    def policy(self) -> MergePolicy:
        return self._policy

    def merge(
        self,
        in_stock: list[RawMatch],
        catalog: list[RawMatch],
        search_mode: SearchMode,
    ) -> list[MergedResult]:
        merged, _ = self.merge_with_stats(in_stock, catalog, search_mode)
        return merged

    def merge_with_stats(
        self,
        in_stock: list[RawMatch],
        catalog: list[RawMatch],
        search_mode: SearchMode,
    ) -> tuple[list[MergedResult], MergeStats]:
        stats = MergeStats(in_stock_input=len(in_stock), catalog_input=len(catalog))

        stock_results = [self._tag(m, Availability.IN_STOCK) for m in in_stock]
        stock_keys = {r.identity_key for r in stock_results if r.identity_key is not None}

        catalog_results: list[MergedResult] = []
        for match in catalog:
            key = match.identity_key
            if key is not None and key in stock_keys:
                stats.duplicates_removed += 1
                continue
            catalog_results.append(self._tag(match, Availability.CATALOG_ONLY))

        stats.keyless_records = sum(
            1 for r in (*stock_results, *catalog_results) if r.identity_key is None
        )

        if search_mode is SearchMode.DUAL_PRIORITY and self._policy.prioritize_in_stock:
            merged = stock_results + catalog_results
        else:
            merged = sorted(
                stock_results + catalog_results, key=lambda r: r.score, reverse=True
            )

        stats.output = len(merged)
        logger.debug(
            f"Merged {stats.in_stock_input} in-stock + {stats.catalog_input} catalog "
            f"-> {stats.output} ({stats.duplicates_removed} duplicates dropped, "
            f"mode={search_mode.value})"
        )
        return merged, stats

    @staticmethod
    def _tag(match: RawMatch, availability: Availability) -> MergedResult:
        return MergedResult(
            record=match.record,
            score=match.score,
            source_collection=match.source_collection,
            availability=availability,
            is_prioritized=availability is Availability.IN_STOCK,
        )
