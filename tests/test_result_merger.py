"""Tests for ResultMerger: availability tagging, dedup and priority ranking."""

from __future__ import annotations

import pytest

from material_search.application.search.result_merger import MergePolicy, ResultMerger
from material_search.domain.entities import Availability, CollectionTarget, SearchMode

from conftest import match

STOCK = CollectionTarget.IN_STOCK
CAT = CollectionTarget.FULL_CATALOG


@pytest.fixture
def merger():
    return ResultMerger()


def codes(results):
    return [r.record.code for r in results]


# ============================================================================
# Dual Priority
# ============================================================================


class TestDualPriority:
    def test_in_stock_first_and_duplicate_dropped(self, merger):
        in_stock = [match("RM1", 0.70, STOCK)]
        catalog = [match("RM2", 0.95, CAT), match("RM1", 0.90, CAT)]

        merged = merger.merge(in_stock, catalog, SearchMode.DUAL_PRIORITY)

        assert codes(merged) == ["RM1", "RM2"]
        assert merged[0].availability is Availability.IN_STOCK
        assert merged[0].score == pytest.approx(0.70)
        assert merged[0].is_prioritized
        assert merged[1].availability is Availability.CATALOG_ONLY
        assert not merged[1].is_prioritized

    def test_every_in_stock_result_precedes_catalog(self, merger):
        in_stock = [match("S1", 0.55, STOCK), match("S2", 0.51, STOCK)]
        catalog = [match("C1", 0.99, CAT), match("C2", 0.98, CAT)]
        merged = merger.merge(in_stock, catalog, SearchMode.DUAL_PRIORITY)
        assert codes(merged) == ["S1", "S2", "C1", "C2"]

    def test_buckets_keep_input_order(self, merger):
        in_stock = [match("S1", 0.6, STOCK), match("S2", 0.9, STOCK)]
        merged = merger.merge(in_stock, [], SearchMode.DUAL_PRIORITY)
        assert codes(merged) == ["S1", "S2"]

    def test_score_only_policy(self):
        merger = ResultMerger(MergePolicy.score_only())
        in_stock = [match("S1", 0.6, STOCK)]
        catalog = [match("C1", 0.9, CAT)]
        merged = merger.merge(in_stock, catalog, SearchMode.DUAL_PRIORITY)
        assert codes(merged) == ["C1", "S1"]
        assert merged[1].availability is Availability.IN_STOCK


# ============================================================================
# Dedup
# ============================================================================


class TestDedup:
    def test_in_stock_copy_wins_regardless_of_score(self, merger):
        in_stock = [match("RM1", 0.51, STOCK, supplier="Local")]
        catalog = [match("RM1", 0.99, CAT, supplier="Global")]
        merged, stats = merger.merge_with_stats(in_stock, catalog, SearchMode.DUAL_PRIORITY)
        assert len(merged) == 1
        assert merged[0].record.supplier == "Local"
        assert stats.duplicates_removed == 1

    def test_keyless_records_never_deduplicated(self, merger):
        in_stock = [match(None, 0.8, STOCK, trade_name="Green tea extract")]
        catalog = [match(None, 0.8, CAT, trade_name="Green tea extract")]
        merged, stats = merger.merge_with_stats(in_stock, catalog, SearchMode.DUAL_PRIORITY)
        assert len(merged) == 2
        assert stats.keyless_records == 2
        assert stats.duplicates_removed == 0

    def test_codes_compared_exactly(self, merger):
        in_stock = [match("rm1", 0.8, STOCK)]
        catalog = [match("RM1", 0.8, CAT)]
        assert len(merger.merge(in_stock, catalog, SearchMode.DUAL_PRIORITY)) == 2

    def test_repeats_within_one_list_kept(self, merger):
        in_stock = [match("RM1", 0.9, STOCK), match("RM1", 0.8, STOCK)]
        assert len(merger.merge(in_stock, [], SearchMode.SINGLE_COLLECTION)) == 2

    def test_unique_keys_across_output(self, merger):
        in_stock = [match("A", 0.9, STOCK), match("B", 0.8, STOCK)]
        catalog = [match("B", 0.9, CAT), match("C", 0.7, CAT), match("A", 0.6, CAT)]
        merged = merger.merge(in_stock, catalog, SearchMode.DUAL_PRIORITY)
        assert codes(merged) == ["A", "B", "C"]


# ============================================================================
# Single Collection
# ============================================================================


class TestSingleCollection:
    def test_sorted_by_score(self, merger):
        catalog = [match("C1", 0.6, CAT), match("C2", 0.9, CAT)]
        merged = merger.merge([], catalog, SearchMode.SINGLE_COLLECTION)
        assert codes(merged) == ["C2", "C1"]
        assert all(r.availability is Availability.CATALOG_ONLY for r in merged)

    def test_stable_for_equal_scores(self, merger):
        in_stock = [match("S1", 0.8, STOCK), match("S2", 0.8, STOCK)]
        merged = merger.merge(in_stock, [], SearchMode.SINGLE_COLLECTION)
        assert codes(merged) == ["S1", "S2"]

    def test_empty(self, merger):
        merged, stats = merger.merge_with_stats([], [], SearchMode.DUAL_PRIORITY)
        assert merged == []
        assert stats.output == 0


class TestMergeStats:
    def test_counts(self, merger):
        in_stock = [match("A", 0.9, STOCK)]
        catalog = [match("A", 0.9, CAT), match("B", 0.8, CAT)]
        _, stats = merger.merge_with_stats(in_stock, catalog, SearchMode.DUAL_PRIORITY)
        assert stats.to_dict() == {
            "in_stock_input": 1,
            "catalog_input": 2,
            "duplicates_removed": 1,
            "keyless_records": 0,
            "output": 2,
        }

    def test_default_policy(self, merger):
        assert merger.policy == MergePolicy.stock_first()
