"""Tests for CollectionRouter and RoutingKeywordTable."""

from __future__ import annotations

import pytest

from material_search.application.search.collection_router import (
    CollectionRouter,
    RoutingKeywordTable,
    normalize_query,
)
from material_search.core.exceptions import ConfigurationError, UnknownCollectionError
from material_search.domain.entities import CollectionTarget, SearchMode

BOTH = [CollectionTarget.IN_STOCK, CollectionTarget.FULL_CATALOG]


@pytest.fixture
def router():
    return CollectionRouter()


# ============================================================================
# Stock Intent
# ============================================================================


class TestStockIntent:
    @pytest.mark.parametrize(
        "query",
        [
            "มี Vitamin C ไหม?",
            "Hyaluronic acid in stock",
            "do we have niacinamide",
            "สารกันเสียมีในสต็อกไหม",
            "Is panthenol available?",
            "check inventory for glycerin",
        ],
    )
    def test_routes_to_in_stock(self, router, query):
        decision = router.route(query)
        assert decision.targets == [CollectionTarget.IN_STOCK]
        assert decision.search_mode is SearchMode.SINGLE_COLLECTION
        assert decision.confidence >= 0.7

    @pytest.mark.parametrize(
        "query",
        [
            "Vitamin C not in stock",
            "which ingredients are not in stock",
            "out of stock Vitamin C",
            "ไม่มีในสต็อก Vitamin C",
        ],
    )
    def test_negated_inventory_routes_to_in_stock(self, router, query):
        decision = router.route(query)
        assert decision.targets == [CollectionTarget.IN_STOCK]
        assert decision.search_mode is SearchMode.SINGLE_COLLECTION
        assert "full_catalog" not in decision.matched_markers

    def test_thai_availability_question_is_confident(self, router):
        decision = router.route("มี Vitamin C ไหม?")
        assert decision.confidence >= 0.8
        assert "in_stock" in decision.matched_markers

    def test_ascii_terms_need_word_boundaries(self, router):
        # "border" contains "order" but is not a stock marker.
        scores = router.score("border repair complex")
        assert not scores[CollectionTarget.IN_STOCK].matches


# ============================================================================
# Catalog Intent
# ============================================================================


class TestCatalogIntent:
    @pytest.mark.parametrize(
        "query",
        [
            "Search all FDA registered moisturizers",
            "วัตถุดิบทั้งหมดที่ช่วยลดสิว",
            "explore the catalog for peptides",
            "fda approved preservatives",
        ],
    )
    def test_routes_to_full_catalog(self, router, query):
        decision = router.route(query)
        assert decision.targets == [CollectionTarget.FULL_CATALOG]
        assert decision.search_mode is SearchMode.SINGLE_COLLECTION

    def test_multiple_markers_raise_confidence(self, router):
        one = router.route("fda moisturizers")
        many = router.route("Search all FDA registered moisturizers")
        assert many.confidence > one.confidence
        assert many.confidence <= 1.0


# ============================================================================
# Dual Priority
# ============================================================================


class TestDualPriority:
    def test_no_markers(self, router):
        decision = router.route("hyaluronic acid")
        assert decision.targets == BOTH
        assert decision.search_mode is SearchMode.DUAL_PRIORITY
        assert decision.confidence == pytest.approx(0.5)
        assert decision.reasoning.startswith("No clear collection signal")

    def test_hints_alone_do_not_route(self, router):
        decision = router.route("recommend ingredients for ลดริ้วรอย")
        assert decision.targets == BOTH
        assert decision.search_mode is SearchMode.DUAL_PRIORITY
        assert decision.confidence == pytest.approx(0.5)
        # Hints are still reported for diagnostics.
        assert "recommend" in decision.matched_markers["full_catalog"]

    def test_both_families_is_ambiguous(self, router):
        decision = router.route("is it in stock or only fda registered")
        assert decision.targets == BOTH
        assert decision.reasoning.startswith("Ambiguous")

    @pytest.mark.parametrize("query", ["", "   ", None])
    def test_blank_query(self, router, query):
        decision = router.route(query)
        assert decision.targets == BOTH
        assert decision.matched_markers == {}

    def test_in_stock_listed_first(self, router):
        decision = router.route("peptide")
        assert decision.targets[0] is CollectionTarget.IN_STOCK


# ============================================================================
# Determinism
# ============================================================================


class TestDeterminism:
    @pytest.mark.parametrize(
        "query",
        [
            "มี Vitamin C ไหม?",
            "Search all FDA registered moisturizers",
            "is it in stock or only fda registered",
            "recommend ingredients for ลดริ้วรอย",
            "",
        ],
    )
    def test_same_query_same_decision(self, query):
        first = CollectionRouter().route(query)
        second = CollectionRouter().route(query)
        assert first == second
        assert first.to_dict() == second.to_dict()

    def test_repeated_calls_on_one_router(self, router):
        decisions = [router.route("hyaluronic acid in stock") for _ in range(5)]
        assert all(d == decisions[0] for d in decisions)


# ============================================================================
# Explicit Override
# ============================================================================


class TestExplicitOverride:
    def test_override_wins_over_markers(self, router):
        decision = router.route("do we have it in stock?", explicit_override="full_catalog")
        assert decision.targets == [CollectionTarget.FULL_CATALOG]
        assert decision.confidence == 1.0
        assert decision.reasoning == "Explicit collection requested: full_catalog"

    def test_legacy_alias(self, router):
        decision = router.route("anything", explicit_override="all_fda")
        assert decision.targets == [CollectionTarget.FULL_CATALOG]

    def test_enum_override(self, router):
        decision = router.route("anything", explicit_override=CollectionTarget.IN_STOCK)
        assert decision.targets == [CollectionTarget.IN_STOCK]

    def test_unknown_override_raises(self, router):
        with pytest.raises(UnknownCollectionError):
            router.route("anything", explicit_override="warehouse_b")


# ============================================================================
# Keyword Table
# ============================================================================


class TestRoutingKeywordTable:
    def test_default_table_is_cached(self):
        assert RoutingKeywordTable.default() is RoutingKeywordTable.default()

    def test_custom_table(self):
        table = RoutingKeywordTable.from_dict(
            {"families": {"in_stock": {"terms": ["shelf"]}}}
        )
        router = CollectionRouter(table)
        assert router.route("on the shelf").targets == [CollectionTarget.IN_STOCK]
        assert router.route("fda").search_mode is SearchMode.DUAL_PRIORITY

    def test_from_yaml(self, tmp_path):
        path = tmp_path / "keywords.yaml"
        path.write_text(
            "fire_threshold: 0.6\n"
            "families:\n"
            "  full_catalog:\n"
            "    hints: [browse]\n",
            encoding="utf-8",
        )
        table = RoutingKeywordTable.from_yaml(path)
        assert table.fire_threshold == 0.6
        assert table.families[CollectionTarget.IN_STOCK] == []

    def test_unknown_family_rejected(self):
        with pytest.raises(ConfigurationError):
            RoutingKeywordTable.from_dict({"families": {"warehouse": {"terms": ["x"]}}})

    def test_unknown_weight_rejected(self):
        with pytest.raises(ConfigurationError):
            RoutingKeywordTable.from_dict({"weights": {"synonym": 0.4}})

    def test_bad_pattern_rejected(self):
        with pytest.raises(ConfigurationError):
            RoutingKeywordTable.from_dict({"families": {"in_stock": {"patterns": ["(unclosed"]}}})

    def test_invalid_yaml_rejected(self, tmp_path):
        path = tmp_path / "broken.yaml"
        path.write_text("families: [unclosed", encoding="utf-8")
        with pytest.raises(ConfigurationError):
            RoutingKeywordTable.from_yaml(path)


class TestNormalizeQuery:
    def test_casefold_and_whitespace(self):
        assert normalize_query("  Vitamin   C\tIN Stock ") == "vitamin c in stock"

    def test_none(self):
        assert normalize_query(None) == ""
