"""Tests for domain entities and the result cache."""

from __future__ import annotations

import pytest

from material_search.core.exceptions import UnknownCollectionError
from material_search.domain.entities import (
    Availability,
    CollectionTarget,
    MaterialRecord,
    MergedResult,
    RawMatch,
    RoutingDecision,
    SearchMode,
    parse_text_list,
)
from material_search.infrastructure.cache import SearchResultCache

# ============================================================================
# CollectionTarget
# ============================================================================


class TestCollectionTarget:
    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            ("in_stock", CollectionTarget.IN_STOCK),
            ("real-stock", CollectionTarget.IN_STOCK),
            (" Full_Catalog ", CollectionTarget.FULL_CATALOG),
            ("all_fda", CollectionTarget.FULL_CATALOG),
            (CollectionTarget.IN_STOCK, CollectionTarget.IN_STOCK),
        ],
    )
    def test_parse(self, value, expected):
        assert CollectionTarget.parse(value) is expected

    @pytest.mark.parametrize("value", ["warehouse", "", 3, None])
    def test_parse_unknown(self, value):
        with pytest.raises(UnknownCollectionError):
            CollectionTarget.parse(value)

    def test_availability_for_target(self):
        assert Availability.for_target(CollectionTarget.IN_STOCK) is Availability.IN_STOCK
        assert Availability.for_target(CollectionTarget.FULL_CATALOG) is Availability.CATALOG_ONLY


# ============================================================================
# MaterialRecord
# ============================================================================


class TestMaterialRecord:
    def test_stock_document(self):
        record = MaterialRecord.from_document(
            {
                "rm_code": "RM000123",
                "trade_name": "Vitamin C",
                "inci_name": "Ascorbic Acid",
                "company_name": "Acme",
                "benefits": '["Brightening", "Antioxidant"]',
                "rm_cost": "1,200 THB",
            }
        )
        assert record.identity_key == "RM000123"
        assert record.supplier == "Acme"
        assert record.benefits == ["Brightening", "Antioxidant"]
        assert record.cost == 1200.0
        assert record.raw["rm_code"] == "RM000123"

    def test_catalog_field_variants(self):
        record = MaterialRecord.from_document(
            {
                "material_code": "RC00A008",
                "name": "Hydra Plus",
                "INCI_name": "Glycerin",
                "benefit": "Moisturizing; Soothing",
                "Function": ["Humectant"],
                "cost": 85,
            }
        )
        assert record.code == "RC00A008"
        assert record.trade_name == "Hydra Plus"
        assert record.inci_name == "Glycerin"
        assert record.benefits == ["Moisturizing", "Soothing"]
        assert record.functions == ["Humectant"]
        assert record.cost == 85.0

    @pytest.mark.parametrize("code", [None, "", "   "])
    def test_missing_code_has_no_identity_key(self, code):
        assert MaterialRecord(code=code).identity_key is None

    def test_identity_key_stripped(self):
        assert MaterialRecord(code=" RM1 ").identity_key == "RM1"

    def test_display_name_fallbacks(self):
        assert MaterialRecord(code="RM1").display_name == "RM1"
        assert MaterialRecord().display_name == "N/A"

    def test_unparseable_cost(self):
        assert MaterialRecord.from_document({"rm_cost": "ask supplier"}).cost is None


class TestParseTextList:
    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            (None, []),
            ("", []),
            (["a", " b ", ""], ["a", "b"]),
            ('["x", "y"]', ["x", "y"]),
            ("['x', 'y']", ["x", "y"]),
            ("a, b\nc", ["a", "b", "c"]),
        ],
    )
    def test_parse(self, value, expected):
        assert parse_text_list(value) == expected


# ============================================================================
# Results & Decisions
# ============================================================================


class TestMergedResult:
    def test_from_in_stock_match(self):
        raw = RawMatch(MaterialRecord(code="RM1"), 0.9, CollectionTarget.IN_STOCK)
        merged = MergedResult.from_match(raw)
        assert merged.availability is Availability.IN_STOCK
        assert merged.is_prioritized
        data = merged.to_dict()
        assert data["code"] == "RM1"
        assert data["availability"] == "in_stock"
        assert data["source_collection"] == "in_stock"

    def test_from_catalog_match(self):
        raw = RawMatch(MaterialRecord(code="RM1"), 0.9, CollectionTarget.FULL_CATALOG)
        merged = MergedResult.from_match(raw)
        assert merged.availability is Availability.CATALOG_ONLY
        assert not merged.is_prioritized


class TestRoutingDecision:
    def test_requires_targets(self):
        with pytest.raises(ValueError):
            RoutingDecision([], SearchMode.SINGLE_COLLECTION, 1.0, "none")

    def test_confidence_clamped(self):
        decision = RoutingDecision([CollectionTarget.IN_STOCK], SearchMode.SINGLE_COLLECTION, 1.3, "r")
        assert decision.confidence == 1.0
        assert decision.to_dict()["targets"] == ["in_stock"]


# ============================================================================
# SearchResultCache
# ============================================================================


class TestSearchResultCache:
    def test_key_normalizes_query(self):
        assert SearchResultCache.make_key("c", " Vitamin  C ", 5) == SearchResultCache.make_key(
            "c", "vitamin c", 5
        )

    def test_get_set_and_stats(self):
        cache = SearchResultCache(ttl=60)
        assert cache.get("k") is None
        cache.set("k", [1])
        assert cache.get("k") == [1]
        assert cache.stats.hits == 1
        assert cache.stats.misses == 1
        assert cache.stats.hit_rate == 0.5

    def test_invalidate_and_clear(self):
        cache = SearchResultCache(ttl=60)
        cache.set("a", 1)
        cache.set("b", 2)
        assert cache.invalidate("a")
        assert not cache.invalidate("a")
        assert cache.clear() == 1
        assert len(cache) == 0
