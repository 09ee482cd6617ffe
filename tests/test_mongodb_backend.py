"""Tests for MongoMaterialBackend (filter building, scoring, mocked client)."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from pymongo.errors import AutoReconnect, OperationFailure

from material_search.core.exceptions import CollectionUnavailableError
from material_search.infrastructure.backends import SearchBackend
from material_search.infrastructure.backends.base import BackendQuery
from material_search.infrastructure.backends.mongodb import MongoMaterialBackend

# ============================================================================
# Helpers
# ============================================================================


def _mock_client(documents=None, find_side_effect=None, count=0):
    """AsyncMongoClient mock whose collections return `documents`."""
    cursor = MagicMock()
    cursor.limit.return_value = cursor
    cursor.to_list = AsyncMock(return_value=documents or [])

    collection = MagicMock()
    if find_side_effect is not None:
        collection.find.side_effect = find_side_effect
    else:
        collection.find.return_value = cursor
    collection.count_documents = AsyncMock(return_value=count)

    database = MagicMock()
    database.__getitem__.return_value = collection
    client = MagicMock()
    client.__getitem__.return_value = database
    client.close = AsyncMock()
    return client, collection


@pytest.fixture
def backend():
    return MongoMaterialBackend("mongodb://localhost:27017", "cosmetics")


# ============================================================================
# Filter Building
# ============================================================================


class TestBuildFilter:
    def test_code_and_terms(self):
        mongo_filter = MongoMaterialBackend.build_filter(["RM000123"], ["glycerin"], BackendQuery())
        clauses = mongo_filter["$or"]
        assert {"rm_code": {"$in": ["RM000123"]}} in clauses
        assert {"trade_name": {"$regex": "glycerin", "$options": "i"}} in clauses

    def test_terms_are_escaped(self):
        mongo_filter = MongoMaterialBackend.build_filter([], ["vitamin c+"], BackendQuery())
        assert mongo_filter["$or"][0]["rm_code"]["$regex"] == r"vitamin\ c\+"

    def test_exclusions_and_extra_filter(self):
        query = BackendQuery(exclude_codes=frozenset({"B", "A"}), filter={"status": "active"})
        mongo_filter = MongoMaterialBackend.build_filter([], ["glycerin"], query)
        conditions = mongo_filter["$and"]
        assert {"rm_code": {"$nin": ["A", "B"]}} in conditions
        assert {"status": "active"} in conditions


# ============================================================================
# Scoring
# ============================================================================


class TestScoreDocument:
    def test_exact_code(self):
        doc = {"rm_code": "rm-000123", "trade_name": "Anything"}
        assert MongoMaterialBackend.score_document(doc, ["RM000123"], []) == 1.0

    def test_exact_name(self):
        doc = {"trade_name": "Glycerin"}
        assert MongoMaterialBackend.score_document(doc, [], ["glycerin"]) == 1.0

    def test_name_contains_term(self):
        doc = {"inci_name": "Ascorbyl Glucoside (Vitamin C)"}
        assert MongoMaterialBackend.score_document(doc, [], ["vitamin c"]) == pytest.approx(0.8)

    def test_other_field_contains_term(self):
        doc = {"trade_name": "Hydra Plus", "benefits": ["Moisturizing"]}
        assert MongoMaterialBackend.score_document(doc, [], ["moisturizing"]) == pytest.approx(0.6)

    def test_mean_over_terms(self):
        doc = {"trade_name": "Glycerin"}
        assert MongoMaterialBackend.score_document(doc, [], ["glycerin", "peptide"]) == pytest.approx(0.5)

    def test_no_terms(self):
        assert MongoMaterialBackend.score_document({"trade_name": "X"}, [], []) == 0.0


# ============================================================================
# Search & Lifecycle
# ============================================================================


class TestMongoBackend:
    def test_satisfies_protocol(self, backend):
        assert isinstance(backend, SearchBackend)

    async def test_search_scores_and_limits(self, backend):
        documents = [
            {"_id": 1, "rm_code": "RM000001", "trade_name": "Glycerin"},
            {"_id": 2, "rm_code": "RM000002", "trade_name": "Glycerin 99.5%"},
            {"_id": 3, "rm_code": "RM000003", "trade_name": "Aqua", "details": "with glycerin"},
        ]
        client, collection = _mock_client(documents)
        with patch(
            "material_search.infrastructure.backends.mongodb.AsyncMongoClient",
            return_value=client,
        ):
            hits = await backend.search("raw_materials_real_stock", "glycerin", BackendQuery(top_k=2))

        assert [h.document["rm_code"] for h in hits] == ["RM000001", "RM000002"]
        assert hits[0].score == 1.0
        assert hits[0].document["_id"] == "1"
        collection.find.assert_called_once()
        _, projection = collection.find.call_args.args
        assert projection is None

    async def test_metadata_off_projects_material_fields(self, backend):
        client, collection = _mock_client([{"rm_code": "RM1", "trade_name": "Glycerin"}])
        with patch(
            "material_search.infrastructure.backends.mongodb.AsyncMongoClient",
            return_value=client,
        ):
            hits = await backend.search("c", "glycerin", BackendQuery(include_metadata=False))

        assert [h.document["rm_code"] for h in hits] == ["RM1"]
        _, projection = collection.find.call_args.args
        assert projection["rm_code"] == 1
        assert projection["trade_name"] == 1
        assert projection["benefits"] == 1
        assert projection["rm_cost"] == 1
        assert "application_notes" not in projection

    async def test_threshold_applied(self, backend):
        documents = [{"rm_code": "RM1", "trade_name": "Aqua", "details": "glycerin"}]
        client, _ = _mock_client(documents)
        with patch(
            "material_search.infrastructure.backends.mongodb.AsyncMongoClient",
            return_value=client,
        ):
            hits = await backend.search("c", "glycerin", BackendQuery(similarity_threshold=0.7))
        assert hits == []

    async def test_operation_failure_becomes_collection_unavailable(self, backend):
        client, _ = _mock_client(find_side_effect=OperationFailure("not authorized"))
        with patch(
            "material_search.infrastructure.backends.mongodb.AsyncMongoClient",
            return_value=client,
        ):
            with pytest.raises(CollectionUnavailableError):
                await backend.search("c", "glycerin", BackendQuery())

    async def test_auto_reconnect_retried(self, backend):
        client, collection = _mock_client(find_side_effect=AutoReconnect("primary stepped down"))
        with (
            patch(
                "material_search.infrastructure.backends.mongodb.AsyncMongoClient",
                return_value=client,
            ),
            patch("asyncio.sleep", new=AsyncMock()),
        ):
            with pytest.raises(CollectionUnavailableError):
                await backend.search("c", "glycerin", BackendQuery())
        assert collection.find.call_count == 3

    async def test_empty_query_skips_database(self, backend):
        client, collection = _mock_client()
        with patch(
            "material_search.infrastructure.backends.mongodb.AsyncMongoClient",
            return_value=client,
        ):
            assert await backend.search("c", "   ", BackendQuery()) == []
        collection.find.assert_not_called()

    async def test_count(self, backend):
        client, _ = _mock_client(count=42)
        with patch(
            "material_search.infrastructure.backends.mongodb.AsyncMongoClient",
            return_value=client,
        ):
            assert await backend.count("c") == 42

    async def test_init_is_idempotent_and_close_releases(self, backend):
        client, _ = _mock_client()
        with patch(
            "material_search.infrastructure.backends.mongodb.AsyncMongoClient",
            return_value=client,
        ) as factory:
            await backend.init()
            await backend.init()
            assert backend.initialized
            factory.assert_called_once()

        await backend.close()
        assert not backend.initialized
        client.close.assert_awaited_once()
        await backend.close()
