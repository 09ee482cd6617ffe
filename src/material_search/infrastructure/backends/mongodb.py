"""
MongoDB Material Backend

Keyword search over the raw-material collections using PyMongo's native
async client (AsyncMongoClient).

Lookup:
    1. Classify the query locally (codes + content terms).
    2. Fetch candidates with a case-insensitive $regex $or across the
       material fields, or an exact match on rm_code for code queries.
    3. Score candidates client-side in [0, 1]:
         exact code match                    1.0
         term equals a name field            1.0
         term contained in a name field      0.8
         term contained in any other field   0.6
       The document score is the mean over query terms.
    4. With include_metadata off, only the fields a MaterialRecord reads
       are projected.

Transient AutoReconnect errors are retried with tenacity; any other
PyMongo error surfaces as CollectionUnavailableError.
"""

from __future__ import annotations

import logging
import re
from typing import Any

from pymongo import AsyncMongoClient
from pymongo.errors import AutoReconnect, PyMongoError
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from material_search.application.search.query_classifier import (
    MaterialQueryClassifier,
    fuzzy_match_score,
    normalize_code,
)
from material_search.core.exceptions import CollectionUnavailableError

from .base import BackendHit, BackendQuery

logger = logging.getLogger(__name__)

# Retry settings for transient MongoDB errors
MAX_RETRIES = 3
RETRY_DELAY = 0.5  # seconds

CODE_FIELD = "rm_code"
NAME_FIELDS = ("trade_name", "inci_name", "INCI_name")
TEXT_FIELDS = (
    "supplier",
    "company_name",
    "benefits",
    "usecase",
    "details",
    "Function",
    "Chem_IUPAC_Name_Description",
)

# Fields read into a MaterialRecord; the projection used when metadata is off.
MATERIAL_FIELDS = (
    CODE_FIELD,
    "material_code",
    "code",
    "name",
    *NAME_FIELDS,
    *TEXT_FIELDS,
    "benefit",
    "use_cases",
    "function",
    "category",
    "description",
    "rm_cost",
    "cost",
)

TEXT_CONTAINS_SCORE = 0.6


def _field_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, (list, tuple)):
        return " ".join(str(v) for v in value)
    return str(value)


class MongoMaterialBackend:
    """
    SearchBackend over MongoDB.

    The client is created on first use (or by an explicit init()) and shared
    by every collection search until close().

    Example:
        backend = MongoMaterialBackend("mongodb://localhost:27017", "cosmetics")
        await backend.init()
        hits = await backend.search("raw_materials_real_stock", "Vitamin C", BackendQuery())
        await backend.close()
    """

    def __init__(
        self,
        uri: str = "mongodb://localhost:27017",
        database: str = "cosmetics",
        max_scan: int = 200,
        server_selection_timeout_ms: int = 5000,
        classifier: MaterialQueryClassifier | None = None,
    ):
        self._uri = uri
        self._database_name = database
        self._max_scan = max_scan
        self._server_selection_timeout_ms = server_selection_timeout_ms
        self._classifier = classifier or MaterialQueryClassifier()
        self._client: AsyncMongoClient | None = None

    @property
    def initialized(self) -> bool:
        return self._client is not None

    async def init(self) -> None:
        if self._client is not None:
            return
        self._client = AsyncMongoClient(
            self._uri,
            serverSelectionTimeoutMS=self._server_selection_timeout_ms,
        )
        logger.info(f"MongoDB client created for database '{self._database_name}'")

    async def close(self) -> None:
        if self._client is None:
            return
        client, self._client = self._client, None
        await client.close()
        logger.info("MongoDB client closed")

    def _collection(self, name: str):
        if self._client is None:
            raise RuntimeError("MongoMaterialBackend used before init()")
        return self._client[self._database_name][name]

    async def search(
        self,
        collection: str,
        text: str,
        query: BackendQuery,
    ) -> list[BackendHit]:
        await self.init()
        classified = self._classifier.classify(text)
        codes = classified.codes
        terms = classified.search_terms or ([text.strip().casefold()] if text.strip() else [])
        if not codes and not terms:
            return []

        mongo_filter = self.build_filter(codes, terms, query)
        try:
            documents = await self._find(collection, mongo_filter, self.build_projection(query))
        except PyMongoError as e:
            raise CollectionUnavailableError(collection, str(e)) from e

        hits = [
            BackendHit(document=doc, score=self.score_document(doc, codes, terms))
            for doc in documents
        ]
        hits = [h for h in hits if h.score >= query.similarity_threshold]
        hits.sort(key=lambda h: h.score, reverse=True)
        logger.debug(
            f"MongoDB '{collection}': {len(documents)} candidates, "
            f"{len(hits)} above {query.similarity_threshold}"
        )
        return hits[: query.top_k]

    async def count(self, collection: str) -> int:
        await self.init()
        try:
            return await self._collection(collection).count_documents({})
        except PyMongoError as e:
            raise CollectionUnavailableError(collection, str(e)) from e

    @retry(
        stop=stop_after_attempt(MAX_RETRIES),
        wait=wait_exponential(multiplier=RETRY_DELAY, min=RETRY_DELAY, max=RETRY_DELAY * 4),
        retry=retry_if_exception_type(AutoReconnect),
        reraise=True,
    )
    async def _find(
        self,
        collection: str,
        mongo_filter: dict[str, Any],
        projection: dict[str, int] | None = None,
    ) -> list[dict[str, Any]]:
        cursor = self._collection(collection).find(mongo_filter, projection).limit(self._max_scan)
        documents = await cursor.to_list(length=None)
        for doc in documents:
            if "_id" in doc:
                doc["_id"] = str(doc["_id"])
        return documents

    @staticmethod
    def build_filter(
        codes: list[str],
        terms: list[str],
        query: BackendQuery,
    ) -> dict[str, Any]:
        """Build the candidate filter for a classified query."""
        clauses: list[dict[str, Any]] = []
        if codes:
            clauses.append({CODE_FIELD: {"$in": codes}})
        for term in terms:
            pattern = {"$regex": re.escape(term), "$options": "i"}
            clauses.extend({name: pattern} for name in (CODE_FIELD, *NAME_FIELDS, *TEXT_FIELDS))

        conditions: list[dict[str, Any]] = [{"$or": clauses}]
        if query.exclude_codes:
            conditions.append({CODE_FIELD: {"$nin": sorted(query.exclude_codes)}})
        if query.filter:
            conditions.append(dict(query.filter))
        return conditions[0] if len(conditions) == 1 else {"$and": conditions}

    @staticmethod
    def build_projection(query: BackendQuery) -> dict[str, int] | None:
        """None returns whole documents; otherwise only the material fields."""
        if query.include_metadata:
            return None
        return dict.fromkeys(MATERIAL_FIELDS, 1)

    @staticmethod
    def score_document(document: dict[str, Any], codes: list[str], terms: list[str]) -> float:
        """Lexical relevance of a document to the query, in [0, 1]."""
        code = document.get(CODE_FIELD)
        if codes and code and normalize_code(str(code)) in codes:
            return 1.0
        if not terms:
            return 0.0

        names = [_field_text(document.get(f)) for f in NAME_FIELDS]
        texts = [_field_text(document.get(f)) for f in (CODE_FIELD, *TEXT_FIELDS)]

        total = 0.0
        for term in terms:
            best = 0.0
            for name in names:
                if name and term in name.casefold():
                    # equal -> 1.0, contained -> 0.8
                    best = max(best, fuzzy_match_score(term, name))
            if best < TEXT_CONTAINS_SCORE and any(term in t.casefold() for t in texts if t):
                best = TEXT_CONTAINS_SCORE
            total += best
        return total / len(terms)
