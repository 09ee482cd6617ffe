"""
Pytest configuration and shared fixtures.
"""

from __future__ import annotations

import asyncio
from typing import Any

import pytest

from material_search.application.search import (
    AvailabilityAnnotator,
    CollectionRouter,
    CollectionSearchExecutor,
    ResultMerger,
    SearchOptions,
    UnifiedSearchService,
)
from material_search.domain.entities import CollectionTarget, MaterialRecord, RawMatch
from material_search.infrastructure.backends.base import BackendHit, BackendQuery

IN_STOCK = "raw_materials_real_stock"
CATALOG = "raw_materials_console"


# ============================================================
# Fake Backend
# ============================================================


class FakeBackend:
    """
    Scripted SearchBackend.

    hits[collection] is returned for every search in that collection;
    errors[collection] is raised instead; delays[collection] sleeps first.
    """

    def __init__(
        self,
        hits: dict[str, list[BackendHit]] | None = None,
        errors: dict[str, Exception] | None = None,
        delays: dict[str, float] | None = None,
        counts: dict[str, int] | None = None,
    ):
        self.hits = hits or {}
        self.errors = errors or {}
        self.delays = delays or {}
        self.counts = counts or {}
        self.calls: list[tuple[str, str, BackendQuery]] = []
        self.init_calls = 0
        self.close_calls = 0
        self.in_flight = 0
        self.max_in_flight = 0

    async def init(self) -> None:
        self.init_calls += 1

    async def close(self) -> None:
        self.close_calls += 1

    async def search(self, collection: str, text: str, query: BackendQuery) -> list[BackendHit]:
        self.calls.append((collection, text, query))
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if collection in self.delays:
                await asyncio.sleep(self.delays[collection])
            if collection in self.errors:
                raise self.errors[collection]
            return list(self.hits.get(collection, []))
        finally:
            self.in_flight -= 1

    async def count(self, collection: str) -> int:
        if collection in self.errors:
            raise self.errors[collection]
        return self.counts.get(collection, 0)

    def collections_searched(self) -> list[str]:
        return [c for c, _, _ in self.calls]


def hit(code: str | None, score: float, **fields: Any) -> BackendHit:
    """Backend hit for a material document."""
    document: dict[str, Any] = {"trade_name": fields.pop("trade_name", f"Material {code}")}
    if code is not None:
        document["rm_code"] = code
    document.update(fields)
    return BackendHit(document=document, score=score)


def match(code: str | None, score: float, target: CollectionTarget, **fields: Any) -> RawMatch:
    """RawMatch for merger tests."""
    fields.setdefault("trade_name", f"Material {code}")
    return RawMatch(
        record=MaterialRecord(code=code, **fields),
        score=score,
        source_collection=target,
    )


# ============================================================
# Service Fixtures
# ============================================================


@pytest.fixture
def fake_backend():
    """Empty fake backend; tests fill in hits/errors."""
    return FakeBackend()


@pytest.fixture
def executor(fake_backend):
    return CollectionSearchExecutor(fake_backend)


@pytest.fixture
def service(fake_backend, executor):
    """UnifiedSearchService wired to the fake backend (no cache)."""
    return UnifiedSearchService(
        CollectionRouter(),
        executor,
        ResultMerger(),
        AvailabilityAnnotator(executor, timeout=1.0),
        default_options=SearchOptions(timeout=1.0),
    )
