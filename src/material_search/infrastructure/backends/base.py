"""
Search backend protocol.

A backend owns the connection to the document store and answers scored
lookups against one named collection at a time. The application layer
only depends on this protocol; MongoMaterialBackend is the production
implementation and tests plug in fakes.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Protocol, runtime_checkable


@dataclass(frozen=True)
class BackendQuery:
    """Options passed to SearchBackend.search()."""

    top_k: int = 5
    similarity_threshold: float = 0.0
    filter: dict[str, Any] | None = None
    include_metadata: bool = True
    exclude_codes: frozenset[str] = field(default_factory=frozenset)


@dataclass
class BackendHit:
    """A scored document as returned by the backend."""

    document: dict[str, Any]
    score: float


@runtime_checkable
class SearchBackend(Protocol):
    """
    Lifecycle: uninitialized -> initialized via init(), released by close().
    init() must be idempotent.
    """

    async def init(self) -> None: ...

    async def close(self) -> None: ...

    async def search(
        self,
        collection: str,
        text: str,
        query: BackendQuery,
    ) -> list[BackendHit]: ...

    async def count(self, collection: str) -> int: ...
