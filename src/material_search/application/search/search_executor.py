"""
CollectionSearchExecutor - Run a query against one or more collections.

Each collection search is independent and fault-isolated:

    ┌────────────┐     ┌────────────────────┐
    │  in_stock  │     │    full_catalog    │   concurrent (TaskGroup)
    └─────┬──────┘     └─────────┬──────────┘
          │ timeout / error      │
          ▼                      ▼
       [] + logged           [matches]          never fails the request

Post-processing applied to every collection's hits, in order:
    1. drop hits below similarity_threshold
    2. drop hits whose identity key is in exclude_codes
    3. stable sort by score, descending
    4. skip `offset` hits, keep `top_k`
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any

from material_search.core.async_utils import gather_with_errors
from material_search.core.exceptions import (
    ConfigurationError,
    SearchTimeoutError,
    UnknownCollectionError,
    is_retryable_error,
)
from material_search.domain.entities import (
    CollectionTarget,
    MaterialRecord,
    RawMatch,
)
from material_search.infrastructure.backends.base import BackendQuery, SearchBackend
from material_search.infrastructure.cache import SearchResultCache

logger = logging.getLogger(__name__)

DEFAULT_COLLECTIONS: dict[CollectionTarget, str] = {
    CollectionTarget.IN_STOCK: "raw_materials_real_stock",
    CollectionTarget.FULL_CATALOG: "raw_materials_console",
}


@dataclass(frozen=True)
class SearchOptions:
    """
    Per-request search options.

    Attributes:
        top_k: Maximum matches returned per collection
        similarity_threshold: Matches scoring below this are discarded
        exclude_codes: Identity keys to skip ("show me others")
        offset: Matches to skip before top_k ("show me 5 more")
        timeout: Per-collection time limit in seconds
        filter: Backend-specific document filter
        include_metadata: Return whole documents (False: material fields only)
    """

    top_k: int = 5
    similarity_threshold: float = 0.5
    exclude_codes: frozenset[str] = field(default_factory=frozenset)
    offset: int = 0
    timeout: float = 10.0
    filter: dict[str, Any] | None = None
    include_metadata: bool = True

    def cache_key_parts(self) -> tuple[Any, ...]:
        return (
            self.top_k,
            self.similarity_threshold,
            tuple(sorted(self.exclude_codes)),
            self.offset,
            sorted((self.filter or {}).items()),
            self.include_metadata,
        )


@dataclass
class CollectionSearchResult:
    """Outcome of searching a single collection."""

    target: CollectionTarget
    collection: str
    matches: list[RawMatch] = field(default_factory=list)
    error: str | None = None
    retryable: bool = False
    elapsed_ms: float = 0.0
    from_cache: bool = False

    @property
    def ok(self) -> bool:
        return self.error is None

    def to_dict(self) -> dict[str, Any]:
        return {
            "target": self.target.value,
            "collection": self.collection,
            "count": len(self.matches),
            "error": self.error,
            "retryable": self.retryable,
            "elapsed_ms": round(self.elapsed_ms, 1),
            "from_cache": self.from_cache,
        }


class CollectionSearchExecutor:
    """
    Execute searches against the configured collections.

    Usage:
        executor = CollectionSearchExecutor(backend)
        matches = await executor.search("Vitamin C", CollectionTarget.IN_STOCK)
    """

    def __init__(
        self,
        backend: SearchBackend,
        collection_names: Mapping[CollectionTarget, str] | None = None,
        cache: SearchResultCache | None = None,
    ):
        self._backend = backend
        self._collections = dict(collection_names or DEFAULT_COLLECTIONS)
        self._cache = cache

    def collection_name(self, target: CollectionTarget | str) -> str:
        """
        Map a logical target to its backend collection name.

        Raises:
            UnknownCollectionError: target is unknown or not configured
        """
        resolved = CollectionTarget.parse(target)
        name = self._collections.get(resolved)
        if not name:
            raise UnknownCollectionError(resolved.value)
        return name

    async def search(
        self,
        query: str,
        target: CollectionTarget | str,
        options: SearchOptions | None = None,
    ) -> list[RawMatch]:
        """Search one collection; failures yield an empty list."""
        result = await self.search_collection(query, target, options)
        return result.matches

    async def search_collection(
        self,
        query: str,
        target: CollectionTarget | str,
        options: SearchOptions | None = None,
    ) -> CollectionSearchResult:
        """Search one collection and report timing and any failure."""
        resolved = CollectionTarget.parse(target)
        collection = self.collection_name(resolved)
        options = options or SearchOptions()

        cache_key = None
        if self._cache is not None:
            cache_key = SearchResultCache.make_key(collection, query, *options.cache_key_parts())
            cached = self._cache.get(cache_key)
            if cached is not None:
                return CollectionSearchResult(
                    target=resolved,
                    collection=collection,
                    matches=list(cached),
                    from_cache=True,
                )

        # Over-fetch so that exclusions and offset still leave top_k results.
        backend_query = BackendQuery(
            top_k=options.offset + options.top_k + len(options.exclude_codes),
            similarity_threshold=options.similarity_threshold,
            filter=options.filter,
            include_metadata=options.include_metadata,
            exclude_codes=options.exclude_codes,
        )

        start = time.perf_counter()
        try:
            async with asyncio.timeout(options.timeout):
                hits = await self._backend.search(collection, query, backend_query)
        except TimeoutError:
            error = SearchTimeoutError(collection, options.timeout)
            logger.warning(f"[{resolved.value}] {error}")
            return CollectionSearchResult(
                target=resolved,
                collection=collection,
                error=str(error),
                retryable=error.retryable,
                elapsed_ms=(time.perf_counter() - start) * 1000,
            )
        except ConfigurationError:
            raise
        except Exception as e:
            logger.warning(f"[{resolved.value}] Search failed in '{collection}': {e}")
            return CollectionSearchResult(
                target=resolved,
                collection=collection,
                error=str(e) or type(e).__name__,
                retryable=is_retryable_error(e),
                elapsed_ms=(time.perf_counter() - start) * 1000,
            )
        elapsed_ms = (time.perf_counter() - start) * 1000

        matches = self._post_process(
            [
                RawMatch(
                    record=MaterialRecord.from_document(hit.document),
                    score=float(hit.score),
                    source_collection=resolved,
                )
                for hit in hits
            ],
            options,
        )
        logger.info(
            f"[{resolved.value}] {len(matches)}/{len(hits)} matches from "
            f"'{collection}' in {elapsed_ms:.0f}ms"
        )

        if cache_key is not None:
            self._cache.set(cache_key, list(matches))

        return CollectionSearchResult(
            target=resolved,
            collection=collection,
            matches=matches,
            elapsed_ms=elapsed_ms,
        )

    async def search_targets(
        self,
        query: str,
        targets: Iterable[CollectionTarget],
        options: SearchOptions | None = None,
    ) -> dict[CollectionTarget, CollectionSearchResult]:
        """
        Search several collections concurrently.

        All searches are joined before returning; results keep the order
        of `targets`.

        Raises:
            ConfigurationError: unwrapped from the task group, so callers
                catch it like any other MaterialSearchError
        """
        targets = list(dict.fromkeys(CollectionTarget.parse(t) for t in targets))
        for target in targets:
            self.collection_name(target)
        try:
            results = await gather_with_errors(
                *(self.search_collection(query, t, options) for t in targets)
            )
        except ExceptionGroup as group:
            config_errors, _ = group.split(ConfigurationError)
            if config_errors is None:
                raise
            raise config_errors.exceptions[0] from None
        return dict(zip(targets, results, strict=True))

    async def count(self, target: CollectionTarget | str) -> int:
        """Total documents in the collection behind `target`."""
        return await self._backend.count(self.collection_name(target))

    @staticmethod
    def _post_process(matches: list[RawMatch], options: SearchOptions) -> list[RawMatch]:
        kept = [
            m
            for m in matches
            if m.score >= options.similarity_threshold
            and (m.identity_key is None or m.identity_key not in options.exclude_codes)
        ]
        kept.sort(key=lambda m: m.score, reverse=True)
        start = max(0, options.offset)
        return kept[start:start + max(0, options.top_k)]
