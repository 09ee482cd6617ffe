"""
Search Result Cache

In-memory TTL cache for per-collection search results.
Uses cachetools.TTLCache for LRU eviction and TTL expiration.

Only successful searches are stored, so a collection that failed or timed
out is queried again on the next request.
"""

import logging
from dataclasses import dataclass
from typing import Any

from cachetools import TTLCache

logger = logging.getLogger(__name__)


@dataclass
class CacheStats:
    """Cache statistics."""

    hits: int = 0
    misses: int = 0

    @property
    def total_requests(self) -> int:
        return self.hits + self.misses

    @property
    def hit_rate(self) -> float:
        """Cache hit rate (0-1)."""
        total = self.total_requests
        return self.hits / total if total > 0 else 0.0

    def to_dict(self) -> dict[str, Any]:
        return {
            "hits": self.hits,
            "misses": self.misses,
            "hit_rate": round(self.hit_rate, 3),
        }


class SearchResultCache:
    """
    TTL cache keyed by collection, normalized query and search options.

    Example:
        cache = SearchResultCache(max_size=500, ttl=300)
        key = cache.make_key("raw_materials_real_stock", "Vitamin C", 5, 0.5, (), 0)
        cache.set(key, matches)
        cache.get(key)
    """

    def __init__(self, max_size: int = 500, ttl: float = 300.0):
        self._cache: TTLCache[str, Any] = TTLCache(maxsize=max_size, ttl=ttl)
        self._stats = CacheStats()

    @property
    def stats(self) -> CacheStats:
        return self._stats

    @staticmethod
    def make_key(collection: str, query: str, *options: Any) -> str:
        normalized = " ".join(query.casefold().split())
        parts = [collection, normalized, *(repr(o) for o in options)]
        return "|".join(parts)

    def get(self, key: str) -> Any | None:
        try:
            value = self._cache[key]
            self._stats.hits += 1
            logger.debug(f"Cache hit: {key}")
            return value
        except KeyError:
            self._stats.misses += 1
            return None

    def set(self, key: str, value: Any) -> None:
        self._cache[key] = value

    def invalidate(self, key: str) -> bool:
        try:
            del self._cache[key]
            return True
        except KeyError:
            return False

    def clear(self) -> int:
        """Clear all entries and return how many were removed."""
        count = len(self._cache)
        self._cache.clear()
        return count

    def __len__(self) -> int:
        return len(self._cache)
