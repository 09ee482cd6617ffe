"""Caching for search results."""

from .result_cache import CacheStats, SearchResultCache

__all__ = ["CacheStats", "SearchResultCache"]
