"""
Infrastructure Layer - External storage and caching.

Contains:
- backends: document-store search backends
- cache: TTL cache for per-collection results
"""
