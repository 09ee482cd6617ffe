"""
Material Search MCP Server

Model Context Protocol server for raw-material / cosmetic ingredient search.

Architecture:
- instructions.py: SERVER_INSTRUCTIONS for AI agents
- tools/: tool implementations and formatting
- container: DI container (dependency-injector) for service lifecycle

Configuration (environment):
    MONGODB_URI               mongodb://localhost:27017
    MONGODB_DATABASE          cosmetics
    IN_STOCK_COLLECTION       raw_materials_real_stock
    CATALOG_COLLECTION        raw_materials_console
    SEARCH_TIMEOUT_SECONDS    10
    SEARCH_CACHE_TTL_SECONDS  300 (0 disables the cache)
    PRIORITIZE_IN_STOCK       true (false: merge both collections by score)
    ROUTING_KEYWORDS_PATH     packaged routing_keywords.yaml
    LOG_LEVEL                 INFO
"""

from __future__ import annotations

import logging
import os
from contextlib import AbstractAsyncContextManager, asynccontextmanager
from typing import TYPE_CHECKING, Any, cast

from mcp.server.fastmcp import FastMCP

from material_search.container import ApplicationContainer

from .instructions import SERVER_INSTRUCTIONS
from .tools import register_all_tools

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Callable

    from material_search.application.search.unified_search import UnifiedSearchService
    from material_search.infrastructure.backends.base import SearchBackend

logger = logging.getLogger(__name__)

DEFAULT_MONGODB_URI = "mongodb://localhost:27017"
DEFAULT_DATABASE = "cosmetics"
DEFAULT_IN_STOCK_COLLECTION = "raw_materials_real_stock"
DEFAULT_CATALOG_COLLECTION = "raw_materials_console"
DEFAULT_SEARCH_TIMEOUT = 10.0
DEFAULT_CACHE_TTL = 300.0

# ── Module-level DI container ──────────────────────────────────────────────
_container: ApplicationContainer | None = None


def get_container() -> ApplicationContainer:
    """Get the application DI container.

    Raises:
        RuntimeError: If ``create_server()`` has not been called yet.
    """
    if _container is None:
        msg = "Container not initialized. Call create_server() first."
        raise RuntimeError(msg)
    return _container


def _make_lifespan(
    container: ApplicationContainer,
) -> Callable[[FastMCP[Any]], AbstractAsyncContextManager[ApplicationContainer]]:
    """Create a FastMCP lifespan handler bound to *container*."""

    @asynccontextmanager
    async def _lifespan(server: FastMCP[Any]) -> AsyncIterator[ApplicationContainer]:
        """Application lifecycle: startup → yield → shutdown."""
        backend = cast("SearchBackend", container.backend())
        await backend.init()
        logger.info("Lifecycle startup: search backend ready")
        try:
            yield container
        finally:
            await backend.close()
            logger.info("Lifecycle shutdown: search backend closed")

    return _lifespan


def create_server(
    mongodb_uri: str = DEFAULT_MONGODB_URI,
    database: str = DEFAULT_DATABASE,
    in_stock_collection: str = DEFAULT_IN_STOCK_COLLECTION,
    catalog_collection: str = DEFAULT_CATALOG_COLLECTION,
    search_timeout: float = DEFAULT_SEARCH_TIMEOUT,
    cache_ttl: float = DEFAULT_CACHE_TTL,
    routing_keywords_path: str | None = None,
    prioritize_in_stock: bool = True,
    name: str = "material-search",
) -> FastMCP:
    """
    Create and configure the Material Search MCP server.

    Uses :class:`~material_search.container.ApplicationContainer` for
    dependency injection and lifecycle management.

    Args:
        mongodb_uri: MongoDB connection string.
        database: Database holding both material collections.
        in_stock_collection: Collection of materials currently in stock.
        catalog_collection: Collection of all registered ingredients.
        search_timeout: Per-collection search timeout in seconds.
        cache_ttl: Result cache TTL in seconds (0 disables caching).
        routing_keywords_path: Optional custom routing keyword YAML.
        prioritize_in_stock: List in-stock results ahead of catalog results
            when both collections are searched.
        name: Server name.

    Returns:
        Configured FastMCP server instance.
    """
    global _container
    logger.info("Initializing Material Search MCP Server...")

    # ── DI container ────────────────────────────────────────────────────
    _container = ApplicationContainer()
    _container.config.from_dict(
        {
            "mongodb_uri": mongodb_uri,
            "database": database,
            "in_stock_collection": in_stock_collection,
            "catalog_collection": catalog_collection,
            "search_timeout": search_timeout,
            "cache_ttl": cache_ttl,
            "routing_keywords_path": routing_keywords_path,
            "prioritize_in_stock": prioritize_in_stock,
        }
    )

    service = cast("UnifiedSearchService", _container.unified_search_service())
    logger.info(
        "Collections: in_stock=%s, full_catalog=%s (database %s)",
        in_stock_collection,
        catalog_collection,
        database,
    )

    # ── Create MCP server with lifespan ─────────────────────────────────
    mcp = FastMCP(
        name,
        instructions=SERVER_INSTRUCTIONS,
        lifespan=_make_lifespan(_container),
    )

    count = register_all_tools(mcp, service)
    logger.info("Tool registration complete: %d tools", count)

    logger.info("Material Search MCP Server initialized successfully")
    return mcp


def _env_float(name: str, default: float) -> float:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        logger.warning(f"Ignoring invalid {name}={raw!r}, using {default}")
        return default


def _env_bool(name: str, default: bool) -> bool:
    raw = os.environ.get(name, "").strip().lower()
    if not raw:
        return default
    if raw in {"1", "true", "yes", "on"}:
        return True
    if raw in {"0", "false", "no", "off"}:
        return False
    logger.warning(f"Ignoring invalid {name}={raw!r}, using {default}")
    return default


def main():
    """Run the MCP server."""

    # Configure logging
    logging.basicConfig(
        level=os.environ.get("LOG_LEVEL", "INFO").upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    server = create_server(
        mongodb_uri=os.environ.get("MONGODB_URI", "").strip() or DEFAULT_MONGODB_URI,
        database=os.environ.get("MONGODB_DATABASE", "").strip() or DEFAULT_DATABASE,
        in_stock_collection=os.environ.get("IN_STOCK_COLLECTION", "").strip()
        or DEFAULT_IN_STOCK_COLLECTION,
        catalog_collection=os.environ.get("CATALOG_COLLECTION", "").strip()
        or DEFAULT_CATALOG_COLLECTION,
        search_timeout=_env_float("SEARCH_TIMEOUT_SECONDS", DEFAULT_SEARCH_TIMEOUT),
        cache_ttl=_env_float("SEARCH_CACHE_TTL_SECONDS", DEFAULT_CACHE_TTL),
        routing_keywords_path=os.environ.get("ROUTING_KEYWORDS_PATH", "").strip() or None,
        prioritize_in_stock=_env_bool("PRIORITIZE_IN_STOCK", True),
    )

    # Run stdio MCP server (blocks)
    server.run()


if __name__ == "__main__":
    main()
