"""
Application DI Container (dependency-injector).

Centralizes service creation and lifecycle management. The MongoDB
backend is the only long-lived resource; everything else is stateless
or per-request.

Usage::

    from material_search.container import ApplicationContainer

    container = ApplicationContainer()
    container.config.from_dict({
        "mongodb_uri": "mongodb://localhost:27017",
        "database": "cosmetics",
        "in_stock_collection": "raw_materials_real_stock",
        "catalog_collection": "raw_materials_console",
        "search_timeout": 10.0,
        "cache_ttl": 300,
        "routing_keywords_path": None,
    })

    service = container.unified_search_service()

    # In tests, override any provider:
    container.backend.override(providers.Object(fake_backend))
"""

from __future__ import annotations

import logging

from dependency_injector import containers, providers

logger = logging.getLogger(__name__)


def _create_backend(mongodb_uri: str, database: str) -> object:
    """Lazy factory for MongoMaterialBackend (avoids top-level import)."""
    from material_search.infrastructure.backends.mongodb import MongoMaterialBackend

    return MongoMaterialBackend(
        uri=mongodb_uri or "mongodb://localhost:27017",
        database=database or "cosmetics",
    )


def _create_router(routing_keywords_path: str | None) -> object:
    """Lazy factory for CollectionRouter; custom keyword file if configured."""
    from material_search.application.search.collection_router import (
        CollectionRouter,
        RoutingKeywordTable,
    )

    if routing_keywords_path:
        logger.info(f"Loading routing keywords from {routing_keywords_path}")
        return CollectionRouter(RoutingKeywordTable.from_yaml(routing_keywords_path))
    return CollectionRouter()


def _create_result_cache(cache_ttl: float | None) -> object | None:
    """Lazy factory for SearchResultCache; None when the TTL is 0."""
    from material_search.infrastructure.cache import SearchResultCache

    if not cache_ttl:
        return None
    return SearchResultCache(ttl=float(cache_ttl))


def _create_executor(
    backend: object,
    in_stock_collection: str,
    catalog_collection: str,
    cache: object | None,
) -> object:
    """Lazy factory for CollectionSearchExecutor."""
    from material_search.application.search.search_executor import (
        DEFAULT_COLLECTIONS,
        CollectionSearchExecutor,
    )
    from material_search.domain.entities import CollectionTarget

    return CollectionSearchExecutor(
        backend,
        collection_names={
            CollectionTarget.IN_STOCK: in_stock_collection
            or DEFAULT_COLLECTIONS[CollectionTarget.IN_STOCK],
            CollectionTarget.FULL_CATALOG: catalog_collection
            or DEFAULT_COLLECTIONS[CollectionTarget.FULL_CATALOG],
        },
        cache=cache,
    )


def _create_merger(prioritize_in_stock: bool | None) -> object:
    """Lazy factory for ResultMerger."""
    from material_search.application.search.result_merger import MergePolicy, ResultMerger

    if prioritize_in_stock is None:
        prioritize_in_stock = True
    return ResultMerger(MergePolicy(prioritize_in_stock=bool(prioritize_in_stock)))


def _create_annotator(executor: object, search_timeout: float | None) -> object:
    """Lazy factory for AvailabilityAnnotator."""
    from material_search.application.search.availability import AvailabilityAnnotator

    return AvailabilityAnnotator(executor, timeout=float(search_timeout or 10.0))


def _create_unified_search_service(
    router: object,
    executor: object,
    merger: object,
    annotator: object,
    search_timeout: float | None,
) -> object:
    """Lazy factory for UnifiedSearchService."""
    from material_search.application.search.search_executor import SearchOptions
    from material_search.application.search.unified_search import UnifiedSearchService

    return UnifiedSearchService(
        router,
        executor,
        merger,
        annotator,
        default_options=SearchOptions(timeout=float(search_timeout or 10.0)),
    )


class ApplicationContainer(containers.DeclarativeContainer):
    """Central DI container for Material Search MCP.

    Manages creation and lifecycle of all core services:
    - ``backend``: MongoDB search backend (init/close in server lifespan)
    - ``router``: collection router with its keyword table
    - ``result_cache``: optional TTL cache for per-collection results
    - ``executor``: per-collection search executor
    - ``merger``: result merger with the in-stock-first policy
    - ``annotator``: availability checks
    - ``unified_search_service``: facade used by the MCP tools
    """

    config = providers.Configuration()

    backend = providers.Singleton(
        _create_backend,
        mongodb_uri=config.mongodb_uri,
        database=config.database,
    )

    router = providers.Singleton(
        _create_router,
        routing_keywords_path=config.routing_keywords_path,
    )

    result_cache = providers.Singleton(
        _create_result_cache,
        cache_ttl=config.cache_ttl,
    )

    executor = providers.Singleton(
        _create_executor,
        backend=backend,
        in_stock_collection=config.in_stock_collection,
        catalog_collection=config.catalog_collection,
        cache=result_cache,
    )

    merger = providers.Singleton(
        _create_merger,
        prioritize_in_stock=config.prioritize_in_stock,
    )

    annotator = providers.Singleton(
        _create_annotator,
        executor=executor,
        search_timeout=config.search_timeout,
    )

    unified_search_service = providers.Singleton(
        _create_unified_search_service,
        router=router,
        executor=executor,
        merger=merger,
        annotator=annotator,
        search_timeout=config.search_timeout,
    )


__all__ = ["ApplicationContainer"]
