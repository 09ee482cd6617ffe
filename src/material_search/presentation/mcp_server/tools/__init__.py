"""
Material Search MCP Tools

✅ Search (3):
- unified_material_search: main entry, automatic routing (in-stock first)
- search_in_stock: warehouse stock only
- search_full_catalog: full FDA catalog, paginated

✅ Availability (1):
- check_material_availability: "มี X ไหม?"

✅ Catalog Insight (2):
- get_material_profile: benefits, use cases and function of a material
- search_materials_by_usecase: ingredients for a product type

✅ Diagnostics (2):
- analyze_material_query: routing + classification without searching
- get_collection_overview: document counts per collection

Usage:
    from .tools import register_all_tools
    register_all_tools(mcp, service)
"""

from mcp.server.fastmcp import FastMCP

from material_search.application.search.unified_search import UnifiedSearchService

from .unified import register_material_search_tools

TOOL_NAMES = [
    "unified_material_search",
    "search_in_stock",
    "search_full_catalog",
    "check_material_availability",
    "get_material_profile",
    "search_materials_by_usecase",
    "analyze_material_query",
    "get_collection_overview",
]


def register_all_tools(mcp: FastMCP, service: UnifiedSearchService) -> int:
    """Register all material search tools and return how many were added."""
    register_material_search_tools(mcp, service)
    return len(TOOL_NAMES)


__all__ = ["register_all_tools", "TOOL_NAMES"]
