"""
Material Search MCP Tools

- unified_material_search: main entry, automatic collection routing
- search_in_stock: warehouse stock only
- search_full_catalog: every registered ingredient (paginated)
- check_material_availability: "มี X ไหม?"
- get_material_profile: benefits and use cases of a named material
- search_materials_by_usecase: ingredients for a product type
- analyze_material_query: routing + classification without searching
- get_collection_overview: document counts per collection
"""

from __future__ import annotations

import json
import logging
from typing import Literal, Union

from mcp.server.fastmcp import FastMCP

from material_search.application.search.query_classifier import MaterialQueryClassifier
from material_search.application.search.search_executor import SearchOptions
from material_search.application.search.unified_search import (
    MaterialFilter,
    UnifiedSearchService,
)
from material_search.core.exceptions import (
    ErrorContext,
    InvalidQueryError,
    MaterialSearchError,
)
from material_search.domain.entities import CollectionTarget

from ._common import InputNormalizer, ResponseFormatter
from .formatting import (
    format_availability_markdown,
    format_outcome_json,
    format_outcome_markdown,
    format_profile_markdown,
    format_usecase_markdown,
    routing_summary,
)

logger = logging.getLogger(__name__)

NO_RESULT_SUGGESTIONS = [
    "ลองใช้คำค้นอื่น เช่น ชื่อ INCI หรือชื่อการค้า (try an INCI or trade name)",
    "Search by benefit, e.g. 'moisturizing' or 'ลดริ้วรอย'",
    "Use search_full_catalog to look beyond current stock",
]


def _empty_input(tool_name: str, example: str, reason: str = "Query cannot be empty") -> str:
    error = InvalidQueryError(
        "", reason, context=ErrorContext(tool_name=tool_name, example=example)
    )
    return ResponseFormatter.error(error, tool_name=tool_name)


def _unavailable_note(failed: list[str]) -> str:
    return f"\n\n⚠️ Unavailable collections: {', '.join(failed)}" if failed else ""


def register_material_search_tools(mcp: FastMCP, service: UnifiedSearchService):
    """Register material search MCP tools."""

    def _options(limit: int, exclude_codes: frozenset[str], offset: int = 0) -> SearchOptions:
        defaults = service.default_options
        return SearchOptions(
            top_k=limit,
            similarity_threshold=defaults.similarity_threshold,
            exclude_codes=exclude_codes,
            offset=offset,
            timeout=defaults.timeout,
            include_metadata=defaults.include_metadata,
        )

    async def _run(
        tool_name: str,
        query: str,
        collection: CollectionTarget | None,
        limit: Union[int, str],
        exclude_codes: Union[list[str], str, None],
        offset: Union[int, str],
        output_format: str = "markdown",
        show_routing: bool = True,
        material_filter: MaterialFilter | None = None,
    ) -> str:
        query = InputNormalizer.normalize_query(query)
        if not query:
            return _empty_input(tool_name, f'{tool_name}(query="Hyaluronic acid")')

        try:
            limit = InputNormalizer.normalize_limit(limit, default=5, max_val=20)
            offset = InputNormalizer.normalize_offset(offset)
            excluded = InputNormalizer.normalize_codes(exclude_codes)
            outcome = await service.unified_search(
                query,
                collection=collection,
                options=_options(limit, excluded, offset),
                material_filter=material_filter,
            )
        except MaterialSearchError as e:
            logger.error(f"{tool_name} failed: {e}")
            return ResponseFormatter.error(e, tool_name=tool_name)

        if output_format == "json":
            return format_outcome_json(outcome)

        if outcome.is_empty:
            message = ResponseFormatter.no_results(query=query, suggestions=NO_RESULT_SUGGESTIONS)
            return message + _unavailable_note(outcome.failed_collections)

        return format_outcome_markdown(outcome, show_routing=show_routing, start_rank=offset + 1)

    @mcp.tool()
    async def unified_material_search(
        query: str,
        collection: Union[str, None] = None,
        limit: Union[int, str] = 5,
        exclude_codes: Union[list[str], str, None] = None,
        offset: Union[int, str] = 0,
        benefit: Union[str, None] = None,
        supplier: Union[str, None] = None,
        max_cost: Union[float, str, None] = None,
        output_format: Literal["markdown", "json"] = "markdown",
        show_routing: Union[bool, str] = True,
    ) -> str:
        """
        🧪 Search raw materials / cosmetic ingredients with automatic routing.

        ═══════════════════════════════════════════════════════════════════
        ROUTING:
        ═══════════════════════════════════════════════════════════════════
        - Stock language ("in stock", "มีในสต็อก", "มี X ไหม") → in-stock only
        - Catalog language ("all ingredients", "FDA", "ทั้งหมด") → full catalog
        - Anything else → both, in-stock results listed first

        EXAMPLES:
            unified_material_search("มี Vitamin C ไหม?")
            unified_material_search("recommend ingredients for ลดริ้วรอย")
            unified_material_search("moisturizing", benefit="hydrat", max_cost=2000)
            unified_material_search("niacinamide", exclude_codes="RM000123,RM000456")

        Args:
            query: Thai, English or mixed query
            collection: Force "in_stock" or "full_catalog" ("all_fda" accepted);
                        omit or "both" for automatic routing
            limit: Results per collection (1-20, default 5)
            exclude_codes: Material codes already shown ("show me others")
            offset: Skip this many results per collection ("show me 5 more")
            benefit: Keep only results mentioning this benefit/function
            supplier: Keep only results from this supplier
            max_cost: Keep only results at or below this cost per kg (Baht)
            output_format: "markdown" (show to user) or "json"
            show_routing: Include the routing decision in markdown output

        Returns:
            Markdown table (in-stock first) or JSON with routing and statistics
        """
        logger.info(f"unified_material_search: query='{query}', collection={collection}")
        try:
            target = InputNormalizer.normalize_collection(collection)
            material_filter = MaterialFilter(
                benefit=(benefit or "").strip() or None,
                supplier=(supplier or "").strip() or None,
                max_cost=InputNormalizer.normalize_cost(max_cost),
            )
        except MaterialSearchError as e:
            return ResponseFormatter.error(e, tool_name="unified_material_search")

        return await _run(
            "unified_material_search",
            query,
            target,
            limit,
            exclude_codes,
            offset,
            output_format=output_format,
            show_routing=InputNormalizer.normalize_bool(show_routing, default=True),
            material_filter=material_filter,
        )

    @mcp.tool()
    async def search_in_stock(
        query: str,
        limit: Union[int, str] = 5,
        exclude_codes: Union[list[str], str, None] = None,
    ) -> str:
        """
        ✅ Search only materials currently in the warehouse.

        Use when the user asks what can be used or ordered right now.

        Args:
            query: Material name, INCI name, code or benefit
            limit: Maximum results (1-20, default 5)
            exclude_codes: Material codes to skip

        Returns:
            Markdown table of in-stock materials
        """
        return await _run(
            "search_in_stock",
            query,
            CollectionTarget.IN_STOCK,
            limit,
            exclude_codes,
            0,
        )

    @mcp.tool()
    async def search_full_catalog(
        query: str,
        limit: Union[int, str] = 5,
        exclude_codes: Union[list[str], str, None] = None,
        offset: Union[int, str] = 0,
    ) -> str:
        """
        📚 Search every registered cosmetic ingredient (FDA catalog).

        Results may need to be ordered from suppliers. Supports pagination:
        call again with offset=5, 10, ... or pass the codes already shown in
        exclude_codes.

        Args:
            query: Material name, INCI name, code or benefit
            limit: Maximum results (1-20, default 5)
            exclude_codes: Material codes to skip
            offset: Results to skip (pagination)

        Returns:
            Markdown table of catalog materials
        """
        return await _run(
            "search_full_catalog",
            query,
            CollectionTarget.FULL_CATALOG,
            limit,
            exclude_codes,
            offset,
        )

    @mcp.tool()
    async def check_material_availability(material: str) -> str:
        """
        Check if a specific material is in stock.

        Use for "มี [material] ไหม?", "Is [material] in stock?",
        "สั่ง [material] ได้ไหม?".

        Args:
            material: Material name, INCI name or code (e.g. "Vitamin C", "RM000123")

        Returns:
            In-stock details, or catalog alternatives when not in stock
        """
        material = InputNormalizer.normalize_query(material)
        if not material:
            return _empty_input(
                "check_material_availability",
                'check_material_availability(material="Niacinamide")',
                reason="Material name cannot be empty",
            )

        try:
            report = await service.check_availability(material)
        except MaterialSearchError as e:
            logger.error(f"Availability check failed: {e}")
            return ResponseFormatter.error(e, tool_name="check_material_availability")

        return format_availability_markdown(report)

    @mcp.tool()
    async def get_material_profile(
        material: str,
        limit: Union[int, str] = 3,
        include_related: Union[bool, str] = True,
    ) -> str:
        """
        🧾 Detailed profile of a material from the full catalog.

        Use for "สาร X ใช้ทำอะไรได้บ้าง", "What is X used for?",
        "Which products use INCI X?".

        Args:
            material: Material name, INCI name or code (e.g. "Caffeoyl Hexapeptide-48")
            limit: Number of materials to profile (1-5, default 3)
            include_related: Also list close matches after the main profile

        Returns:
            Profile of the best match (function, benefits, use cases) plus
            related materials and a Thai summary
        """
        material = InputNormalizer.normalize_query(material)
        if not material:
            return _empty_input(
                "get_material_profile",
                'get_material_profile(material="Niacinamide")',
                reason="Material name cannot be empty",
            )

        try:
            limit = InputNormalizer.normalize_limit(limit, default=3, max_val=5)
            outcome = await service.material_profile(material, limit=limit)
        except MaterialSearchError as e:
            logger.error(f"get_material_profile failed: {e}")
            return ResponseFormatter.error(e, tool_name="get_material_profile")

        output = format_profile_markdown(
            material,
            outcome,
            include_related=InputNormalizer.normalize_bool(include_related, default=True),
        )
        return output + _unavailable_note(outcome.failed_collections)

    @mcp.tool()
    async def search_materials_by_usecase(
        usecase: str,
        benefit: Union[str, None] = None,
        limit: Union[int, str] = 5,
        offset: Union[int, str] = 0,
        exclude_codes: Union[list[str], str, None] = None,
    ) -> str:
        """
        🧴 Find catalog ingredients for a product type (use case).

        Use for "วัตถุดิบสำหรับเซรั่มลดริ้วรอย", "actives for sleeping mask",
        "what can I use in an eye cream?".

        Args:
            usecase: Product type, e.g. "serum", "cream", "toner", "eye cream"
            benefit: Optional benefit to narrow results, e.g. "ลดริ้วรอย"
            limit: Maximum results (1-10, default 5)
            offset: Results to skip (pagination)
            exclude_codes: Material codes already shown

        Returns:
            Markdown table with use cases, benefits and status per material
        """
        usecase = InputNormalizer.normalize_query(usecase)
        if not usecase:
            return _empty_input(
                "search_materials_by_usecase",
                'search_materials_by_usecase(usecase="serum", benefit="moisturizing")',
                reason="Use case cannot be empty",
            )

        benefit = InputNormalizer.normalize_query(benefit) or None

        try:
            limit = InputNormalizer.normalize_limit(limit, default=5, max_val=10)
            offset = InputNormalizer.normalize_offset(offset)
            outcome = await service.search_by_usecase(
                usecase,
                benefit=benefit,
                limit=limit,
                offset=offset,
                exclude_codes=InputNormalizer.normalize_codes(exclude_codes),
            )
        except MaterialSearchError as e:
            logger.error(f"search_materials_by_usecase failed: {e}")
            return ResponseFormatter.error(e, tool_name="search_materials_by_usecase")

        output = format_usecase_markdown(usecase, benefit, outcome, start_rank=offset + 1)
        return output + _unavailable_note(outcome.failed_collections)

    @mcp.tool()
    def analyze_material_query(query: str) -> str:
        """
        Analyze a material query without executing the search.

        Shows which collection(s) unified_material_search would use and what
        it extracted from the query (codes, language, terms).

        Args:
            query: The query to analyze

        Returns:
            Routing decision and query classification
        """
        query = InputNormalizer.normalize_query(query)
        if not query:
            return _empty_input(
                "analyze_material_query", 'analyze_material_query(query="มี Vitamin C ไหม?")'
            )

        decision = service.route(query)
        classified = MaterialQueryClassifier().classify(query)

        output = [
            "## 🔬 Query Analysis\n",
            f"**Query**: {query}",
            routing_summary(decision),
            "",
            "### Classification",
            f"- **Type**: {classified.query_type.value}",
            f"- **Language**: {classified.language.value}",
        ]
        if classified.codes:
            output.append(f"- **Codes**: {', '.join(classified.codes)}")
        if classified.properties:
            output.append(f"- **Properties**: {', '.join(classified.properties)}")
        if classified.search_terms:
            output.append(f"- **Search terms**: {', '.join(classified.search_terms)}")
        if decision.matched_markers:
            output.append("\n### Matched Markers")
            for family, markers in decision.matched_markers.items():
                output.append(f"- **{family}**: {', '.join(markers)}")
        return "\n".join(output)

    @mcp.tool()
    async def get_collection_overview() -> str:
        """
        Document counts of the in-stock and full-catalog collections.

        Returns:
            JSON with per-collection counts (null where a count failed)
        """
        sizes = await service.collection_sizes()
        return json.dumps({"collections": sizes}, indent=2, ensure_ascii=False)
