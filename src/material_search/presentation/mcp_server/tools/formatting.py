"""
Material Search - Result Formatting Module.

Formats merged search results into Markdown (for agents to show users
directly) or JSON (for programmatic callers).
"""

from __future__ import annotations

import json
import logging
from typing import Any

from material_search.application.search.unified_search import UnifiedSearchOutcome
from material_search.domain.entities import (
    Availability,
    AvailabilityReport,
    CollectionStats,
    MergedResult,
    RoutingDecision,
)

logger = logging.getLogger(__name__)

STATUS_LABELS = {
    Availability.IN_STOCK: "✅ In Stock",
    Availability.CATALOG_ONLY: "📚 FDA Database",
}


# ============================================================================
# Availability Context (Thai, shown to end users)
# ============================================================================


def availability_context(stats: CollectionStats) -> str:
    """One-paragraph summary of where the results came from."""
    if stats.total == 0:
        return "ไม่พบวัตถุดิบที่ต้องการ"

    parts: list[str] = []
    if stats.in_stock_count:
        parts.append(f"✅ **พบ {stats.in_stock_count} รายการในสต็อก** (สามารถสั่งซื้อได้ทันที)")
    else:
        parts.append(
            "ไม่พบวัตถุดิบที่ต้องการในสต็อกปัจจุบัน แต่สามารถค้นหาในฐานข้อมูล FDA ทั้งหมดได้"
        )
    if stats.catalog_only_count:
        parts.append(
            f"📚 **พบ {stats.catalog_only_count} รายการในฐานข้อมูล FDA** (อาจต้องสั่งซื้อเพิ่มเติม)"
        )
    return "\n".join(parts)


# ============================================================================
# Markdown
# ============================================================================


def _cell(value: Any) -> str:
    if value in (None, "", []):
        return "N/A"
    if isinstance(value, list):
        value = ", ".join(str(v) for v in value)
    return str(value).replace("|", "/").replace("\n", " ")


def _cost(result: MergedResult) -> str:
    cost = result.record.cost
    if cost is None:
        return "Contact supplier"
    return f"฿{cost:,.2f}".rstrip("0").rstrip(".")


def results_table(results: list[MergedResult], start_rank: int = 1) -> str:
    if not results:
        return "No results found."

    lines = [
        "| # | Material Code | Trade Name | INCI Name | Supplier | Cost/kg | Status | Match |",
        "|---|---------------|------------|-----------|----------|---------|--------|-------|",
    ]
    for rank, result in enumerate(results, start=start_rank):
        record = result.record
        lines.append(
            f"| {rank} | {_cell(record.code)} | {_cell(record.trade_name)} | "
            f"{_cell(record.inci_name)} | {_cell(record.supplier)} | {_cost(result)} | "
            f"{STATUS_LABELS[result.availability]} | {result.score:.1%} |"
        )
    return "\n".join(lines)


def routing_summary(decision: RoutingDecision) -> str:
    targets = " + ".join(t.value for t in decision.targets)
    return (
        f"**Routing**: {targets} ({decision.search_mode.value}, "
        f"confidence {decision.confidence:.0%})\n"
        f"**Reasoning**: {decision.reasoning}"
    )


def format_outcome_markdown(
    outcome: UnifiedSearchOutcome,
    show_routing: bool = True,
    start_rank: int = 1,
) -> str:
    parts = ["## 🧪 Material Search Results\n", f"**Query**: {outcome.query}"]
    if show_routing:
        parts.append(routing_summary(outcome.decision))

    stats = outcome.stats
    parts.append(
        f"**Results**: {stats.total} "
        f"({stats.in_stock_count} in stock, {stats.catalog_only_count} catalog only, "
        f"{outcome.merge_stats.duplicates_removed} duplicates removed)"
    )
    if outcome.filtered_out:
        parts.append(f"**Filtered out**: {outcome.filtered_out}")
    if outcome.failed_collections:
        parts.append(
            f"⚠️ **Unavailable collections**: {', '.join(outcome.failed_collections)} "
            "(results may be incomplete)"
        )

    parts.extend(["", availability_context(stats), "", results_table(outcome.results, start_rank)])
    return "\n".join(parts)


def format_outcome_json(outcome: UnifiedSearchOutcome) -> str:
    return json.dumps(outcome.to_dict(), indent=2, ensure_ascii=False)


def format_availability_markdown(report: AvailabilityReport) -> str:
    if report.in_stock and report.details is not None:
        record = report.details.record
        return "\n".join(
            [
                f"## ✅ {report.query}: มีในสต็อก",
                "",
                f"- **Material Code**: {_cell(record.code)}",
                f"- **Trade Name**: {_cell(record.trade_name)}",
                f"- **INCI Name**: {_cell(record.inci_name)}",
                f"- **Supplier**: {_cell(record.supplier)}",
                f"- **Cost/kg**: {_cost(report.details)}",
                f"- **Match**: {report.details.score:.1%}",
            ]
        )

    parts = [f"## ❌ {report.query}: ไม่มีในสต็อก"]
    if report.alternatives:
        parts.extend(
            [
                "",
                f"📚 พบ {len(report.alternatives)} รายการที่ใกล้เคียงในฐานข้อมูล FDA (อาจต้องสั่งซื้อเพิ่มเติม)",
                "",
                results_table(report.alternatives),
            ]
        )
    else:
        parts.extend(["", "ไม่พบวัตถุดิบที่ต้องการ"])
    return "\n".join(parts)


# ============================================================================
# Profiles & Use Cases
# ============================================================================


def _short_list(items: list[str], limit: int = 3) -> str:
    if not items:
        return "N/A"
    text = ", ".join(items[:limit])
    if len(items) > limit:
        text += f" (+{len(items) - limit})"
    return _cell(text)


def _dedupe(items: list[str]) -> list[str]:
    seen: dict[str, str] = {}
    for item in items:
        seen.setdefault(item.casefold(), item)
    return list(seen.values())


def _label(result: MergedResult) -> str:
    record = result.record
    if record.inci_name and record.trade_name and record.inci_name != record.trade_name:
        return _cell(f"{record.trade_name} ({record.inci_name})")
    return _cell(record.display_name)


def profile_table(results: list[MergedResult], start_rank: int = 1) -> str:
    lines = [
        "| # | Material | Code | Use Cases | Benefits | Status | Match |",
        "|---|----------|------|-----------|----------|--------|-------|",
    ]
    for rank, result in enumerate(results, start=start_rank):
        record = result.record
        lines.append(
            f"| {rank} | {_label(result)} | {_cell(record.code)} | "
            f"{_short_list(record.use_cases)} | {_short_list(record.benefits)} | "
            f"{STATUS_LABELS[result.availability]} | {result.score:.1%} |"
        )
    return "\n".join(lines)


def profile_summary(results: list[MergedResult]) -> str:
    """Thai one-line summary of the use cases and benefits across results."""
    use_cases = _dedupe([u for r in results for u in r.record.use_cases])
    benefits = _dedupe([b for r in results for b in r.record.benefits])
    use_case_text = f"ผลิตภัณฑ์กลุ่ม {_short_list(use_cases, 5)}" if use_cases else "หลายประเภท"
    benefit_text = _short_list(benefits, 5) if benefits else "หลากหลายประโยชน์"
    return f"วัตถุดิบกลุ่มนี้เหมาะสำหรับ {use_case_text} โดยให้คุณสมบัติเด่นด้าน {benefit_text}"


def format_profile_markdown(
    query: str,
    outcome: UnifiedSearchOutcome,
    include_related: bool = True,
) -> str:
    if outcome.is_empty:
        return "ไม่พบข้อมูลวัตถุดิบตามคำค้นหา"

    primary, related = outcome.results[0], outcome.results[1:]
    record = primary.record
    parts = [
        f"## 🧾 Material Profile: {query}",
        "",
        f"### {_label(primary)}",
        f"- **Material Code**: {_cell(record.code)}",
        f"- **Function**: {_cell(record.functions)}",
        f"- **Supplier**: {_cell(record.supplier)}",
        f"- **Cost/kg**: {_cost(primary)}",
        f"- **Benefits**: {_cell(record.benefits)}",
        f"- **Use Cases**: {_cell(record.use_cases)}",
        f"- **Status**: {STATUS_LABELS[primary.availability]} ({primary.score:.1%} match)",
    ]
    if record.description:
        parts.append(f"- **Application Notes**: {_cell(record.description)}")

    shown = [primary]
    if include_related and related:
        parts.extend(["", "### Related Materials", "", profile_table(related, start_rank=2)])
        shown.extend(related)

    parts.extend(["", profile_summary(shown)])
    return "\n".join(parts)


def format_usecase_markdown(
    usecase: str,
    benefit: str | None,
    outcome: UnifiedSearchOutcome,
    start_rank: int = 1,
) -> str:
    if outcome.is_empty:
        return "ไม่พบวัตถุดิบที่ตรงกับ use case ที่ระบุ"

    title = f"{usecase} + {benefit}" if benefit else usecase
    parts = [f"## 🧴 Materials for: {title}", ""]
    if outcome.filtered_out:
        parts.append(f"**Not matching the use case**: {outcome.filtered_out}")
    parts.extend([profile_table(outcome.results, start_rank), "", profile_summary(outcome.results)])
    return "\n".join(parts)
