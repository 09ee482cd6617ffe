"""
Material Search Domain Entities

Typed views over raw-material documents and the value objects passed
between routing, per-collection search and merging.

Backend documents are opaque mappings; the only field the merge step relies
on is the identity key (material code), exposed through
MaterialRecord.identity_key.
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from material_search.core.exceptions import UnknownCollectionError


class CollectionTarget(Enum):
    """Logical collection a search can be routed to."""

    IN_STOCK = "in_stock"
    FULL_CATALOG = "full_catalog"

    @classmethod
    def parse(cls, value: CollectionTarget | str) -> CollectionTarget:
        """
        Resolve a target from the enum, its value, or a legacy alias.

        Raises:
            UnknownCollectionError: if the value names no collection
        """
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            key = value.strip().lower().replace("-", "_")
            if key in _TARGET_ALIASES:
                return _TARGET_ALIASES[key]
        raise UnknownCollectionError(value)


_TARGET_ALIASES: dict[str, CollectionTarget] = {
    "in_stock": CollectionTarget.IN_STOCK,
    "stock": CollectionTarget.IN_STOCK,
    "real_stock": CollectionTarget.IN_STOCK,
    "full_catalog": CollectionTarget.FULL_CATALOG,
    "catalog": CollectionTarget.FULL_CATALOG,
    "all_fda": CollectionTarget.FULL_CATALOG,
    "fda": CollectionTarget.FULL_CATALOG,
}


class SearchMode(Enum):
    """How many collections a query is searched in."""

    SINGLE_COLLECTION = "single_collection"
    DUAL_PRIORITY = "dual_priority"


class Availability(Enum):
    """Whether a merged result can be supplied from current stock."""

    IN_STOCK = "in_stock"
    CATALOG_ONLY = "catalog_only"

    @classmethod
    def for_target(cls, target: CollectionTarget) -> Availability:
        if target is CollectionTarget.IN_STOCK:
            return cls.IN_STOCK
        return cls.CATALOG_ONLY


# Field-name variants seen across the stock and catalog collections.
_CODE_FIELDS = ("rm_code", "material_code", "code")
_TRADE_NAME_FIELDS = ("trade_name", "name")
_INCI_FIELDS = ("inci_name", "INCI_name")
_SUPPLIER_FIELDS = ("supplier", "company_name")
_BENEFIT_FIELDS = ("benefits", "benefit")
_USECASE_FIELDS = ("usecase", "use_cases", "details")
_FUNCTION_FIELDS = ("Function", "function", "category")
_COST_FIELDS = ("rm_cost", "cost")
_DESCRIPTION_FIELDS = ("Chem_IUPAC_Name_Description", "description")


def _first(document: dict[str, Any], names: tuple[str, ...]) -> Any:
    for name in names:
        value = document.get(name)
        if value not in (None, ""):
            return value
    return None


def _as_text(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def parse_text_list(value: Any) -> list[str]:
    """
    Normalize a list-like field to a list of strings.

    Catalog documents store lists either as arrays, as JSON array strings
    ('["Moisturizing", "Soothing"]') or as comma/semicolon separated text.
    """
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        return [s for s in (str(v).strip() for v in value) if s]
    text = str(value).strip()
    if not text:
        return []
    if text.startswith("["):
        try:
            parsed = json.loads(text)
        except json.JSONDecodeError:
            parsed = None
        if isinstance(parsed, list):
            return [s for s in (str(v).strip() for v in parsed) if s]
        text = text.strip("[]")
    parts = re.split(r"[,;\n]", text)
    return [s for s in (p.strip().strip("'\"") for p in parts) if s]


def _as_cost(value: Any) -> float | None:
    if value is None:
        return None
    if isinstance(value, (int, float)):
        return float(value)
    match = re.search(r"\d+(?:\.\d+)?", str(value).replace(",", ""))
    return float(match.group()) if match else None


@dataclass
class MaterialRecord:
    """
    Typed view over a raw-material document.

    Fields are optional because the two collections are populated from
    different sources and neither guarantees a full schema.
    """

    code: str | None = None
    trade_name: str | None = None
    inci_name: str | None = None
    supplier: str | None = None
    benefits: list[str] = field(default_factory=list)
    use_cases: list[str] = field(default_factory=list)
    functions: list[str] = field(default_factory=list)
    description: str | None = None
    cost: float | None = None
    raw: dict[str, Any] = field(default_factory=dict, repr=False)

    @property
    def identity_key(self) -> str | None:
        """Material code used for cross-collection dedup, None if absent."""
        if self.code is None:
            return None
        key = self.code.strip()
        return key or None

    @property
    def display_name(self) -> str:
        return self.trade_name or self.inci_name or self.code or "N/A"

    @classmethod
    def from_document(cls, document: dict[str, Any]) -> MaterialRecord:
        """Build a record from a backend document, tolerating field variants."""
        return cls(
            code=_as_text(_first(document, _CODE_FIELDS)),
            trade_name=_as_text(_first(document, _TRADE_NAME_FIELDS)),
            inci_name=_as_text(_first(document, _INCI_FIELDS)),
            supplier=_as_text(_first(document, _SUPPLIER_FIELDS)),
            benefits=parse_text_list(_first(document, _BENEFIT_FIELDS)),
            use_cases=parse_text_list(_first(document, _USECASE_FIELDS)),
            functions=parse_text_list(_first(document, _FUNCTION_FIELDS)),
            description=_as_text(_first(document, _DESCRIPTION_FIELDS)),
            cost=_as_cost(_first(document, _COST_FIELDS)),
            raw=dict(document),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "code": self.code,
            "trade_name": self.trade_name,
            "inci_name": self.inci_name,
            "supplier": self.supplier,
            "benefits": self.benefits,
            "use_cases": self.use_cases,
            "functions": self.functions,
            "description": self.description,
            "cost": self.cost,
        }


@dataclass
class RawMatch:
    """One scored hit from a single collection."""

    record: MaterialRecord
    score: float
    source_collection: CollectionTarget

    @property
    def identity_key(self) -> str | None:
        return self.record.identity_key

    def to_dict(self) -> dict[str, Any]:
        return {
            **self.record.to_dict(),
            "score": round(self.score, 4),
            "source_collection": self.source_collection.value,
        }


@dataclass
class MergedResult(RawMatch):
    """A match after availability tagging and cross-collection dedup."""

    availability: Availability = Availability.CATALOG_ONLY
    is_prioritized: bool = False

    @classmethod
    def from_match(cls, match: RawMatch) -> MergedResult:
        availability = Availability.for_target(match.source_collection)
        return cls(
            record=match.record,
            score=match.score,
            source_collection=match.source_collection,
            availability=availability,
            is_prioritized=availability is Availability.IN_STOCK,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            **super().to_dict(),
            "availability": self.availability.value,
            "is_prioritized": self.is_prioritized,
        }


@dataclass
class RoutingDecision:
    """Which collections to search and how to combine them."""

    targets: list[CollectionTarget]
    search_mode: SearchMode
    confidence: float
    reasoning: str
    matched_markers: dict[str, list[str]] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not self.targets:
            raise ValueError("RoutingDecision requires at least one target")
        self.confidence = max(0.0, min(1.0, self.confidence))

    def to_dict(self) -> dict[str, Any]:
        return {
            "targets": [t.value for t in self.targets],
            "search_mode": self.search_mode.value,
            "confidence": round(self.confidence, 2),
            "reasoning": self.reasoning,
            "matched_markers": self.matched_markers,
        }


@dataclass
class AvailabilityReport:
    """Answer to "do we have X?"."""

    query: str
    in_stock: bool
    details: MergedResult | None = None
    alternatives: list[MergedResult] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "query": self.query,
            "in_stock": self.in_stock,
            "details": self.details.to_dict() if self.details else None,
            "alternatives": [a.to_dict() for a in self.alternatives],
        }


@dataclass
class CollectionStats:
    """Availability breakdown of a merged result list."""

    total: int = 0
    in_stock_count: int = 0
    catalog_only_count: int = 0
    in_stock_percentage: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        return {
            "total": self.total,
            "in_stock": self.in_stock_count,
            "catalog_only": self.catalog_only_count,
            "in_stock_percentage": round(self.in_stock_percentage, 1),
        }
