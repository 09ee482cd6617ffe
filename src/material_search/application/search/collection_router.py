"""
CollectionRouter - Decide which raw-material collection(s) a query targets.

Two logical collections back the search layer:
    in_stock      materials currently in the warehouse (small)
    full_catalog  every registered cosmetic ingredient (large)

The router scans the query for stock-intent and catalog-intent markers
taken from a keyword table and returns a RoutingDecision:

    stock markers only     -> [in_stock]                single_collection
    catalog markers only   -> [full_catalog]            single_collection
    both, or neither       -> [in_stock, full_catalog]  dual_priority

Architecture Decision:
    The router is stateless and performs no I/O. Keyword data lives in
    routing_keywords.yaml so that new Thai/English phrasings can be added
    without code changes. Confidence is informational only and never
    rejects a query.

Example:
    >>> router = CollectionRouter()
    >>> decision = router.route("มี Vitamin C ไหม?")
    >>> decision.targets
    [<CollectionTarget.IN_STOCK: 'in_stock'>]
    >>> decision.confidence >= 0.8
    True
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from functools import lru_cache
from importlib.resources import files
from pathlib import Path
from typing import Any

import yaml

from material_search.core.exceptions import ConfigurationError
from material_search.domain.entities import (
    CollectionTarget,
    RoutingDecision,
    SearchMode,
)

logger = logging.getLogger(__name__)

MARKER_KINDS = ("phrase", "pattern", "term", "hint")

DEFAULT_WEIGHTS: dict[str, float] = {
    "phrase": 0.9,
    "pattern": 0.9,
    "term": 0.7,
    "hint": 0.5,
}

# Each extra distinct marker adds a little confidence, up to a cap.
EXTRA_MARKER_BONUS = 0.05
MAX_EXTRA_BONUS = 0.1

_FAMILY_TARGETS = {
    "in_stock": CollectionTarget.IN_STOCK,
    "full_catalog": CollectionTarget.FULL_CATALOG,
}

_WHITESPACE = re.compile(r"\s+")


def normalize_query(query: str | None) -> str:
    """Case-fold and collapse whitespace."""
    if not query:
        return ""
    return _WHITESPACE.sub(" ", query).strip().casefold()


def _literal_matcher(text: str) -> re.Pattern[str]:
    # ASCII markers need word boundaries ("order" must not hit "border");
    # Thai is written without spaces, so Thai markers match as substrings.
    literal = re.escape(normalize_query(text))
    if text.isascii():
        return re.compile(rf"(?<![a-z0-9]){literal}(?![a-z0-9])")
    return re.compile(literal)


@dataclass(frozen=True)
class Marker:
    """One compiled keyword entry."""

    kind: str
    text: str
    matcher: re.Pattern[str] = field(compare=False, repr=False)


@dataclass
class FamilyScore:
    """Markers that matched for one collection family."""

    target: CollectionTarget
    matches: list[Marker] = field(default_factory=list)
    score: float = 0.0
    fired: bool = False

    @property
    def marker_texts(self) -> list[str]:
        return [m.text for m in self.matches]


class RoutingKeywordTable:
    """
    Keyword data for the router, grouped by collection family.

    Build with RoutingKeywordTable.default() for the packaged table,
    from_yaml() for a file, or from_dict() for inline data (tests).
    """

    def __init__(
        self,
        families: dict[CollectionTarget, list[Marker]],
        weights: dict[str, float] | None = None,
        fire_threshold: float = 0.7,
        ambiguous_confidence: float = 0.5,
    ):
        self.families = families
        self.weights = {**DEFAULT_WEIGHTS, **(weights or {})}
        self.fire_threshold = fire_threshold
        self.ambiguous_confidence = ambiguous_confidence

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> RoutingKeywordTable:
        """
        Build a table from parsed YAML/JSON data.

        Raises:
            ConfigurationError: unknown family, unknown weight kind or bad regex
        """
        raw_families = data.get("families") or {}
        if not isinstance(raw_families, dict):
            raise ConfigurationError("Routing keywords: 'families' must be a mapping")

        families: dict[CollectionTarget, list[Marker]] = {
            target: [] for target in _FAMILY_TARGETS.values()
        }
        for name, entries in raw_families.items():
            if name not in _FAMILY_TARGETS:
                raise ConfigurationError(f"Routing keywords: unknown family '{name}'")
            families[_FAMILY_TARGETS[name]] = cls._compile_family(name, entries or {})

        weights = data.get("weights") or {}
        unknown = set(weights) - set(MARKER_KINDS)
        if unknown:
            raise ConfigurationError(
                f"Routing keywords: unknown weight kinds {sorted(unknown)}"
            )

        return cls(
            families,
            weights={k: float(v) for k, v in weights.items()},
            fire_threshold=float(data.get("fire_threshold", 0.7)),
            ambiguous_confidence=float(data.get("ambiguous_confidence", 0.5)),
        )

    @staticmethod
    def _compile_family(name: str, entries: dict[str, Any]) -> list[Marker]:
        markers: list[Marker] = []
        for kind in MARKER_KINDS:
            for text in entries.get(f"{kind}s") or []:
                text = str(text)
                if kind == "pattern":
                    try:
                        matcher = re.compile(text)
                    except re.error as e:
                        raise ConfigurationError(
                            f"Routing keywords: bad pattern {text!r} in '{name}': {e}"
                        ) from e
                else:
                    matcher = _literal_matcher(text)
                markers.append(Marker(kind=kind, text=text, matcher=matcher))
        return markers

    @classmethod
    def from_yaml(cls, path: str | Path) -> RoutingKeywordTable:
        """Load a keyword table from a YAML file."""
        raw_text = Path(path).read_text(encoding="utf-8")
        return cls._from_yaml_text(raw_text, str(path))

    @classmethod
    def _from_yaml_text(cls, raw_text: str, source: str) -> RoutingKeywordTable:
        try:
            raw_data = yaml.safe_load(raw_text)
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Routing keywords file '{source}' is not valid YAML: {e}") from e
        if not isinstance(raw_data, dict):
            raise ConfigurationError(f"Routing keywords file '{source}' is not a YAML dict")
        return cls.from_dict(raw_data)

    @classmethod
    def default(cls) -> RoutingKeywordTable:
        """The keyword table shipped with the package."""
        return _load_packaged_table()


@lru_cache(maxsize=1)
def _load_packaged_table() -> RoutingKeywordTable:
    resource = files("material_search.application.search").joinpath("routing_keywords.yaml")
    return RoutingKeywordTable._from_yaml_text(
        resource.read_text(encoding="utf-8"), "routing_keywords.yaml"
    )


class CollectionRouter:
    """
    Route a free-text query to one or both collections.

    Usage:
        router = CollectionRouter()
        decision = router.route("recommend ingredients for ลดริ้วรอย")
        # -> dual_priority, confidence 0.5
    """

    def __init__(self, keywords: RoutingKeywordTable | None = None):
        self._keywords = keywords or RoutingKeywordTable.default()

    @property
    def keywords(self) -> RoutingKeywordTable:
        return self._keywords

    def route(
        self,
        query: str | None,
        explicit_override: CollectionTarget | str | None = None,
    ) -> RoutingDecision:
        """
        Decide the collections to search.

        Args:
            query: Free-text query (Thai, English or mixed)
            explicit_override: Caller-chosen collection; skips text analysis

        Returns:
            RoutingDecision (never raises for query content)

        Raises:
            UnknownCollectionError: if explicit_override names no collection
        """
        if explicit_override is not None:
            target = CollectionTarget.parse(explicit_override)
            return RoutingDecision(
                targets=[target],
                search_mode=SearchMode.SINGLE_COLLECTION,
                confidence=1.0,
                reasoning=f"Explicit collection requested: {target.value}",
            )

        scores = self.score(query)
        stock = scores[CollectionTarget.IN_STOCK]
        catalog = scores[CollectionTarget.FULL_CATALOG]
        markers = {
            s.target.value: s.marker_texts for s in scores.values() if s.matches
        }

        if stock.fired and not catalog.fired:
            decision = RoutingDecision(
                targets=[CollectionTarget.IN_STOCK],
                search_mode=SearchMode.SINGLE_COLLECTION,
                confidence=stock.score,
                reasoning=f"Stock-intent markers found: {', '.join(stock.marker_texts)}",
                matched_markers=markers,
            )
        elif catalog.fired and not stock.fired:
            decision = RoutingDecision(
                targets=[CollectionTarget.FULL_CATALOG],
                search_mode=SearchMode.SINGLE_COLLECTION,
                confidence=catalog.score,
                reasoning=f"Catalog-intent markers found: {', '.join(catalog.marker_texts)}",
                matched_markers=markers,
            )
        else:
            if stock.fired and catalog.fired:
                reasoning = (
                    "Ambiguous: both stock and catalog markers found "
                    f"({', '.join(stock.marker_texts)} / {', '.join(catalog.marker_texts)}); "
                    "searching both, in-stock first"
                )
            else:
                reasoning = "No clear collection signal; searching both, in-stock first"
            decision = RoutingDecision(
                targets=[CollectionTarget.IN_STOCK, CollectionTarget.FULL_CATALOG],
                search_mode=SearchMode.DUAL_PRIORITY,
                confidence=self._keywords.ambiguous_confidence,
                reasoning=reasoning,
                matched_markers=markers,
            )

        logger.debug(
            f"Routed query {query!r} -> {[t.value for t in decision.targets]} "
            f"({decision.search_mode.value}, confidence={decision.confidence:.2f})"
        )
        return decision

    def score(self, query: str | None) -> dict[CollectionTarget, FamilyScore]:
        """Match every family against the query and compute family scores."""
        text = normalize_query(query)
        weights = self._keywords.weights
        scores: dict[CollectionTarget, FamilyScore] = {}

        for target, markers in self._keywords.families.items():
            result = FamilyScore(target=target)
            if text:
                seen: set[str] = set()
                for marker in markers:
                    if marker.text in seen:
                        continue
                    if marker.matcher.search(text):
                        seen.add(marker.text)
                        result.matches.append(marker)

            if result.matches:
                best = max(weights[m.kind] for m in result.matches)
                bonus = min(MAX_EXTRA_BONUS, EXTRA_MARKER_BONUS * (len(result.matches) - 1))
                result.score = min(1.0, best + bonus)
                # Hints are weak signals and never route on their own.
                result.fired = (
                    result.score >= self._keywords.fire_threshold
                    and any(m.kind != "hint" for m in result.matches)
                )
            scores[target] = result

        return scores
