"""
Common helpers for MCP tools: input normalization and response formatting.

Agents send loosely typed arguments ("5", "true", "RM1, RM2", ""), so every
tool runs its inputs through InputNormalizer before touching the service.
Values that cannot be coerced raise InvalidParameterError, which the tools
render with ResponseFormatter.error.
"""

from __future__ import annotations

import json
import logging
import re
from typing import Any

from material_search.core.exceptions import InvalidParameterError, MaterialSearchError
from material_search.domain.entities import CollectionTarget

logger = logging.getLogger(__name__)

# Values meaning "let the router decide".
AUTO_COLLECTION_VALUES = {"", "auto", "both", "all", "none"}


class InputNormalizer:
    """Coerce loosely typed tool arguments."""

    @staticmethod
    def normalize_query(query: Any) -> str:
        if query is None:
            return ""
        return " ".join(str(query).split())

    @staticmethod
    def normalize_limit(
        limit: Any,
        default: int = 5,
        min_val: int = 1,
        max_val: int = 20,
    ) -> int:
        """
        Integer limit clamped to [min_val, max_val].

        Raises:
            InvalidParameterError: limit is not an integer
        """
        if limit in (None, ""):
            return default
        try:
            value = int(str(limit).strip())
        except ValueError as e:
            raise InvalidParameterError(
                "limit", limit, f"an integer {min_val}-{max_val}"
            ) from e
        return max(min_val, min(max_val, value))

    @staticmethod
    def normalize_offset(offset: Any) -> int:
        if offset in (None, ""):
            return 0
        try:
            return max(0, int(str(offset).strip()))
        except ValueError as e:
            raise InvalidParameterError("offset", offset, "a non-negative integer") from e

    @staticmethod
    def normalize_bool(value: Any, default: bool = False) -> bool:
        if value is None or value == "":
            return default
        if isinstance(value, bool):
            return value
        return str(value).strip().lower() in {"1", "true", "yes", "y", "on"}

    @staticmethod
    def normalize_codes(codes: Any) -> frozenset[str]:
        """Accept a list, a JSON array string or comma/space separated codes."""
        if not codes:
            return frozenset()
        if isinstance(codes, str):
            text = codes.strip()
            if text.startswith("["):
                try:
                    parsed = json.loads(text)
                except json.JSONDecodeError:
                    parsed = None
                if isinstance(parsed, list):
                    codes = parsed
                else:
                    codes = re.split(r"[\s,;]+", text.strip("[]"))
            else:
                codes = re.split(r"[\s,;]+", text)
        return frozenset(c for c in (str(x).strip().strip("'\"") for x in codes) if c)

    @staticmethod
    def normalize_collection(collection: Any) -> CollectionTarget | None:
        """
        None for automatic routing, else the requested target.

        Raises:
            UnknownCollectionError: for values naming no collection
        """
        if collection is None:
            return None
        text = str(collection).strip().lower()
        if text in AUTO_COLLECTION_VALUES:
            return None
        return CollectionTarget.parse(text)

    @staticmethod
    def normalize_cost(value: Any) -> float | None:
        """
        Maximum cost per kg, None when not given.

        Raises:
            InvalidParameterError: not a number, or not positive
        """
        if value in (None, ""):
            return None
        try:
            cost = float(str(value).replace(",", "").strip())
        except ValueError as e:
            raise InvalidParameterError("max_cost", value, "a positive number (Baht/kg)") from e
        if cost <= 0:
            raise InvalidParameterError("max_cost", value, "a positive number (Baht/kg)")
        return cost


class ResponseFormatter:
    """Uniform error and empty-result messages for agents."""

    @staticmethod
    def error(error: MaterialSearchError, tool_name: str | None = None) -> str:
        message = error.to_agent_message()
        if tool_name:
            message = f"{message}\n🔧 Tool: `{tool_name}`"
        return message

    @staticmethod
    def no_results(query: str, suggestions: list[str] | None = None) -> str:
        parts = [f"🔍 No materials found for: **{query}**"]
        if suggestions:
            parts.append("\n💡 **Try**:")
            parts.extend(f"- {s}" for s in suggestions)
        return "\n".join(parts)
