"""
Unified Exception Hierarchy for Material Search MCP.

Exception Hierarchy:
    MaterialSearchError (base)
    ├── BackendError
    │   ├── CollectionUnavailableError
    │   └── SearchTimeoutError
    ├── ValidationError
    │   ├── InvalidQueryError
    │   └── InvalidParameterError
    └── ConfigurationError
        └── UnknownCollectionError

Backend errors are contained per collection by the search executor.
Configuration errors are programmer errors and always propagate.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any


class ErrorSeverity(Enum):
    """Severity levels for errors."""
    WARNING = auto()      # Recoverable, can continue
    ERROR = auto()        # Failed but can retry
    CRITICAL = auto()     # Cannot continue
    TRANSIENT = auto()    # Temporary, should retry automatically


class ErrorCategory(Enum):
    """Categories for error classification."""
    BACKEND = "backend"
    VALIDATION = "validation"
    CONFIGURATION = "config"


@dataclass(frozen=True, slots=True)
class ErrorContext:
    """Rich context for error messages."""
    tool_name: str | None = None
    operation: str | None = None
    collection: str | None = None
    input_value: Any = None
    suggestion: str | None = None
    example: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)

    def with_defaults(self, **defaults: Any) -> ErrorContext:
        """Return a copy where unset fields take the given defaults."""
        values = {
            "tool_name": self.tool_name,
            "operation": self.operation,
            "collection": self.collection,
            "input_value": self.input_value,
            "suggestion": self.suggestion,
            "example": self.example,
            "metadata": self.metadata,
        }
        for key, value in defaults.items():
            if values.get(key) is None:
                values[key] = value
        return ErrorContext(**values)


class MaterialSearchError(Exception):
    """
    Base exception for all material search errors.

    Provides:
    - Structured error context
    - Severity classification
    - Agent-friendly formatting
    """

    __slots__ = ('context', 'severity', 'category', 'retryable')

    def __init__(
        self,
        message: str,
        *,
        context: ErrorContext | None = None,
        severity: ErrorSeverity = ErrorSeverity.ERROR,
        category: ErrorCategory = ErrorCategory.BACKEND,
        retryable: bool = False,
    ) -> None:
        super().__init__(message)
        self.context = context or ErrorContext()
        self.severity = severity
        self.category = category
        self.retryable = retryable

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        result: dict[str, Any] = {
            "error": str(self),
            "category": self.category.value,
            "severity": self.severity.name.lower(),
            "retryable": self.retryable,
        }
        if self.context.tool_name:
            result["tool"] = self.context.tool_name
        if self.context.collection:
            result["collection"] = self.context.collection
        if self.context.suggestion:
            result["suggestion"] = self.context.suggestion
        if self.context.example:
            result["example"] = self.context.example
        return result

    def to_agent_message(self) -> str:
        """Format for Agent consumption (Markdown)."""
        parts = [f"❌ **Error**: {self}"]

        if self.context.suggestion:
            parts.append(f"💡 **Suggestion**: {self.context.suggestion}")
        if self.context.example:
            parts.append(f"📝 **Example**: `{self.context.example}`")
        if self.retryable:
            parts.append("🔄 This error is retryable")

        return "\n".join(parts)


# =============================================================================
# Backend Errors
# =============================================================================

class BackendError(MaterialSearchError):
    """Base class for search backend failures."""

    def __init__(
        self,
        message: str,
        *,
        context: ErrorContext | None = None,
        retryable: bool = True,
    ) -> None:
        super().__init__(
            message,
            context=context,
            severity=ErrorSeverity.ERROR,
            category=ErrorCategory.BACKEND,
            retryable=retryable,
        )


class CollectionUnavailableError(BackendError):
    """Raised when a collection cannot be queried."""

    def __init__(
        self,
        collection: str,
        reason: str = "backend failed",
        *,
        context: ErrorContext | None = None,
    ) -> None:
        ctx = (context or ErrorContext()).with_defaults(
            collection=collection,
            suggestion="Check the database connection and collection name",
        )
        super().__init__(f"Collection '{collection}' unavailable: {reason}", context=ctx)
        self.severity = ErrorSeverity.TRANSIENT


class SearchTimeoutError(BackendError):
    """Raised when a collection search exceeds its time limit."""

    def __init__(
        self,
        collection: str,
        timeout: float,
        *,
        context: ErrorContext | None = None,
    ) -> None:
        ctx = (context or ErrorContext()).with_defaults(
            collection=collection,
            suggestion="Retry with a shorter query or a larger timeout",
        )
        super().__init__(
            f"Search in '{collection}' timed out after {timeout:.1f}s", context=ctx
        )
        self.timeout = timeout


# =============================================================================
# Validation Errors
# =============================================================================

class ValidationError(MaterialSearchError):
    """Base class for validation errors."""

    def __init__(
        self,
        message: str,
        *,
        context: ErrorContext | None = None,
    ) -> None:
        super().__init__(
            message,
            context=context,
            severity=ErrorSeverity.WARNING,
            category=ErrorCategory.VALIDATION,
            retryable=False,
        )


class InvalidQueryError(ValidationError):
    """Raised when search query is invalid."""

    def __init__(
        self,
        query: str | None,
        reason: str = "Query cannot be empty",
        *,
        context: ErrorContext | None = None,
    ) -> None:
        ctx = (context or ErrorContext()).with_defaults(
            input_value=query,
            suggestion="Provide a material name, INCI name, code or benefit",
            example='unified_material_search(query="Hyaluronic acid")',
        )
        super().__init__(f"Invalid query: {reason}", context=ctx)


class InvalidParameterError(ValidationError):
    """Raised when a parameter value is invalid."""

    def __init__(
        self,
        param_name: str,
        value: Any,
        expected: str,
        *,
        context: ErrorContext | None = None,
    ) -> None:
        ctx = (context or ErrorContext()).with_defaults(
            input_value=value,
            suggestion=f"Expected {expected}",
        )
        super().__init__(
            f"Invalid parameter '{param_name}': {value!r} (expected {expected})",
            context=ctx,
        )


# =============================================================================
# Configuration Errors
# =============================================================================

class ConfigurationError(MaterialSearchError):
    """Raised for configuration-related errors."""

    def __init__(
        self,
        message: str,
        *,
        context: ErrorContext | None = None,
    ) -> None:
        super().__init__(
            message,
            context=context,
            severity=ErrorSeverity.CRITICAL,
            category=ErrorCategory.CONFIGURATION,
            retryable=False,
        )


class UnknownCollectionError(ConfigurationError):
    """Raised when a collection target cannot be resolved."""

    def __init__(
        self,
        target: Any,
        *,
        context: ErrorContext | None = None,
    ) -> None:
        ctx = (context or ErrorContext()).with_defaults(
            input_value=target,
            suggestion="Use 'in_stock' or 'full_catalog'",
        )
        super().__init__(f"Unknown collection target: {target!r}", context=ctx)


def is_retryable_error(error: Exception) -> bool:
    """Check if an error should be retried."""
    if isinstance(error, MaterialSearchError):
        return error.retryable

    error_str = str(error).lower()
    transient_patterns = [
        "connection reset",
        "connection refused",
        "not primary",
        "temporarily unavailable",
        "timed out",
        "timeout",
    ]
    return any(pattern in error_str for pattern in transient_patterns)
