"""
Core module for Material Search MCP.

Provides:
- Unified exception hierarchy
- Async utilities for concurrent collection searches
"""

from .exceptions import (
    # Base
    MaterialSearchError,
    ErrorContext,
    ErrorSeverity,
    ErrorCategory,
    # Backend errors
    BackendError,
    CollectionUnavailableError,
    SearchTimeoutError,
    # Validation errors
    ValidationError,
    InvalidQueryError,
    InvalidParameterError,
    # Configuration errors
    ConfigurationError,
    UnknownCollectionError,
    # Utilities
    is_retryable_error,
)
from .async_utils import gather_with_errors, timeout_with_fallback

__all__ = [
    "MaterialSearchError",
    "ErrorContext",
    "ErrorSeverity",
    "ErrorCategory",
    "BackendError",
    "CollectionUnavailableError",
    "SearchTimeoutError",
    "ValidationError",
    "InvalidQueryError",
    "InvalidParameterError",
    "ConfigurationError",
    "UnknownCollectionError",
    "is_retryable_error",
    "gather_with_errors",
    "timeout_with_fallback",
]
