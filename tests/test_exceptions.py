"""Tests for exceptions.py - exception hierarchy and agent formatting."""

from material_search.core.exceptions import (
    BackendError,
    CollectionUnavailableError,
    ConfigurationError,
    ErrorCategory,
    ErrorContext,
    ErrorSeverity,
    InvalidParameterError,
    InvalidQueryError,
    MaterialSearchError,
    SearchTimeoutError,
    UnknownCollectionError,
    ValidationError,
    is_retryable_error,
)


class TestMaterialSearchError:
    def test_basic_creation(self):
        e = MaterialSearchError("test error")
        assert str(e) == "test error"
        assert e.severity == ErrorSeverity.ERROR
        assert e.category == ErrorCategory.BACKEND
        assert e.retryable is False

    def test_to_dict(self):
        ctx = ErrorContext(tool_name="t", collection="c", suggestion="s", example="e")
        d = MaterialSearchError("fail", context=ctx, retryable=True).to_dict()
        assert d == {
            "error": "fail",
            "category": "backend",
            "severity": "error",
            "retryable": True,
            "tool": "t",
            "collection": "c",
            "suggestion": "s",
            "example": "e",
        }

    def test_to_dict_minimal(self):
        d = MaterialSearchError("fail").to_dict()
        assert "tool" not in d
        assert "suggestion" not in d

    def test_agent_message(self):
        ctx = ErrorContext(suggestion="try again", example="f(x)")
        msg = MaterialSearchError("fail", context=ctx, retryable=True).to_agent_message()
        assert "❌ **Error**: fail" in msg
        assert "💡 **Suggestion**: try again" in msg
        assert "`f(x)`" in msg
        assert "retryable" in msg


class TestErrorContext:
    def test_with_defaults_keeps_explicit_values(self):
        ctx = ErrorContext(suggestion="mine").with_defaults(suggestion="default", collection="c")
        assert ctx.suggestion == "mine"
        assert ctx.collection == "c"


class TestBackendErrors:
    def test_collection_unavailable(self):
        e = CollectionUnavailableError("raw_materials_console", "connection refused")
        assert isinstance(e, BackendError)
        assert e.retryable
        assert e.severity == ErrorSeverity.TRANSIENT
        assert e.context.collection == "raw_materials_console"
        assert "connection refused" in str(e)

    def test_search_timeout(self):
        e = SearchTimeoutError("raw_materials_real_stock", 10)
        assert e.timeout == 10
        assert "timed out after 10.0s" in str(e)
        assert e.retryable


class TestValidationErrors:
    def test_invalid_query(self):
        e = InvalidQueryError("", "Query cannot be empty")
        assert isinstance(e, ValidationError)
        assert e.severity == ErrorSeverity.WARNING
        assert e.context.example is not None

    def test_invalid_parameter(self):
        e = InvalidParameterError("limit", "abc", "an integer 1-20")
        assert "limit" in str(e)
        assert e.context.suggestion == "Expected an integer 1-20"


class TestConfigurationErrors:
    def test_unknown_collection(self):
        e = UnknownCollectionError("warehouse_b")
        assert isinstance(e, ConfigurationError)
        assert e.severity == ErrorSeverity.CRITICAL
        assert e.category == ErrorCategory.CONFIGURATION
        assert not e.retryable
        assert "in_stock" in e.context.suggestion


class TestIsRetryable:
    def test_material_search_error(self):
        assert is_retryable_error(CollectionUnavailableError("c"))
        assert not is_retryable_error(UnknownCollectionError("x"))

    def test_transient_message(self):
        assert is_retryable_error(Exception("connection reset by peer"))
        assert is_retryable_error(Exception("operation timed out"))

    def test_other(self):
        assert not is_retryable_error(ValueError("bad value"))
