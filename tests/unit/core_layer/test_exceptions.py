"""
Unit Tests for Core Exceptions

Tests for the exception hierarchy and its helpers.
"""

import pytest

from indexed_cache.core.exceptions import (
    CacheConnectionError,
    CacheError,
    CacheKeyError,
    CacheSerializationError,
    ConfigurationError,
    DuplicateWarmingTaskError,
    IndexedCacheError,
    WarmingError,
    WarmingTaskNotFoundError,
)


@pytest.mark.unit
class TestIndexedCacheError:
    """Test the base exception class."""

    def test_base_error_creation(self):
        error = IndexedCacheError("Test message")
        assert str(error) == "Test message"
        assert error.message == "Test message"

    def test_base_error_default_values(self):
        error = IndexedCacheError("Test")
        assert error.details == {}
        assert error.correlation_id is None

    def test_details_are_copied(self):
        """Test that later changes to the caller's dict do not leak in."""
        details = {"key": "value"}
        error = IndexedCacheError("Test", details=details)
        details["key"] = "changed"

        assert error.details == {"key": "value"}

    def test_to_dict(self):
        error = CacheKeyError("GET failed", correlation_id="req-1", details={"key": "a:b"})

        assert error.to_dict() == {
            "error_type": "CacheKeyError",
            "message": "GET failed",
            "correlation_id": "req-1",
            "details": {"key": "a:b"},
        }

    def test_with_context_chains(self):
        error = CacheError("Failed").with_context(namespace="products")

        assert isinstance(error, CacheError)
        assert error.details["namespace"] == "products"

    def test_repr_includes_details(self):
        error = IndexedCacheError("Boom", details={"a": 1})
        assert repr(error) == "IndexedCacheError(message='Boom', details={'a': 1})"

    def test_from_exception_wraps_original(self):
        original = ConnectionRefusedError("refused")
        error = CacheConnectionError.from_exception(original, host="localhost", port=6379)

        assert isinstance(error, CacheConnectionError)
        assert error.message == "refused"
        assert error.details["original_error"] == "ConnectionRefusedError"
        assert error.details["host"] == "localhost"


@pytest.mark.unit
class TestHierarchy:
    """Test that every exception lands in the right family."""

    @pytest.mark.parametrize(
        "error_cls", [CacheConnectionError, CacheKeyError, CacheSerializationError]
    )
    def test_cache_errors(self, error_cls):
        error = error_cls("Test")
        assert isinstance(error, CacheError)
        assert isinstance(error, IndexedCacheError)

    @pytest.mark.parametrize("error_cls", [DuplicateWarmingTaskError, WarmingTaskNotFoundError])
    def test_warming_errors(self, error_cls):
        error = error_cls("Test")
        assert isinstance(error, WarmingError)
        assert not isinstance(error, CacheError)

    def test_configuration_error(self):
        assert issubclass(ConfigurationError, IndexedCacheError)
