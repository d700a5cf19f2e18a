"""
Pytest Configuration and Shared Test Fixtures

This module provides pytest configuration and reusable fixtures for all tests.
All fixtures defined here are automatically available to all test files.
"""

import pytest

from indexed_cache.core.logging.logger import clear_correlation_id
from indexed_cache.infrastructure.cache.cache_manager import CacheManager
from indexed_cache.infrastructure.monitoring.metrics_collector import CacheMetricsCollector
from tests.test_fixtures.cache_factory import FakeDataSource, make_settings
from tests.test_fixtures.fake_redis import FakeRedisClient, UnreachableRedisClient

# ============================================================================
# Configuration Fixtures
# ============================================================================


@pytest.fixture
def settings():
    """Real Settings instance with test defaults and no .env file."""
    return make_settings()


@pytest.fixture(autouse=True)
def _reset_correlation_id():
    yield
    clear_correlation_id()


# ============================================================================
# Backing Store Fixtures
# ============================================================================


@pytest.fixture
def fake_redis():
    """Connected in-memory Redis double."""
    client = FakeRedisClient()
    client._connected = True
    return client


@pytest.fixture
def unreachable_redis():
    """Redis double that fails every command."""
    return UnreachableRedisClient()


# ============================================================================
# Cache Fixtures
# ============================================================================


@pytest.fixture
def metrics():
    return CacheMetricsCollector()


@pytest.fixture
def cache_manager(fake_redis, settings, metrics):
    """Cache manager over the in-memory Redis double."""
    return CacheManager(redis_client=fake_redis, settings=settings, metrics=metrics)


@pytest.fixture
def data_source():
    return FakeDataSource()
