"""
Unit Tests for CacheManager

Tests the public cache API: reads, writes, read-through, deletion, warming,
metrics and health, over an in-memory Redis double.
"""

from unittest.mock import AsyncMock

import pytest

from indexed_cache.infrastructure.cache.models import CacheOptions, WarmingTaskDescriptor
from tests.test_fixtures.cache_factory import CacheTestFactory
from tests.test_fixtures.fake_redis import FakeRedisClient


@pytest.mark.unit
class TestReadsAndWrites:
    """Test get/set semantics."""

    @pytest.mark.asyncio
    async def test_round_trip(self, cache_manager):
        value = {"items": [1, 2, 3], "total": 3, "label": "ok"}

        assert await cache_manager.set("products", "popular", value) is True
        assert await cache_manager.get("products", "popular") == value

    @pytest.mark.asyncio
    async def test_params_are_part_of_the_key(self, cache_manager):
        await cache_manager.set("products", "list", ["p1"], params={"page": 1})
        await cache_manager.set("products", "list", ["p2"], params={"page": 2})

        assert await cache_manager.get("products", "list", {"page": 1}) == ["p1"]
        assert await cache_manager.get("products", "list", {"page": 2}) == ["p2"]
        assert await cache_manager.get("products", "list") is None

    @pytest.mark.asyncio
    async def test_default_ttl_applied(self, cache_manager, fake_redis):
        await cache_manager.set("products", "a", 1)
        assert fake_redis.ttls["products:a"] == 3600

    @pytest.mark.asyncio
    async def test_explicit_ttl(self, cache_manager, fake_redis):
        await cache_manager.set("products", "a", 1, CacheOptions(ttl=60))
        assert fake_redis.ttls["products:a"] == 60

    @pytest.mark.asyncio
    async def test_zero_ttl_means_no_expiry(self, cache_manager, fake_redis):
        await cache_manager.set("products", "a", 1, {"ttl": 0})

        assert "products:a" in fake_redis.strings
        assert "products:a" not in fake_redis.ttls

    @pytest.mark.asyncio
    async def test_set_records_indices(self, cache_manager, fake_redis):
        await cache_manager.set(
            "products", "a", 1, {"tags": ["products"], "dependencies": ["product:1"]}
        )

        assert fake_redis.sets["tag:products"] == {"products:a"}
        assert fake_redis.sets["dep:product:1"] == {"products:a"}

    @pytest.mark.asyncio
    async def test_failed_write_does_not_touch_indices(self, cache_manager, fake_redis):
        fake_redis.fail_on.add("setex")

        assert await cache_manager.set("products", "a", 1, {"tags": ["products"]}) is False
        assert "tag:products" not in fake_redis.sets

    @pytest.mark.asyncio
    async def test_miss_returns_none_and_counts(self, cache_manager):
        assert await cache_manager.get("products", "missing") is None
        assert cache_manager.get_metrics().misses == 1

    def test_invalid_ttl_rejected(self):
        with pytest.raises(ValueError):
            CacheOptions(ttl=-1)


@pytest.mark.unit
class TestGetOrSet:
    """Test read-through behaviour."""

    @pytest.mark.asyncio
    async def test_miss_fetches_and_caches(self, cache_manager):
        fetch = AsyncMock(return_value={"id": 1})

        assert await cache_manager.get_or_set("products", "p1", fetch) == {"id": 1}
        assert await cache_manager.get_or_set("products", "p1", fetch) == {"id": 1}

        fetch.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_sync_fetch_function(self, cache_manager):
        assert await cache_manager.get_or_set("products", "p1", lambda: [1]) == [1]
        assert await cache_manager.get("products", "p1") == [1]

    @pytest.mark.asyncio
    async def test_none_is_not_cached(self, cache_manager, fake_redis):
        fetch = AsyncMock(return_value=None)

        assert await cache_manager.get_or_set("products", "p1", fetch) is None
        assert await cache_manager.get_or_set("products", "p1", fetch) is None

        assert fetch.await_count == 2
        assert fake_redis.strings == {}

    @pytest.mark.asyncio
    async def test_fetch_error_propagates(self, cache_manager, fake_redis):
        async def fetch():
            raise LookupError("database unavailable")

        with pytest.raises(LookupError):
            await cache_manager.get_or_set("products", "p1", fetch)
        assert fake_redis.strings == {}

    @pytest.mark.asyncio
    async def test_store_outage_falls_through_to_fetch(self):
        cache = CacheTestFactory.unreachable_cache_manager()

        assert await cache.get_or_set("products", "p1", lambda: "fresh") == "fresh"
        assert cache.get_metrics().misses == 1


@pytest.mark.unit
class TestDelete:
    """Test single-entry deletion."""

    @pytest.mark.asyncio
    async def test_delete_removes_entry_and_index_membership(self, cache_manager, fake_redis):
        await cache_manager.set("products", "a", 1, {"tags": ["products"]})
        await cache_manager.set("products", "b", 2, {"tags": ["products"]})

        assert await cache_manager.delete("products", "a") is True

        assert await cache_manager.get("products", "a") is None
        assert fake_redis.sets["tag:products"] == {"products:b"}

    @pytest.mark.asyncio
    async def test_delete_missing_returns_false(self, cache_manager):
        assert await cache_manager.delete("products", "missing") is False


@pytest.mark.unit
class TestDisabledCache:
    """Test behaviour with ENABLE_CACHING off."""

    @pytest.mark.asyncio
    async def test_reads_and_writes_are_noops(self):
        redis_client = FakeRedisClient()
        cache = CacheTestFactory.cache_manager(redis_client, ENABLE_CACHING=False)

        assert cache.enabled is False
        assert await cache.set("products", "a", 1) is False
        assert await cache.get("products", "a") is None
        assert redis_client.strings == {}
        assert cache.get_metrics().total_operations == 0

    @pytest.mark.asyncio
    async def test_warming_skips_everything(self):
        cache = CacheTestFactory.cache_manager(ENABLE_CACHING=False)
        descriptors = [WarmingTaskDescriptor(namespace="a", key="b", fetch_fn=lambda: 1)]

        result = await cache.warm_cache(descriptors)

        assert (result.total, result.skipped, result.warmed) == (1, 1, 0)


@pytest.mark.unit
class TestFailOpen:
    """Test that an unreachable store never raises from the public API."""

    @pytest.mark.asyncio
    async def test_every_operation_degrades(self):
        cache = CacheTestFactory.unreachable_cache_manager()

        assert await cache.get("products", "a") is None
        assert await cache.set("products", "a", 1, {"tags": ["products"]}) is False
        assert await cache.delete("products", "a") is False
        assert await cache.invalidate_by_tags(["products"]) == 0
        assert await cache.invalidate_by_dependencies(["product:1"]) == 0
        assert await cache.clear_namespace("products") == 0
        assert await cache.get_cache_info() is None

    @pytest.mark.asyncio
    async def test_failed_reads_count_as_misses(self):
        cache = CacheTestFactory.unreachable_cache_manager()

        await cache.get("products", "a")
        await cache.get("products", "b")

        metrics = cache.get_metrics()
        assert metrics.misses == 2
        assert metrics.hit_rate == 0.0


@pytest.mark.unit
class TestUnencodableParams:
    """Test parameter values orjson cannot encode bypass the cache."""

    OVERSIZED = {"id": 2**64}

    @pytest.mark.asyncio
    async def test_get_is_a_miss(self, cache_manager, fake_redis):
        assert await cache_manager.get("orders", "byId", self.OVERSIZED) is None
        assert cache_manager.get_metrics().misses == 1
        assert fake_redis.calls_to("get") == 0

    @pytest.mark.asyncio
    async def test_set_is_not_stored(self, cache_manager, fake_redis):
        stored = await cache_manager.set(
            "orders", "byId", {"total": 5}, {"tags": ["orders"]}, self.OVERSIZED
        )

        assert stored is False
        assert fake_redis.strings == {}
        assert fake_redis.sets == {}

    @pytest.mark.asyncio
    async def test_delete_is_a_noop(self, cache_manager, fake_redis):
        assert await cache_manager.delete("orders", "byId", self.OVERSIZED) is False
        assert fake_redis.calls_to("delete") == 0

    @pytest.mark.asyncio
    async def test_get_or_set_returns_fetched_value(self, cache_manager, fake_redis):
        fetch = AsyncMock(return_value={"total": 5})

        value = await cache_manager.get_or_set("orders", "byId", fetch, params=self.OVERSIZED)

        assert value == {"total": 5}
        fetch.assert_awaited_once()
        assert fake_redis.strings == {}

    @pytest.mark.asyncio
    async def test_circular_params(self, cache_manager):
        circular: dict = {}
        circular["self"] = circular

        assert await cache_manager.get("orders", "byId", {"filter": circular}) is None
        assert await cache_manager.set("orders", "byId", 1, params={"filter": circular}) is False


@pytest.mark.unit
class TestWarmCache:
    """Test batch warming."""

    @pytest.mark.asyncio
    async def test_failing_task_does_not_stop_others(self, cache_manager):
        def broken():
            raise RuntimeError("upstream down")

        descriptors = [
            WarmingTaskDescriptor(name="first", namespace="w", key="first", fetch_fn=lambda: 1),
            WarmingTaskDescriptor(name="second", namespace="w", key="second", fetch_fn=broken),
            WarmingTaskDescriptor(namespace="w", key="third", fetch_fn=AsyncMock(return_value=3)),
        ]

        result = await cache_manager.warm_cache(descriptors)

        assert result.total == 3
        assert result.warmed == 2
        assert result.failed == 1
        assert result.failed_tasks == ["second"]
        assert await cache_manager.get("w", "first") == 1
        assert await cache_manager.get("w", "third") == 3

    @pytest.mark.asyncio
    async def test_unstored_write_counts_as_failed(self, cache_manager, fake_redis):
        fake_redis.fail_on.add("setex")
        descriptors = [WarmingTaskDescriptor(namespace="w", key="a", fetch_fn=lambda: 1)]

        result = await cache_manager.warm_cache(descriptors)

        assert result.failed == 1
        assert result.failed_tasks == ["w:a"]

    @pytest.mark.asyncio
    async def test_empty_batch(self, cache_manager):
        result = await cache_manager.warm_cache([])
        assert result.total == 0


@pytest.mark.unit
class TestMonitoringApi:
    """Test metrics, cache info and health."""

    @pytest.mark.asyncio
    async def test_hit_rate_after_mixed_reads(self, cache_manager):
        await cache_manager.set("products", "a", 1)
        await cache_manager.get("products", "a")
        await cache_manager.get("products", "b")

        metrics = cache_manager.get_metrics()
        assert metrics.hits == 1
        assert metrics.misses == 1
        assert metrics.hit_rate == 50.0

    @pytest.mark.asyncio
    async def test_reset_metrics(self, cache_manager):
        await cache_manager.get("products", "b")
        cache_manager.reset_metrics()

        assert cache_manager.get_metrics().total_operations == 0

    @pytest.mark.asyncio
    async def test_cache_info(self, cache_manager, fake_redis):
        fake_redis.used_memory = 2048
        await cache_manager.set("products", "a", 1)

        info = await cache_manager.get_cache_info()

        assert info["memory"]["used_memory"] == 2048
        assert info["keyspace"]["db0"]["keys"] == 1
        assert info["metrics"]["total_operations"] == 0

    @pytest.mark.asyncio
    async def test_health_check_healthy(self, cache_manager):
        health = await cache_manager.health_check()

        assert health["status"] == "healthy"
        assert health["caching_enabled"] is True

    @pytest.mark.asyncio
    async def test_health_check_degraded_when_store_unhealthy(self):
        cache = CacheTestFactory.unreachable_cache_manager()
        assert (await cache.health_check())["status"] == "degraded"


@pytest.mark.unit
class TestLifecycle:
    """Test initialize/shutdown."""

    @pytest.mark.asyncio
    async def test_initialize_connects_store(self):
        redis_client = FakeRedisClient()
        cache = CacheTestFactory.cache_manager(redis_client)

        await cache.initialize()
        await cache.initialize()

        assert redis_client.is_connected()
        assert redis_client.calls_to("connect") == 1

    @pytest.mark.asyncio
    async def test_shutdown_disconnects_store(self, cache_manager, fake_redis):
        await cache_manager.shutdown()
        assert not fake_redis.is_connected()
