"""
Unit Tests for WarmingScheduler

Tests critical/all warming passes, registry administration and startup.
"""

import pytest

from indexed_cache.infrastructure.cache.cache_manager import CacheManager
from indexed_cache.warming.registry import WarmingTaskRegistry
from indexed_cache.warming.scheduler import WarmingScheduler
from tests.test_fixtures.cache_factory import CacheTestFactory, make_settings
from tests.test_fixtures.fake_redis import UnreachableRedisClient

task = CacheTestFactory.warming_task


@pytest.fixture
def scheduler(cache_manager, settings):
    return WarmingScheduler(cache_manager, settings=settings)


def descriptors_passed(mock_cache):
    """Materialize the descriptors handed to warm_cache."""
    args, kwargs = mock_cache.warm_cache.await_args
    return list(args[0]), kwargs["mode"]


@pytest.mark.unit
class TestWarmCritical:
    """Test the critical warming pass."""

    @pytest.mark.asyncio
    async def test_only_enabled_priority_one_tasks(self, settings):
        cache = CacheTestFactory.mock_cache_manager()
        registry = WarmingTaskRegistry([
            task("critical"),
            task("secondary", priority=2),
            task("disabled", enabled=False),
            task("also-critical"),
        ])

        await WarmingScheduler(cache, registry, settings).warm_critical()

        descriptors, mode = descriptors_passed(cache)
        assert [d.name for d in descriptors] == ["critical", "also-critical"]
        assert mode == "critical"

    @pytest.mark.asyncio
    async def test_failing_task_is_isolated(self, scheduler, cache_manager):
        def broken():
            raise RuntimeError("upstream down")

        scheduler.add_warming_task(task("one", value=1))
        scheduler.add_warming_task(task("two", fetch_fn=broken))
        scheduler.add_warming_task(task("three", value=3))

        result = await scheduler.warm_critical()

        assert (result.total, result.warmed, result.failed) == (3, 2, 1)
        assert result.failed_tasks == ["two"]
        assert await cache_manager.get("test", "one") == 1
        assert await cache_manager.get("test", "three") == 3

    @pytest.mark.asyncio
    async def test_empty_registry(self, scheduler):
        result = await scheduler.warm_critical()
        assert result.total == 0


@pytest.mark.unit
class TestWarmAll:
    """Test the full warming pass."""

    @pytest.mark.asyncio
    async def test_enabled_tasks_sorted_by_priority(self, settings):
        cache = CacheTestFactory.mock_cache_manager()
        registry = WarmingTaskRegistry([
            task("low", priority=3),
            task("high"),
            task("off", priority=1, enabled=False),
            task("mid", priority=2),
        ])

        await WarmingScheduler(cache, registry, settings).warm_all()

        descriptors, mode = descriptors_passed(cache)
        assert [d.name for d in descriptors] == ["high", "mid", "low"]
        assert mode == "all"

    @pytest.mark.asyncio
    async def test_warms_into_cache_with_options(self, scheduler, cache_manager, fake_redis):
        scheduler.add_warming_task(task("tagged", value={"x": 1}, priority=3, tags=("t",)))

        result = await scheduler.warm_all()

        assert result.warmed == 1
        assert fake_redis.ttls["test:tagged"] == 60
        assert await cache_manager.invalidate_by_tags(["t"]) == 1


@pytest.mark.unit
class TestAdministration:
    """Test registry proxies."""

    def test_add_remove_toggle(self, scheduler):
        scheduler.add_warming_task(task("a"))
        scheduler.add_warming_task(task("b"))

        assert scheduler.toggle_warming_task("a", False) is True
        assert scheduler.remove_warming_task("b") is True
        assert scheduler.remove_warming_task("b") is False

        tasks = scheduler.get_warming_tasks()
        assert [(t.name, t.enabled) for t in tasks] == [("a", False)]

    @pytest.mark.asyncio
    async def test_disabled_task_skipped_on_next_pass(self, scheduler):
        scheduler.add_warming_task(task("a"))
        scheduler.toggle_warming_task("a", False)

        assert (await scheduler.warm_critical()).total == 0


@pytest.mark.unit
class TestStart:
    """Test startup behaviour."""

    @pytest.mark.asyncio
    async def test_registers_builtins_and_warms_critical(self, scheduler, cache_manager, data_source):
        result = await scheduler.start(data_source)

        assert len(scheduler.registry) == 6
        assert result.total == 3
        assert result.warmed == 3
        assert await cache_manager.get("system", "config") is not None
        assert await cache_manager.get("analytics", "user_stats") is None

    @pytest.mark.asyncio
    async def test_start_twice_does_not_duplicate(self, scheduler, data_source):
        await scheduler.start(data_source)
        await scheduler.start(data_source)

        assert len(scheduler.registry) == 6

    @pytest.mark.asyncio
    async def test_startup_warming_can_be_disabled(self, cache_manager, data_source):
        settings = make_settings(WARMING_ON_STARTUP=False)
        scheduler = WarmingScheduler(cache_manager, settings=settings)

        assert await scheduler.start(data_source) is None
        assert len(scheduler.registry) == 6

    @pytest.mark.asyncio
    async def test_startup_warming_failure_is_swallowed(self, settings):
        cache = CacheTestFactory.mock_cache_manager()
        cache.warm_cache.side_effect = RuntimeError("boom")
        scheduler = WarmingScheduler(cache, settings=settings)
        scheduler.add_warming_task(task("a"))

        assert await scheduler.start() is None

    @pytest.mark.asyncio
    async def test_start_against_unreachable_store(self, settings, data_source):
        cache = CacheManager(redis_client=UnreachableRedisClient(), settings=settings)
        result = await WarmingScheduler(cache, settings=settings).start(data_source)

        assert result.failed == 3
