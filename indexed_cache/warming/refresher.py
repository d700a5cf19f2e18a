"""
Background Refresher

Re-populates high-priority entries that have dropped out of the cache.

An entry that is still present is treated as fresh and left alone; only a
missing entry is fetched and written back. Entries are never refreshed ahead
of their expiry.
"""

import asyncio
import time

from indexed_cache.core.config.constants import Stage
from indexed_cache.core.config.settings import Settings, get_settings
from indexed_cache.core.logging.logger import get_logger, log_stage
from indexed_cache.infrastructure.cache.cache_manager import CacheManager
from indexed_cache.infrastructure.cache.models import WarmingResult, call_fetch
from indexed_cache.infrastructure.monitoring.metrics_collector import CacheMetricsCollector
from indexed_cache.warming.models import WarmingTask
from indexed_cache.warming.registry import WarmingTaskRegistry

logger = get_logger(__name__)

# Per-task outcomes
_WARMED = "warmed"
_FAILED = "failed"
_SKIPPED = "skipped"


class BackgroundRefresher:
    """
    Refresh pass over enabled tasks up to a priority ceiling.

    Args:
        cache: Cache manager to read and write through
        registry: Task registry to snapshot
        settings: Settings (WARMING_REFRESH_MAX_PRIORITY is the ceiling)
    """

    def __init__(
        self,
        cache: CacheManager,
        registry: WarmingTaskRegistry,
        settings: Settings | None = None,
    ):
        settings = settings or get_settings()
        self._cache = cache
        self._registry = registry
        self._max_priority = settings.warming.WARMING_REFRESH_MAX_PRIORITY

    @property
    def max_priority(self) -> int:
        return self._max_priority

    def eligible_tasks(self) -> list[WarmingTask]:
        return [
            task for task in self._registry.snapshot()
            if task.enabled and task.priority <= self._max_priority
        ]

    async def refresh(self) -> WarmingResult:
        """
        Run one refresh pass.

        Every eligible task is checked concurrently and the pass waits for all
        of them. A task whose read, fetch or write fails is counted as failed
        and does not affect the others.

        Returns:
            WarmingResult where ``skipped`` counts entries that were present
        """
        tasks = self.eligible_tasks()
        start = time.perf_counter()

        if not self._cache.enabled or not tasks:
            return WarmingResult(total=len(tasks), skipped=len(tasks))

        outcomes = await asyncio.gather(*(self._refresh_one(t) for t in tasks))

        failed_tasks = [t.name for t, outcome in zip(tasks, outcomes) if outcome == _FAILED]
        result = WarmingResult(
            total=len(tasks),
            warmed=outcomes.count(_WARMED),
            failed=len(failed_tasks),
            skipped=outcomes.count(_SKIPPED),
            duration_ms=round((time.perf_counter() - start) * 1000, 2),
            failed_tasks=failed_tasks,
        )

        CacheMetricsCollector.record_warming("refresh", result.warmed, result.failed)
        log_stage(logger, Stage.REFRESH_BATCH, "Background refresh completed",
                  total=result.total, refreshed=result.warmed, failed=result.failed,
                  present=result.skipped, duration_ms=result.duration_ms)
        return result

    async def _refresh_one(self, task: WarmingTask) -> str:
        try:
            current = await self._cache.get(task.namespace, task.key, task.params)
            if current is not None:
                return _SKIPPED

            value = await call_fetch(task.fetch_fn)
            stored = await self._cache.set(
                task.namespace, task.key, value, task.options, task.params
            )
        except Exception as e:
            logger.error("Refresh task failed", stage=Stage.REFRESH_BATCH,
                         task=task.name, error=str(e), error_type=type(e).__name__)
            return _FAILED

        return _WARMED if stored else _FAILED
