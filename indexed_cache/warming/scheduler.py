"""
Warming Scheduler

Entry points for cache warming:

    warm_critical()  enabled priority-1 tasks (startup, on demand)
    warm_all()       every enabled task, ordered by priority
    refresh()        re-populate missing priority <= N entries

How these are triggered (cron, timers, admin endpoints) is up to the host
application; each call is a single self-contained pass.
"""

from indexed_cache.core.config.constants import CRITICAL_PRIORITY, Stage
from indexed_cache.core.config.settings import Settings, get_settings
from indexed_cache.core.logging.logger import get_logger, log_stage
from indexed_cache.infrastructure.cache.cache_manager import CacheManager
from indexed_cache.infrastructure.cache.models import WarmingResult
from indexed_cache.warming.builtin_tasks import WarmingDataSource, builtin_tasks
from indexed_cache.warming.models import WarmingTask
from indexed_cache.warming.refresher import BackgroundRefresher
from indexed_cache.warming.registry import WarmingTaskRegistry

logger = get_logger(__name__)


class WarmingScheduler:
    """
    Runs warming passes over a task registry.

    Every pass snapshots the registry once at its start, so concurrent
    add/remove/toggle calls take effect from the next pass.

    Args:
        cache: Cache manager to warm
        registry: Task registry (a new empty one if omitted)
        settings: Settings (defaults to the global settings)
    """

    def __init__(
        self,
        cache: CacheManager,
        registry: WarmingTaskRegistry | None = None,
        settings: Settings | None = None,
    ):
        self._settings = settings or get_settings()
        self._cache = cache
        self._registry = registry if registry is not None else WarmingTaskRegistry()
        self._refresher = BackgroundRefresher(cache, self._registry, self._settings)

    @property
    def registry(self) -> WarmingTaskRegistry:
        return self._registry

    async def start(self, data_source: WarmingDataSource | None = None) -> WarmingResult | None:
        """
        Register the built-in tasks and warm the critical ones.

        Built-ins are registered only when ``data_source`` is given. Startup
        warming is best-effort: a failure is logged and ``None`` returned.
        """
        if data_source is not None:
            for task in builtin_tasks(data_source):
                if task.name not in self._registry:
                    self._registry.add(task)

        log_stage(logger, Stage.WARMING_REGISTRY, "Warming scheduler started",
                  tasks=len(self._registry),
                  warm_on_startup=self._settings.warming.WARMING_ON_STARTUP)

        if not self._settings.warming.WARMING_ON_STARTUP:
            return None

        try:
            return await self.warm_critical()
        except Exception as e:
            logger.error("Startup warming failed", stage=Stage.WARMING_BATCH,
                         error=str(e), error_type=type(e).__name__)
            return None

    async def warm_critical(self) -> WarmingResult:
        """Warm every enabled priority-1 task."""
        tasks = [
            task for task in self._registry.snapshot()
            if task.enabled and task.priority == CRITICAL_PRIORITY
        ]
        log_stage(logger, Stage.WARMING_BATCH, "Warming critical cache", tasks=len(tasks))
        return await self._cache.warm_cache(
            (task.to_descriptor() for task in tasks), mode="critical"
        )

    async def warm_all(self) -> WarmingResult:
        """Warm every enabled task, highest priority first."""
        tasks = sorted(
            (task for task in self._registry.snapshot() if task.enabled),
            key=lambda task: task.priority,
        )
        log_stage(logger, Stage.WARMING_BATCH, "Warming all cache", tasks=len(tasks))
        return await self._cache.warm_cache(
            (task.to_descriptor() for task in tasks), mode="all"
        )

    async def refresh(self) -> WarmingResult:
        """Re-populate missing high-priority entries."""
        return await self._refresher.refresh()

    # -------------------------------------------------------------------------
    # Registry administration
    # -------------------------------------------------------------------------

    def add_warming_task(self, task: WarmingTask) -> None:
        self._registry.add(task)

    def remove_warming_task(self, name: str) -> bool:
        return self._registry.remove(name)

    def toggle_warming_task(self, name: str, enabled: bool) -> bool:
        return self._registry.toggle(name, enabled)

    def get_warming_tasks(self) -> list[WarmingTask]:
        return self._registry.snapshot()
