"""
Cache warming: task registry, warming passes and background refresh.
"""

from indexed_cache.warming.builtin_tasks import WarmingDataSource, builtin_tasks
from indexed_cache.warming.models import WarmingTask
from indexed_cache.warming.refresher import BackgroundRefresher
from indexed_cache.warming.registry import WarmingTaskRegistry
from indexed_cache.warming.scheduler import WarmingScheduler

__all__ = [
    "BackgroundRefresher",
    "WarmingDataSource",
    "WarmingScheduler",
    "WarmingTask",
    "WarmingTaskRegistry",
    "builtin_tasks",
]
