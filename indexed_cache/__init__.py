"""
Indexed Cache

Namespaced key/value caching over Redis with tag and dependency indices for
bulk invalidation, hit/miss metrics, health monitoring and cache warming.

Usage:
    from indexed_cache import init_cache, WarmingScheduler

    cache = await init_cache()
    await cache.set("products", "popular", items, {"ttl": 1800, "tags": ["products"]})
    await cache.invalidate_by_tags(["products"])

    scheduler = WarmingScheduler(cache)
    await scheduler.start(data_source)
"""

from indexed_cache.infrastructure.cache import (
    CacheManager,
    CacheOptions,
    WarmingResult,
    cache_evict,
    cache_invalidate,
    cached,
    canonical_key,
    close_cache,
    get_cache_manager,
    init_cache,
)
from indexed_cache.infrastructure.monitoring.cache_monitor import CacheMonitor
from indexed_cache.warming import WarmingScheduler, WarmingTask, WarmingTaskRegistry

__version__ = "1.0.0"

__all__ = [
    "CacheManager",
    "CacheMonitor",
    "CacheOptions",
    "WarmingResult",
    "WarmingScheduler",
    "WarmingTask",
    "WarmingTaskRegistry",
    "cache_evict",
    "cache_invalidate",
    "cached",
    "canonical_key",
    "close_cache",
    "get_cache_manager",
    "init_cache",
]
