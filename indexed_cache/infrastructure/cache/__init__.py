"""
Indexed cache over Redis.

Public entry points:
- CacheManager: get/set/get_or_set/delete, invalidation, warming, metrics
- cached / cache_invalidate / cache_evict: decorators for async functions
- canonical_key: storage key derivation
"""

from indexed_cache.infrastructure.cache.cache_manager import (
    CacheManager,
    close_cache,
    get_cache_manager,
    init_cache,
)
from indexed_cache.infrastructure.cache.decorators import cache_evict, cache_invalidate, cached
from indexed_cache.infrastructure.cache.keys import canonical_key
from indexed_cache.infrastructure.cache.models import (
    CacheOptions,
    WarmingResult,
    WarmingTaskDescriptor,
)
from indexed_cache.infrastructure.cache.redis_client import (
    RedisClient,
    close_redis,
    get_redis_client,
    init_redis,
)

__all__ = [
    "CacheManager",
    "CacheOptions",
    "RedisClient",
    "WarmingResult",
    "WarmingTaskDescriptor",
    "cache_evict",
    "cache_invalidate",
    "canonical_key",
    "cached",
    "close_cache",
    "close_redis",
    "get_cache_manager",
    "get_redis_client",
    "init_cache",
    "init_redis",
]
