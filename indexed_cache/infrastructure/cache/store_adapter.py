"""
Store Adapter

Typed, fail-open wrappers over the Redis client for cache entries:

    read   -> value | None   (store or decode failure reads as a miss)
    write  -> bool           (failure logged, never raised)
    remove -> int | None     (best-effort batch delete, None on failure)
    scan   -> list[str]      (empty on failure)

Values are JSON-encoded with orjson (see keys.to_json/from_json). Every read
reports hit/miss and its wall-clock duration to the metrics collector before
returning.
"""

import time
from typing import Any

from indexed_cache.core.config.constants import Stage
from indexed_cache.core.exceptions import CacheError, CacheSerializationError
from indexed_cache.core.logging.logger import get_logger, log_stage
from indexed_cache.infrastructure.cache.keys import from_json, to_json
from indexed_cache.infrastructure.cache.redis_client import RedisClient
from indexed_cache.infrastructure.monitoring.metrics_collector import CacheMetricsCollector

logger = get_logger(__name__)


class StoreAdapter:
    """JSON-typed, fail-open access to cache entries in the backing store."""

    def __init__(
        self,
        redis_client: RedisClient,
        metrics: CacheMetricsCollector,
        scan_count: int | None = None,
    ):
        self._redis = redis_client
        self._metrics = metrics
        self._scan_count = scan_count

    async def read(self, cache_key: str) -> Any | None:
        """
        Read and decode one entry.

        Args:
            cache_key: Canonical key

        Returns:
            Decoded value, or None on miss, store error or undecodable payload
        """
        start = time.perf_counter()
        value = None
        hit = False

        try:
            raw = await self._redis.get(cache_key)
            if raw is not None:
                value = from_json(raw)
                hit = True
        except CacheSerializationError as e:
            logger.error("Cached payload is not valid JSON, treating as miss",
                         stage=Stage.CACHE_READ, cache_key=cache_key, error=e.message)
        except CacheError as e:
            logger.error("Cache read failed, treating as miss", stage=Stage.CACHE_READ,
                         cache_key=cache_key, error=e.message)

        duration_ms = (time.perf_counter() - start) * 1000
        self._metrics.record(hit, duration_ms)

        log_stage(logger, Stage.CACHE_READ, "Cache hit" if hit else "Cache miss",
                  level="debug", cache_key=cache_key, duration_ms=round(duration_ms, 3))
        return value

    async def write(self, cache_key: str, value: Any, ttl: int | None = None) -> bool:
        """
        Encode and store one entry.

        A positive ``ttl`` stores with SETEX; ``0`` or ``None`` stores without
        expiry.

        Returns:
            True if the entry was stored
        """
        try:
            payload = to_json(value)
        except CacheSerializationError as e:
            logger.error("Cache value is not JSON-serializable, skipping write",
                         stage=Stage.CACHE_WRITE, cache_key=cache_key, error=e.message)
            return False

        try:
            if ttl and ttl > 0:
                await self._redis.setex(cache_key, ttl, payload)
            else:
                await self._redis.set(cache_key, payload)
        except CacheError as e:
            logger.error("Cache write failed", stage=Stage.CACHE_WRITE,
                         cache_key=cache_key, error=e.message)
            return False

        log_stage(logger, Stage.CACHE_WRITE, "Cache set", level="debug",
                  cache_key=cache_key, ttl=ttl or 0)
        return True

    async def remove(self, *cache_keys: str) -> int | None:
        """
        Delete entries in one batch.

        Returns:
            Number of entries the store reported deleted, or None if the
            delete failed
        """
        if not cache_keys:
            return 0
        try:
            deleted = await self._redis.delete(*cache_keys)
        except CacheError as e:
            logger.error("Cache delete failed", stage=Stage.CACHE_DELETE,
                         keys=len(cache_keys), error=e.message)
            return None

        log_stage(logger, Stage.CACHE_DELETE, "Cache entries deleted", level="debug",
                  requested=len(cache_keys), deleted=deleted)
        return deleted

    async def scan(self, pattern: str) -> list[str]:
        """
        Enumerate keys matching ``pattern``.

        Returns:
            Matching keys, or an empty list on failure
        """
        try:
            return await self._redis.scan_keys(pattern, self._scan_count)
        except CacheError as e:
            logger.error("Cache scan failed", stage=Stage.CACHE_SCAN,
                         pattern=pattern, error=e.message)
            return []
