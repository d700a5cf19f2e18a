#!/usr/bin/env python3
"""
Indexed Cache Manager

Architecture:
    CacheManager (Public API)
        ├── StoreAdapter (fail-open JSON reads/writes, reports to metrics)
        ├── IndexManager (tag/dependency reverse indices)
        ├── InvalidationEngine (bulk removal by tag, dependency, namespace)
        └── CacheMetricsCollector (hit/miss counters, latency window)

Every public operation degrades to "as if there were no cache" when the
backing store misbehaves. The one exception is ``get_or_set``: an exception
raised by the caller's fetch function propagates unchanged.

Usage:
    cache = CacheManager()
    await cache.initialize()

    await cache.set("products", "popular", items, {"ttl": 1800, "tags": ["products"]})
    items = await cache.get("products", "popular")
    await cache.invalidate_by_tags(["products"])
"""

import asyncio
import time
from collections.abc import Iterable, Mapping
from typing import Any

from indexed_cache.core.config.constants import HealthStatus, IndexKind, Stage
from indexed_cache.core.config.settings import Settings, get_settings
from indexed_cache.core.exceptions import CacheError, CacheSerializationError
from indexed_cache.core.logging.logger import get_logger, log_stage
from indexed_cache.infrastructure.cache.index_manager import IndexManager
from indexed_cache.infrastructure.cache.invalidation import InvalidationEngine
from indexed_cache.infrastructure.cache.keys import canonical_key
from indexed_cache.infrastructure.cache.models import (
    CacheOptions,
    FetchFunction,
    WarmingResult,
    WarmingTaskDescriptor,
    call_fetch,
)
from indexed_cache.infrastructure.cache.redis_client import RedisClient, get_redis_client
from indexed_cache.infrastructure.cache.store_adapter import StoreAdapter
from indexed_cache.infrastructure.monitoring.metrics_collector import (
    CacheMetrics,
    CacheMetricsCollector,
)

logger = get_logger(__name__)

Params = Mapping[str, Any] | None
Options = CacheOptions | Mapping[str, Any] | None


class CacheManager:
    """
    Namespaced key/value cache with tag and dependency invalidation.

    Args:
        redis_client: Redis client to use (defaults to the global client)
        settings: Settings to use (defaults to the global settings)
        metrics: Metrics collector (a fresh one is created if omitted)
    """

    def __init__(
        self,
        redis_client: RedisClient | None = None,
        settings: Settings | None = None,
        metrics: CacheMetricsCollector | None = None,
    ):
        settings = settings or get_settings()
        cache_cfg = settings.cache

        self._redis = redis_client or get_redis_client()
        self._metrics = metrics or CacheMetricsCollector(cache_cfg.CACHE_METRICS_WINDOW)

        # Build layers
        self._store = StoreAdapter(self._redis, self._metrics, cache_cfg.CACHE_SCAN_COUNT)
        self._indices = IndexManager(
            self._redis,
            prefixes={
                IndexKind.TAG: cache_cfg.CACHE_TAG_PREFIX,
                IndexKind.DEPENDENCY: cache_cfg.CACHE_DEPENDENCY_PREFIX,
            },
            scan_count=cache_cfg.CACHE_SCAN_COUNT,
        )
        self._invalidation = InvalidationEngine(self._store, self._indices)

        # Configuration
        self._enabled = cache_cfg.ENABLE_CACHING
        self._default_ttl = cache_cfg.CACHE_DEFAULT_TTL
        self._initialized = False

        logger.info(
            "Cache manager initialized",
            stage=Stage.CACHE_INIT,
            caching_enabled=self._enabled,
            default_ttl=self._default_ttl,
        )

    @property
    def enabled(self) -> bool:
        return self._enabled

    @property
    def indices(self) -> IndexManager:
        return self._indices

    async def initialize(self) -> None:
        """
        Connect the backing store.

        Raises:
            CacheConnectionError: If Redis stays unreachable after retries
        """
        if self._initialized:
            return

        if not self._redis.is_connected():
            await self._redis.connect()
        self._initialized = True

        logger.info("Cache manager connected", stage=Stage.CACHE_INIT)

    async def shutdown(self) -> None:
        """Disconnect the backing store."""
        if self._redis.is_connected():
            await self._redis.disconnect()
        self._initialized = False

        logger.info("Cache manager shutdown", stage=Stage.CACHE_INIT)

    # -------------------------------------------------------------------------
    # Core Cache Operations
    # -------------------------------------------------------------------------

    async def get(self, namespace: str, key: str, params: Params = None) -> Any | None:
        """
        Read a cached value.

        Args:
            namespace: Entry namespace
            key: Entry key
            params: Optional parameters folded into the canonical key

        Returns:
            Cached value, or None on miss (including any store failure)
        """
        if not self._enabled:
            return None

        cache_key = self._cache_key(namespace, key, params)
        if cache_key is None:
            self._metrics.record(False, 0.0)
            return None
        return await self._store.read(cache_key)

    async def set(
        self,
        namespace: str,
        key: str,
        value: Any,
        options: Options = None,
        params: Params = None,
    ) -> bool:
        """
        Write a value and record it in its tag and dependency indices.

        Indices are only updated once the entry itself has been stored.

        Args:
            namespace: Entry namespace
            key: Entry key
            value: JSON-serializable value
            options: CacheOptions or a mapping with ttl/tags/dependencies
            params: Optional parameters folded into the canonical key

        Returns:
            True if the entry was stored
        """
        if not self._enabled:
            return False

        opts = CacheOptions.coerce(options)
        ttl = self._default_ttl if opts.ttl is None else opts.ttl
        cache_key = self._cache_key(namespace, key, params)
        if cache_key is None:
            return False

        if not await self._store.write(cache_key, value, ttl):
            return False

        index_adds = [
            self._indices.add_to_index(IndexKind.TAG, tag, cache_key) for tag in opts.tags
        ] + [
            self._indices.add_to_index(IndexKind.DEPENDENCY, dep, cache_key)
            for dep in opts.dependencies
        ]
        if index_adds:
            await asyncio.gather(*index_adds)

        return True

    async def get_or_set(
        self,
        namespace: str,
        key: str,
        fetch_fn: FetchFunction,
        options: Options = None,
        params: Params = None,
    ) -> Any:
        """
        Read-through: return the cached value, or fetch, cache and return it.

        A fetched ``None`` is returned but not cached.

        Raises:
            Whatever ``fetch_fn`` raises
        """
        cached = await self.get(namespace, key, params)
        if cached is not None:
            return cached

        value = await call_fetch(fetch_fn)

        if value is not None:
            await self.set(namespace, key, value, options, params)
        else:
            log_stage(logger, Stage.READ_THROUGH, "Fetched value is None, not cached",
                      level="debug", namespace=namespace, key=key)
        return value

    async def delete(self, namespace: str, key: str, params: Params = None) -> bool:
        """
        Delete one entry and scrub it from every tag and dependency index.

        Returns:
            True if the entry existed and was removed
        """
        cache_key = self._cache_key(namespace, key, params)
        if cache_key is None:
            return False

        deleted = await self._store.remove(cache_key)
        await self._indices.remove_from_all_indices(cache_key)

        log_stage(logger, Stage.CACHE_DELETE, "Cache entry deleted", level="debug",
                  cache_key=cache_key, existed=bool(deleted))
        return bool(deleted)

    def _cache_key(self, namespace: str, key: str, params: Params) -> str | None:
        """Canonical key, or None when a parameter value cannot be encoded."""
        try:
            return canonical_key(namespace, key, params)
        except CacheSerializationError as e:
            logger.warning(
                "Cache key parameters not encodable, bypassing cache",
                stage=Stage.CACHE_READ,
                namespace=namespace,
                key=key,
                error=e.message,
            )
            return None

    # -------------------------------------------------------------------------
    # Invalidation
    # -------------------------------------------------------------------------

    async def invalidate_by_tags(self, tags: Iterable[str]) -> int:
        """Remove every entry written with any of ``tags``; returns the count."""
        return await self._invalidation.invalidate_by_tags(tags)

    async def invalidate_by_dependencies(self, dependencies: Iterable[str]) -> int:
        """Remove every entry written with any of ``dependencies``; returns the count."""
        return await self._invalidation.invalidate_by_dependencies(dependencies)

    async def clear_namespace(self, namespace: str) -> int:
        """Remove every entry in ``namespace``; returns the count."""
        return await self._invalidation.clear_namespace(namespace)

    # -------------------------------------------------------------------------
    # Cache Warming
    # -------------------------------------------------------------------------

    async def warm_cache(
        self, descriptors: Iterable[WarmingTaskDescriptor], mode: str = "adhoc"
    ) -> WarmingResult:
        """
        Fetch and store every descriptor concurrently.

        All fetches run at once and the batch waits for every one of them to
        settle. A failing fetch is logged and counted; it never stops the
        other descriptors from being warmed.

        Args:
            descriptors: What to warm
            mode: Label for logs and exported metrics

        Returns:
            WarmingResult with warmed/failed counts
        """
        descriptors = list(descriptors)
        start = time.perf_counter()

        if not self._enabled or not descriptors:
            return WarmingResult(total=len(descriptors), skipped=len(descriptors))

        outcomes = await asyncio.gather(*(self._warm_one(d) for d in descriptors))

        failed_tasks = [d.label for d, ok in zip(descriptors, outcomes) if not ok]
        result = WarmingResult(
            total=len(descriptors),
            warmed=len(descriptors) - len(failed_tasks),
            failed=len(failed_tasks),
            duration_ms=round((time.perf_counter() - start) * 1000, 2),
            failed_tasks=failed_tasks,
        )

        CacheMetricsCollector.record_warming(mode, result.warmed, result.failed)
        log_stage(logger, Stage.WARMING_BATCH, "Cache warming completed", mode=mode,
                  total=result.total, warmed=result.warmed, failed=result.failed,
                  duration_ms=result.duration_ms)
        return result

    async def _warm_one(self, descriptor: WarmingTaskDescriptor) -> bool:
        try:
            value = await call_fetch(descriptor.fetch_fn)
            stored = await self.set(
                descriptor.namespace, descriptor.key, value, descriptor.options, descriptor.params
            )
        except Exception as e:
            logger.error(
                "Warming task failed",
                stage=Stage.WARMING_TASK,
                task=descriptor.label,
                error=str(e),
                error_type=type(e).__name__,
            )
            return False

        if not stored:
            logger.warning("Warming write not stored", stage=Stage.WARMING_TASK,
                           task=descriptor.label)
        return stored

    # -------------------------------------------------------------------------
    # Monitoring
    # -------------------------------------------------------------------------

    def get_metrics(self) -> CacheMetrics:
        """Immutable snapshot of hit/miss counters and average latency."""
        return self._metrics.snapshot()

    def reset_metrics(self) -> None:
        """Zero all metrics."""
        self._metrics.reset()

    async def get_cache_info(self) -> dict[str, Any] | None:
        """
        Backing store INFO alongside the cache metrics.

        Returns:
            Dict with ``memory``, ``keyspace`` and ``metrics``, or None if the
            store could not be queried
        """
        try:
            memory = await self._redis.info("memory")
            keyspace = await self._redis.info("keyspace")
        except CacheError as e:
            logger.error("Cache info unavailable", stage=Stage.MONITORING, error=e.message)
            return None

        return {
            "memory": memory,
            "keyspace": keyspace,
            "metrics": self.get_metrics().model_dump(),
        }

    async def health_check(self) -> dict[str, Any]:
        """
        Health of the cache and its backing store.

        Returns:
            Dict with overall status, store health and current metrics
        """
        redis_health = await self._redis.health_check()
        status = HealthStatus.HEALTHY
        if not self._enabled or redis_health.get("status") != HealthStatus.HEALTHY.value:
            status = HealthStatus.DEGRADED

        return {
            "status": status.value,
            "caching_enabled": self._enabled,
            "redis": redis_health,
            "metrics": self.get_metrics().model_dump(),
        }


# =============================================================================
# GLOBAL INSTANCE (SINGLETON PATTERN)
# =============================================================================

_cache_manager: CacheManager | None = None


def get_cache_manager() -> CacheManager:
    """
    Get the global cache manager instance (singleton).

    Returns:
        CacheManager: Global cache manager instance
    """
    global _cache_manager

    if _cache_manager is None:
        _cache_manager = CacheManager()

    return _cache_manager


async def init_cache() -> CacheManager:
    """
    Initialize and connect the global cache manager.

    Returns:
        CacheManager: Initialized cache manager
    """
    manager = get_cache_manager()
    await manager.initialize()
    return manager


async def close_cache() -> None:
    """Shutdown the global cache manager."""
    global _cache_manager

    if _cache_manager:
        await _cache_manager.shutdown()
        _cache_manager = None
