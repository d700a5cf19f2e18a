"""
Redis Client with Connection Pooling

Architecture:
    RedisClient (Public API)
        ├── ConnectionManager (Connection lifecycle, retried connect)
        ├── OperationExecutor (Command execution with error handling)
        └── HealthMonitor (Health checks and pool metrics)

Only the primitives the indexed cache needs are exposed: string
GET/SET/SETEX/DEL, cursor-based SCAN, set SADD/SMEMBERS/SREM and INFO.
Every command failure is raised as a CacheError subclass so the layers above
can fail open on exactly one exception family.
"""

from __future__ import annotations

import time
from typing import Any

import redis.asyncio as redis
from redis.asyncio.connection import ConnectionPool
from redis.exceptions import ConnectionError, RedisError, TimeoutError
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_incrementing

from indexed_cache.core.config.constants import HealthStatus, Stage
from indexed_cache.core.config.settings import Settings, get_settings
from indexed_cache.core.exceptions import CacheConnectionError, CacheKeyError
from indexed_cache.core.logging.logger import get_logger

logger = get_logger(__name__)


# =============================================================================
# LAYER 1: CONNECTION MANAGEMENT
# Handles connection lifecycle, pooling, and reconnection
# =============================================================================


class ConnectionManager:
    """
    Manages Redis connection lifecycle and pooling.

    Connection establishment is retried with a linear back-off
    (``min(attempt * step, ceiling)``) before CacheConnectionError is raised.
    """

    def __init__(self, settings: Settings):
        self._settings = settings
        self._pool: ConnectionPool | None = None
        self._client: redis.Redis | None = None
        self._is_connected = False

    def _build_pool(self) -> ConnectionPool:
        cfg = self._settings.redis
        common = {
            "max_connections": cfg.REDIS_MAX_CONNECTIONS,
            "socket_connect_timeout": cfg.REDIS_SOCKET_CONNECT_TIMEOUT,
            "socket_timeout": cfg.REDIS_SOCKET_TIMEOUT,
            "retry_on_timeout": True,
            "health_check_interval": cfg.REDIS_HEALTH_CHECK_INTERVAL,
            "decode_responses": True,
        }
        if cfg.REDIS_URL:
            return ConnectionPool.from_url(cfg.REDIS_URL, **common)
        return ConnectionPool(
            host=cfg.REDIS_HOST,
            port=cfg.REDIS_PORT,
            db=cfg.REDIS_DB,
            password=cfg.REDIS_PASSWORD,
            **common,
        )

    async def _connect_once(self) -> redis.Redis:
        try:
            self._pool = self._build_pool()
            self._client = redis.Redis(connection_pool=self._pool)
            await self._client.ping()
            return self._client
        except (ConnectionError, TimeoutError) as e:
            if self._pool:
                await self._pool.disconnect()
            self._pool = None
            self._client = None
            raise CacheConnectionError.from_exception(
                e,
                message=f"Failed to connect to Redis: {e}",
                host=self._settings.redis.REDIS_HOST,
                port=self._settings.redis.REDIS_PORT,
            )

    async def connect(self) -> redis.Redis:
        """
        Establish connection to Redis with connection pooling.

        Returns:
            redis.Redis: Connected Redis client

        Raises:
            CacheConnectionError: If every connection attempt fails
        """
        if self._is_connected and self._client:
            return self._client

        cfg = self._settings.redis
        step = cfg.REDIS_RECONNECT_STEP_MS / 1000
        ceiling = cfg.REDIS_RECONNECT_MAX_MS / 1000

        @retry(
            stop=stop_after_attempt(cfg.REDIS_CONNECT_MAX_ATTEMPTS),
            wait=wait_incrementing(start=step, increment=step, max=ceiling),
            retry=retry_if_exception_type(CacheConnectionError),
            reraise=True,
            before_sleep=lambda retry_state: logger.warning(
                "Redis connection attempt failed, retrying",
                stage=Stage.REDIS,
                attempt=retry_state.attempt_number,
                delay=round(retry_state.idle_for, 3),
            ),
        )
        async def _connect_with_retry() -> redis.Redis:
            return await self._connect_once()

        try:
            client = await _connect_with_retry()
        except CacheConnectionError as e:
            logger.error("Failed to connect to Redis", stage=Stage.REDIS, error=e.message)
            raise

        self._is_connected = True
        logger.info(
            "Redis connected successfully",
            stage=Stage.REDIS,
            host=cfg.REDIS_HOST,
            port=cfg.REDIS_PORT,
            max_connections=cfg.REDIS_MAX_CONNECTIONS,
        )
        return client

    async def disconnect(self) -> None:
        """Close Redis connection and pool."""
        if self._client:
            await self._client.aclose()

        if self._pool:
            await self._pool.disconnect()

        self._client = None
        self._pool = None
        self._is_connected = False

        logger.info("Redis disconnected", stage=Stage.REDIS)

    async def ping(self) -> bool:
        """
        Check Redis connection health.

        Returns:
            True if healthy, False otherwise
        """
        if not (self._client and self._is_connected):
            return False
        try:
            await self._client.ping()
            return True
        except (ConnectionError, TimeoutError):
            return False

    def get_client(self) -> redis.Redis | None:
        """Get the Redis client instance."""
        return self._client

    def get_pool(self) -> ConnectionPool | None:
        """Get the connection pool instance."""
        return self._pool

    def is_connected(self) -> bool:
        """Check if connected to Redis."""
        return self._is_connected


# =============================================================================
# LAYER 2: OPERATION EXECUTOR
# Executes Redis commands with error handling and logging
# =============================================================================


class OperationExecutor:
    """
    Executes Redis operations with consistent error handling.

    Error Handling Strategy:
    - Catch RedisError exceptions
    - Log error with context (stage, key)
    - Raise CacheKeyError with details
    """

    def __init__(self, redis_client: redis.Redis):
        self._redis = redis_client

    # -------------------------------------------------------------------------
    # String Operations
    # -------------------------------------------------------------------------

    async def get(self, key: str) -> str | None:
        """
        Get value from Redis.

        Args:
            key: Redis key

        Returns:
            Value or None if not found

        Raises:
            CacheKeyError: On a Redis error or a value that is not valid UTF-8
        """
        try:
            return await self._redis.get(key)
        except (RedisError, UnicodeDecodeError) as e:
            logger.error("Redis GET failed", stage=Stage.REDIS, key=key, error=str(e))
            raise CacheKeyError(message=f"Redis GET failed: {e}", details={"key": key})

    async def set(self, key: str, value: str) -> bool:
        """
        Set value in Redis without expiry.

        Args:
            key: Redis key
            value: Value to set

        Returns:
            True if set successfully
        """
        try:
            result = await self._redis.set(key, value)
            return result is not None
        except RedisError as e:
            logger.error("Redis SET failed", stage=Stage.REDIS, key=key, error=str(e))
            raise CacheKeyError(message=f"Redis SET failed: {e}", details={"key": key})

    async def setex(self, key: str, ttl: int, value: str) -> bool:
        """
        Set value in Redis with an expiry.

        Args:
            key: Redis key
            ttl: Time-to-live in seconds (must be positive)
            value: Value to set

        Returns:
            True if set successfully
        """
        try:
            return bool(await self._redis.setex(key, ttl, value))
        except RedisError as e:
            logger.error("Redis SETEX failed", stage=Stage.REDIS, key=key, ttl=ttl, error=str(e))
            raise CacheKeyError(message=f"Redis SETEX failed: {e}", details={"key": key, "ttl": ttl})

    async def delete(self, *keys: str) -> int:
        """
        Delete keys from Redis.

        Returns:
            Number of keys deleted
        """
        if not keys:
            return 0
        try:
            return await self._redis.delete(*keys)
        except RedisError as e:
            logger.error("Redis DELETE failed", stage=Stage.REDIS, keys=len(keys), error=str(e))
            raise CacheKeyError(message=f"Redis DELETE failed: {e}", details={"keys": list(keys)})

    async def scan_keys(self, pattern: str, count: int | None = None) -> list[str]:
        """
        Enumerate keys matching a glob pattern.

        Uses cursor-based SCAN so a large keyspace never blocks the server the
        way KEYS would.

        Args:
            pattern: Glob-style pattern (e.g. ``products:*``)
            count: Page size hint passed to SCAN

        Returns:
            Matching keys (order unspecified, no duplicates)
        """
        try:
            found: dict[str, None] = {}
            async for key in self._redis.scan_iter(match=pattern, count=count):
                found[key] = None
            return list(found)
        except RedisError as e:
            logger.error("Redis SCAN failed", stage=Stage.REDIS, pattern=pattern, error=str(e))
            raise CacheKeyError(message=f"Redis SCAN failed: {e}", details={"pattern": pattern})

    # -------------------------------------------------------------------------
    # Set Operations (reverse indices)
    # -------------------------------------------------------------------------

    async def sadd(self, name: str, *members: str) -> int:
        """
        Add members to a set.

        Returns:
            Number of members newly added
        """
        try:
            return await self._redis.sadd(name, *members)
        except RedisError as e:
            logger.error("Redis SADD failed", stage=Stage.REDIS, name=name, error=str(e))
            raise CacheKeyError(message=f"Redis SADD failed: {e}", details={"name": name})

    async def smembers(self, name: str) -> set[str]:
        """
        Get all members of a set.

        Returns:
            Set members (empty if the set does not exist)
        """
        try:
            return set(await self._redis.smembers(name))
        except (RedisError, UnicodeDecodeError) as e:
            logger.error("Redis SMEMBERS failed", stage=Stage.REDIS, name=name, error=str(e))
            raise CacheKeyError(message=f"Redis SMEMBERS failed: {e}", details={"name": name})

    async def srem(self, name: str, *members: str) -> int:
        """
        Remove members from a set.

        Returns:
            Number of members removed
        """
        try:
            return await self._redis.srem(name, *members)
        except RedisError as e:
            logger.error("Redis SREM failed", stage=Stage.REDIS, name=name, error=str(e))
            raise CacheKeyError(message=f"Redis SREM failed: {e}", details={"name": name})

    # -------------------------------------------------------------------------
    # Server Introspection
    # -------------------------------------------------------------------------

    async def info(self, section: str | None = None) -> dict[str, Any]:
        """
        Get server INFO, optionally restricted to one section.

        Returns:
            Parsed INFO fields
        """
        try:
            return await self._redis.info(section) if section else await self._redis.info()
        except RedisError as e:
            logger.error("Redis INFO failed", stage=Stage.REDIS, section=section, error=str(e))
            raise CacheKeyError(message=f"Redis INFO failed: {e}", details={"section": section})


# =============================================================================
# LAYER 3: HEALTH MONITORING
# Health checks and connection pool metrics
# =============================================================================


class HealthMonitor:
    """
    Monitors Redis health and connection pool metrics.

    Metrics Tracked:
    - Connection status
    - Ping latency
    - Pool size and utilization (warning above 80%)
    """

    def __init__(self, connection_manager: ConnectionManager, settings: Settings):
        self._conn_mgr = connection_manager
        self._settings = settings

    async def health_check(self) -> dict[str, Any]:
        """
        Perform health check on Redis connection.

        Returns:
            Dict with health status and metrics
        """
        health = {
            "status": HealthStatus.HEALTHY.value,
            "connected": self._conn_mgr.is_connected(),
            "host": self._settings.redis.REDIS_HOST,
            "port": self._settings.redis.REDIS_PORT,
            "pool_size": 0,
            "pool_in_use": 0,
            "pool_utilization_pct": 0.0,
            "pool_warning": False,
            "ping_latency_ms": None,
        }

        client = self._conn_mgr.get_client()
        if not client:
            health["status"] = HealthStatus.UNHEALTHY.value
            health["error"] = "Client not initialized"
            return health

        try:
            start = time.perf_counter()
            await client.ping()
            health["ping_latency_ms"] = round((time.perf_counter() - start) * 1000, 2)
        except RedisError as e:
            health["status"] = HealthStatus.UNHEALTHY.value
            health["error"] = str(e)
            return health

        pool = self._conn_mgr.get_pool()
        if pool:
            in_use = len(getattr(pool, "_in_use_connections", ()))
            health["pool_size"] = pool.max_connections
            health["pool_in_use"] = in_use
            utilization = 100.0 * in_use / pool.max_connections if pool.max_connections else 0.0
            health["pool_utilization_pct"] = round(utilization, 1)

            if utilization > 80:
                health["pool_warning"] = True
                logger.warning(
                    "Redis pool utilization high",
                    stage=Stage.REDIS,
                    pool_utilization=utilization,
                    max_connections=pool.max_connections,
                )

        return health


# =============================================================================
# LAYER 4: PUBLIC API
# Clean interface that coordinates all layers
# =============================================================================


class RedisClient:
    """
    Async Redis client with connection pooling and health checks.

    Usage:
        client = RedisClient()
        await client.connect()

        await client.setex("products:popular", 1800, '[1, 2, 3]')
        value = await client.get("products:popular")

        await client.disconnect()

    Operations attempted before ``connect()`` raise CacheConnectionError.
    """

    def __init__(self, settings: Settings | None = None):
        self._settings = settings or get_settings()

        self._conn_mgr = ConnectionManager(self._settings)
        self._executor: OperationExecutor | None = None
        self._health_monitor = HealthMonitor(self._conn_mgr, self._settings)

        logger.info(
            "Redis client initialized",
            stage=Stage.REDIS,
            host=self._settings.redis.REDIS_HOST,
            port=self._settings.redis.REDIS_PORT,
        )

    async def connect(self) -> None:
        """
        Establish connection to Redis with connection pooling.

        Raises:
            CacheConnectionError: If connection fails
        """
        client = await self._conn_mgr.connect()
        self._executor = OperationExecutor(client)

    async def disconnect(self) -> None:
        """Close Redis connection and pool."""
        await self._conn_mgr.disconnect()
        self._executor = None

    async def ping(self) -> bool:
        """Check Redis connection health."""
        return await self._conn_mgr.ping()

    def is_connected(self) -> bool:
        """Check if connected to Redis."""
        return self._conn_mgr.is_connected()

    @property
    def _ops(self) -> OperationExecutor:
        if self._executor is None:
            raise CacheConnectionError(
                "Redis client is not connected",
                details={"host": self._settings.redis.REDIS_HOST},
            )
        return self._executor

    # -------------------------------------------------------------------------
    # Delegate to OperationExecutor
    # -------------------------------------------------------------------------

    async def get(self, key: str) -> str | None:
        """Get value from Redis."""
        return await self._ops.get(key)

    async def set(self, key: str, value: str) -> bool:
        """Set value in Redis without expiry."""
        return await self._ops.set(key, value)

    async def setex(self, key: str, ttl: int, value: str) -> bool:
        """Set value in Redis with an expiry."""
        return await self._ops.setex(key, ttl, value)

    async def delete(self, *keys: str) -> int:
        """Delete keys from Redis."""
        return await self._ops.delete(*keys)

    async def scan_keys(self, pattern: str, count: int | None = None) -> list[str]:
        """Enumerate keys matching a glob pattern."""
        return await self._ops.scan_keys(pattern, count)

    async def sadd(self, name: str, *members: str) -> int:
        """Add members to a set."""
        return await self._ops.sadd(name, *members)

    async def smembers(self, name: str) -> set[str]:
        """Get all members of a set."""
        return await self._ops.smembers(name)

    async def srem(self, name: str, *members: str) -> int:
        """Remove members from a set."""
        return await self._ops.srem(name, *members)

    async def info(self, section: str | None = None) -> dict[str, Any]:
        """Get server INFO."""
        return await self._ops.info(section)

    async def health_check(self) -> dict[str, Any]:
        """Perform health check on Redis connection."""
        return await self._health_monitor.health_check()


# =============================================================================
# GLOBAL INSTANCE (SINGLETON PATTERN)
# =============================================================================

_redis_client: RedisClient | None = None


def get_redis_client() -> RedisClient:
    """
    Get the global Redis client instance (singleton).

    Returns:
        RedisClient: Global Redis client instance
    """
    global _redis_client

    if _redis_client is None:
        _redis_client = RedisClient()

    return _redis_client


async def init_redis() -> RedisClient:
    """
    Initialize and connect the global Redis client.

    Returns:
        RedisClient: Connected Redis client
    """
    client = get_redis_client()
    await client.connect()
    return client


async def close_redis() -> None:
    """Close the global Redis client."""
    global _redis_client

    if _redis_client:
        await _redis_client.disconnect()
        _redis_client = None
