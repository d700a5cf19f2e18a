"""
In-Memory Redis Double

Implements the RedisClient surface used by the cache layers (strings with TTL
bookkeeping, sets, glob SCAN, INFO) so behavioral tests run without a server.
TTLs are recorded, not enforced; tests expire entries explicitly via
``expire_now``.
"""

from __future__ import annotations

from fnmatch import fnmatchcase
from typing import Any

from indexed_cache.core.exceptions import CacheConnectionError, CacheKeyError


class FakeRedisClient:
    """Dict-backed stand-in for RedisClient."""

    def __init__(self, used_memory: int = 1024, maxmemory: int = 0):
        self.strings: dict[str, str] = {}
        self.sets: dict[str, set[str]] = {}
        self.ttls: dict[str, int] = {}
        self.used_memory = used_memory
        self.maxmemory = maxmemory
        self.fail_on: set[str] = set()
        self.calls: list[tuple[str, tuple]] = []
        self._connected = False

    # -------------------------------------------------------------------------
    # Test helpers
    # -------------------------------------------------------------------------

    def _check(self, op: str, *args) -> None:
        self.calls.append((op, args))
        if op in self.fail_on or "*" in self.fail_on:
            raise CacheKeyError(f"Simulated {op.upper()} failure", details={"op": op})

    def _wrongtype(self, name: str, expected: dict) -> None:
        other = self.sets if expected is self.strings else self.strings
        if name in other:
            raise CacheKeyError(
                "WRONGTYPE Operation against a key holding the wrong kind of value",
                details={"key": name},
            )

    def expire_now(self, key: str) -> None:
        self.strings.pop(key, None)
        self.ttls.pop(key, None)

    def calls_to(self, op: str) -> int:
        return sum(1 for name, _ in self.calls if name == op)

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    async def connect(self) -> None:
        self._check("connect")
        self._connected = True

    async def disconnect(self) -> None:
        self._connected = False

    def is_connected(self) -> bool:
        return self._connected

    async def ping(self) -> bool:
        return "ping" not in self.fail_on

    # -------------------------------------------------------------------------
    # Strings
    # -------------------------------------------------------------------------

    async def get(self, key: str) -> str | None:
        self._check("get", key)
        self._wrongtype(key, self.strings)
        return self.strings.get(key)

    async def set(self, key: str, value: str) -> bool:
        self._check("set", key)
        self.sets.pop(key, None)
        self.strings[key] = value
        self.ttls.pop(key, None)
        return True

    async def setex(self, key: str, ttl: int, value: str) -> bool:
        self._check("setex", key, ttl)
        self.sets.pop(key, None)
        self.strings[key] = value
        self.ttls[key] = ttl
        return True

    async def delete(self, *keys: str) -> int:
        self._check("delete", *keys)
        deleted = 0
        for key in keys:
            if self.strings.pop(key, None) is not None or self.sets.pop(key, None) is not None:
                deleted += 1
            self.ttls.pop(key, None)
        return deleted

    async def scan_keys(self, pattern: str, count: int | None = None) -> list[str]:
        self._check("scan_keys", pattern)
        return [k for k in (*self.strings, *self.sets) if fnmatchcase(k, pattern)]

    # -------------------------------------------------------------------------
    # Sets
    # -------------------------------------------------------------------------

    async def sadd(self, name: str, *members: str) -> int:
        self._check("sadd", name, *members)
        self._wrongtype(name, self.sets)
        target = self.sets.setdefault(name, set())
        before = len(target)
        target.update(members)
        return len(target) - before

    async def smembers(self, name: str) -> set[str]:
        self._check("smembers", name)
        self._wrongtype(name, self.sets)
        return set(self.sets.get(name, set()))

    async def srem(self, name: str, *members: str) -> int:
        self._check("srem", name, *members)
        self._wrongtype(name, self.sets)
        target = self.sets.get(name, set())
        removed = len(target & set(members))
        target.difference_update(members)
        if name in self.sets and not target:
            del self.sets[name]
        return removed

    # -------------------------------------------------------------------------
    # Introspection
    # -------------------------------------------------------------------------

    async def info(self, section: str | None = None) -> dict[str, Any]:
        self._check("info", section)
        if section == "memory":
            return {"used_memory": self.used_memory, "maxmemory": self.maxmemory}
        if section == "keyspace":
            total = len(self.strings) + len(self.sets)
            return {"db0": {"keys": total, "expires": len(self.ttls)}} if total else {}
        return {"redis_version": "7.2.0"}

    async def health_check(self) -> dict[str, Any]:
        if "health_check" in self.fail_on or not self._connected:
            return {"status": "unhealthy", "connected": self._connected}
        return {"status": "healthy", "connected": True, "ping_latency_ms": 0.1}


class UnreachableRedisClient(FakeRedisClient):
    """Every command fails as if the server were down."""

    def _check(self, op: str, *args) -> None:
        self.calls.append((op, args))
        raise CacheConnectionError("Redis client is not connected", details={"op": op})

    async def health_check(self) -> dict[str, Any]:
        return {"status": "unhealthy", "connected": False, "error": "Client not initialized"}
