"""
Cache-Related Exceptions

All exceptions raised by the backing store client and the cache layers above
it. Callers of the public cache API never see these: every layer above the
Redis client catches CacheError and fails open.
"""

from indexed_cache.core.exceptions.base import IndexedCacheError


class CacheError(IndexedCacheError):
    """Base exception for cache-related errors."""
    pass


class CacheConnectionError(CacheError):
    """
    Raised when unable to reach the backing store.

    Common causes:
    - Redis server is down
    - Network connectivity issues
    - An operation attempted before connect()
    """
    pass


class CacheKeyError(CacheError):
    """Raised when a Redis command against a key fails."""
    pass


class CacheSerializationError(CacheError):
    """Raised when a value cannot be encoded to, or decoded from, JSON."""
    pass
