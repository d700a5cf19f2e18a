"""
Warming-Related Exceptions

Raised by the warming task registry for administrative mistakes. Failures of
individual fetch functions are never wrapped here; they are isolated and
logged by the scheduler.
"""

from indexed_cache.core.exceptions.base import IndexedCacheError


class WarmingError(IndexedCacheError):
    """Base exception for warming errors."""
    pass


class DuplicateWarmingTaskError(WarmingError):
    """Raised when a task is registered under a name that already exists."""
    pass


class WarmingTaskNotFoundError(WarmingError):
    """Raised when a lookup requires a task name that is not registered."""
    pass
