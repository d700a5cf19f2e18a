"""
Exception Module

Structured exception hierarchy for the indexed cache.

Module Structure:
-----------------
- **base.py**: IndexedCacheError base class + ConfigurationError
- **cache.py**: Backing store and serialization exceptions
- **warming.py**: Warming task registry exceptions

Usage:
------
```python
from indexed_cache.core.exceptions import CacheError, DuplicateWarmingTaskError
```
"""

from indexed_cache.core.exceptions.base import ConfigurationError, IndexedCacheError
from indexed_cache.core.exceptions.cache import (
    CacheConnectionError,
    CacheError,
    CacheKeyError,
    CacheSerializationError,
)
from indexed_cache.core.exceptions.warming import (
    DuplicateWarmingTaskError,
    WarmingError,
    WarmingTaskNotFoundError,
)

__all__ = [
    # Base
    "IndexedCacheError",
    "ConfigurationError",
    # Cache
    "CacheError",
    "CacheConnectionError",
    "CacheKeyError",
    "CacheSerializationError",
    # Warming
    "WarmingError",
    "DuplicateWarmingTaskError",
    "WarmingTaskNotFoundError",
]
