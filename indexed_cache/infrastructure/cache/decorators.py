"""
Cache Decorators

Declarative caching for async functions:

    @cached(namespace="products", ttl=1800, tags=["products"])
    async def popular_products(limit: int) -> list[dict]: ...

    @cache_invalidate(tags=["products"])
    async def update_product(product_id: str, data: dict) -> dict: ...

    @cache_evict(namespace="products", clear_all=True)
    async def reindex_products() -> None: ...

The default key is ``{qualname}:{arg1}:{arg2}:{kw=value}``; a leading
``self``/``cls`` argument is left out. Invalidation and eviction run only
after the wrapped coroutine returns, and their failures never fail it.
"""

import inspect
from collections.abc import Callable, Iterable
from functools import wraps
from typing import Any

from indexed_cache.core.config.constants import Stage
from indexed_cache.core.logging.logger import get_logger
from indexed_cache.infrastructure.cache.cache_manager import CacheManager, get_cache_manager
from indexed_cache.infrastructure.cache.models import CacheOptions

logger = get_logger(__name__)

KeyBuilder = Callable[..., str]


def _key_builder_for(func: Callable) -> KeyBuilder:
    params = list(inspect.signature(func).parameters)
    skip_first = bool(params) and params[0] in ("self", "cls")

    def build(*args, **kwargs) -> str:
        if skip_first:
            args = args[1:]
        parts = [str(a) for a in args] + [f"{k}={kwargs[k]}" for k in sorted(kwargs)]
        return ":".join([func.__qualname__, *parts])

    return build


def cached(
    namespace: str = "default",
    ttl: int | None = None,
    tags: Iterable[str] = (),
    dependencies: Iterable[str] = (),
    key_builder: KeyBuilder | None = None,
    cache: CacheManager | None = None,
) -> Callable:
    """
    Read-through caching for an async function.

    Args:
        namespace: Namespace of the cached entries
        ttl: Time-to-live in seconds (None uses the configured default)
        tags: Tags applied to every cached result
        dependencies: Dependencies applied to every cached result
        key_builder: Called with the function's arguments to build the key
        cache: Cache manager (the global one if omitted)

    A ``None`` result is returned but not cached.
    """
    options = CacheOptions(ttl=ttl, tags=tuple(tags), dependencies=tuple(dependencies))

    def decorator(func: Callable) -> Callable:
        build_key = key_builder or _key_builder_for(func)

        @wraps(func)
        async def wrapper(*args, **kwargs) -> Any:
            manager = cache or get_cache_manager()
            key = build_key(*args, **kwargs)

            hit = await manager.get(namespace, key)
            if hit is not None:
                return hit

            result = await func(*args, **kwargs)
            if result is not None:
                await manager.set(namespace, key, result, options)
            return result

        return wrapper

    return decorator


def cache_invalidate(
    tags: Iterable[str] = (),
    dependencies: Iterable[str] = (),
    cache: CacheManager | None = None,
) -> Callable:
    """
    Invalidate tags and dependencies after the wrapped coroutine succeeds.

    Args:
        tags: Tags to invalidate
        dependencies: Dependencies to invalidate
        cache: Cache manager (the global one if omitted)
    """
    tags = tuple(tags)
    dependencies = tuple(dependencies)

    def decorator(func: Callable) -> Callable:
        @wraps(func)
        async def wrapper(*args, **kwargs) -> Any:
            result = await func(*args, **kwargs)

            manager = cache or get_cache_manager()
            try:
                if tags:
                    await manager.invalidate_by_tags(tags)
                if dependencies:
                    await manager.invalidate_by_dependencies(dependencies)
            except Exception as e:
                logger.warning("Cache invalidation after call failed",
                               stage=Stage.INVALIDATE_TAGS, function=func.__qualname__,
                               error=str(e))
            return result

        return wrapper

    return decorator


def cache_evict(
    namespace: str = "default",
    key_builder: KeyBuilder | None = None,
    clear_all: bool = False,
    cache: CacheManager | None = None,
) -> Callable:
    """
    Evict one entry, or a whole namespace, after the wrapped coroutine succeeds.

    Args:
        namespace: Namespace to evict from
        key_builder: Builds the key to evict from the call's arguments
        clear_all: Clear the whole namespace instead of one key
        cache: Cache manager (the global one if omitted)
    """

    def decorator(func: Callable) -> Callable:
        build_key = key_builder or _key_builder_for(func)

        @wraps(func)
        async def wrapper(*args, **kwargs) -> Any:
            result = await func(*args, **kwargs)

            manager = cache or get_cache_manager()
            try:
                if clear_all:
                    await manager.clear_namespace(namespace)
                else:
                    await manager.delete(namespace, build_key(*args, **kwargs))
            except Exception as e:
                logger.warning("Cache eviction after call failed",
                               stage=Stage.CACHE_DELETE, function=func.__qualname__,
                               error=str(e))
            return result

        return wrapper

    return decorator
