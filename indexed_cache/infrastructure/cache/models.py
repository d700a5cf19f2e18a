"""
Cache API Models

Pydantic models passed across the public cache API: write options, warming
descriptors and the result of a warming batch.
"""

import inspect
from collections.abc import Callable, Mapping
from typing import Any

from pydantic import BaseModel, Field

FetchFunction = Callable[[], Any]  # sync or returning an awaitable


async def call_fetch(fetch_fn: FetchFunction) -> Any:
    """Invoke a sync or async fetch function and return its value."""
    result = fetch_fn()
    if inspect.isawaitable(result):
        result = await result
    return result


class CacheOptions(BaseModel):
    """
    Options for a cache write.

    ``ttl=None`` falls back to the configured default TTL; ``ttl=0`` stores
    without expiry.
    """

    ttl: int | None = Field(default=None, ge=0, description="Time-to-live in seconds")
    tags: tuple[str, ...] = Field(default=(), description="Tags for bulk invalidation")
    dependencies: tuple[str, ...] = Field(
        default=(), description="External resource identifiers this entry depends on"
    )

    model_config = {"frozen": True}

    @classmethod
    def coerce(cls, options: "CacheOptions | Mapping[str, Any] | None") -> "CacheOptions":
        """Accept an options model, a plain mapping or None."""
        if options is None:
            return cls()
        if isinstance(options, cls):
            return options
        return cls.model_validate(dict(options))


class WarmingTaskDescriptor(BaseModel):
    """One unit of work for ``CacheManager.warm_cache``."""

    namespace: str = Field(..., min_length=1)
    key: str = Field(..., min_length=1)
    fetch_fn: FetchFunction = Field(..., description="Computes the value to cache")
    options: CacheOptions = Field(default_factory=CacheOptions)
    params: dict[str, Any] | None = Field(default=None, description="Key parameters")
    name: str | None = Field(default=None, description="Label used in logs and results")

    model_config = {"frozen": True, "arbitrary_types_allowed": True}

    @property
    def label(self) -> str:
        return self.name or f"{self.namespace}:{self.key}"


class WarmingResult(BaseModel):
    """Counts reported by a warming or refresh batch."""

    total: int = Field(default=0, description="Tasks considered")
    warmed: int = Field(default=0, description="Tasks fetched and stored")
    failed: int = Field(default=0, description="Tasks whose fetch or write failed")
    skipped: int = Field(default=0, description="Tasks left alone (entry still present)")
    duration_ms: float = Field(default=0.0, description="Wall-clock time of the batch")
    failed_tasks: list[str] = Field(default_factory=list, description="Labels of failed tasks")
