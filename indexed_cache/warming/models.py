"""
Warming Task Model

A WarmingTask describes one cache entry worth populating ahead of demand:
where it lives (namespace/key/params), how to compute it (fetch_fn), how to
store it (options) and how urgent it is (priority, 1 = highest).
"""

from typing import Any

from pydantic import BaseModel, Field

from indexed_cache.infrastructure.cache.models import (
    CacheOptions,
    FetchFunction,
    WarmingTaskDescriptor,
)


class WarmingTask(BaseModel):
    """
    Registered warming task.

    Instances are immutable; toggling a task swaps in an updated copy.
    """

    name: str = Field(..., min_length=1, description="Unique task name")
    namespace: str = Field(..., min_length=1, description="Cache namespace")
    key: str = Field(..., min_length=1, description="Cache key within the namespace")
    fetch_fn: FetchFunction = Field(..., description="Computes the value to cache")
    options: CacheOptions = Field(default_factory=CacheOptions)
    params: dict[str, Any] | None = Field(default=None, description="Key parameters")
    priority: int = Field(default=1, ge=1, description="1 = highest priority")
    enabled: bool = Field(default=True)

    model_config = {"frozen": True, "arbitrary_types_allowed": True}

    def to_descriptor(self) -> WarmingTaskDescriptor:
        """Descriptor accepted by ``CacheManager.warm_cache``."""
        return WarmingTaskDescriptor(
            name=self.name,
            namespace=self.namespace,
            key=self.key,
            fetch_fn=self.fetch_fn,
            options=self.options,
            params=self.params,
        )
