"""
Invalidation Engine

Bulk removal of cache entries:

- by tag or dependency: delete every member of the index set in one batch,
  then delete the index set itself
- by namespace: SCAN ``{namespace}:*`` and delete the matches

All operations are best-effort and report how many entries were removed.
Clearing a namespace leaves tag/dependency sets untouched; their stale
members simply miss on the next lookup.
"""

from collections.abc import Iterable

from indexed_cache.core.config.constants import IndexKind, Stage
from indexed_cache.core.logging.logger import get_logger, log_stage
from indexed_cache.infrastructure.cache.index_manager import IndexManager
from indexed_cache.infrastructure.cache.keys import namespace_pattern
from indexed_cache.infrastructure.cache.store_adapter import StoreAdapter
from indexed_cache.infrastructure.monitoring.metrics_collector import CacheMetricsCollector

logger = get_logger(__name__)

# Upper bound on keys sent in a single DEL when clearing a namespace
DELETE_BATCH_SIZE = 500


class InvalidationEngine:
    """Removes cache entries by tag, by dependency or by namespace."""

    def __init__(self, store: StoreAdapter, indices: IndexManager):
        self._store = store
        self._indices = indices

    async def invalidate_by_tags(self, tags: Iterable[str]) -> int:
        """
        Invalidate every entry written with any of ``tags``.

        Returns:
            Number of entries removed
        """
        tags = list(tags)
        removed = await self._invalidate(IndexKind.TAG, tags)
        log_stage(logger, Stage.INVALIDATE_TAGS, "Cache invalidated by tags",
                  tags=tags, removed=removed)
        return removed

    async def invalidate_by_dependencies(self, dependencies: Iterable[str]) -> int:
        """
        Invalidate every entry written with any of ``dependencies``.

        Returns:
            Number of entries removed
        """
        dependencies = list(dependencies)
        removed = await self._invalidate(IndexKind.DEPENDENCY, dependencies)
        log_stage(logger, Stage.INVALIDATE_DEPENDENCIES, "Cache invalidated by dependencies",
                  dependencies=dependencies, removed=removed)
        return removed

    async def _invalidate(self, kind: IndexKind, names: Iterable[str]) -> int:
        removed = 0
        seen: set[str] = set()

        for name in names:
            members = await self._indices.members_of(kind, name)
            if not members:
                continue

            pending = members - seen
            if pending:
                deleted = await self._store.remove(*pending)
                if deleted is None:
                    # keep the index so a later call can still find the members
                    continue
                removed += deleted
                seen |= pending

            await self._indices.drop_index(kind, name)

        CacheMetricsCollector.record_invalidated(kind.value, removed)
        return removed

    async def clear_namespace(self, namespace: str) -> int:
        """
        Delete every entry whose canonical key starts with ``{namespace}:``.

        Returns:
            Number of entries removed
        """
        keys = await self._store.scan(namespace_pattern(namespace))

        removed = 0
        for start in range(0, len(keys), DELETE_BATCH_SIZE):
            removed += await self._store.remove(*keys[start:start + DELETE_BATCH_SIZE]) or 0

        CacheMetricsCollector.record_invalidated("namespace", removed)
        log_stage(logger, Stage.CLEAR_NAMESPACE, "Cache namespace cleared",
                  namespace=namespace, matched=len(keys), removed=removed)
        return removed
