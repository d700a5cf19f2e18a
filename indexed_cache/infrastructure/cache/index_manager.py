"""
Reverse index maintenance.

Tags and dependencies are two instances of one pattern: a Redis set per name
holding the canonical keys written with that name. ``tag:products`` lists
every entry tagged ``products``; ``dep:user:42`` every entry depending on
``user:42``.

Entries keep no pointer back to their indices, so scrubbing a deleted key has
to visit every tag and dependency set.
"""

from indexed_cache.core.config.constants import IndexKind, Stage
from indexed_cache.core.exceptions import CacheError, ConfigurationError
from indexed_cache.core.logging.logger import get_logger
from indexed_cache.infrastructure.cache.redis_client import RedisClient

logger = get_logger(__name__)


class IndexManager:
    """
    Maintains tag->keys and dependency->keys sets in the backing store.

    Args:
        redis_client: Connected Redis client
        prefixes: Optional key prefix per kind (defaults to the IndexKind value)
        scan_count: SCAN page size hint used by the exhaustive scrub

    Raises:
        ConfigurationError: If two index kinds share a prefix
    """

    def __init__(
        self,
        redis_client: RedisClient,
        prefixes: dict[IndexKind, str] | None = None,
        scan_count: int | None = None,
    ):
        self._redis = redis_client
        self._prefixes = {kind: kind.value for kind in IndexKind}
        self._prefixes.update(prefixes or {})
        if len(set(self._prefixes.values())) != len(self._prefixes):
            raise ConfigurationError(
                "Tag and dependency index prefixes must differ",
                details={kind.value: prefix for kind, prefix in self._prefixes.items()},
            )
        self._scan_count = scan_count

    def index_key(self, kind: IndexKind, name: str) -> str:
        """Redis key of the set for ``name`` (e.g. ``tag:products``)."""
        return f"{self._prefixes[kind]}:{name}"

    async def add_to_index(self, kind: IndexKind, name: str, cache_key: str) -> bool:
        """
        Record that ``cache_key`` was written with ``name``.

        Idempotent: set semantics absorb repeated adds.

        Returns:
            True if the store accepted the add
        """
        index_key = self.index_key(kind, name)
        try:
            await self._redis.sadd(index_key, cache_key)
        except CacheError as e:
            logger.error("Index add failed", stage=Stage.INDEX_ADD,
                         index_key=index_key, cache_key=cache_key, error=e.message)
            return False
        return True

    async def members_of(self, kind: IndexKind, name: str) -> set[str]:
        """
        Canonical keys recorded under ``name``.

        Returns:
            Member keys (empty if the index is missing or unreadable)
        """
        index_key = self.index_key(kind, name)
        try:
            return await self._redis.smembers(index_key)
        except CacheError as e:
            logger.error("Index read failed", stage=Stage.INDEX_READ,
                         index_key=index_key, error=e.message)
            return set()

    async def drop_index(self, kind: IndexKind, name: str) -> bool:
        """Delete the index set for ``name`` itself."""
        index_key = self.index_key(kind, name)
        try:
            await self._redis.delete(index_key)
        except CacheError as e:
            logger.error("Index delete failed", stage=Stage.INDEX_SCRUB,
                         index_key=index_key, error=e.message)
            return False
        return True

    async def remove_from_all_indices(self, cache_key: str) -> int:
        """
        Remove ``cache_key`` from every tag and dependency index.

        Cost is proportional to the number of distinct tags and dependencies
        in the store. A failure on one index is logged and the scrub moves on.

        Returns:
            Number of index sets the key was actually removed from
        """
        scrubbed = 0
        for kind in IndexKind:
            pattern = f"{self._prefixes[kind]}:*"
            try:
                index_keys = await self._redis.scan_keys(pattern, self._scan_count)
            except CacheError as e:
                logger.error("Index scan failed", stage=Stage.INDEX_SCRUB,
                             pattern=pattern, error=e.message)
                continue

            for index_key in index_keys:
                try:
                    scrubbed += 1 if await self._redis.srem(index_key, cache_key) else 0
                except CacheError as e:
                    # e.g. a cache entry in a namespace literally named "tag"
                    logger.warning("Index scrub skipped", stage=Stage.INDEX_SCRUB,
                                   index_key=index_key, error=e.message)

        if scrubbed:
            logger.debug("Key scrubbed from indices", stage=Stage.INDEX_SCRUB,
                         cache_key=cache_key, indices=scrubbed)
        return scrubbed
