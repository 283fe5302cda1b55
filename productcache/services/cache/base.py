"""
Read-Through Cache Base

Best-effort cache access shared by the product and onsale caches:
reads that fail degrade to a miss, writes and evictions that fail are
logged and never propagate into the row-store path.
"""

from typing import Any, Callable, List, Optional, TypeVar

import structlog

from ...domain.cache.value_objects import CacheKey, TTL
from ...infrastructure.redis.exceptions import RedisException
from ...infrastructure.redis.redis_service import RedisService

logger = structlog.get_logger()

T = TypeVar("T")


class ReadThroughCache:
    """Cache access helpers over a RedisService."""

    def __init__(self, redis: RedisService):
        self.redis = redis

    async def _cache_get(self, key: CacheKey) -> Optional[Any]:
        """Read a value; a store failure counts as a miss."""
        try:
            return await self.redis.get(key)
        except RedisException as e:
            logger.warning(
                "Cache read failed, falling back to row store",
                key=str(key),
                error_code=e.error_code,
                error=e.message,
            )
            return None

    async def _cache_set(self, key: CacheKey, value: Any, ttl: TTL) -> bool:
        """Write a value; returns False if the store rejected it."""
        try:
            await self.redis.set(key, value, ttl)
            return True
        except RedisException as e:
            logger.error(
                "Cache write failed",
                key=str(key),
                ttl_seconds=ttl.seconds,
                error_code=e.error_code,
                error=e.message,
            )
            return False

    async def _cache_delete(self, *keys: CacheKey) -> bool:
        """Evict keys; returns False if the store rejected the delete."""
        try:
            await self.redis.delete(*keys)
            return True
        except RedisException as e:
            logger.error(
                "Cache eviction failed",
                keys=[str(key) for key in keys],
                error_code=e.error_code,
                error=e.message,
            )
            return False

    async def _get_cached_ids(self, key: CacheKey) -> Optional[List[int]]:
        """
        Read a relation index.

        Returns:
            The cached id list (possibly empty), or None when absent or unusable
        """
        cached = await self._cache_get(key)
        if cached is None:
            return None

        if not isinstance(cached, list) or not all(
            isinstance(id, int) and not isinstance(id, bool) for id in cached
        ):
            logger.warning("Ignoring malformed relation index", key=str(key))
            return None

        return cached

    async def _get_all_or_none(
        self,
        ids: Optional[List[int]],
        key_of: Callable[[int], CacheKey],
        decode: Callable[[Any], Optional[T]],
    ) -> Optional[List[T]]:
        """
        Resolve every id of an index from the cache.

        Returns:
            None if the index is absent or any member is missing,
            otherwise the members in index order
        """
        if ids is None:
            return None
        if not ids:
            return []

        members: List[T] = []
        for id in ids:
            member = await self._read_member(key_of(id), decode)
            if member is None:
                logger.debug("Relation member missing", key=str(key_of(id)))
                return None
            members.append(member)
        return members

    async def _read_member(
        self, key: CacheKey, decode: Callable[[Any], Optional[T]]
    ) -> Optional[T]:
        document = await self._cache_get(key)
        if document is None:
            return None
        try:
            return decode(document)
        except (TypeError, ValueError, AttributeError) as e:
            logger.warning("Ignoring undecodable cache entry", key=str(key), error=str(e))
            return None

