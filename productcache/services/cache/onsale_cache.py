"""
OnSale Cache Service

Read-through cache of the sale windows currently open for a product.

Layout in Redis:
- child:obj:<onsale_id>   one onsale record, expiring no later than its end time
- child:rel:<product_id>  ids of the product's active onsales, fixed TTL

A product is a cache hit only when its index and every listed record are
present; a single missing record forces a reload from the row store.
"""

from datetime import datetime
from typing import Callable, List, Optional

import structlog
from opentelemetry import trace

from ...constants import get_current_timestamp
from ...core.config import Settings, get_settings
from ...domain.cache.value_objects import CacheKey, TTL
from ...domain.product import OnSale, onsale_from_po, onsale_to_cache, onsale_from_cache
from ...infrastructure.redis.redis_service import RedisService
from ...repositories.onsale import OnSaleRepository
from .base import ReadThroughCache

logger = structlog.get_logger()
tracer = trace.get_tracer(__name__)


class OnSaleCache(ReadThroughCache):
    """
    Cache of active onsale records keyed by product.

    Called by ProductCache for hydration and eviction; never calls back.
    """

    def __init__(
        self,
        redis: RedisService,
        repository: OnSaleRepository,
        settings: Optional[Settings] = None,
        clock: Callable[[], datetime] = get_current_timestamp,
    ):
        super().__init__(redis)
        self.repository = repository
        self.settings = settings or get_settings()
        self.clock = clock
        self.default_ttl = TTL(self.settings.ONSALE_CACHE_TTL)
        self.min_ttl = TTL(self.settings.ONSALE_MIN_TTL)
        self.relation_ttl = TTL(self.settings.ONSALE_RELATION_TTL)

    async def get_active(self, product_id: int) -> List[OnSale]:
        """
        Get the product's currently active onsales, latest end time first.

        Args:
            product_id: Product id

        Returns:
            Active onsale records (possibly empty)
        """
        with tracer.start_as_current_span("onsale_cache.get_active") as span:
            span.set_attribute("product_id", product_id)

            cached_ids = await self._get_cached_ids(CacheKey.onsale_relation(product_id))
            cached = await self._get_all_or_none(
                cached_ids, CacheKey.onsale_object, onsale_from_cache
            )
            if cached is not None:
                span.set_attribute("cache.hit", True)
                logger.debug(
                    "Active onsales served from cache",
                    product_id=product_id,
                    count=len(cached),
                )
                return cached

            span.set_attribute("cache.hit", False)
            onsales = await self._load_active(product_id)
            await self._cache_onsales(product_id, onsales)
            return onsales

    async def evict_for_product(self, product_id: int) -> None:
        """
        Drop the product's onsale index.

        Individual onsale records stay until their own TTL runs out.
        """
        await self._cache_delete(CacheKey.onsale_relation(product_id))
        logger.debug("Onsale index evicted", product_id=product_id)

    def dynamic_ttl(self, end_time: Optional[datetime], now: datetime) -> TTL:
        """TTL of one onsale record: never past its end time, never below the floor."""
        return TTL.until(end_time, now, default=self.default_ttl, floor=self.min_ttl)

    async def _load_active(self, product_id: int) -> List[OnSale]:
        now = self.clock()
        rows = await self.repository.find_active_by_product_id(
            product_id, now, limit=self.settings.QUERY_PAGE_SIZE
        )
        onsales = [onsale_from_po(row) for row in rows]
        logger.debug(
            "Active onsales loaded from row store",
            product_id=product_id,
            count=len(onsales),
        )
        return onsales

    async def _cache_onsales(self, product_id: int, onsales: List[OnSale]) -> None:
        """Write each record with its own TTL, then the index with the fixed TTL."""
        now = self.clock()
        ids = []
        for onsale in onsales:
            if onsale.id is None:
                continue
            ttl = self.dynamic_ttl(onsale.end_time, now)
            await self._cache_set(
                CacheKey.onsale_object(onsale.id), onsale_to_cache(onsale), ttl
            )
            ids.append(onsale.id)

        await self._cache_set(CacheKey.onsale_relation(product_id), ids, self.relation_ttl)
