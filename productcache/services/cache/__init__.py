"""
Product Cache Services

Read-through caches for products and their onsale windows, plus the
per-session wiring helper.
"""

from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from ...core.config import Settings
from ...infrastructure.redis.redis_service import RedisService
from ...repositories import GoodsRepository, OnSaleRepository, ProductRepository
from .onsale_cache import OnSaleCache
from .product_cache import ProductCache


def build_product_cache(
    session: AsyncSession,
    redis: RedisService,
    settings: Optional[Settings] = None,
) -> ProductCache:
    """Wire repositories and both caches over one request-scoped session."""
    onsale_cache = OnSaleCache(redis, OnSaleRepository(session), settings=settings)
    return ProductCache(
        redis,
        ProductRepository(session),
        GoodsRepository(session),
        onsale_cache,
        settings=settings,
    )


__all__ = ["OnSaleCache", "ProductCache", "build_product_cache"]
