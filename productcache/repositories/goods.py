"""
Goods Repository

Product-to-product relation rows.
"""

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
import structlog

from productcache.models import GoodsPo
from .base import BaseRepository

logger = structlog.get_logger()


class GoodsRepository(BaseRepository):
    """Goods-specific repository."""

    def __init__(self, session: AsyncSession):
        """Initialize goods repository."""
        super().__init__(session, GoodsPo)

    async def find_by_product_id(self, product_id: int) -> list[GoodsPo]:
        """Get the relation rows of a product in insertion order."""
        if product_id is None:
            raise ValueError("product_id is required (cannot be None)")

        try:
            stmt = (
                select(GoodsPo)
                .where(GoodsPo.product_id == product_id)
                .order_by(GoodsPo.id)
            )
            result = await self.session.execute(stmt)
            goods = list(result.scalars().all())

            logger.debug(
                "GoodsRepository: Relations retrieved",
                product_id=product_id,
                count=len(goods),
            )

            return goods

        except Exception as e:
            logger.error(
                "GoodsRepository: Failed to get relations",
                product_id=product_id,
                error=str(e),
                exc_info=True,
            )
            raise
