"""
OnSale Repository

Loads the sale windows of a product that are open at a given instant.
"""

from datetime import datetime
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
import structlog

from productcache.models import OnSalePo
from .base import BaseRepository

logger = structlog.get_logger()


class OnSaleRepository(BaseRepository):
    """OnSale-specific repository."""

    def __init__(self, session: AsyncSession):
        """Initialize onsale repository."""
        super().__init__(session, OnSalePo)

    async def find_active_by_product_id(
        self, product_id: int, now: datetime, skip: int = 0, limit: int = 100
    ) -> list[OnSalePo]:
        """
        Get the onsale windows of a product that contain ``now``.

        Args:
            product_id: Product id (REQUIRED)
            now: Instant the windows must contain (begin <= now < end)
            skip: Number of records to skip
            limit: Maximum records to return

        Returns:
            Onsale rows ordered by end time, latest first
        """
        if product_id is None:
            raise ValueError("product_id is required (cannot be None)")
        if now is None:
            raise ValueError("now is required (cannot be None)")
        if skip < 0:
            raise ValueError("skip must be non-negative")

        try:
            stmt = (
                select(OnSalePo)
                .where(
                    OnSalePo.product_id == product_id,
                    OnSalePo.begin_time <= now,
                    OnSalePo.end_time > now,
                )
                .order_by(OnSalePo.end_time.desc())
                .offset(skip)
                .limit(limit)
            )

            result = await self.session.execute(stmt)
            onsales = list(result.scalars().all())

            logger.debug(
                "OnSaleRepository: Active onsales retrieved",
                product_id=product_id,
                count=len(onsales),
            )

            return onsales

        except Exception as e:
            logger.error(
                "OnSaleRepository: Failed to get active onsales",
                product_id=product_id,
                error=str(e),
                exc_info=True,
            )
            raise
