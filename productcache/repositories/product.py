"""
Product Repository

Product lookups used by the product cache: by id, by name (platform wide or
within one shop) and by id set.
"""

from typing import Iterable
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
import structlog

from productcache.models import ProductPo
from .base import BaseRepository

logger = structlog.get_logger()


class ProductRepository(BaseRepository):
    """Product-specific repository."""

    def __init__(self, session: AsyncSession):
        """Initialize product repository."""
        super().__init__(session, ProductPo)

    async def find_by_name(
        self, name: str, skip: int = 0, limit: int = 100
    ) -> list[ProductPo]:
        """
        Find products of every shop by exact name.

        Args:
            name: Product name (REQUIRED)
            skip: Number of records to skip
            limit: Maximum records to return

        Returns:
            Products ordered by id
        """
        if name is None:
            raise ValueError("name is required (cannot be None)")
        if skip < 0:
            raise ValueError("skip must be non-negative")

        stmt = (
            select(ProductPo)
            .where(ProductPo.name == name)
            .order_by(ProductPo.id)
            .offset(skip)
            .limit(limit)
        )
        return await self._fetch(stmt, name=name, skip=skip, limit=limit)

    async def find_by_shop_id_and_name(
        self, shop_id: int, name: str, skip: int = 0, limit: int = 100
    ) -> list[ProductPo]:
        """
        Find products of one shop by exact name.

        Args:
            shop_id: Owning shop id (REQUIRED)
            name: Product name (REQUIRED)
            skip: Number of records to skip
            limit: Maximum records to return

        Returns:
            Products ordered by id
        """
        if shop_id is None:
            raise ValueError("shop_id is required (cannot be None)")
        if name is None:
            raise ValueError("name is required (cannot be None)")
        if skip < 0:
            raise ValueError("skip must be non-negative")

        stmt = (
            select(ProductPo)
            .where(ProductPo.shop_id == shop_id, ProductPo.name == name)
            .order_by(ProductPo.id)
            .offset(skip)
            .limit(limit)
        )
        return await self._fetch(
            stmt, shop_id=shop_id, name=name, skip=skip, limit=limit
        )

    async def find_by_id_in(self, ids: Iterable[int]) -> list[ProductPo]:
        """
        Find products whose id is in the given set.

        Rows come back in the order of ``ids``; ids without a row are skipped.
        """
        ids = list(ids)
        if not ids:
            return []

        stmt = select(ProductPo).where(ProductPo.id.in_(ids))
        rows = await self._fetch(stmt, ids=ids)
        by_id = {row.id: row for row in rows}
        return [by_id[id] for id in ids if id in by_id]

    async def _fetch(self, stmt, **context) -> list[ProductPo]:
        try:
            result = await self.session.execute(stmt)
            products = list(result.scalars().all())

            logger.debug(
                "ProductRepository: Products retrieved",
                count=len(products),
                **context,
            )

            return products

        except Exception as e:
            logger.error(
                "ProductRepository: Failed to query products",
                error=str(e),
                exc_info=True,
                **context,
            )
            raise
