"""
Product Cache Service

Read-through cache of products in front of the row store.

Layout in Redis:
- entity:obj:<product_id>  flat product snapshot, never with associations
- entity:rel:<product_id>  ids of related products, fixed TTL

Full retrieval combines the snapshot with the product's active onsales
(OnSaleCache) and its related products (relation index). Mutations write to
the row store first and then evict; they never re-populate the cache.
"""

from typing import List, Optional

import structlog
from opentelemetry import trace

from ...constants import PLATFORM
from ...core.config import Settings, get_settings
from ...domain.cache.value_objects import CacheKey, TTL
from ...domain.context import UserContext
from ...domain.exceptions import ResourceNotFoundException, ResourceOutOfScopeException
from ...domain.product import (
    Product,
    product_from_po,
    product_to_po,
    merge_not_null,
    clone_product,
    snapshot_of,
    product_to_cache,
    product_from_cache,
)
from ...infrastructure.redis.redis_service import RedisService
from ...models import ProductPo
from ...repositories.goods import GoodsRepository
from ...repositories.product import ProductRepository
from .base import ReadThroughCache
from .onsale_cache import OnSaleCache

logger = structlog.get_logger()
tracer = trace.get_tracer(__name__)

RESOURCE = "product"


class ProductCache(ReadThroughCache):
    """
    Product snapshot and relation cache.

    Scope rule: a caller acting for shop ``shop_id`` may only see products of
    that shop, unless ``shop_id`` is PLATFORM. The rule is enforced on cache
    hits as well as on row-store loads.
    """

    def __init__(
        self,
        redis: RedisService,
        product_repository: ProductRepository,
        goods_repository: GoodsRepository,
        onsale_cache: OnSaleCache,
        settings: Optional[Settings] = None,
    ):
        super().__init__(redis)
        self.product_repository = product_repository
        self.goods_repository = goods_repository
        self.onsale_cache = onsale_cache
        self.settings = settings or get_settings()
        self.product_ttl = TTL(self.settings.PRODUCT_CACHE_TTL)
        self.relation_ttl = TTL(self.settings.PRODUCT_RELATION_TTL)

    # Retrieval

    async def get_snapshot(self, shop_id: int, product_id: int) -> Product:
        """
        Get a product's flat fields, cache first.

        Raises:
            ResourceNotFoundException: No such product
            ResourceOutOfScopeException: Product belongs to another shop
        """
        with tracer.start_as_current_span("product_cache.get_snapshot") as span:
            span.set_attribute("product_id", product_id)
            span.set_attribute("shop_id", shop_id)

            cached = await self._get_cached_product(product_id)
            if cached is not None:
                span.set_attribute("cache.hit", True)
                self._validate_scope(shop_id, cached.shop_id, product_id)
                return cached

            span.set_attribute("cache.hit", False)
            po = await self._find_po_by_id(shop_id, product_id)
            product = product_from_po(po)
            await self._cache_product(product)
            return product

    async def get_full(self, shop_id: int, product_id: int) -> Product:
        """
        Get a product with its active onsales and related products.

        The result is a private copy; mutating it never affects cached data.
        """
        with tracer.start_as_current_span("product_cache.get_full") as span:
            span.set_attribute("product_id", product_id)
            base = await self.get_snapshot(shop_id, product_id)
            product = await self._hydrate(base)
            logger.debug(
                "Full product assembled",
                product_id=product_id,
                onsales=len(product.on_sale_list),
                related=len(product.other_products),
            )
            return product

    async def get_related_products(self, product_id: int) -> List[Product]:
        """
        Get the products related to ``product_id``.

        The relation index is only trusted when every related snapshot is
        still cached; otherwise the whole list is rebuilt from the row store.
        """
        with tracer.start_as_current_span("product_cache.get_related") as span:
            span.set_attribute("product_id", product_id)

            cached_ids = await self._get_cached_ids(CacheKey.product_relation(product_id))
            cached = await self._get_all_or_none(
                cached_ids, CacheKey.product_object, product_from_cache
            )
            if cached is not None:
                span.set_attribute("cache.hit", True)
                logger.debug(
                    "Related products served from cache",
                    product_id=product_id,
                    count=len(cached),
                )
                return cached

            span.set_attribute("cache.hit", False)
            relations = await self.goods_repository.find_by_product_id(product_id)
            related_ids = [relation.relate_product_id for relation in relations]
            rows = await self.product_repository.find_by_id_in(related_ids)

            related = []
            for row in rows:
                product = product_from_po(row)
                await self._cache_product(product)
                related.append(product)

            await self._cache_set(
                CacheKey.product_relation(product_id),
                [product.id for product in related],
                self.relation_ttl,
            )
            return related

    async def find_by_name(self, shop_id: int, name: str) -> List[Product]:
        """Search products by name and return them fully hydrated."""
        products = await self.find_simple_by_name(shop_id, name)
        return [await self._hydrate(product) for product in products]

    async def find_simple_by_name(self, shop_id: int, name: str) -> List[Product]:
        """
        Search products by name, flat fields only.

        Searches every shop for PLATFORM, otherwise only ``shop_id``. Each hit
        is written to the snapshot cache.
        """
        limit = self.settings.QUERY_PAGE_SIZE
        if shop_id == PLATFORM:
            rows = await self.product_repository.find_by_name(name, limit=limit)
        else:
            rows = await self.product_repository.find_by_shop_id_and_name(
                shop_id, name, limit=limit
            )

        products = []
        for row in rows:
            product = product_from_po(row)
            await self._cache_product(product)
            products.append(product)

        logger.debug(
            "Products found by name", shop_id=shop_id, name=name, count=len(products)
        )
        return products

    # Mutations

    async def create(self, product: Product, context: UserContext) -> Product:
        """
        Insert a product stamped with the caller as creator.

        Returns:
            The stored product, as cached
        """
        product = snapshot_of(product)
        product.creator_id = context.user_id
        product.creator_name = context.user_name
        if product.shop_id is None:
            product.shop_id = context.shop_id

        po = await self.product_repository.save(product_to_po(product))
        created = product_from_po(po)
        await self._cache_product(created)

        logger.info(
            "Product created",
            product_id=created.id,
            shop_id=created.shop_id,
            creator_id=context.user_id,
        )
        return created

    async def update(self, product: Product, context: UserContext) -> None:
        """
        Apply the non-null fields of ``product`` to the stored row.

        Raises:
            ValueError: product.id is missing
            ResourceNotFoundException: No such product
            ResourceOutOfScopeException: Product belongs to another shop
        """
        if product.id is None:
            raise ValueError("product.id is required for update")

        po = await self._find_po_by_id(context.shop_id, product.id)

        changes = snapshot_of(product)
        changes.modifier_id = context.user_id
        changes.modifier_name = context.user_name
        merge_not_null(changes, po)
        await self.product_repository.save(po)

        await self._evict(product.id)
        logger.info(
            "Product updated", product_id=product.id, modifier_id=context.user_id
        )

    async def delete(self, product_id: int, context: UserContext) -> None:
        """
        Delete a product row and evict everything cached for it.

        Raises:
            ResourceNotFoundException: No such product
            ResourceOutOfScopeException: Product belongs to another shop
        """
        await self._find_po_by_id(context.shop_id, product_id)
        await self.product_repository.delete_by_id(product_id)

        await self._evict(product_id)
        logger.info("Product deleted", product_id=product_id, user_id=context.user_id)

    # Internals

    async def _hydrate(self, base: Product) -> Product:
        product = clone_product(base)
        product.on_sale_list = await self.onsale_cache.get_active(base.id)
        product.other_products = await self.get_related_products(base.id)
        return product

    async def _find_po_by_id(self, shop_id: int, product_id: int) -> ProductPo:
        po = await self.product_repository.get(product_id)
        if po is None:
            logger.info("Product not found", product_id=product_id, shop_id=shop_id)
            raise ResourceNotFoundException(RESOURCE, product_id)
        self._validate_scope(shop_id, po.shop_id, product_id)
        return po

    def _validate_scope(self, shop_id: int, owner_shop_id: int, product_id: int) -> None:
        if shop_id != owner_shop_id and shop_id != PLATFORM:
            logger.warning(
                "Product outside caller scope",
                product_id=product_id,
                shop_id=shop_id,
                owner_shop_id=owner_shop_id,
            )
            raise ResourceOutOfScopeException(RESOURCE, product_id, shop_id)

    async def _get_cached_product(self, product_id: int) -> Optional[Product]:
        return await self._read_member(
            CacheKey.product_object(product_id), product_from_cache
        )

    async def _cache_product(self, product: Product) -> None:
        """Write the flat snapshot; associations are always stripped."""
        if product is None or product.id is None:
            return
        await self._cache_set(
            CacheKey.product_object(product.id),
            product_to_cache(snapshot_of(product)),
            self.product_ttl,
        )

    async def _evict(self, product_id: int) -> None:
        await self._cache_delete(
            CacheKey.product_object(product_id),
            CacheKey.product_relation(product_id),
        )
        await self.onsale_cache.evict_for_product(product_id)
