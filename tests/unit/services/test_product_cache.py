"""
Unit tests for the Product cache service.

Exercises read-through retrieval, scope checks, relation caching and the
evict-on-write behaviour of mutations against SQLite and an in-memory
Redis client.
"""

import json
import pytest
from datetime import timedelta

from productcache.constants import PLATFORM
from productcache.domain.context import UserContext
from productcache.domain.exceptions import (
    ResourceNotFoundException,
    ResourceOutOfScopeException,
    ReturnNo,
)
from productcache.domain.product import Product
from productcache.services.cache import OnSaleCache, ProductCache, build_product_cache

from tests.conftest import NOW


@pytest.fixture
def shop_user():
    return UserContext(user_id=7, user_name="shopkeeper", shop_id=1)


@pytest.fixture
def platform_user():
    return UserContext(user_id=1, user_name="admin", shop_id=PLATFORM)


class TestGetSnapshot:
    @pytest.mark.asyncio
    async def test_miss_loads_and_caches(self, product_cache, rows, fake_redis, spy):
        po = await rows.product(name="pear")
        loads = spy(product_cache.product_repository, "get")

        first = await product_cache.get_snapshot(1, po.id)
        second = await product_cache.get_snapshot(1, po.id)

        assert first.name == "pear"
        assert second == first
        assert len(loads) == 1
        assert fake_redis.ttls[f"entity:obj:{po.id}"] == 600

    @pytest.mark.asyncio
    async def test_not_found(self, product_cache):
        with pytest.raises(ResourceNotFoundException) as exc_info:
            await product_cache.get_snapshot(1, 999)

        assert exc_info.value.return_no == ReturnNo.RESOURCE_ID_NOTEXIST

    @pytest.mark.asyncio
    async def test_other_shop_rejected_on_load(self, product_cache, rows):
        po = await rows.product(shop_id=2)

        with pytest.raises(ResourceOutOfScopeException):
            await product_cache.get_snapshot(1, po.id)

    @pytest.mark.asyncio
    async def test_other_shop_rejected_on_cache_hit(self, product_cache, rows, spy):
        po = await rows.product(shop_id=2)
        await product_cache.get_snapshot(2, po.id)
        loads = spy(product_cache.product_repository, "get")

        with pytest.raises(ResourceOutOfScopeException) as exc_info:
            await product_cache.get_snapshot(1, po.id)

        assert exc_info.value.return_no == ReturnNo.RESOURCE_ID_OUTSCOPE
        assert loads == []

    @pytest.mark.asyncio
    async def test_platform_sees_every_shop(self, product_cache, rows):
        po = await rows.product(shop_id=2)

        assert (await product_cache.get_snapshot(PLATFORM, po.id)).shop_id == 2
        assert (await product_cache.get_snapshot(PLATFORM, po.id)).shop_id == 2

    @pytest.mark.asyncio
    async def test_store_outage_reads_row_store(
        self, product_cache, rows, fake_redis, redis_down
    ):
        po = await rows.product()
        fake_redis.fail_with = redis_down

        product = await product_cache.get_snapshot(1, po.id)

        assert product.id == po.id


class TestGetFull:
    @pytest.mark.asyncio
    async def test_assembles_onsales_and_related(self, product_cache, rows):
        po = await rows.product()
        other = await rows.product(name="banana")
        onsale = await rows.onsale(po.id)
        await rows.relate(po.id, other.id)

        product = await product_cache.get_full(1, po.id)

        assert [o.id for o in product.on_sale_list] == [onsale.id]
        assert [p.id for p in product.other_products] == [other.id]

    @pytest.mark.asyncio
    async def test_cached_snapshot_has_no_associations(self, product_cache, rows, fake_redis):
        po = await rows.product()
        other = await rows.product(name="banana")
        await rows.onsale(po.id)
        await rows.relate(po.id, other.id)

        await product_cache.get_full(1, po.id)

        document = json.loads(fake_redis.data[f"entity:obj:{po.id}"])
        assert "on_sale_list" not in document
        assert "other_products" not in document
        assert document["name"] == "apple"

    @pytest.mark.asyncio
    async def test_result_is_private_copy(self, product_cache, rows):
        po = await rows.product()
        await rows.onsale(po.id)

        product = await product_cache.get_full(1, po.id)
        product.name = "changed"
        product.on_sale_list[0].price = 1

        again = await product_cache.get_full(1, po.id)
        assert again.name == "apple"
        assert again.on_sale_list[0].price == 900

    @pytest.mark.asyncio
    async def test_scope_checked_before_hydration(self, product_cache, rows, spy):
        po = await rows.product(shop_id=2)
        onsale_loads = spy(product_cache.onsale_cache, "get_active")

        with pytest.raises(ResourceOutOfScopeException):
            await product_cache.get_full(1, po.id)

        assert onsale_loads == []


class TestGetRelatedProducts:
    @pytest.mark.asyncio
    async def test_fills_index_in_relation_order(self, product_cache, rows, fake_redis):
        po = await rows.product()
        second = await rows.product(name="b")
        first = await rows.product(name="a")
        await rows.relate(po.id, first.id)
        await rows.relate(po.id, second.id)

        related = await product_cache.get_related_products(po.id)

        assert [p.id for p in related] == [first.id, second.id]
        assert json.loads(fake_redis.data[f"entity:rel:{po.id}"]) == [first.id, second.id]
        assert fake_redis.ttls[f"entity:rel:{po.id}"] == 300

    @pytest.mark.asyncio
    async def test_empty_relation_is_cached(self, product_cache, rows, fake_redis, spy):
        po = await rows.product()
        queries = spy(product_cache.goods_repository, "find_by_product_id")

        assert await product_cache.get_related_products(po.id) == []
        assert await product_cache.get_related_products(po.id) == []

        assert len(queries) == 1
        assert fake_redis.data[f"entity:rel:{po.id}"] == "[]"

    @pytest.mark.asyncio
    async def test_missing_member_forces_rebuild(self, product_cache, rows, fake_redis, spy):
        po = await rows.product()
        related = [await rows.product(name=name) for name in ("a", "b", "c")]
        for other in related:
            await rows.relate(po.id, other.id)
        await product_cache.get_related_products(po.id)

        del fake_redis.data[f"entity:obj:{related[2].id}"]
        queries = spy(product_cache.goods_repository, "find_by_product_id")

        result = await product_cache.get_related_products(po.id)

        assert len(queries) == 1
        assert [p.id for p in result] == [p.id for p in related]
        assert f"entity:obj:{related[2].id}" in fake_redis.data

    @pytest.mark.asyncio
    async def test_hit_skips_row_store(self, product_cache, rows, spy):
        po = await rows.product()
        other = await rows.product(name="b")
        await rows.relate(po.id, other.id)
        await product_cache.get_related_products(po.id)
        queries = spy(product_cache.goods_repository, "find_by_product_id")

        result = await product_cache.get_related_products(po.id)

        assert [p.id for p in result] == [other.id]
        assert queries == []


class TestFindByName:
    @pytest.mark.asyncio
    async def test_shop_caller_sees_own_shop(self, product_cache, rows):
        own = await rows.product(shop_id=1, name="milk")
        await rows.product(shop_id=2, name="milk")

        products = await product_cache.find_simple_by_name(1, "milk")

        assert [p.id for p in products] == [own.id]

    @pytest.mark.asyncio
    async def test_platform_caller_sees_all_shops(self, product_cache, rows):
        first = await rows.product(shop_id=1, name="milk")
        second = await rows.product(shop_id=2, name="milk")

        products = await product_cache.find_simple_by_name(PLATFORM, "milk")

        assert [p.id for p in products] == [first.id, second.id]

    @pytest.mark.asyncio
    async def test_results_are_cached(self, product_cache, rows, fake_redis):
        po = await rows.product(name="milk")

        await product_cache.find_simple_by_name(1, "milk")

        assert f"entity:obj:{po.id}" in fake_redis.data

    @pytest.mark.asyncio
    async def test_full_results_are_hydrated(self, product_cache, rows):
        po = await rows.product(name="milk")
        onsale = await rows.onsale(po.id)

        products = await product_cache.find_by_name(1, "milk")

        assert [o.id for o in products[0].on_sale_list] == [onsale.id]
        assert products[0].other_products == []

    @pytest.mark.asyncio
    async def test_no_match(self, product_cache):
        assert await product_cache.find_by_name(1, "nothing") == []


class TestCreate:
    @pytest.mark.asyncio
    async def test_stamps_creator_and_caches(self, product_cache, shop_user, fake_redis):
        created = await product_cache.create(
            Product(name="tea", original_price=500, unit="box"), shop_user
        )

        assert created.id is not None
        assert created.shop_id == 1
        assert created.creator_id == 7
        assert created.creator_name == "shopkeeper"
        document = json.loads(fake_redis.data[f"entity:obj:{created.id}"])
        assert document["name"] == "tea"

    @pytest.mark.asyncio
    async def test_associations_are_not_persisted(self, product_cache, shop_user, fake_redis):
        payload = Product(name="tea", on_sale_list=[], other_products=[Product(id=99)])

        created = await product_cache.create(payload, shop_user)

        assert created.other_products == []
        assert "other_products" not in json.loads(fake_redis.data[f"entity:obj:{created.id}"])

    @pytest.mark.asyncio
    async def test_write_failure_does_not_fail_create(
        self, product_cache, shop_user, fake_redis, redis_down, product_repository
    ):
        fake_redis.fail_with = redis_down

        created = await product_cache.create(Product(name="tea"), shop_user)

        assert await product_repository.get(created.id) is not None


class TestUpdate:
    @pytest.mark.asyncio
    async def test_merges_non_null_fields(self, product_cache, rows, shop_user, product_repository):
        po = await rows.product(name="apple", original_price=1000, unit="kg")

        result = await product_cache.update(Product(id=po.id, name="green apple"), shop_user)

        stored = await product_repository.get(po.id)
        assert result is None
        assert stored.name == "green apple"
        assert stored.original_price == 1000
        assert stored.unit == "kg"
        assert stored.modifier_id == 7
        assert stored.modifier_name == "shopkeeper"
        assert stored.creator_name == "admin"

    @pytest.mark.asyncio
    async def test_evicts_product_and_cascades(self, product_cache, rows, shop_user, fake_redis):
        po = await rows.product()
        other = await rows.product(name="b")
        onsale = await rows.onsale(po.id)
        await rows.relate(po.id, other.id)
        await product_cache.get_full(1, po.id)

        await product_cache.update(Product(id=po.id, name="renamed"), shop_user)

        assert f"entity:obj:{po.id}" not in fake_redis.data
        assert f"entity:rel:{po.id}" not in fake_redis.data
        assert f"child:rel:{po.id}" not in fake_redis.data
        assert f"child:obj:{onsale.id}" in fake_redis.data
        assert f"entity:obj:{other.id}" in fake_redis.data

    @pytest.mark.asyncio
    async def test_next_read_is_fresh(self, product_cache, rows, shop_user):
        po = await rows.product()
        await product_cache.get_full(1, po.id)

        await product_cache.update(Product(id=po.id, name="renamed"), shop_user)

        assert (await product_cache.get_full(1, po.id)).name == "renamed"

    @pytest.mark.asyncio
    async def test_requires_id(self, product_cache, shop_user):
        with pytest.raises(ValueError):
            await product_cache.update(Product(name="x"), shop_user)

    @pytest.mark.asyncio
    async def test_missing_product(self, product_cache, shop_user):
        with pytest.raises(ResourceNotFoundException):
            await product_cache.update(Product(id=404, name="x"), shop_user)

    @pytest.mark.asyncio
    async def test_other_shop_rejected(self, product_cache, rows, shop_user, product_repository):
        po = await rows.product(shop_id=2)

        with pytest.raises(ResourceOutOfScopeException):
            await product_cache.update(Product(id=po.id, name="x"), shop_user)

        assert (await product_repository.get(po.id)).name == "apple"

    @pytest.mark.asyncio
    async def test_platform_may_update_any_shop(self, product_cache, rows, platform_user, product_repository):
        po = await rows.product(shop_id=2)

        await product_cache.update(Product(id=po.id, name="x"), platform_user)

        stored = await product_repository.get(po.id)
        assert stored.name == "x"
        assert stored.shop_id == 2

    @pytest.mark.asyncio
    async def test_eviction_failure_does_not_fail_update(
        self, product_cache, rows, shop_user, fake_redis, redis_down, product_repository
    ):
        po = await rows.product()
        fake_redis.fail_with = redis_down

        await product_cache.update(Product(id=po.id, name="renamed"), shop_user)

        assert (await product_repository.get(po.id)).name == "renamed"


class TestDelete:
    @pytest.mark.asyncio
    async def test_removes_row_and_evicts(
        self, product_cache, rows, shop_user, fake_redis, product_repository
    ):
        po = await rows.product()
        await rows.onsale(po.id, end=NOW + timedelta(hours=3))
        await product_cache.get_full(1, po.id)
        product_id = po.id

        await product_cache.delete(product_id, shop_user)

        assert await product_repository.get(product_id) is None
        assert f"entity:obj:{product_id}" not in fake_redis.data
        assert f"entity:rel:{product_id}" not in fake_redis.data
        assert f"child:rel:{product_id}" not in fake_redis.data
        with pytest.raises(ResourceNotFoundException):
            await product_cache.get_snapshot(1, product_id)

    @pytest.mark.asyncio
    async def test_missing_product(self, product_cache, shop_user):
        with pytest.raises(ResourceNotFoundException):
            await product_cache.delete(404, shop_user)

    @pytest.mark.asyncio
    async def test_other_shop_rejected(self, product_cache, rows, shop_user, product_repository):
        po = await rows.product(shop_id=2)

        with pytest.raises(ResourceOutOfScopeException):
            await product_cache.delete(po.id, shop_user)

        assert await product_repository.get(po.id) is not None


class TestBuildProductCache:
    def test_wires_repositories_and_caches(self, session, redis_service, settings):
        cache = build_product_cache(session, redis_service, settings=settings)

        assert isinstance(cache, ProductCache)
        assert isinstance(cache.onsale_cache, OnSaleCache)
        assert cache.product_repository.session is session
        assert cache.onsale_cache.repository.session is session
        assert cache.redis is redis_service
        assert cache.onsale_cache.redis is redis_service
