"""
Main pytest configuration for all productcache tests.

Fixtures for an in-memory row store (SQLite through aiosqlite), an
in-memory Redis client, and the cache services wired over both.
"""

import os
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

import pytest
import pytest_asyncio
from redis.exceptions import ConnectionError as RedisConnectionError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool
import structlog

# Set test environment variables before importing package modules
os.environ["ENVIRONMENT"] = "test"
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["LOG_LEVEL"] = "DEBUG"
os.environ["LOG_JSON"] = "false"

from productcache.core.config import Settings
from productcache.infrastructure.redis.redis_service import RedisService
from productcache.models import Base, GoodsPo, OnSalePo, ProductPo
from productcache.repositories import GoodsRepository, OnSaleRepository, ProductRepository
from productcache.services.cache import OnSaleCache, ProductCache

structlog.configure(
    processors=[
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.dev.ConsoleRenderer(),
    ],
    context_class=dict,
    cache_logger_on_first_use=True,
)

NOW = datetime(2026, 10, 19, 12, 0, 0, tzinfo=timezone.utc)


class InMemoryRedis:
    """
    Minimal stand-in for ``redis.asyncio.Redis`` with decode_responses=True.

    Stores strings and remembers the expiry requested for each key. Setting
    ``fail_with`` makes every command raise that error.
    """

    def __init__(self):
        self.data: Dict[str, str] = {}
        self.ttls: Dict[str, int] = {}
        self.fail_with: Optional[Exception] = None
        self.commands: list = []

    def _check(self, command: str, *args: Any) -> None:
        self.commands.append((command, *args))
        if self.fail_with is not None:
            raise self.fail_with

    async def get(self, key: str) -> Optional[str]:
        self._check("get", key)
        return self.data.get(key)

    async def set(self, key: str, value: str, ex: Optional[int] = None) -> bool:
        self._check("set", key)
        self.data[key] = value
        if ex is not None:
            self.ttls[key] = ex
        return True

    async def delete(self, *keys: str) -> int:
        self._check("delete", *keys)
        removed = 0
        for key in keys:
            if self.data.pop(key, None) is not None:
                removed += 1
            self.ttls.pop(key, None)
        return removed

    async def ping(self) -> bool:
        self._check("ping")
        return True

    async def aclose(self) -> None:
        pass


@pytest.fixture
def settings():
    """Settings with the default cache lifetimes."""
    return Settings()


@pytest.fixture
def fake_redis():
    return InMemoryRedis()


@pytest.fixture
def redis_down():
    """Error raised by the fake client to simulate an unreachable server."""
    return RedisConnectionError("Connection refused")


@pytest.fixture
def redis_service(fake_redis, settings):
    return RedisService(client=fake_redis, settings=settings)


@pytest.fixture
def clock():
    return lambda: NOW


@pytest_asyncio.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def session(engine):
    factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with factory() as session:
        yield session


@pytest.fixture
def product_repository(session):
    return ProductRepository(session)


@pytest.fixture
def onsale_repository(session):
    return OnSaleRepository(session)


@pytest.fixture
def goods_repository(session):
    return GoodsRepository(session)


@pytest.fixture
def onsale_cache(redis_service, onsale_repository, settings, clock):
    return OnSaleCache(redis_service, onsale_repository, settings=settings, clock=clock)


@pytest.fixture
def product_cache(
    redis_service, product_repository, goods_repository, onsale_cache, settings
):
    return ProductCache(
        redis_service,
        product_repository,
        goods_repository,
        onsale_cache,
        settings=settings,
    )


class RowFactory:
    """Inserts rows directly through the session."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def product(self, shop_id: int = 1, name: str = "apple", **fields) -> ProductPo:
        po = ProductPo(
            shop_id=shop_id,
            name=name,
            original_price=fields.pop("original_price", 1000),
            barcode=fields.pop("barcode", "6901234567890"),
            unit=fields.pop("unit", "kg"),
            creator_id=fields.pop("creator_id", 1),
            creator_name=fields.pop("creator_name", "admin"),
            **fields,
        )
        self.session.add(po)
        await self.session.flush()
        await self.session.refresh(po)
        return po

    async def onsale(
        self,
        product_id: int,
        begin: datetime = NOW - timedelta(hours=1),
        end: datetime = NOW + timedelta(hours=1),
        **fields,
    ) -> OnSalePo:
        po = OnSalePo(
            product_id=product_id,
            begin_time=begin,
            end_time=end,
            price=fields.pop("price", 900),
            quantity=fields.pop("quantity", 10),
            max_quantity=fields.pop("max_quantity", 2),
            **fields,
        )
        self.session.add(po)
        await self.session.flush()
        await self.session.refresh(po)
        return po

    async def relate(self, product_id: int, relate_product_id: int) -> GoodsPo:
        po = GoodsPo(product_id=product_id, relate_product_id=relate_product_id)
        self.session.add(po)
        await self.session.flush()
        return po


@pytest.fixture
def rows(session):
    return RowFactory(session)


@pytest.fixture
def spy(monkeypatch):
    """Record calls to an async method while delegating to it."""

    def install(obj, name):
        calls = []
        original = getattr(obj, name)

        async def wrapper(*args, **kwargs):
            calls.append((args, kwargs))
            return await original(*args, **kwargs)

        monkeypatch.setattr(obj, name, wrapper)
        return calls

    return install
