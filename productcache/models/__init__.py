"""
productcache Database Models

SQLAlchemy models for the row store backing the product caches.
Every table carries the same audit columns; timestamps are server managed.
"""

from datetime import datetime

from sqlalchemy import (
    BigInteger,
    Integer,
    SmallInteger,
    String,
    DateTime,
    ForeignKey,
    Index,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.sql import func
from typing import Optional

# SQLite only autoincrements INTEGER PRIMARY KEY columns.
Id = BigInteger().with_variant(Integer, "sqlite")


class Base(DeclarativeBase):
    """Canonical Base class for all database models."""

    pass


class AuditMixin:
    """Mixin for creator/modifier stamps and timestamp fields."""

    creator_id: Mapped[Optional[int]] = mapped_column(BigInteger, nullable=True)
    creator_name: Mapped[Optional[str]] = mapped_column(String(128), nullable=True)
    modifier_id: Mapped[Optional[int]] = mapped_column(BigInteger, nullable=True)
    modifier_name: Mapped[Optional[str]] = mapped_column(String(128), nullable=True)
    gmt_create: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    gmt_modified: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
        onupdate=func.now(),
    )


class ProductPo(Base, AuditMixin):
    """Product row."""

    __tablename__ = "products"

    id: Mapped[int] = mapped_column(Id, primary_key=True, autoincrement=True)
    shop_id: Mapped[int] = mapped_column(BigInteger, nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(128), nullable=False, index=True)
    original_price: Mapped[Optional[int]] = mapped_column(BigInteger)
    weight: Mapped[Optional[int]] = mapped_column(BigInteger)
    barcode: Mapped[Optional[str]] = mapped_column(String(128))
    unit: Mapped[Optional[str]] = mapped_column(String(32))
    origin_place: Mapped[Optional[str]] = mapped_column(String(128))
    commission_ratio: Mapped[Optional[int]] = mapped_column(Integer)
    free_threshold: Mapped[Optional[int]] = mapped_column(BigInteger)
    status: Mapped[Optional[int]] = mapped_column(SmallInteger)

    __table_args__ = (Index("ix_products_shop_id_name", "shop_id", "name"),)

    def __repr__(self) -> str:
        return f"<ProductPo(id={self.id}, shop_id={self.shop_id}, name={self.name})>"


class OnSalePo(Base, AuditMixin):
    """Time-bounded sale window of a product."""

    __tablename__ = "onsales"

    id: Mapped[int] = mapped_column(Id, primary_key=True, autoincrement=True)
    product_id: Mapped[int] = mapped_column(
        BigInteger,
        ForeignKey("products.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    price: Mapped[Optional[int]] = mapped_column(BigInteger)
    begin_time: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    end_time: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    quantity: Mapped[Optional[int]] = mapped_column(Integer)
    max_quantity: Mapped[Optional[int]] = mapped_column(Integer)
    sku_sn: Mapped[Optional[str]] = mapped_column(String(128))

    def __repr__(self) -> str:
        return (
            f"<OnSalePo(id={self.id}, product_id={self.product_id}, "
            f"begin={self.begin_time}, end={self.end_time})>"
        )


class GoodsPo(Base, AuditMixin):
    """Relation row linking a product to another related product."""

    __tablename__ = "goods"

    id: Mapped[int] = mapped_column(Id, primary_key=True, autoincrement=True)
    product_id: Mapped[int] = mapped_column(
        BigInteger,
        ForeignKey("products.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    relate_product_id: Mapped[int] = mapped_column(
        BigInteger,
        ForeignKey("products.id", ondelete="CASCADE"),
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<GoodsPo(product_id={self.product_id}, relate_product_id={self.relate_product_id})>"
