"""
Product Domain Entities

Flat business shapes of a product and its sale windows. The association
lists on Product are filled per request and are never cached.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional

from productcache.constants import ensure_utc


@dataclass
class OnSale:
    """
    Sale window of a product.

    Active iff ``begin_time <= now < end_time``.
    """

    id: Optional[int] = None
    product_id: Optional[int] = None
    price: Optional[int] = None
    begin_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    quantity: Optional[int] = None
    max_quantity: Optional[int] = None
    sku_sn: Optional[str] = None
    creator_id: Optional[int] = None
    creator_name: Optional[str] = None
    modifier_id: Optional[int] = None
    modifier_name: Optional[str] = None
    gmt_create: Optional[datetime] = None
    gmt_modified: Optional[datetime] = None

    def is_active(self, now: datetime) -> bool:
        """Check whether the window contains ``now``."""
        begin = ensure_utc(self.begin_time)
        end = ensure_utc(self.end_time)
        if begin is None or end is None:
            return False
        return begin <= now < end


@dataclass
class Product:
    """
    Product entity.

    ``on_sale_list`` and ``other_products`` are associations populated by
    full retrieval only.
    """

    id: Optional[int] = None
    shop_id: Optional[int] = None
    name: Optional[str] = None
    original_price: Optional[int] = None
    weight: Optional[int] = None
    barcode: Optional[str] = None
    unit: Optional[str] = None
    origin_place: Optional[str] = None
    commission_ratio: Optional[int] = None
    free_threshold: Optional[int] = None
    status: Optional[int] = None
    creator_id: Optional[int] = None
    creator_name: Optional[str] = None
    modifier_id: Optional[int] = None
    modifier_name: Optional[str] = None
    gmt_create: Optional[datetime] = None
    gmt_modified: Optional[datetime] = None
    on_sale_list: List[OnSale] = field(default_factory=list)
    other_products: List["Product"] = field(default_factory=list)


# Flat (cacheable) attributes, in declaration order.
PRODUCT_FIELDS = (
    "id",
    "shop_id",
    "name",
    "original_price",
    "weight",
    "barcode",
    "unit",
    "origin_place",
    "commission_ratio",
    "free_threshold",
    "status",
    "creator_id",
    "creator_name",
    "modifier_id",
    "modifier_name",
    "gmt_create",
    "gmt_modified",
)

ONSALE_FIELDS = (
    "id",
    "product_id",
    "price",
    "begin_time",
    "end_time",
    "quantity",
    "max_quantity",
    "sku_sn",
    "creator_id",
    "creator_name",
    "modifier_id",
    "modifier_name",
    "gmt_create",
    "gmt_modified",
)
