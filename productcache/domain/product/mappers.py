"""
Product Mappings

Explicit field mappings between the three shapes a product or onsale takes:
the ORM row, the domain entity and the JSON document stored in the cache.
Every function returns a new object and never shares mutable state with
its input.
"""

from datetime import datetime
from typing import Any, Dict, Optional

from productcache.constants import ensure_utc
from productcache.models import ProductPo, OnSalePo
from .entities import Product, OnSale, PRODUCT_FIELDS, ONSALE_FIELDS

# Fields an update payload may overwrite on the stored row. Identity,
# creator stamps and server-managed timestamps are never merged.
MERGEABLE_PRODUCT_FIELDS = (
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
    "modifier_id",
    "modifier_name",
)

_DATETIME_FIELDS = frozenset({"begin_time", "end_time", "gmt_create", "gmt_modified"})


# Row <-> entity


def product_from_po(po: ProductPo) -> Product:
    """Build a flat product from its row; associations start empty."""
    return Product(
        id=po.id,
        shop_id=po.shop_id,
        name=po.name,
        original_price=po.original_price,
        weight=po.weight,
        barcode=po.barcode,
        unit=po.unit,
        origin_place=po.origin_place,
        commission_ratio=po.commission_ratio,
        free_threshold=po.free_threshold,
        status=po.status,
        creator_id=po.creator_id,
        creator_name=po.creator_name,
        modifier_id=po.modifier_id,
        modifier_name=po.modifier_name,
        gmt_create=ensure_utc(po.gmt_create),
        gmt_modified=ensure_utc(po.gmt_modified),
    )


def product_to_po(product: Product) -> ProductPo:
    """Build a new row for insertion; id and timestamps come from the store."""
    return ProductPo(
        shop_id=product.shop_id,
        name=product.name,
        original_price=product.original_price,
        weight=product.weight,
        barcode=product.barcode,
        unit=product.unit,
        origin_place=product.origin_place,
        commission_ratio=product.commission_ratio,
        free_threshold=product.free_threshold,
        status=product.status,
        creator_id=product.creator_id,
        creator_name=product.creator_name,
        modifier_id=product.modifier_id,
        modifier_name=product.modifier_name,
    )


def merge_not_null(product: Product, po: ProductPo) -> ProductPo:
    """Copy the non-null mergeable fields of ``product`` onto ``po`` in place."""
    for name in MERGEABLE_PRODUCT_FIELDS:
        value = getattr(product, name)
        if value is not None:
            setattr(po, name, value)
    return po


def onsale_from_po(po: OnSalePo) -> OnSale:
    return OnSale(
        id=po.id,
        product_id=po.product_id,
        price=po.price,
        begin_time=ensure_utc(po.begin_time),
        end_time=ensure_utc(po.end_time),
        quantity=po.quantity,
        max_quantity=po.max_quantity,
        sku_sn=po.sku_sn,
        creator_id=po.creator_id,
        creator_name=po.creator_name,
        modifier_id=po.modifier_id,
        modifier_name=po.modifier_name,
        gmt_create=ensure_utc(po.gmt_create),
        gmt_modified=ensure_utc(po.gmt_modified),
    )


# Entity -> entity


def clone_onsale(onsale: OnSale) -> OnSale:
    return OnSale(**{name: getattr(onsale, name) for name in ONSALE_FIELDS})


def clone_product(product: Product) -> Product:
    """Field-by-field deep copy, associations included."""
    copy = Product(**{name: getattr(product, name) for name in PRODUCT_FIELDS})
    copy.on_sale_list = [clone_onsale(onsale) for onsale in product.on_sale_list]
    copy.other_products = [clone_product(other) for other in product.other_products]
    return copy


def snapshot_of(product: Product) -> Product:
    """Copy of the flat fields only; both associations are empty."""
    return Product(**{name: getattr(product, name) for name in PRODUCT_FIELDS})


# Entity <-> cache document


def _encode(name: str, value: Any) -> Any:
    if name in _DATETIME_FIELDS and value is not None:
        return ensure_utc(value).isoformat()
    return value


def _decode(name: str, value: Any) -> Any:
    if name in _DATETIME_FIELDS and value is not None:
        return ensure_utc(datetime.fromisoformat(value))
    return value


def product_to_cache(product: Product) -> Dict[str, Any]:
    """JSON-ready snapshot document; associations are never written."""
    return {name: _encode(name, getattr(product, name)) for name in PRODUCT_FIELDS}


def product_from_cache(document: Optional[Dict[str, Any]]) -> Optional[Product]:
    if document is None:
        return None
    return Product(
        **{name: _decode(name, document.get(name)) for name in PRODUCT_FIELDS}
    )


def onsale_to_cache(onsale: OnSale) -> Dict[str, Any]:
    return {name: _encode(name, getattr(onsale, name)) for name in ONSALE_FIELDS}


def onsale_from_cache(document: Optional[Dict[str, Any]]) -> Optional[OnSale]:
    if document is None:
        return None
    return OnSale(**{name: _decode(name, document.get(name)) for name in ONSALE_FIELDS})
