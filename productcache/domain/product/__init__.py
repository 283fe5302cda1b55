"""
Product Domain

Product and OnSale entities plus the explicit mappings between row,
entity and cached-snapshot shapes.
"""

from .entities import Product, OnSale, PRODUCT_FIELDS, ONSALE_FIELDS
from .mappers import (
    product_from_po,
    product_to_po,
    merge_not_null,
    clone_product,
    snapshot_of,
    product_to_cache,
    product_from_cache,
    onsale_from_po,
    clone_onsale,
    onsale_to_cache,
    onsale_from_cache,
)

__all__ = [
    "Product",
    "OnSale",
    "PRODUCT_FIELDS",
    "ONSALE_FIELDS",
    "product_from_po",
    "product_to_po",
    "merge_not_null",
    "clone_product",
    "snapshot_of",
    "product_to_cache",
    "product_from_cache",
    "onsale_from_po",
    "clone_onsale",
    "onsale_to_cache",
    "onsale_from_cache",
]
