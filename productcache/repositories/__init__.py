"""
Repository Pattern Implementation

Row-store access for products, onsale windows and product relations.
All reads used by the caches go through these repositories.
"""

from .base import BaseRepository
from .product import ProductRepository
from .onsale import OnSaleRepository
from .goods import GoodsRepository

__all__ = [
    "BaseRepository",
    "ProductRepository",
    "OnSaleRepository",
    "GoodsRepository",
]
