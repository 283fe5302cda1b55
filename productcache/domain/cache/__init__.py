"""
Cache Domain

Key and TTL value objects for the product caches.
"""

from .value_objects import CacheKey, TTL, KeyKind

__all__ = ["CacheKey", "TTL", "KeyKind"]
