"""
Cache Value Objects

Immutable value objects for cache keys and expirations.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional

from productcache.constants import ensure_utc


class KeyKind(str, Enum):
    """Cache key templates."""

    PRODUCT_OBJECT = "entity:obj:{}"
    PRODUCT_RELATION = "entity:rel:{}"
    ONSALE_OBJECT = "child:obj:{}"
    ONSALE_RELATION = "child:rel:{}"


@dataclass(frozen=True)
class CacheKey:
    """
    Immutable cache key value object.

    Enforces key naming conventions and provides validation.
    """

    value: str

    def __post_init__(self) -> None:
        """Validate cache key format."""
        if not self.value:
            raise ValueError("Cache key cannot be empty")

        if len(self.value) > 250:
            raise ValueError("Cache key too long (max 250 characters)")

        if any(char.isspace() for char in self.value):
            raise ValueError("Cache key cannot contain whitespace")

    @classmethod
    def _build(cls, kind: KeyKind, id: int) -> "CacheKey":
        if id is None or isinstance(id, bool) or not isinstance(id, int):
            raise ValueError(f"Invalid id for {kind.name} key: {id!r}")
        return cls(kind.value.format(id))

    @classmethod
    def product_object(cls, product_id: int) -> "CacheKey":
        """Create product snapshot cache key."""
        return cls._build(KeyKind.PRODUCT_OBJECT, product_id)

    @classmethod
    def product_relation(cls, product_id: int) -> "CacheKey":
        """Create related-product index cache key."""
        return cls._build(KeyKind.PRODUCT_RELATION, product_id)

    @classmethod
    def onsale_object(cls, onsale_id: int) -> "CacheKey":
        """Create onsale record cache key."""
        return cls._build(KeyKind.ONSALE_OBJECT, onsale_id)

    @classmethod
    def onsale_relation(cls, product_id: int) -> "CacheKey":
        """Create product-to-onsale index cache key."""
        return cls._build(KeyKind.ONSALE_RELATION, product_id)

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class TTL:
    """
    Time To Live value object for cache expiration.

    Provides type-safe TTL configuration with validation.
    """

    seconds: int

    def __post_init__(self) -> None:
        """Validate TTL value."""
        if self.seconds <= 0:
            raise ValueError("TTL must be positive")
        if self.seconds > 86400 * 365:  # Max 1 year
            raise ValueError("TTL too large (max 1 year)")

    @classmethod
    def minutes(cls, minutes: int) -> "TTL":
        """Create TTL from minutes."""
        return cls(minutes * 60)

    @classmethod
    def hours(cls, hours: int) -> "TTL":
        """Create TTL from hours."""
        return cls(hours * 3600)

    @classmethod
    def until(
        cls,
        end_time: Optional[datetime],
        now: datetime,
        default: "TTL",
        floor: "TTL",
    ) -> "TTL":
        """
        TTL bounded by a business end time.

        Args:
            end_time: Instant after which the cached value is no longer valid
            now: Current instant
            default: Upper bound, also used when ``end_time`` is unknown
            floor: Used when ``end_time`` has already passed

        Returns:
            ``floor`` if expired, otherwise ``min(default, remaining)``
        """
        if end_time is None:
            return default

        # Whole seconds, rounded down so the entry never outlives the end time.
        remaining = int((ensure_utc(end_time) - ensure_utc(now)).total_seconds())
        if remaining <= 0:
            return floor

        return cls(min(default.seconds, remaining))

    def __int__(self) -> int:
        return self.seconds
