"""
Redis Infrastructure Module

Key-value store used by the product caches.

This module provides:
- RedisService: JSON get/set-with-expiry/delete over redis.asyncio
- Comprehensive exception handling
"""

from .redis_service import RedisService
from .exceptions import (
    RedisException,
    RedisConnectionException,
    RedisOperationTimeoutException,
    RedisSerializationException,
    RedisConfigurationException,
)

__all__ = [
    # Main service
    "RedisService",
    # Exceptions
    "RedisException",
    "RedisConnectionException",
    "RedisOperationTimeoutException",
    "RedisSerializationException",
    "RedisConfigurationException",
]
