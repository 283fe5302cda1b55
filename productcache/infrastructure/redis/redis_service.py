"""
Redis Service - Key-Value Store Client

Thin async client over redis.asyncio used by the product caches.
Values are stored as JSON documents with a per-key expiry; every read
decodes into fresh objects, so callers never share state with the cache.
"""

import json
import logging
from typing import Any, Optional, Union

from redis.asyncio import Redis
from redis.exceptions import (
    ConnectionError as RedisConnectionError,
    TimeoutError as RedisTimeoutError,
    RedisError,
)

from opentelemetry import trace
from opentelemetry.trace import Status, StatusCode

from ...core.config import Settings, get_settings
from ...domain.cache.value_objects import CacheKey, TTL
from .exceptions import (
    RedisException,
    RedisConnectionException,
    RedisOperationTimeoutException,
    RedisSerializationException,
    RedisConfigurationException,
)

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)

Key = Union[CacheKey, str]


class RedisService:
    """
    Key-value store service.

    Provides get, set-with-expiry and delete. Redis client errors are
    translated into RedisException subclasses with the original error chained.
    """

    def __init__(
        self, client: Optional[Redis] = None, settings: Optional[Settings] = None
    ):
        self.settings = settings or get_settings()
        self._client = client

    @property
    def client(self) -> Redis:
        """Redis client, created from settings on first use."""
        if self._client is None:
            try:
                self._client = Redis.from_url(
                    self.settings.REDIS_URL,
                    encoding="utf-8",
                    decode_responses=True,
                    max_connections=self.settings.REDIS_MAX_CONNECTIONS,
                    socket_connect_timeout=self.settings.REDIS_CONNECTION_TIMEOUT,
                    socket_timeout=self.settings.REDIS_OPERATION_TIMEOUT,
                )
            except ValueError as e:
                raise RedisConfigurationException(
                    message=f"Invalid Redis URL: {e}",
                    config_key="REDIS_URL",
                    config_value=self.settings.REDIS_URL,
                    original_error=e,
                )
            logger.info("Redis client created", extra={"url": self.settings.REDIS_URL})
        return self._client

    async def get(self, key: Key) -> Optional[Any]:
        """
        Read and decode a value.

        Returns:
            Decoded JSON value, or None when the key is absent
        """
        key = str(key)
        with tracer.start_as_current_span("redis.get") as span:
            span.set_attribute("cache.key", key)
            raw = await self._execute("get", key, self.client.get(key))
            span.set_attribute("cache.hit", raw is not None)

            if raw is None:
                return None

            try:
                return json.loads(raw)
            except (TypeError, ValueError) as e:
                span.set_status(Status(StatusCode.ERROR, str(e)))
                raise RedisSerializationException("decode", key, original_error=e)

    async def set(self, key: Key, value: Any, ttl: Union[TTL, int]) -> None:
        """
        Encode and store a value with an expiry.

        Args:
            key: Cache key
            value: JSON-serializable value
            ttl: Expiry in seconds
        """
        key = str(key)
        seconds = int(ttl)
        if seconds <= 0:
            raise ValueError(f"TTL must be positive, got {seconds}")

        try:
            payload = json.dumps(value, separators=(",", ":"))
        except (TypeError, ValueError) as e:
            raise RedisSerializationException("encode", key, original_error=e)

        with tracer.start_as_current_span("redis.set") as span:
            span.set_attribute("cache.key", key)
            span.set_attribute("cache.ttl_seconds", seconds)
            await self._execute("set", key, self.client.set(key, payload, ex=seconds))

        logger.debug(
            "Cached value", extra={"key": key, "ttl_seconds": seconds, "size": len(payload)}
        )

    async def delete(self, *keys: Key) -> int:
        """
        Delete keys.

        Returns:
            Number of keys that existed
        """
        if not keys:
            return 0

        names = [str(key) for key in keys]
        with tracer.start_as_current_span("redis.delete") as span:
            span.set_attribute("cache.keys", names)
            removed = await self._execute(
                "delete", ",".join(names), self.client.delete(*names)
            )

        logger.debug("Deleted cache keys", extra={"keys": names, "removed": removed})
        return removed

    async def ping(self) -> bool:
        """Check connectivity."""
        return bool(await self._execute("ping", None, self.client.ping()))

    async def close(self) -> None:
        """Close the underlying connection pool."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None
            logger.info("Redis client closed")

    async def _execute(self, operation: str, key: Optional[str], awaitable) -> Any:
        """Await a client call, translating client errors."""
        try:
            return await awaitable
        except RedisTimeoutError as e:
            logger.warning(
                f"Redis {operation} timed out", extra={"key": key, "error": str(e)}
            )
            raise RedisOperationTimeoutException(
                operation,
                self.settings.REDIS_OPERATION_TIMEOUT,
                key=key,
                original_error=e,
            )
        except RedisConnectionError as e:
            logger.warning(
                f"Redis {operation} connection failed",
                extra={"key": key, "error": str(e)},
            )
            raise RedisConnectionException(
                message=f"Redis {operation} failed: {e}",
                url=self.settings.REDIS_URL,
                original_error=e,
            )
        except RedisError as e:
            logger.warning(
                f"Redis {operation} failed", extra={"key": key, "error": str(e)}
            )
            raise RedisException(
                f"Redis {operation} failed: {e}",
                details={"operation": operation, "key": key},
            ) from e
