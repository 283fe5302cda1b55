"""
Redis Infrastructure Exceptions

Domain-specific exceptions for Redis operations.
Every failure of the key-value store surfaces as a RedisException subclass.
"""

from typing import Optional, Any, Dict


class RedisException(Exception):
    """Base exception for Redis-related errors.

    All Redis operations should raise this or its subclasses.
    Never swallow Redis exceptions - always preserve context.
    """

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.error_code = error_code or "REDIS_ERROR"
        self.details = details or {}
        super().__init__(self.message)


class RedisConnectionException(RedisException):
    """Raised when Redis connection fails or is lost."""

    def __init__(
        self,
        message: str = "Redis connection failed",
        url: Optional[str] = None,
        original_error: Optional[Exception] = None,
    ):
        details = {}
        if url:
            details["url"] = url
        if original_error:
            details["original_error"] = str(original_error)
            details["original_error_type"] = type(original_error).__name__

        super().__init__(
            message=message, error_code="REDIS_CONNECTION_ERROR", details=details
        )
        # Preserve exception context for debugging (exception chaining)
        if original_error:
            self.__cause__ = original_error


class RedisOperationTimeoutException(RedisException):
    """Raised when Redis operation times out."""

    def __init__(
        self,
        operation: str,
        timeout_seconds: float,
        key: Optional[str] = None,
        original_error: Optional[Exception] = None,
    ):
        details = {"operation": operation, "timeout_seconds": timeout_seconds}
        if key:
            details["key"] = key

        super().__init__(
            message=f"Redis operation '{operation}' timed out after {timeout_seconds}s",
            error_code="REDIS_TIMEOUT_ERROR",
            details=details,
        )
        if original_error:
            self.__cause__ = original_error


class RedisSerializationException(RedisException):
    """Raised when a cached value cannot be encoded or decoded."""

    def __init__(
        self,
        operation: str,
        key: str,
        original_error: Optional[Exception] = None,
    ):
        details = {"operation": operation, "key": key}
        if original_error:
            details["original_error"] = str(original_error)

        super().__init__(
            message=f"Redis value for '{key}' could not be {operation}d",
            error_code="REDIS_SERIALIZATION_ERROR",
            details=details,
        )
        if original_error:
            self.__cause__ = original_error


class RedisConfigurationException(RedisException):
    """Raised when Redis configuration is invalid."""

    def __init__(
        self,
        message: str,
        config_key: Optional[str] = None,
        config_value: Optional[Any] = None,
        original_error: Optional[Exception] = None,
    ):
        details = {}
        if config_key:
            details["config_key"] = config_key
        if config_value is not None:
            details["config_value"] = str(config_value)
        if original_error:
            details["original_error"] = str(original_error)
            details["original_error_type"] = type(original_error).__name__

        super().__init__(
            message=message, error_code="REDIS_CONFIGURATION_ERROR", details=details
        )
        if original_error:
            self.__cause__ = original_error
