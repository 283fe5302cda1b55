"""
productcache Configuration

Configuration management with environment variable support.
Implements secure defaults and validation for all settings.
"""

from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field, field_validator, model_validator
from functools import lru_cache
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()


class Settings(BaseSettings):
    """Application settings with validation and secure defaults."""

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", case_sensitive=True, extra="ignore"
    )

    # Environment settings
    ENVIRONMENT: str = Field(
        default="development", description="Application environment"
    )

    # Database configuration
    DATABASE_URL: str = Field(
        ...,
        description="Database connection URL with an async driver",
    )
    DATABASE_ECHO: bool = Field(
        default=False, description="Log every SQL statement issued by the engine"
    )

    # Redis configuration
    REDIS_URL: str = Field(
        default="redis://localhost:6379/0", description="Redis connection URL"
    )
    REDIS_MAX_CONNECTIONS: int = Field(
        default=10, ge=1, le=50, description="Redis connection pool size"
    )
    REDIS_CONNECTION_TIMEOUT: float = Field(
        default=5.0, gt=0, le=60, description="Redis connect timeout in seconds"
    )
    REDIS_OPERATION_TIMEOUT: float = Field(
        default=5.0, gt=0, le=60, description="Redis socket timeout in seconds"
    )

    # Product cache lifetimes (seconds)
    PRODUCT_CACHE_TTL: int = Field(
        default=600, ge=1, le=86400, description="Product snapshot TTL"
    )
    PRODUCT_RELATION_TTL: int = Field(
        default=300, ge=1, le=86400, description="Related-product index TTL"
    )

    # OnSale cache lifetimes (seconds)
    ONSALE_CACHE_TTL: int = Field(
        default=300, ge=1, le=86400, description="Upper bound of an onsale entry TTL"
    )
    ONSALE_RELATION_TTL: int = Field(
        default=300, ge=1, le=86400, description="Product-to-onsale index TTL"
    )
    ONSALE_MIN_TTL: int = Field(
        default=60,
        ge=1,
        le=3600,
        description="TTL used for onsale records already past their end time",
    )

    # Row store paging
    QUERY_PAGE_SIZE: int = Field(
        default=100, ge=1, le=1000, description="Rows fetched per read-through query"
    )

    # Development and debugging
    LOG_LEVEL: str = Field(default="INFO", description="Logging level")
    LOG_JSON: bool = Field(
        default=True, description="Render structured logs as JSON lines"
    )

    @field_validator("DATABASE_URL")
    @classmethod
    def validate_database_url(cls, v):
        """Validate database URL uses an async driver."""
        if not v.startswith(("postgresql+asyncpg://", "sqlite+aiosqlite://")):
            raise ValueError(
                "DATABASE_URL must use postgresql+asyncpg:// or sqlite+aiosqlite://"
            )
        return v

    @field_validator("ENVIRONMENT")
    @classmethod
    def validate_environment(cls, v):
        """Validate environment value."""
        allowed = ["development", "test", "staging", "production"]
        if v not in allowed:
            raise ValueError(f"ENVIRONMENT must be one of: {allowed}")
        return v

    @field_validator("LOG_LEVEL")
    @classmethod
    def validate_log_level(cls, v):
        """Validate log level."""
        allowed = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in allowed:
            raise ValueError(f"LOG_LEVEL must be one of: {allowed}")
        return v.upper()

    @model_validator(mode="after")
    def validate_onsale_ttls(self):
        """The expired-record floor cannot exceed the regular onsale TTL."""
        if self.ONSALE_MIN_TTL > self.ONSALE_CACHE_TTL:
            raise ValueError("ONSALE_MIN_TTL must not exceed ONSALE_CACHE_TTL")
        return self

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.ENVIRONMENT == "development"

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.ENVIRONMENT == "production"


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
