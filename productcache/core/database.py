"""
Database Connection Management

Async SQLAlchemy engine and session handling for the row store:
- Engine creation with retry and exponential backoff
- Request-scoped sessions with commit/rollback handling
- Schema bootstrap for the product tables
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from sqlalchemy import text
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from tenacity import (
    retry,
    stop_after_attempt,
    wait_exponential,
    retry_if_exception_type,
)
import structlog

from .config import Settings, get_settings
from ..models import Base

logger = structlog.get_logger()


class DatabaseManager:
    """
    Database connection manager.

    Owns the async engine and session factory. Sessions are handed out per
    logical request and committed when the caller's block exits cleanly.
    """

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()
        self.engine: Optional[AsyncEngine] = None
        self.session_factory: Optional[async_sessionmaker] = None

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=1, max=10),
        retry=retry_if_exception_type((ConnectionError, OSError)),
        before_sleep=lambda retry_state: logger.warning(
            "Database connection retry",
            attempt=retry_state.attempt_number,
            wait_time=retry_state.next_action.sleep,
        ),
    )
    async def _connect(self) -> AsyncEngine:
        """Create the engine and verify connectivity."""
        engine = create_async_engine(
            self.settings.DATABASE_URL,
            echo=self.settings.DATABASE_ECHO,
            pool_pre_ping=True,
        )
        try:
            async with engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
        except Exception:
            await engine.dispose()
            raise
        return engine

    async def initialize(self) -> None:
        """Initialize the engine and session factory."""
        if self.engine is not None:
            return

        try:
            self.engine = await self._connect()
            self.session_factory = async_sessionmaker(
                bind=self.engine,
                class_=AsyncSession,
                expire_on_commit=False,
                autoflush=False,
            )
            logger.info("Database initialized", url=self.engine.url.render_as_string())

        except Exception as e:
            logger.error(
                "Database initialization failed",
                error=str(e),
                exc_info=True,
            )
            raise

    async def create_schema(self) -> None:
        """Create the product tables if they do not exist."""
        if not self.engine:
            raise RuntimeError("Database not initialized. Call initialize() first.")

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

        logger.info("Database schema ensured", tables=sorted(Base.metadata.tables))

    @asynccontextmanager
    async def get_session(self) -> AsyncGenerator[AsyncSession, None]:
        """
        Get a database session with transaction management.

        Yields:
            AsyncSession: committed on success, rolled back on error
        """
        if not self.session_factory:
            raise RuntimeError("Database not initialized. Call initialize() first.")

        async with self.session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception as e:
                await session.rollback()
                logger.error("Database session rolled back", error=str(e))
                raise

    async def close(self) -> None:
        """Dispose of pooled connections."""
        if self.engine:
            await self.engine.dispose()
            self.engine = None
            self.session_factory = None
            logger.info("Database connections closed")
