"""
Base Repository

Common primary-key operations shared by the row-store repositories.
Errors are logged with context and re-raised unchanged.
"""

from typing import Optional, Type
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import delete
import structlog

from productcache.models import Base

logger = structlog.get_logger()


class BaseRepository:
    """
    Base repository over a single model with an integer primary key.

    Each repository subclass specifies its model type directly.
    Writes flush but do not commit; the session owner commits.
    """

    def __init__(self, session: AsyncSession, model: Type[Base]):
        """
        Initialize repository with strict input validation.

        Args:
            session: AsyncSession for database operations
            model: SQLAlchemy model class

        Raises:
            TypeError: If session is not AsyncSession or model is invalid
        """
        if not isinstance(session, AsyncSession):
            raise TypeError(
                f"session must be AsyncSession instance, got {type(session).__name__}"
            )

        if not model or not hasattr(model, "__tablename__"):
            raise TypeError(
                f"model must be valid SQLAlchemy model with __tablename__, got {type(model).__name__}"
            )

        self.session = session
        self.model = model

    async def get(self, id: int) -> Optional[Base]:
        """
        Get entity by primary key.

        Args:
            id: Entity id (REQUIRED)

        Returns:
            Entity if found, None otherwise

        Raises:
            ValueError: If id is None
        """
        if id is None:
            raise ValueError("Entity id is required (cannot be None)")

        try:
            entity = await self.session.get(self.model, id)

            if entity:
                logger.debug(
                    "Repository: Entity retrieved",
                    model=self.model.__name__,
                    entity_id=id,
                )

            return entity

        except Exception as e:
            logger.error(
                "Repository: Failed to get entity",
                model=self.model.__name__,
                entity_id=id,
                error=str(e),
                exc_info=True,
            )
            raise

    async def save(self, obj: Base) -> Base:
        """
        Insert or update an entity.

        Args:
            obj: Entity instance, new or already attached to the session

        Returns:
            Persisted entity with id and server-side columns populated

        Raises:
            ValueError: If obj is None
            TypeError: If obj is not an instance of the repository model
        """
        if obj is None:
            raise ValueError("Entity object is required (cannot be None)")

        if not isinstance(obj, self.model):
            raise TypeError(
                f"Entity must be {self.model.__name__} instance, got {type(obj).__name__}"
            )

        try:
            self.session.add(obj)
            await self.session.flush()
            await self.session.refresh(obj)

            logger.info(
                "Repository: Entity saved",
                model=self.model.__name__,
                entity_id=obj.id,
            )

            return obj

        except Exception as e:
            logger.error(
                "Repository: Failed to save entity",
                model=self.model.__name__,
                entity_id=getattr(obj, "id", None),
                error=str(e),
                exc_info=True,
            )
            raise

    async def delete_by_id(self, id: int) -> bool:
        """
        Hard delete entity by primary key.

        Args:
            id: Entity id (REQUIRED)

        Returns:
            True if a row was deleted, False if not found

        Raises:
            ValueError: If id is None
        """
        if id is None:
            raise ValueError("Entity id is required (cannot be None)")

        try:
            stmt = delete(self.model).where(self.model.id == id)
            result = await self.session.execute(stmt)
            await self.session.flush()

            deleted = result.rowcount > 0
            if deleted:
                logger.info(
                    "Repository: Entity deleted",
                    model=self.model.__name__,
                    entity_id=id,
                )
            else:
                logger.warning(
                    "Repository: Entity not found for deletion",
                    model=self.model.__name__,
                    entity_id=id,
                )

            return deleted

        except Exception as e:
            logger.error(
                "Repository: Failed to delete entity",
                model=self.model.__name__,
                entity_id=id,
                error=str(e),
                exc_info=True,
            )
            raise
