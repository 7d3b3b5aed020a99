"""Base repository class with common CRUD operations."""

import logging
from typing import Generic, Optional, Type, TypeVar

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from booking_core.database.models import Base
from booking_core.exceptions import DatabaseError, NotFoundError

logger = logging.getLogger(__name__)

# Type variable for the model type
ModelType = TypeVar("ModelType", bound=Base)


class BaseRepository(Generic[ModelType]):
    """Base repository with common CRUD operations.

    Repositories never commit or roll back: the owner of the session decides
    where the transaction ends.
    """

    def __init__(self, model: Type[ModelType], session: AsyncSession):
        """
        Initialize repository.

        Args:
            model: SQLAlchemy model class
            session: Async database session
        """
        self.model = model
        self.session = session

    @property
    def resource_name(self) -> str:
        return self.model.__name__

    async def get_by_id(self, id: str) -> Optional[ModelType]:
        """
        Get a record by ID.

        Args:
            id: Record ID

        Returns:
            Model instance or None if not found
        """
        try:
            result = await self.session.execute(select(self.model).where(self.model.id == id))
            return result.scalar_one_or_none()
        except SQLAlchemyError as e:
            logger.error(f"Error getting {self.resource_name} by ID {id}: {e}")
            raise DatabaseError(f"Failed to retrieve {self.resource_name}") from e

    async def get_or_raise(self, id: str) -> ModelType:
        """Get a record by ID, raising NotFoundError when it doesn't exist."""
        instance = await self.get_by_id(id)
        if instance is None:
            raise NotFoundError(resource=self.resource_name, resource_id=id)
        return instance

    async def create(self, **kwargs) -> ModelType:
        """
        Create a new record.

        Integrity violations propagate unchanged so callers can map them to
        a domain error (an overlapping booking, for instance).

        Args:
            **kwargs: Model field values

        Returns:
            Created model instance
        """
        try:
            instance = self.model(**kwargs)
            self.session.add(instance)
            await self.session.flush()  # Flush to get the ID
            logger.debug(f"Created {self.resource_name} with ID: {instance.id}")
            return instance
        except IntegrityError:
            raise
        except SQLAlchemyError as e:
            logger.error(f"Error creating {self.resource_name}: {e}")
            raise DatabaseError(f"Failed to create {self.resource_name}") from e

    async def update(self, id: str, **kwargs) -> Optional[ModelType]:
        """
        Update a record by ID.

        Args:
            id: Record ID
            **kwargs: Fields to update

        Returns:
            Updated model instance or None if not found
        """
        instance = await self.get_by_id(id)
        if not instance:
            return None
        try:
            for field, value in kwargs.items():
                if hasattr(instance, field):
                    setattr(instance, field, value)

            await self.session.flush()
            logger.debug(f"Updated {self.resource_name} with ID: {id}")
            return instance
        except IntegrityError:
            raise
        except SQLAlchemyError as e:
            logger.error(f"Error updating {self.resource_name} with ID {id}: {e}")
            raise DatabaseError(f"Failed to update {self.resource_name}") from e

    async def delete(self, id: str) -> bool:
        """
        Delete a record by ID.

        Args:
            id: Record ID

        Returns:
            True if deleted, False if not found
        """
        instance = await self.get_by_id(id)
        if not instance:
            return False
        try:
            await self.session.delete(instance)
            await self.session.flush()
            logger.debug(f"Deleted {self.resource_name} with ID: {id}")
            return True
        except SQLAlchemyError as e:
            logger.error(f"Error deleting {self.resource_name} with ID {id}: {e}")
            raise DatabaseError(f"Failed to delete {self.resource_name}") from e
