"""Base repository implementation for the Linkly application.

This module provides a generic BaseRepository class that follows the Repository pattern
for database operations, serving as a foundation for more specific repositories.
"""

from typing import Any, Dict, Generic, Optional, Type, TypeVar, Union
import logging

from pydantic import BaseModel
from sqlalchemy import select, func, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlmodel import SQLModel

T = TypeVar("T", bound=SQLModel)
CreateSchemaType = TypeVar("CreateSchemaType", bound=BaseModel)
UpdateSchemaType = TypeVar("UpdateSchemaType", bound=BaseModel)

logger = logging.getLogger(__name__)


class RepositoryError(Exception):
    """Base exception for repository errors."""
    pass


class DuplicateEntityError(RepositoryError):
    """Exception raised when a unique constraint is violated."""

    def __init__(self, model_type: Type[SQLModel], field_name: str, value: Any):
        self.model_type = model_type
        self.field_name = field_name
        self.value = value
        model_name = getattr(model_type, "__name__", "Entity")
        super().__init__(f"{model_name} with {field_name}={value} already exists")


def is_unique_violation(error: IntegrityError) -> bool:
    """Whether an IntegrityError comes from a UNIQUE constraint (Postgres or SQLite)."""
    message = str(error).lower()
    return "unique constraint" in message or "duplicate key" in message


class BaseRepository(Generic[T, CreateSchemaType, UpdateSchemaType]):
    """
    Base repository implementing common CRUD operations for SQLModel entities.

    Repositories flush but never commit; the caller owns the transaction.

    Type parameters:
        T: The SQLModel type this repository manages
        CreateSchemaType: The Pydantic model type for creation operations
        UpdateSchemaType: The Pydantic model type for update operations
    """

    def __init__(self, model_type: Type[T]):
        self.model_type = model_type

    @staticmethod
    def _as_dict(data: Union[BaseModel, Dict[str, Any]], exclude_unset: bool = True) -> Dict[str, Any]:
        if isinstance(data, BaseModel):
            return data.model_dump(exclude_unset=exclude_unset)
        return dict(data)

    async def get_by_id(self, db: AsyncSession, id: Any) -> Optional[T]:
        """
        Get an entity by its ID.

        Returns:
            The entity if found, None otherwise
        """
        try:
            return await db.get(self.model_type, id)
        except SQLAlchemyError as e:
            logger.error(f"Error retrieving {self.model_type.__name__} with id {id}: {e}")
            raise RepositoryError(f"Database error retrieving entity: {e}") from e

    async def create(self, db: AsyncSession, data: Union[CreateSchemaType, Dict[str, Any]]) -> T:
        """
        Create a new entity.

        Args:
            db: Database session
            data: Entity data (either as a Pydantic model or dictionary)

        Returns:
            The created entity

        Raises:
            IntegrityError: On constraint violations, after rolling back
            RepositoryError: On other database errors
        """
        try:
            entity = self.model_type(**self._as_dict(data))
            db.add(entity)
            await db.flush()  # Flush to generate ID but don't commit yet
            await db.refresh(entity)
            return entity
        except IntegrityError:
            await db.rollback()
            raise
        except SQLAlchemyError as e:
            logger.error(f"Error creating {self.model_type.__name__}: {e}")
            await db.rollback()
            raise RepositoryError(f"Database error creating entity: {e}") from e

    async def update(
        self,
        db: AsyncSession,
        id: Any,
        data: Union[UpdateSchemaType, Dict[str, Any]]
    ) -> Optional[T]:
        """
        Update an existing entity.

        Returns:
            The updated entity, or None if not found
        """
        try:
            entity = await self.get_by_id(db, id)
            if entity is None:
                return None

            for key, value in self._as_dict(data).items():
                setattr(entity, key, value)

            await db.flush()
            await db.refresh(entity)
            return entity
        except SQLAlchemyError as e:
            logger.error(f"Error updating {self.model_type.__name__} with id {id}: {e}")
            raise RepositoryError(f"Database error updating entity: {e}") from e

    async def count(self, db: AsyncSession, **filters) -> int:
        """Count entities, optionally restricted by field=value filters."""
        try:
            query = select(func.count()).select_from(self.model_type)
            if filters:
                query = query.where(*self._conditions(filters))
            result = await db.execute(query)
            return result.scalar_one()
        except SQLAlchemyError as e:
            logger.error(f"Error counting {self.model_type.__name__} records: {e}")
            raise RepositoryError(f"Database error counting entities: {e}") from e

    async def exists(self, db: AsyncSession, **kwargs) -> bool:
        """
        Check if an entity exists with the given filters.

        Raises:
            ValueError: If no filters are given
            RepositoryError: On database errors
        """
        if not kwargs:
            raise ValueError("No conditions provided for exists check")

        try:
            query = select(self.model_type.id).where(*self._conditions(kwargs)).limit(1)
            result = await db.execute(query)
            return result.first() is not None
        except SQLAlchemyError as e:
            logger.error(f"Error checking existence of {self.model_type.__name__}: {e}")
            raise RepositoryError(f"Database error checking entity existence: {e}") from e

    async def bulk_update(self, db: AsyncSession, filters: Dict[str, Any], data: Dict[str, Any]) -> int:
        """
        Update multiple entities matching filters.

        Returns:
            Number of rows updated
        """
        if not filters:
            raise ValueError("No conditions provided for bulk update")

        try:
            stmt = (
                update(self.model_type)
                .where(*self._conditions(filters))
                .values(**data)
                .execution_options(synchronize_session=False)
            )
            result = await db.execute(stmt)
            return result.rowcount
        except SQLAlchemyError as e:
            logger.error(f"Error bulk updating {self.model_type.__name__} records: {e}")
            raise RepositoryError(f"Database error bulk updating entities: {e}") from e

    def _conditions(self, filters: Dict[str, Any]) -> list:
        return [getattr(self.model_type, field) == value for field, value in filters.items()]
