"""Session management for database operations.

This module provides utilities for handling SQLAlchemy async sessions
with proper lifecycle management, error handling, and transaction support.
It includes dependency injection patterns optimized for FastAPI.
"""

from typing import AsyncGenerator, Callable, Optional, TypeVar
import logging
import inspect
from contextlib import asynccontextmanager
from functools import wraps

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.exc import SQLAlchemyError

from linkly.db.base import async_session_factory, get_session

logger = logging.getLogger(__name__)

T = TypeVar("T")


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency for database sessions.

    Yields:
        AsyncSession: A SQLAlchemy async session object.
    """
    async with get_session() as session:
        try:
            yield session
        except SQLAlchemyError:
            logger.exception("Database error occurred")
            await session.rollback()
            raise
        except Exception:
            await session.rollback()
            raise


def db_transaction(db_param_name: Optional[str] = None) -> Callable:
    """Decorator to wrap a coroutine in a database transaction.

    Finds the session argument (by name, or the first parameter annotated as
    ``AsyncSession``), commits on success and rolls back on error.

    Example:
        ```python
        @db_transaction()
        async def toggle(self, db: AsyncSession, link_id: int) -> ShortLink:
            ...
        ```

    Raises:
        ValueError: If no session is passed to the wrapped function
    """
    def decorator(func: Callable[..., T]) -> Callable[..., T]:
        parameters = inspect.signature(func).parameters
        db_param_pos = None
        db_param_key = None

        for i, (param_name, param) in enumerate(parameters.items()):
            if db_param_name and param_name == db_param_name:
                db_param_pos, db_param_key = i, param_name
                break
            if db_param_name is None and param.annotation is AsyncSession:
                db_param_pos, db_param_key = i, param_name
                break

        @wraps(func)
        async def wrapper(*args, **kwargs):
            db = None
            if db_param_pos is not None and len(args) > db_param_pos:
                db = args[db_param_pos]
            elif db_param_key is not None and db_param_key in kwargs:
                db = kwargs[db_param_key]
            else:
                db = next(
                    (value for value in (*args, *kwargs.values()) if isinstance(value, AsyncSession)),
                    None,
                )

            if db is None:
                raise ValueError(
                    f"Database session not found in function arguments for '{func.__name__}'"
                )

            try:
                result = await func(*args, **kwargs)
                await db.commit()
                return result
            except Exception as e:
                await db.rollback()
                logger.warning(f"Transaction rolled back in '{func.__name__}': {e}")
                raise

        return wrapper
    return decorator


class SessionManager:
    """Session manager for database work that runs outside a request."""

    @staticmethod
    @asynccontextmanager
    async def transaction_context(
        session_factory: Optional[async_sessionmaker] = None,
    ) -> AsyncGenerator[AsyncSession, None]:
        """Open a session that commits on exit or rolls back on error.

        Args:
            session_factory: Factory to open the session from; defaults to the
                application's shared factory.
        """
        factory = session_factory or async_session_factory
        async with factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise
