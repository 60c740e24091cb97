"""Link repository for the Linkly application.

This module provides the LinkRepository class for database operations on ShortLink rows.
The UNIQUE constraint on ``short_code`` is the authority on code uniqueness; the
existence checks here are only an optimistic pre-check.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional, Union

from sqlalchemy import select, update, func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from linkly.models.click import ClickEvent
from linkly.models.link import ShortLink, ShortLinkCreate, ShortLinkUpdate
from linkly.repositories.base import (
    BaseRepository,
    DuplicateEntityError,
    RepositoryError,
    is_unique_violation,
)


class LinkRepository(BaseRepository[ShortLink, ShortLinkCreate, ShortLinkUpdate]):
    """
    Repository for ShortLink model database operations.

    Provides the lookups used by the redirect path and the creation flow,
    the atomic click counter increment, and owner-side updates.
    """

    def __init__(self):
        super().__init__(ShortLink)

    async def insert(
        self,
        db: AsyncSession,
        data: Union[ShortLinkCreate, Dict[str, Any]]
    ) -> ShortLink:
        """
        Insert a new short link.

        Args:
            db: Database session
            data: Link data (either as a ShortLinkCreate model or dictionary)

        Returns:
            The created ShortLink entity

        Raises:
            DuplicateEntityError: If the short code is already taken
            RepositoryError: On other database errors
        """
        short_code = self._as_dict(data).get("short_code")
        try:
            return await self.create(db, data)
        except IntegrityError as e:
            if is_unique_violation(e):
                raise DuplicateEntityError(self.model_type, "short_code", short_code) from e
            raise RepositoryError(f"Database error creating short link: {e}") from e

    async def find_by_short_code(self, db: AsyncSession, short_code: str) -> Optional[ShortLink]:
        """Find a link by its short code, whether active or not."""
        try:
            query = select(self.model_type).where(self.model_type.short_code == short_code)
            result = await db.execute(query)
            return result.scalar_one_or_none()
        except SQLAlchemyError as e:
            raise RepositoryError(f"Error retrieving link by short code: {e}") from e

    async def find_active_by_short_code(self, db: AsyncSession, short_code: str) -> Optional[ShortLink]:
        """
        Find an active link by its short code.

        Inactive links are indistinguishable from missing ones here.

        Raises:
            RepositoryError: On database errors
        """
        try:
            query = select(self.model_type).where(
                self.model_type.short_code == short_code,
                self.model_type.is_active.is_(True),
            )
            result = await db.execute(query)
            return result.scalar_one_or_none()
        except SQLAlchemyError as e:
            raise RepositoryError(f"Error retrieving active link by short code: {e}") from e

    async def find_by_original_url(self, db: AsyncSession, original_url: str) -> Optional[ShortLink]:
        """
        Find the oldest active link for a destination.

        Used for first-writer-wins deduplication when no custom code is requested.
        """
        try:
            query = (
                select(self.model_type)
                .where(
                    self.model_type.original_url == original_url,
                    self.model_type.is_active.is_(True),
                )
                .order_by(self.model_type.id)
                .limit(1)
            )
            result = await db.execute(query)
            return result.scalars().first()
        except SQLAlchemyError as e:
            raise RepositoryError(f"Error retrieving link by destination: {e}") from e

    async def short_code_exists(self, db: AsyncSession, short_code: str) -> bool:
        """Check whether any row, active or inactive, holds the code."""
        return await self.exists(db, short_code=short_code)

    async def increment_click_count(self, db: AsyncSession, link_id: int) -> bool:
        """
        Atomically increment the advisory click counter.

        A single UPDATE with a column expression, so concurrent increments
        never lose updates.

        Returns:
            True if a row was updated
        """
        try:
            stmt = (
                update(self.model_type)
                .where(self.model_type.id == link_id)
                .values(click_count=self.model_type.click_count + 1)
                .execution_options(synchronize_session=False)
            )
            result = await db.execute(stmt)
            return result.rowcount > 0
        except SQLAlchemyError as e:
            raise RepositoryError(f"Error incrementing click count: {e}") from e

    async def set_active(self, db: AsyncSession, link_id: int, is_active: bool) -> Optional[ShortLink]:
        """Set the active flag and return the refreshed link, or None if missing."""
        updated = await self.bulk_update(
            db,
            {"id": link_id},
            {"is_active": is_active, "updated_at": datetime.utcnow()},
        )
        if not updated:
            return None

        link = await self.get_by_id(db, link_id)
        await db.refresh(link)
        return link

    async def update_metadata(
        self,
        db: AsyncSession,
        link_id: int,
        data: Union[ShortLinkUpdate, Dict[str, Any]]
    ) -> Optional[ShortLink]:
        """Update title and description; the code and destination stay immutable."""
        values = self._as_dict(data)
        values = {key: values[key] for key in ("title", "description") if key in values}
        values["updated_at"] = datetime.utcnow()
        return await self.update(db, link_id, values)

    async def get_ids_by_owner(self, db: AsyncSession, owner_id: str) -> List[int]:
        """IDs of every link owned by an account."""
        try:
            query = select(self.model_type.id).where(self.model_type.owner_id == owner_id)
            result = await db.execute(query)
            return list(result.scalars().all())
        except SQLAlchemyError as e:
            raise RepositoryError(f"Error retrieving links for owner {owner_id}: {e}") from e

    async def get_top_links(
        self,
        db: AsyncSession,
        url_ids: Optional[List[int]] = None,
        limit: int = 10
    ) -> List[ShortLink]:
        """Links ordered by their advisory click counter."""
        try:
            query = select(self.model_type).order_by(
                self.model_type.click_count.desc(), self.model_type.id
            ).limit(limit)
            if url_ids is not None:
                query = query.where(self.model_type.id.in_(url_ids))
            result = await db.execute(query)
            return list(result.scalars().all())
        except SQLAlchemyError as e:
            raise RepositoryError(f"Error retrieving top links: {e}") from e

    async def reconcile_click_counts(self, db: AsyncSession) -> int:
        """
        Rewrite every drifted ``click_count`` from the click event log.

        Returns:
            Number of links whose counter changed
        """
        event_count = (
            select(func.count(ClickEvent.id))
            .where(ClickEvent.url_id == self.model_type.id)
            .scalar_subquery()
        )
        try:
            stmt = (
                update(self.model_type)
                .where(self.model_type.click_count != event_count)
                .values(click_count=event_count)
                .execution_options(synchronize_session=False)
            )
            result = await db.execute(stmt)
            return result.rowcount
        except SQLAlchemyError as e:
            raise RepositoryError(f"Error reconciling click counts: {e}") from e
