"""Click repository for the Linkly application.

This module provides the ClickRepository class for writing click events and for the
aggregation queries behind link analytics. Queries stick to SQL that both PostgreSQL
and SQLite understand.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple, Union

from sqlalchemy import select, func, desc, extract
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.exc import SQLAlchemyError

from linkly.models.click import ClickEvent, ClickEventCreate, ClickEventRead
from linkly.repositories.base import BaseRepository, RepositoryError

# Columns that may be grouped on by count_by_field
GROUPABLE_FIELDS = frozenset({
    "country_code",
    "country_name",
    "device_type",
    "browser",
    "os",
    "referrer_type",
    "referrer_domain",
    "referrer_source",
    "accept_language",
    "is_bot",
})


class ClickRepository(BaseRepository[ClickEvent, ClickEventCreate, ClickEventRead]):
    """
    Repository for ClickEvent model database operations.

    Every aggregation accepts ``url_ids`` to scope the result: ``None`` means
    all links, an empty list means none.
    """

    def __init__(self):
        super().__init__(ClickEvent)

    def _scope(self, url_ids: Optional[List[int]], since: Optional[datetime] = None,
               until: Optional[datetime] = None) -> list:
        conditions = []
        if url_ids is not None:
            conditions.append(self.model_type.url_id.in_(url_ids))
        if since is not None:
            conditions.append(self.model_type.clicked_at >= since)
        if until is not None:
            conditions.append(self.model_type.clicked_at < until)
        return conditions

    async def record_click(
        self,
        db: AsyncSession,
        data: Union[ClickEventCreate, Dict[str, Any]]
    ) -> ClickEvent:
        """
        Insert a click event.

        Called from the background task that runs after the redirect response.

        Raises:
            RepositoryError: On database errors
        """
        try:
            return await self.create(db, data)
        except SQLAlchemyError as e:
            raise RepositoryError(f"Error recording click event: {e}") from e

    async def count_clicks(
        self,
        db: AsyncSession,
        url_ids: Optional[List[int]] = None,
        since: Optional[datetime] = None,
        until: Optional[datetime] = None
    ) -> int:
        """Count click events in the scope and the optional [since, until) window."""
        try:
            query = select(func.count(self.model_type.id)).where(*self._scope(url_ids, since, until))
            result = await db.execute(query)
            return result.scalar_one()
        except SQLAlchemyError as e:
            raise RepositoryError(f"Error counting clicks: {e}") from e

    async def count_unique_visitors(self, db: AsyncSession, url_ids: Optional[List[int]] = None) -> int:
        """Count distinct client IPs."""
        try:
            query = (
                select(func.count(func.distinct(self.model_type.ip_address)))
                .where(self.model_type.ip_address.isnot(None), *self._scope(url_ids))
            )
            result = await db.execute(query)
            return result.scalar_one()
        except SQLAlchemyError as e:
            raise RepositoryError(f"Error counting unique visitors: {e}") from e

    async def count_by_field(
        self,
        db: AsyncSession,
        field: str,
        url_ids: Optional[List[int]] = None,
        since: Optional[datetime] = None,
        limit: Optional[int] = 10
    ) -> List[Tuple[Any, int]]:
        """
        Get click counts grouped by one column, most frequent first.

        Rows where the column is NULL are left out.

        Raises:
            ValueError: If the column cannot be grouped on
            RepositoryError: On database errors
        """
        if field not in GROUPABLE_FIELDS:
            raise ValueError(f"Cannot group clicks by '{field}'")

        column = getattr(self.model_type, field)
        try:
            query = (
                select(column, func.count().label("count"))
                .where(column.isnot(None), *self._scope(url_ids, since))
                .group_by(column)
                .order_by(desc("count"), column)
            )
            if limit is not None:
                query = query.limit(limit)

            result = await db.execute(query)
            return [(row[0], row.count) for row in result.all()]
        except SQLAlchemyError as e:
            raise RepositoryError(f"Error retrieving clicks by {field}: {e}") from e

    async def clicks_by_day_and_device(
        self,
        db: AsyncSession,
        url_ids: Optional[List[int]] = None,
        since: Optional[datetime] = None
    ) -> List[Tuple[str, Optional[str], int]]:
        """
        Get click counts per calendar day (UTC) and device type.

        Returns:
            List of ``(YYYY-MM-DD, device_type, count)`` tuples ordered by day
        """
        day = func.date(self.model_type.clicked_at)
        try:
            query = (
                select(day.label("day"), self.model_type.device_type, func.count().label("count"))
                .where(*self._scope(url_ids, since))
                .group_by(day, self.model_type.device_type)
                .order_by(day)
            )
            result = await db.execute(query)
            # date() comes back as a string on SQLite and a date on PostgreSQL
            return [(str(row.day)[:10], row.device_type, row.count) for row in result.all()]
        except SQLAlchemyError as e:
            raise RepositoryError(f"Error retrieving clicks by day: {e}") from e

    async def clicks_by_hour(
        self,
        db: AsyncSession,
        url_ids: Optional[List[int]] = None,
        since: Optional[datetime] = None
    ) -> Dict[int, int]:
        """Get click counts per hour of day (0-23, UTC)."""
        hour = extract("hour", self.model_type.clicked_at)
        try:
            query = (
                select(hour.label("hour"), func.count().label("count"))
                .where(*self._scope(url_ids, since))
                .group_by(hour)
            )
            result = await db.execute(query)
            return {int(row.hour): row.count for row in result.all()}
        except SQLAlchemyError as e:
            raise RepositoryError(f"Error retrieving clicks by hour: {e}") from e

    async def get_recent_clicks(
        self,
        db: AsyncSession,
        url_ids: Optional[List[int]] = None,
        limit: int = 10
    ) -> List[ClickEvent]:
        """Most recent click events, newest first."""
        try:
            query = (
                select(self.model_type)
                .where(*self._scope(url_ids))
                .order_by(desc(self.model_type.clicked_at), desc(self.model_type.id))
                .limit(limit)
            )
            result = await db.execute(query)
            return list(result.scalars().all())
        except SQLAlchemyError as e:
            raise RepositoryError(f"Error retrieving recent clicks: {e}") from e
