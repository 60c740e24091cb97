"""Stats service for the Linkly application.

This module contains the StatsService class which turns the click event log
into the analytics shown for a single link or for all of an owner's links.
The event log is authoritative; ``click_count`` on links is never read here.
"""

import logging
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from linkly.analytics.geo import country_name
from linkly.models.click import ClickEventRead
from linkly.repositories.base import RepositoryError
from linkly.repositories.click_repository import ClickRepository
from linkly.repositories.link_repository import LinkRepository
from linkly.services.exceptions import NotFoundError, StatsRetrievalError

logger = logging.getLogger(__name__)

DEVICE_BUCKETS = ("mobile", "desktop", "tablet", "bot")

LANGUAGE_NAMES = {
    "ar": "Arabic", "bn": "Bengali", "cs": "Czech", "da": "Danish", "de": "German",
    "el": "Greek", "en": "English", "es": "Spanish", "fa": "Persian", "fi": "Finnish",
    "fr": "French", "he": "Hebrew", "hi": "Hindi", "hu": "Hungarian", "id": "Indonesian",
    "it": "Italian", "ja": "Japanese", "ko": "Korean", "ms": "Malay", "nl": "Dutch",
    "no": "Norwegian", "pl": "Polish", "pt": "Portuguese", "ro": "Romanian", "ru": "Russian",
    "sv": "Swedish", "th": "Thai", "tr": "Turkish", "uk": "Ukrainian", "ur": "Urdu",
    "vi": "Vietnamese", "zh": "Chinese",
}


def primary_language(accept_language: Optional[str]) -> Optional[str]:
    """Primary subtag of the first Accept-Language entry (``en-US,en;q=0.9`` -> ``en``)."""
    if not accept_language:
        return None
    first = accept_language.split(",")[0].split(";")[0].strip()
    tag = first.split("-")[0].lower()
    if not tag or tag == "*" or not tag.isalpha():
        return None
    return tag


class StatsService:
    """
    Service for click analytics.

    Every figure is scoped to a set of link ids: one link, an owner's links,
    or everything.
    """

    def __init__(self, click_repository: ClickRepository, link_repository: LinkRepository):
        self.click_repository = click_repository
        self.link_repository = link_repository

    async def get_link_stats(self, db: AsyncSession, short_code: str, days: int = 30) -> Dict[str, Any]:
        """
        Analytics for one link, active or not.

        Raises:
            NotFoundError: If no link has this code
            StatsRetrievalError: On storage failures
        """
        try:
            link = await self.link_repository.find_by_short_code(db, short_code)
        except RepositoryError as e:
            logger.error(f"Error retrieving link for stats: {e}")
            raise StatsRetrievalError(f"Failed to retrieve stats for '{short_code}'") from e

        if link is None:
            raise NotFoundError(f"Link '{short_code}' not found")

        stats = await self._build_stats(db, [link.id], days)
        stats["short_code"] = link.short_code
        stats["original_url"] = link.original_url
        stats["created_at"] = link.created_at
        return stats

    async def get_overall_stats(
        self,
        db: AsyncSession,
        owner_id: Optional[str] = None,
        days: int = 30
    ) -> Dict[str, Any]:
        """
        Analytics across all links, or across one owner's links.

        Raises:
            StatsRetrievalError: On storage failures
        """
        try:
            url_ids = await self.link_repository.get_ids_by_owner(db, owner_id) if owner_id else None
            stats = await self._build_stats(db, url_ids, days)
            top_links = await self.link_repository.get_top_links(db, url_ids, limit=10)
            total_links = len(url_ids) if url_ids is not None else await self.link_repository.count(db)
        except RepositoryError as e:
            logger.error(f"Error retrieving overall stats: {e}")
            raise StatsRetrievalError("Failed to retrieve overall stats") from e

        stats["total_links"] = total_links
        stats["top_links"] = [
            {"short_code": link.short_code, "original_url": link.original_url, "clicks": link.click_count}
            for link in top_links
        ]
        return stats

    async def _build_stats(self, db: AsyncSession, url_ids: Optional[List[int]], days: int) -> Dict[str, Any]:
        repo = self.click_repository
        now = datetime.utcnow()
        today = now.replace(hour=0, minute=0, second=0, microsecond=0)
        since = today - timedelta(days=days - 1)

        try:
            countries = await repo.count_by_field(db, "country_code", url_ids)
            by_day = await repo.clicks_by_day_and_device(db, url_ids, since)
            by_hour = await repo.clicks_by_hour(db, url_ids)
            bots = dict(await repo.count_by_field(db, "is_bot", url_ids, limit=None))

            return {
                "total_clicks": await repo.count_clicks(db, url_ids),
                "unique_clicks": await repo.count_unique_visitors(db, url_ids),
                "clicks_today": await repo.count_clicks(db, url_ids, since=today),
                "clicks_yesterday": await repo.count_clicks(
                    db, url_ids, since=today - timedelta(days=1), until=today
                ),
                "clicks_this_week": await repo.count_clicks(db, url_ids, since=today - timedelta(days=6)),
                "clicks_this_month": await repo.count_clicks(db, url_ids, since=today - timedelta(days=29)),
                "top_countries": [
                    {"country_code": code, "country_name": country_name(code), "count": count}
                    for code, count in countries
                ],
                "top_browsers": self._rows("browser", await repo.count_by_field(db, "browser", url_ids)),
                "top_devices": self._rows("device_type", await repo.count_by_field(db, "device_type", url_ids)),
                "top_os": self._rows("os", await repo.count_by_field(db, "os", url_ids)),
                "referrer_types": self._rows("type", await repo.count_by_field(db, "referrer_type", url_ids)),
                "top_referrers": self._rows("domain", await repo.count_by_field(db, "referrer_domain", url_ids)),
                "top_referrer_sources": self._rows(
                    "source", await repo.count_by_field(db, "referrer_source", url_ids)
                ),
                "top_languages": self._languages(
                    await repo.count_by_field(db, "accept_language", url_ids, limit=None)
                ),
                "clicks_by_day": self._fill_days(by_day, since, days),
                "clicks_by_hour": [{"hour": hour, "count": by_hour.get(hour, 0)} for hour in range(24)],
                "bot_vs_human": {
                    "bot": sum(count for is_bot, count in bots.items() if is_bot),
                    "human": sum(count for is_bot, count in bots.items() if not is_bot),
                },
                "recent_clicks": [
                    ClickEventRead.model_validate(event, from_attributes=True)
                    for event in await repo.get_recent_clicks(db, url_ids)
                ],
            }
        except RepositoryError as e:
            logger.error(f"Error aggregating click stats: {e}")
            raise StatsRetrievalError("Failed to aggregate click stats") from e

    @staticmethod
    def _rows(key: str, counts) -> List[Dict[str, Any]]:
        return [{key: value, "count": count} for value, count in counts]

    @staticmethod
    def _languages(counts, limit: int = 10) -> List[Dict[str, Any]]:
        totals: Dict[str, int] = {}
        for header, count in counts:
            tag = primary_language(header)
            if tag:
                totals[tag] = totals.get(tag, 0) + count

        ranked = sorted(totals.items(), key=lambda item: (-item[1], item[0]))[:limit]
        return [
            {"code": tag, "language": LANGUAGE_NAMES.get(tag, tag.upper()), "count": count}
            for tag, count in ranked
        ]

    @staticmethod
    def _fill_days(rows, since: datetime, days: int) -> List[Dict[str, Any]]:
        """One entry per day in the window, zeros included, split by device."""
        series = {}
        for offset in range(days):
            day = (since + timedelta(days=offset)).strftime("%Y-%m-%d")
            series[day] = {"date": day, "total": 0, **{bucket: 0 for bucket in DEVICE_BUCKETS}, "unknown": 0}

        for day, device_type, count in rows:
            entry = series.get(day)
            if entry is None:
                continue
            bucket = device_type if device_type in DEVICE_BUCKETS else "unknown"
            entry[bucket] += count
            entry["total"] += count

        return list(series.values())
