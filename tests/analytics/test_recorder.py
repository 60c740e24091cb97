"""Tests for background click recording."""

import pytest
from sqlalchemy import select

from linkly.analytics.extractor import ClickAnalytics
from linkly.analytics.recorder import AnalyticsRecorder
from linkly.models.click import ClickEvent
from linkly.repositories.base import RepositoryError
from linkly.repositories.click_repository import ClickRepository
from linkly.repositories.link_repository import LinkRepository
from tests.utils import create_test_link


class FailingClickRepository(ClickRepository):
    async def record_click(self, db, data):
        raise RepositoryError("disk full")


class FailingLinkRepository(LinkRepository):
    async def increment_click_count(self, db, link_id):
        raise RepositoryError("lock timeout")


async def stored_events(db, link_id):
    result = await db.execute(select(ClickEvent).where(ClickEvent.url_id == link_id))
    return list(result.scalars().all())


@pytest.mark.analytics
class TestAnalyticsRecorder:
    """Test suite for the analytics recorder."""

    @pytest.mark.asyncio
    async def test_record_stores_event_and_bumps_counter(self, test_db, recorder):
        link = await create_test_link(test_db, short_code="record02")
        analytics = ClickAnalytics(short_code="record02", ip_address="8.8.8.8", device_type="desktop")

        assert await recorder.record(link.id, analytics) is True

        events = await stored_events(test_db, link.id)
        assert len(events) == 1
        assert events[0].ip_address == "8.8.8.8"
        assert events[0].device_type == "desktop"

        await test_db.refresh(link)
        assert link.click_count == 1

    @pytest.mark.asyncio
    async def test_failed_insert_is_swallowed(self, test_db, session_factory):
        link = await create_test_link(test_db)
        recorder = AnalyticsRecorder(session_factory, click_repository=FailingClickRepository())

        assert await recorder.record(link.id, ClickAnalytics(short_code=link.short_code)) is False

        assert await stored_events(test_db, link.id) == []
        await test_db.refresh(link)
        assert link.click_count == 0

    @pytest.mark.asyncio
    async def test_failed_increment_keeps_event(self, test_db, session_factory):
        link = await create_test_link(test_db)
        recorder = AnalyticsRecorder(session_factory, link_repository=FailingLinkRepository())

        assert await recorder.record(link.id, ClickAnalytics(short_code=link.short_code)) is True

        assert len(await stored_events(test_db, link.id)) == 1
        await test_db.refresh(link)
        assert link.click_count == 0
