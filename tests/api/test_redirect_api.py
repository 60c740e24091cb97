"""Tests for the public redirect endpoint."""

import pytest
from sqlalchemy import select

from linkly.analytics.recorder import AnalyticsRecorder
from linkly.api.dependencies import get_analytics_recorder
from linkly.models.click import ClickEvent
from linkly.repositories.base import RepositoryError
from linkly.repositories.click_repository import ClickRepository
from tests.utils import CHROME_DESKTOP_UA, create_test_link


class FailingClickRepository(ClickRepository):
    async def record_click(self, db, data):
        raise RepositoryError("disk full")


async def click_rows(db):
    result = await db.execute(select(ClickEvent))
    return list(result.scalars().all())


@pytest.mark.api
class TestRedirectEndpoint:
    """Test suite for GET /{code}."""

    @pytest.mark.asyncio
    async def test_redirects_and_records_click(self, client, test_db):
        link = await create_test_link(test_db, short_code="promo2024", original_url="https://example.com/landing")

        response = await client.get("/promo2024", headers={
            "User-Agent": CHROME_DESKTOP_UA,
            "Referer": "https://www.google.com/search?q=promo",
            "X-Forwarded-For": "8.8.8.8",
            "CF-IPCountry": "US",
            "Accept-Language": "en-US,en;q=0.9",
        })

        assert response.status_code == 302
        assert response.headers["location"] == "https://example.com/landing"
        assert response.headers["cache-control"] == "no-store"

        events = await click_rows(test_db)
        assert len(events) == 1
        event = events[0]
        assert event.url_id == link.id
        assert event.short_code == "promo2024"
        assert event.ip_address == "8.8.8.8"
        assert (event.country_code, event.country_name) == ("US", "United States")
        assert (event.device_type, event.browser, event.os) == ("desktop", "Chrome", "Windows")
        assert (event.referrer_type, event.referrer_source) == ("search", "Google")

        await test_db.refresh(link)
        assert link.click_count == 1

    @pytest.mark.asyncio
    async def test_each_visit_is_recorded(self, client, test_db):
        link = await create_test_link(test_db, short_code="repeat01")

        for _ in range(3):
            response = await client.get("/repeat01", headers={"User-Agent": CHROME_DESKTOP_UA})
            assert response.status_code == 302

        assert len(await click_rows(test_db)) == 3
        await test_db.refresh(link)
        assert link.click_count == 3

    @pytest.mark.asyncio
    async def test_recording_failure_still_redirects(self, client, test_app, test_db, session_factory):
        link = await create_test_link(test_db, short_code="sturdy01", original_url="https://example.com/sturdy")
        failing = AnalyticsRecorder(session_factory, click_repository=FailingClickRepository())
        test_app.dependency_overrides[get_analytics_recorder] = lambda: failing

        response = await client.get("/sturdy01", headers={"User-Agent": CHROME_DESKTOP_UA})

        assert response.status_code == 302
        assert response.headers["location"] == "https://example.com/sturdy"
        assert await click_rows(test_db) == []
        await test_db.refresh(link)
        assert link.click_count == 0

    @pytest.mark.asyncio
    async def test_access_log_failure_still_redirects(self, client, test_db, monkeypatch):
        await create_test_link(test_db, short_code="sturdy02", original_url="https://example.com/logged")

        def broken_access_log(**kwargs):
            raise OSError("log directory is read-only")

        monkeypatch.setattr("linkly.core.decorators.log_redirect_attempt", broken_access_log)

        response = await client.get("/sturdy02")

        assert response.status_code == 302
        assert response.headers["location"] == "https://example.com/logged"
        assert len(await click_rows(test_db)) == 1

    @pytest.mark.asyncio
    async def test_inactive_link_goes_to_not_found(self, client, test_db):
        await create_test_link(test_db, short_code="paused02", is_active=False)

        response = await client.get("/paused02")

        assert response.status_code == 307
        assert response.headers["location"] == "/not-found"
        assert response.headers["cache-control"] == "no-store"
        assert await click_rows(test_db) == []

    @pytest.mark.asyncio
    async def test_unknown_code_goes_to_not_found(self, client, test_db):
        response = await client.get("/nosuchcode")

        assert response.status_code == 307
        assert response.headers["location"] == "/not-found"
        assert await click_rows(test_db) == []

    @pytest.mark.asyncio
    async def test_codes_are_case_sensitive(self, client, test_db):
        await create_test_link(test_db, short_code="MixedCase")

        response = await client.get("/mixedcase")

        assert response.status_code == 307
        assert response.headers["location"] == "/not-found"

    @pytest.mark.parametrize("path", ["/dashboard", "/api", "/Login", "/ab", "/bad.code", "/favicon.ico"])
    @pytest.mark.asyncio
    async def test_reserved_and_malformed_paths_go_home(self, client, test_db, path):
        response = await client.get(path)

        assert response.status_code == 307
        assert response.headers["location"] == "/"
        assert await click_rows(test_db) == []

    @pytest.mark.asyncio
    async def test_request_id_header(self, client, test_db):
        await create_test_link(test_db, short_code="traced01")

        generated = await client.get("/traced01")
        echoed = await client.get("/traced01", headers={"X-Request-ID": "req-123"})

        assert generated.headers["x-request-id"]
        assert echoed.headers["x-request-id"] == "req-123"


@pytest.mark.api
class TestLandingPages:
    """Test suite for the pages redirects fall back to."""

    @pytest.mark.asyncio
    async def test_home(self, client):
        response = await client.get("/")

        assert response.status_code == 200
        assert response.json()["name"]

    @pytest.mark.asyncio
    async def test_not_found_page(self, client):
        response = await client.get("/not-found")

        assert response.status_code == 404
        assert response.headers["cache-control"] == "no-store"
