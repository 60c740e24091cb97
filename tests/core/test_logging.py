"""Tests for access and request logging."""

import pytest
from loguru import logger

from linkly.core.access_log import log_redirect_attempt
from tests.utils import CHROME_DESKTOP_UA


@pytest.fixture
def captured():
    """Collect loguru records emitted while the test runs."""
    records = []
    sink_id = logger.add(lambda message: records.append(message.record), level="DEBUG")
    yield records
    logger.remove(sink_id)


def access_records(records):
    return [record for record in records if record["extra"].get("event_type") == "redirect_attempt"]


@pytest.mark.core
class TestAccessLog:
    """Test suite for the redirect access log."""

    def test_redirect_attempt_record(self, captured):
        log_redirect_attempt("promo2024", "8.8.8.8", user_agent=CHROME_DESKTOP_UA, referer="https://t.co/x")

        [record] = access_records(captured)
        assert record["extra"]["short_code"] == "promo2024"
        assert record["extra"]["ip"] == "8.8.8.8"
        assert record["extra"]["referer"] == "https://t.co/x"
        assert record["level"].name == "INFO"

    def test_missing_ip_is_logged_as_unknown(self, captured):
        log_redirect_attempt("promo2024", None)

        [record] = access_records(captured)
        assert record["extra"]["ip"] == "unknown"

    @pytest.mark.asyncio
    async def test_every_redirect_request_is_logged(self, client, captured):
        """Reserved paths are logged even though they never reach a lookup."""
        await client.get("/dashboard", headers={"X-Forwarded-For": "8.8.8.8"})
        await client.get("/nosuchcode")

        codes = [record["extra"]["short_code"] for record in access_records(captured)]
        assert codes == ["dashboard", "nosuchcode"]


@pytest.mark.core
class TestRequestLogging:
    """Test suite for the request logging middleware."""

    @pytest.mark.asyncio
    async def test_request_record(self, client, captured):
        await client.get("/api/health/live", headers={"X-Request-ID": "req-456"})

        [record] = [record for record in captured if record["level"].name == "REQUEST"]
        assert record["extra"]["path"] == "/api/health/live"
        assert record["extra"]["status_code"] == 200
        assert record["extra"]["request_id"] == "req-456"
