"""Persists click events off the redirect path.

``record`` runs as a background task after the redirect response has been
sent. It opens its own sessions and never raises.
"""

import logging
from typing import Optional

from sqlalchemy.ext.asyncio import async_sessionmaker

from linkly.analytics.extractor import ClickAnalytics
from linkly.core.telemetry import clicks_recorded_counter
from linkly.db.session import SessionManager
from linkly.repositories.click_repository import ClickRepository
from linkly.repositories.link_repository import LinkRepository
from linkly.services.exceptions import AnalyticsPersistError

logger = logging.getLogger(__name__)


class AnalyticsRecorder:
    """
    Writes one click event per resolved redirect.

    The event insert and the counter increment run in separate transactions:
    the event log is authoritative, so a failed increment leaves a drift that
    counter reconciliation repairs rather than losing the event.
    """

    def __init__(
        self,
        session_factory: Optional[async_sessionmaker] = None,
        click_repository: Optional[ClickRepository] = None,
        link_repository: Optional[LinkRepository] = None,
    ):
        self.session_factory = session_factory
        self.click_repository = click_repository or ClickRepository()
        self.link_repository = link_repository or LinkRepository()

    async def record(self, url_id: int, analytics: ClickAnalytics) -> bool:
        """
        Store the click event, then bump the link's counter.

        Returns:
            True if the event row was committed
        """
        try:
            async with SessionManager.transaction_context(self.session_factory) as db:
                await self.click_repository.record_click(db, analytics.to_event(url_id))
        except Exception as e:
            error = AnalyticsPersistError(f"Failed to store click for link {url_id}: {e}")
            logger.error(str(error))
            clicks_recorded_counter.add(1, {"result": "failed"})
            return False

        try:
            async with SessionManager.transaction_context(self.session_factory) as db:
                await self.link_repository.increment_click_count(db, url_id)
        except Exception as e:
            logger.warning(f"Click counter increment failed for link {url_id}, left for reconciliation: {e}")

        clicks_recorded_counter.add(1, {"result": "stored"})
        logger.debug(f"Recorded click on {analytics.short_code} (link {url_id})")
        return True
