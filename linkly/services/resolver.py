"""Short code resolution for the public redirect endpoint.

A request moves through ``received -> classified -> {lookup, short circuit}``
and ends as one of the outcomes below. Nothing in here raises: store errors
end as ``error``, which the client sees exactly like ``not_found``.
"""

import logging
import re
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from linkly.core.config import settings
from linkly.core.telemetry import redirect_counter
from linkly.repositories.link_repository import LinkRepository
from linkly.services.reserved import is_reserved_path

logger = logging.getLogger(__name__)

PATH_PATTERN = re.compile(r"^[A-Za-z0-9_-]+$")


class Outcome(str, Enum):
    SHORT_CIRCUIT = "short_circuit"
    RESOLVED = "resolved"
    NOT_FOUND = "not_found"
    ERROR = "error"


@dataclass(frozen=True)
class Resolution:
    """Where to send the client and why."""

    outcome: Outcome
    location: str
    status_code: int
    link_id: Optional[int] = None

    @property
    def resolved(self) -> bool:
        return self.outcome is Outcome.RESOLVED


class RedirectResolver:
    """Decides the redirect for a requested path segment."""

    # Temporary redirects only: 302 for a hit, 307 for everything else
    RESOLVED_STATUS = 302
    FALLBACK_STATUS = 307

    def __init__(self, link_repository: LinkRepository):
        self.link_repository = link_repository

    def classify(self, code: str) -> Optional[Resolution]:
        """
        Short-circuit paths that are not short codes.

        Returns:
            A redirect home for reserved, too short or malformed paths, or
            None when the path should be looked up
        """
        if is_reserved_path(code) or not PATH_PATTERN.match(code):
            return self._finish(Resolution(Outcome.SHORT_CIRCUIT, settings.HOME_PATH, self.FALLBACK_STATUS))
        return None

    async def lookup(self, db: AsyncSession, code: str) -> Resolution:
        """Look up an active link for a classified code."""
        if len(code) > settings.CUSTOM_CODE_MAX_LENGTH:
            return self._finish(self._not_found())

        try:
            link = await self.link_repository.find_active_by_short_code(db, code)
        except Exception as e:
            logger.error(f"Lookup failed for short code {code}: {e}")
            return self._finish(self._not_found(Outcome.ERROR))

        if link is None or not link.original_url:
            return self._finish(self._not_found())

        return self._finish(
            Resolution(Outcome.RESOLVED, link.original_url, self.RESOLVED_STATUS, link_id=link.id)
        )

    async def resolve(self, db: AsyncSession, code: str) -> Resolution:
        """Classify and, when needed, look up a path segment."""
        return self.classify(code) or await self.lookup(db, code)

    def _not_found(self, outcome: Outcome = Outcome.NOT_FOUND) -> Resolution:
        return Resolution(outcome, settings.NOT_FOUND_PATH, self.FALLBACK_STATUS)

    @staticmethod
    def _finish(resolution: Resolution) -> Resolution:
        redirect_counter.add(1, {"outcome": resolution.outcome.value})
        return resolution
