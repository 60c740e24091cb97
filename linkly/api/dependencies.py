"""API dependencies for FastAPI.

This module provides dependency injection functions for FastAPI endpoints
to access repositories and service instances.
"""

from fastapi import Depends

from linkly.analytics.extractor import AnalyticsExtractor
from linkly.analytics.recorder import AnalyticsRecorder
from linkly.db.base import async_session_factory
from linkly.repositories.click_repository import ClickRepository
from linkly.repositories.link_repository import LinkRepository
from linkly.services.resolver import RedirectResolver
from linkly.services.shortener import ShortenerService
from linkly.services.stats import StatsService


async def get_link_repository() -> LinkRepository:
    """Get an instance of the link repository."""
    return LinkRepository()


async def get_click_repository() -> ClickRepository:
    """Get an instance of the click repository."""
    return ClickRepository()


async def get_shortener_service(
    link_repo: LinkRepository = Depends(get_link_repository),
) -> ShortenerService:
    """Get an instance of the link shortening service."""
    return ShortenerService(link_repository=link_repo)


async def get_stats_service(
    click_repo: ClickRepository = Depends(get_click_repository),
    link_repo: LinkRepository = Depends(get_link_repository),
) -> StatsService:
    """Get an instance of the statistics service."""
    return StatsService(click_repository=click_repo, link_repository=link_repo)


async def get_redirect_resolver(
    link_repo: LinkRepository = Depends(get_link_repository),
) -> RedirectResolver:
    """Get an instance of the redirect resolver."""
    return RedirectResolver(link_repository=link_repo)


async def get_analytics_extractor() -> AnalyticsExtractor:
    """Get an instance of the analytics extractor."""
    return AnalyticsExtractor()


async def get_analytics_recorder() -> AnalyticsRecorder:
    """Get a recorder that opens its own sessions for background writes."""
    return AnalyticsRecorder(session_factory=async_session_factory)
