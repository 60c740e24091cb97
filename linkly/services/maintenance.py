"""Maintenance service for the Linkly application.

This module contains the MaintenanceService class, which keeps the advisory
click counters on links in line with the click event log.
"""

import logging
from datetime import datetime
from typing import Any, Dict

from sqlalchemy.ext.asyncio import AsyncSession

from linkly.repositories.base import RepositoryError
from linkly.repositories.link_repository import LinkRepository
from linkly.services.exceptions import MaintenanceError

logger = logging.getLogger(__name__)


class MaintenanceService:
    """Service for periodic data maintenance."""

    def __init__(self, link_repository: LinkRepository):
        self.link_repository = link_repository

    async def reconcile_click_counts(self, db: AsyncSession) -> Dict[str, Any]:
        """
        Rewrite every drifted ``click_count`` from the click event log.

        The caller commits.

        Returns:
            Dict with the number of corrected links and the execution time

        Raises:
            MaintenanceError: If reconciliation fails
        """
        start_time = datetime.utcnow()
        try:
            corrected = await self.link_repository.reconcile_click_counts(db)
        except RepositoryError as e:
            logger.error(f"Error reconciling click counts: {e}", exc_info=True)
            raise MaintenanceError(f"Failed to reconcile click counts: {e}") from e

        execution_time = (datetime.utcnow() - start_time).total_seconds()
        if corrected:
            logger.info(f"Reconciled click counts for {corrected} links in {execution_time:.2f}s")
        else:
            logger.debug("Click counts already match the event log")

        return {
            "corrected": corrected,
            "execution_time": execution_time,
            "timestamp": datetime.utcnow().isoformat(),
        }
