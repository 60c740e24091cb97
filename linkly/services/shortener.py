"""Link shortening service for the Linkly application.

This module contains the ShortenerService class which implements business logic
for link creation, lookup and owner-side management.
"""

import logging
import re
from typing import Optional, Tuple
from urllib.parse import urlsplit

from sqlalchemy.ext.asyncio import AsyncSession

from linkly.core.config import settings
from linkly.core.telemetry import links_created_counter
from linkly.db.session import db_transaction
from linkly.models.link import ShortLink, ShortLinkUpdate
from linkly.repositories.base import DuplicateEntityError, RepositoryError
from linkly.repositories.link_repository import LinkRepository
from linkly.services.codegen import CodeGenerator
from linkly.services.exceptions import (
    CollisionError,
    GenerationExhausted,
    LinkCreationError,
    LinkUpdateError,
    LinkValidationError,
    NotFoundError,
)
from linkly.services.reserved import is_reserved_path

logger = logging.getLogger(__name__)

CODE_PATTERN = re.compile(r"^[A-Za-z0-9_-]+$")
MAX_URL_LENGTH = 2048


def build_short_url(short_code: str) -> str:
    """Public URL for a short code."""
    return f"{settings.SHORT_LINK_BASE}/{short_code}"


def normalize_url(url: Optional[str]) -> str:
    """
    Validate a submitted destination and give it a scheme.

    A value with no scheme is taken to be ``https://``.

    Raises:
        LinkValidationError: On the ``url`` field
    """
    url = (url or "").strip()
    if len(url) < 2 or "." not in url:
        raise LinkValidationError("url", "Please enter a valid URL")
    if len(url) > MAX_URL_LENGTH:
        raise LinkValidationError("url", f"URL must be at most {MAX_URL_LENGTH} characters long")

    if "://" not in url:
        url = f"https://{url}"

    try:
        parts = urlsplit(url)
        hostname = parts.hostname
    except ValueError as e:
        # Unbalanced IPv6 brackets and the like
        logger.debug(f"Rejected unparsable URL {url!r}: {e}")
        raise LinkValidationError("url", "Please enter a valid URL") from e

    if parts.scheme.lower() not in ("http", "https"):
        raise LinkValidationError("url", "Only http and https URLs can be shortened")
    if not hostname or "." not in hostname or any(c.isspace() for c in url):
        raise LinkValidationError("url", "Please enter a valid URL")

    return url


def validate_custom_code(custom: Optional[str]) -> Optional[str]:
    """
    Validate a requested custom code; blank means none.

    Raises:
        LinkValidationError: On the ``custom`` field
    """
    custom = (custom or "").strip()
    if not custom:
        return None

    if len(custom) < settings.CUSTOM_CODE_MIN_LENGTH:
        raise LinkValidationError(
            "custom", f"Custom URL must be at least {settings.CUSTOM_CODE_MIN_LENGTH} characters long"
        )
    if len(custom) > settings.CUSTOM_CODE_MAX_LENGTH:
        raise LinkValidationError(
            "custom", f"Custom URL must be at most {settings.CUSTOM_CODE_MAX_LENGTH} characters long"
        )
    if not CODE_PATTERN.match(custom):
        raise LinkValidationError(
            "custom", "Custom URL can only contain letters, numbers, hyphens and underscores"
        )
    if is_reserved_path(custom):
        raise LinkValidationError("custom", "This URL is reserved")

    return custom


class ShortenerService:
    """
    Service for link creation and management.

    Creation deduplicates by destination when no custom code is given, and
    treats a UNIQUE violation on a generated code as a reason to draw again.
    """

    def __init__(self, link_repository: LinkRepository, code_generator: Optional[CodeGenerator] = None):
        self.link_repository = link_repository
        self.code_generator = code_generator or CodeGenerator(link_repository)

    @db_transaction(db_param_name="db")
    async def create_link(
        self,
        db: AsyncSession,
        url: str,
        custom: Optional[str] = None,
        title: Optional[str] = None,
        description: Optional[str] = None,
        owner_id: Optional[str] = None,
    ) -> Tuple[ShortLink, bool]:
        """
        Create a short link, or return the existing one for the destination.

        Args:
            db: Database session
            url: Destination URL as submitted
            custom: Optional user-chosen code
            title: Optional title
            description: Optional description
            owner_id: Optional owning account

        Returns:
            Tuple of the link and whether a new row was inserted

        Raises:
            LinkValidationError: If the URL or custom code is malformed or reserved
            CollisionError: If the custom code is already taken
            GenerationExhausted: If no free code could be found
            LinkCreationError: On storage failures
        """
        original_url = normalize_url(url)
        custom_code = validate_custom_code(custom)

        data = {
            "original_url": original_url,
            "title": title or None,
            "description": description or None,
            "owner_id": owner_id,
        }

        try:
            if custom_code:
                return await self._insert_custom(db, custom_code, data), True

            existing = await self.link_repository.find_by_original_url(db, original_url)
            if existing is not None:
                logger.debug(f"Reusing short code {existing.short_code} for {original_url}")
                return existing, False

            return await self._insert_generated(db, data), True
        except RepositoryError as e:
            logger.error(f"Error creating short link: {e}")
            raise LinkCreationError(f"Failed to create short link: {e}") from e

    async def _insert_custom(self, db: AsyncSession, custom_code: str, data: dict) -> ShortLink:
        if await self.link_repository.short_code_exists(db, custom_code):
            raise CollisionError(custom_code)

        try:
            link = await self.link_repository.insert(
                db, {**data, "short_code": custom_code, "is_custom": True}
            )
        except DuplicateEntityError as e:
            # Lost the race to a concurrent request for the same code
            raise CollisionError(custom_code) from e

        links_created_counter.add(1, {"custom": True})
        logger.info(f"Created short link {custom_code} (custom)")
        return link

    async def _insert_generated(self, db: AsyncSession, data: dict) -> ShortLink:
        attempts = self.code_generator.max_attempts
        for _ in range(attempts):
            short_code = await self.code_generator.generate(db)
            try:
                link = await self.link_repository.insert(
                    db, {**data, "short_code": short_code, "is_custom": False}
                )
            except DuplicateEntityError:
                logger.warning(f"Short code {short_code} was taken concurrently, drawing again")
                continue

            links_created_counter.add(1, {"custom": False})
            logger.info(f"Created short link {short_code}")
            return link

        raise GenerationExhausted(attempts)

    async def get_link(self, db: AsyncSession, short_code: str) -> ShortLink:
        """
        Retrieve a link by code, active or not.

        Raises:
            NotFoundError: If no link has this code
        """
        try:
            link = await self.link_repository.find_by_short_code(db, short_code)
        except RepositoryError as e:
            logger.error(f"Error retrieving link by code: {e}")
            raise NotFoundError(f"Failed to retrieve link '{short_code}'") from e

        if link is None:
            raise NotFoundError(f"Link '{short_code}' not found")
        return link

    async def _get_owned(self, db: AsyncSession, link_id: int, owner_id: Optional[str]) -> ShortLink:
        link = await self.link_repository.get_by_id(db, link_id)
        # Someone else's link is reported the same way as a missing one.
        # An owned link only changes for its owner; an anonymous one for anonymous callers.
        if link is None or link.owner_id != owner_id:
            raise NotFoundError(f"Link {link_id} not found")
        return link

    @db_transaction(db_param_name="db")
    async def toggle_active(self, db: AsyncSession, link_id: int, owner_id: Optional[str] = None) -> ShortLink:
        """
        Flip a link between active and inactive.

        Raises:
            NotFoundError: If the link is missing or owned by someone else
            LinkUpdateError: On storage failures
        """
        try:
            link = await self._get_owned(db, link_id, owner_id)
            updated = await self.link_repository.set_active(db, link_id, not link.is_active)
        except RepositoryError as e:
            logger.error(f"Error toggling link {link_id}: {e}")
            raise LinkUpdateError(f"Failed to toggle link {link_id}") from e

        logger.info(f"Link {updated.short_code} is now {'active' if updated.is_active else 'inactive'}")
        return updated

    @db_transaction(db_param_name="db")
    async def update_metadata(
        self,
        db: AsyncSession,
        link_id: int,
        data: ShortLinkUpdate,
        owner_id: Optional[str] = None,
    ) -> ShortLink:
        """
        Update the title and description of a link.

        Raises:
            NotFoundError: If the link is missing or owned by someone else
            LinkUpdateError: On storage failures
        """
        try:
            await self._get_owned(db, link_id, owner_id)
            return await self.link_repository.update_metadata(db, link_id, data)
        except RepositoryError as e:
            logger.error(f"Error updating link {link_id}: {e}")
            raise LinkUpdateError(f"Failed to update link {link_id}") from e
