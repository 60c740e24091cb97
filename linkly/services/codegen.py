"""Random short code generation."""

import logging
import secrets
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from linkly.core.config import settings
from linkly.repositories.link_repository import LinkRepository
from linkly.services.exceptions import GenerationExhausted
from linkly.services.reserved import is_reserved_path

logger = logging.getLogger(__name__)


class CodeGenerator:
    """
    Samples random codes until one is free.

    Existence is checked against every row, active or not, so a revoked code
    is never reissued. The check is optimistic; the UNIQUE constraint on
    insert has the final word.
    """

    def __init__(
        self,
        link_repository: LinkRepository,
        length: Optional[int] = None,
        alphabet: Optional[str] = None,
        max_attempts: Optional[int] = None,
    ):
        self.link_repository = link_repository
        self.length = length or settings.CODE_LENGTH
        self.alphabet = alphabet or settings.CODE_ALPHABET
        self.max_attempts = max_attempts or settings.CODE_MAX_ATTEMPTS

    def sample(self) -> str:
        """Draw one candidate code uniformly from the alphabet."""
        return "".join(secrets.choice(self.alphabet) for _ in range(self.length))

    async def generate(self, db: AsyncSession) -> str:
        """
        Return a code that no row currently holds.

        Raises:
            GenerationExhausted: If every attempt hit a taken or reserved code
            RepositoryError: If the existence check fails
        """
        for attempt in range(1, self.max_attempts + 1):
            candidate = self.sample()
            if is_reserved_path(candidate):
                continue
            if not await self.link_repository.short_code_exists(db, candidate):
                if attempt > 1:
                    logger.info(f"Found free short code after {attempt} attempts")
                return candidate

        logger.error(f"Short code generation exhausted after {self.max_attempts} attempts")
        raise GenerationExhausted(self.max_attempts)
