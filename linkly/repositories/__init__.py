"""Repositories for database access."""

from linkly.repositories.base import (
    BaseRepository,
    DuplicateEntityError,
    RepositoryError,
)
from linkly.repositories.click_repository import ClickRepository
from linkly.repositories.link_repository import LinkRepository

__all__ = [
    "BaseRepository",
    "ClickRepository",
    "DuplicateEntityError",
    "LinkRepository",
    "RepositoryError",
]
