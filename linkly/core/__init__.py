"""Core module for the Linkly application."""

from linkly.core.config import settings

__all__ = ["settings"]
