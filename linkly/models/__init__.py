"""
Data models for the Linkly application.

This module imports and exports all SQLModel models used in the application.
"""

from sqlmodel import SQLModel

from linkly.models.link import (
    ShortLinkBase,
    ShortLinkCreate,
    ShortLinkUpdate,
)
from linkly.models.click import (
    ClickEventBase,
    ClickEventCreate,
    ClickEventRead,
)

# Table models, parent before child
from linkly.models.link import ShortLink
from linkly.models.click import ClickEvent

__all__ = [
    "SQLModel",
    "ClickEvent",
    "ClickEventBase",
    "ClickEventCreate",
    "ClickEventRead",
    "ShortLink",
    "ShortLinkBase",
    "ShortLinkCreate",
    "ShortLinkUpdate",
]
