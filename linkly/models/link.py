"""Short link data models.

This module defines the ShortLink model for storing short codes and their destinations.
"""
from datetime import datetime
from typing import List, Optional, TYPE_CHECKING

from sqlalchemy import Index
from sqlmodel import Field, Relationship, SQLModel

if TYPE_CHECKING:
    from .click import ClickEvent


class ShortLinkBase(SQLModel):
    """Base model for short link data."""

    original_url: str = Field(
        description="The destination URL to redirect to",
        max_length=2048,
        index=True,  # Destination dedup lookups
    )
    short_code: str = Field(
        description="Unique code used as the path segment",
        min_length=3,
        max_length=20,
        unique=True,
    )
    title: Optional[str] = Field(default=None, max_length=100)
    description: Optional[str] = Field(default=None, max_length=200)
    owner_id: Optional[str] = Field(
        default=None,
        max_length=64,
        index=True,
        description="Account that owns the link; anonymous links have none",
    )
    is_active: bool = Field(
        default=True,
        description="Inactive links resolve as not found",
    )
    is_custom: bool = Field(
        default=False,
        description="Whether the short code was chosen by the user",
    )


class ShortLink(ShortLinkBase, table=True):
    """
    Short link model mapping a short code to its destination.

    The short code is unique across all rows, active or not, so a revoked
    code is never handed out again. ``click_count`` is a denormalized cache
    of the click event log, which stays the authoritative count.
    """

    __tablename__ = "short_links"

    id: Optional[int] = Field(default=None, primary_key=True)
    click_count: int = Field(default=0, description="Advisory click counter")
    created_at: datetime = Field(
        default_factory=datetime.utcnow,
        description="Timestamp when this link was created",
    )
    updated_at: Optional[datetime] = Field(default=None)

    clicks: List["ClickEvent"] = Relationship(
        back_populates="link",
        sa_relationship_kwargs={
            "cascade": "all, delete-orphan",
            "passive_deletes": True,
            "lazy": "noload",  # Events are read through the click repository
        },
    )

    __table_args__ = (
        Index("ix_short_links_code_active", "short_code", "is_active"),
        Index("ix_short_links_created_at", "created_at"),
    )


class ShortLinkCreate(ShortLinkBase):
    """Schema for inserting a new short link."""
    pass


class ShortLinkUpdate(SQLModel):
    """Schema for updating the mutable metadata of a short link."""
    title: Optional[str] = Field(default=None, max_length=100)
    description: Optional[str] = Field(default=None, max_length=200)
