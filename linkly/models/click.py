"""
Click event data models.

This module defines the ClickEvent model, one row per resolved redirect.
"""

from datetime import datetime
from typing import Optional, TYPE_CHECKING

from sqlalchemy import Index
from sqlmodel import Field, Relationship, SQLModel

if TYPE_CHECKING:
    from .link import ShortLink


class ClickEventBase(SQLModel):
    """Base model for click event data."""

    short_code: str = Field(max_length=20)
    clicked_at: datetime = Field(
        default_factory=datetime.utcnow,
        description="Capture time of the redirect",
    )

    # Raw request attributes, captured verbatim
    ip_address: Optional[str] = Field(default=None, max_length=45)  # IPv4 and IPv6
    user_agent: Optional[str] = Field(default=None, max_length=1024)
    referer: Optional[str] = Field(default=None, max_length=2048)
    accept_language: Optional[str] = Field(default=None, max_length=255)

    # Derived attributes, absent when the derivation failed
    country_code: Optional[str] = Field(default=None, max_length=2)
    country_name: Optional[str] = Field(default=None, max_length=100)
    device_type: Optional[str] = Field(default=None, max_length=20)
    browser: Optional[str] = Field(default=None, max_length=50)
    os: Optional[str] = Field(default=None, max_length=50)
    is_bot: bool = Field(default=False)
    referrer_type: Optional[str] = Field(default=None, max_length=20)
    referrer_domain: Optional[str] = Field(default=None, max_length=255)
    referrer_source: Optional[str] = Field(default=None, max_length=100)


class ClickEvent(ClickEventBase, table=True):
    """
    Click event model recording a single resolved redirect.

    Rows are written from a background task after the redirect response has
    been produced and are never updated afterwards.
    """

    __tablename__ = "click_events"

    id: Optional[int] = Field(default=None, primary_key=True)
    url_id: int = Field(
        foreign_key="short_links.id",
        description="The short link that was resolved",
    )

    link: "ShortLink" = Relationship(
        back_populates="clicks",
        sa_relationship_kwargs={"lazy": "noload", "passive_deletes": True},
    )

    __table_args__ = (
        Index("ix_click_events_url_id_clicked_at", "url_id", "clicked_at"),
        Index("ix_click_events_clicked_at", "clicked_at"),
    )


class ClickEventCreate(ClickEventBase):
    """Schema for creating a click event record."""
    url_id: int


class ClickEventRead(ClickEventBase):
    """Schema for reading a click event."""
    id: int
    url_id: int
