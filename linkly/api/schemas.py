"""API request and response schemas.

This module contains Pydantic models for API request validation
and response serialization.
"""

from datetime import datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from linkly.models.click import ClickEventRead


class ShortenRequest(BaseModel):
    """Request schema for creating a short link.

    ``url`` is validated by the service so that bad input comes back as a
    field error rather than a 422.
    """
    url: str = ""
    custom: Optional[str] = None
    title: Optional[str] = Field(None, max_length=100)
    description: Optional[str] = Field(None, max_length=200)
    owner_id: Optional[str] = Field(None, max_length=64)


class ShortenResponse(BaseModel):
    """Response schema for a created (or reused) short link."""
    link: str
    short_code: str


class ErrorResponse(BaseModel):
    """Field-level errors, keyed by form field (``url``, ``custom`` or ``form``)."""
    errors: Dict[str, str]


class LinkResponse(BaseModel):
    """Response schema for link information."""
    model_config = ConfigDict(from_attributes=True)

    id: int
    short_code: str
    short_url: str
    original_url: str
    title: Optional[str] = None
    description: Optional[str] = None
    owner_id: Optional[str] = None
    is_active: bool
    is_custom: bool
    click_count: int
    created_at: datetime
    updated_at: Optional[datetime] = None


class LinkUpdateRequest(BaseModel):
    """Request schema for updating link metadata."""
    title: Optional[str] = Field(None, max_length=100)
    description: Optional[str] = Field(None, max_length=200)


class DayPoint(BaseModel):
    """Clicks on one day, split by device type."""
    date: str
    total: int
    mobile: int
    desktop: int
    tablet: int
    bot: int
    unknown: int


class HourPoint(BaseModel):
    hour: int
    count: int


class CountryCount(BaseModel):
    country_code: str
    country_name: Optional[str] = None
    count: int


class LanguageCount(BaseModel):
    code: str
    language: str
    count: int


class BotBreakdown(BaseModel):
    bot: int
    human: int


class TopLink(BaseModel):
    short_code: str
    original_url: str
    clicks: int


class ClickStats(BaseModel):
    """Aggregates shared by per-link and overall analytics."""
    total_clicks: int
    unique_clicks: int
    clicks_today: int
    clicks_yesterday: int
    clicks_this_week: int
    clicks_this_month: int
    top_countries: List[CountryCount]
    top_browsers: List[Dict[str, object]]
    top_devices: List[Dict[str, object]]
    top_os: List[Dict[str, object]]
    referrer_types: List[Dict[str, object]]
    top_referrers: List[Dict[str, object]]
    top_referrer_sources: List[Dict[str, object]]
    top_languages: List[LanguageCount]
    clicks_by_day: List[DayPoint]
    clicks_by_hour: List[HourPoint]
    bot_vs_human: BotBreakdown
    recent_clicks: List[ClickEventRead]


class LinkStatsResponse(ClickStats):
    """Response schema for one link's analytics."""
    short_code: str
    original_url: str
    created_at: datetime


class OverallStatsResponse(ClickStats):
    """Response schema for analytics across links."""
    total_links: int
    top_links: List[TopLink]


class HealthResponse(BaseModel):
    """Health check response."""
    status: str
    version: str
    timestamp: datetime
    components: Dict[str, Dict[str, object]] = {}
