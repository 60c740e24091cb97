"""Test utilities for Linkly tests."""

import random
import string
from datetime import datetime
from typing import Any, Dict, Optional

from linkly.models.click import ClickEvent
from linkly.models.link import ShortLink

CHROME_DESKTOP_UA = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/122.0.0.0 Safari/537.36"
)
SAFARI_IPHONE_UA = (
    "Mozilla/5.0 (iPhone; CPU iPhone OS 17_2 like Mac OS X) AppleWebKit/605.1.15 "
    "(KHTML, like Gecko) Version/17.2 Mobile/15E148 Safari/604.1"
)
GOOGLEBOT_UA = "Mozilla/5.0 (compatible; Googlebot/2.1; +http://www.google.com/bot.html)"


def random_string(length: int = 10) -> str:
    """Generate a random alphanumeric string."""
    return ''.join(random.choice(string.ascii_letters + string.digits) for _ in range(length))


def random_url() -> str:
    """Generate a random URL for testing."""
    return f"https://{random_string(8).lower()}.com/{random_string(12)}"


def create_test_link_data(
    original_url: Optional[str] = None,
    short_code: Optional[str] = None,
    is_active: bool = True,
    is_custom: bool = False,
    owner_id: Optional[str] = None,
    title: Optional[str] = None,
    click_count: int = 0
) -> Dict[str, Any]:
    """Create test data dict for a ShortLink."""
    return {
        "original_url": original_url or random_url(),
        "short_code": short_code or random_string(8),
        "is_active": is_active,
        "is_custom": is_custom,
        "owner_id": owner_id,
        "title": title,
        "click_count": click_count,
    }


async def create_test_link(db, **kwargs) -> ShortLink:
    """Create and commit a test ShortLink."""
    link = ShortLink(**create_test_link_data(**kwargs))
    db.add(link)
    await db.commit()
    await db.refresh(link)
    return link


async def create_test_click(
    db,
    link: ShortLink,
    clicked_at: Optional[datetime] = None,
    **fields
) -> ClickEvent:
    """Create and commit a test ClickEvent for a link."""
    event = ClickEvent(
        url_id=link.id,
        short_code=link.short_code,
        clicked_at=clicked_at or datetime.utcnow(),
        **fields
    )
    db.add(event)
    await db.commit()
    await db.refresh(event)
    return event
