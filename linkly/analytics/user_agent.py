"""Keyword-based User-Agent classification.

Good enough for dashboard breakdowns; it does not try to be a full UA database.
"""

from dataclasses import dataclass
from typing import Optional

BOT_KEYWORDS = (
    "bot", "crawl", "spider", "slurp", "facebookexternalhit", "embedly",
    "preview", "curl/", "wget/", "python-requests", "httpx", "aiohttp",
    "go-http-client", "java/", "okhttp", "headless", "lighthouse", "pingdom",
    "monitor", "scrapy",
)

# Order matters: Edge, Opera and Samsung Internet also announce Chrome and Safari
BROWSER_KEYWORDS = (
    ("edg/", "Edge"),
    ("edge/", "Edge"),
    ("opr/", "Opera"),
    ("opera", "Opera"),
    ("samsungbrowser", "Samsung Internet"),
    ("firefox/", "Firefox"),
    ("fxios/", "Firefox"),
    ("crios/", "Chrome"),
    ("chrome/", "Chrome"),
    ("chromium/", "Chrome"),
    ("safari/", "Safari"),
    ("msie", "Internet Explorer"),
    ("trident/", "Internet Explorer"),
)

OS_KEYWORDS = (
    ("ipad", "iPadOS"),
    ("iphone", "iOS"),
    ("ipod", "iOS"),
    ("android", "Android"),
    ("windows", "Windows"),
    ("cros", "ChromeOS"),
    ("mac os x", "macOS"),
    ("macintosh", "macOS"),
    ("linux", "Linux"),
)


@dataclass(frozen=True)
class UserAgentInfo:
    device_type: Optional[str] = None
    browser: Optional[str] = None
    os: Optional[str] = None
    is_bot: bool = False


def _first_match(ua: str, table) -> Optional[str]:
    return next((name for keyword, name in table if keyword in ua), None)


def _device_type(ua: str, os_name: Optional[str]) -> str:
    if os_name == "iPadOS" or "tablet" in ua or ("android" in ua and "mobile" not in ua):
        return "tablet"
    if any(keyword in ua for keyword in ("mobile", "iphone", "ipod", "windows phone")):
        return "mobile"
    return "desktop"


def parse_user_agent(user_agent: Optional[str]) -> Optional[UserAgentInfo]:
    """
    Classify a User-Agent header.

    Returns:
        UserAgentInfo, or None when there is nothing to parse
    """
    if not user_agent or not user_agent.strip():
        return None

    ua = user_agent.lower()
    is_bot = any(keyword in ua for keyword in BOT_KEYWORDS)
    os_name = _first_match(ua, OS_KEYWORDS)

    return UserAgentInfo(
        device_type="bot" if is_bot else _device_type(ua, os_name),
        browser=_first_match(ua, BROWSER_KEYWORDS),
        os=os_name,
        is_bot=is_bot,
    )
