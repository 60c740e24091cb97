"""Builds the click record for a redirect from the inbound request.

Each derivation (user agent, geo, referrer) is independent and degrades to
absent fields on its own; ``extract`` never raises.
"""

import logging
from dataclasses import asdict, dataclass, field
from datetime import datetime
from typing import Any, Dict, Optional

from fastapi import Request

from linkly.analytics.geo import GeoInfo, GeoLookup
from linkly.analytics.referrer import ReferrerInfo, classify_referrer
from linkly.analytics.user_agent import UserAgentInfo, parse_user_agent
from linkly.core.config import settings

logger = logging.getLogger(__name__)

MAX_USER_AGENT_LENGTH = 1024
MAX_REFERER_LENGTH = 2048
MAX_ACCEPT_LANGUAGE_LENGTH = 255


@dataclass
class ClickAnalytics:
    """A click event minus the link it belongs to."""

    short_code: str
    clicked_at: datetime = field(default_factory=datetime.utcnow)
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
    referer: Optional[str] = None
    accept_language: Optional[str] = None
    country_code: Optional[str] = None
    country_name: Optional[str] = None
    device_type: Optional[str] = None
    browser: Optional[str] = None
    os: Optional[str] = None
    is_bot: bool = False
    referrer_type: Optional[str] = None
    referrer_domain: Optional[str] = None
    referrer_source: Optional[str] = None

    def to_event(self, url_id: int) -> Dict[str, Any]:
        """Column values for the click event row."""
        return {**asdict(self), "url_id": url_id}


def _clip(value: Optional[str], limit: int) -> Optional[str]:
    return value[:limit] if value else None


def get_client_ip(request: Request, trust_proxy_headers: Optional[bool] = None) -> Optional[str]:
    """
    The caller's IP address.

    With proxy headers trusted, the first ``X-Forwarded-For`` hop wins, then
    ``X-Real-IP``, then the socket peer.
    """
    if trust_proxy_headers is None:
        trust_proxy_headers = settings.TRUST_PROXY_HEADERS

    if trust_proxy_headers:
        forwarded = request.headers.get("x-forwarded-for")
        if forwarded:
            first_hop = forwarded.split(",")[0].strip()
            if first_hop:
                return first_hop[:45]
        real_ip = request.headers.get("x-real-ip")
        if real_ip and real_ip.strip():
            return real_ip.strip()[:45]

    return request.client.host if request.client else None


class AnalyticsExtractor:
    """Derives a ClickAnalytics record from a request."""

    def __init__(self, geo_lookup: Optional[GeoLookup] = None, trust_proxy_headers: Optional[bool] = None):
        self.geo_lookup = geo_lookup or GeoLookup(settings.GEO_COUNTRY_HEADERS)
        if trust_proxy_headers is None:
            trust_proxy_headers = settings.TRUST_PROXY_HEADERS
        self.trust_proxy_headers = trust_proxy_headers

    def extract(self, request: Request, short_code: str) -> ClickAnalytics:
        """Capture raw request attributes and derive what can be derived."""
        headers = request.headers
        analytics = ClickAnalytics(short_code=short_code)

        try:
            analytics.ip_address = get_client_ip(request, self.trust_proxy_headers)
            analytics.user_agent = _clip(headers.get("user-agent"), MAX_USER_AGENT_LENGTH)
            analytics.referer = _clip(headers.get("referer"), MAX_REFERER_LENGTH)
            analytics.accept_language = _clip(headers.get("accept-language"), MAX_ACCEPT_LANGUAGE_LENGTH)
        except Exception as e:
            logger.warning(f"Could not read request attributes for {short_code}: {e}")

        self._apply_user_agent(analytics)
        self._apply_geo(analytics, headers)
        self._apply_referrer(analytics)
        return analytics

    def _apply_user_agent(self, analytics: ClickAnalytics) -> None:
        try:
            info: Optional[UserAgentInfo] = parse_user_agent(analytics.user_agent)
        except Exception as e:
            logger.warning(f"User agent parsing failed: {e}")
            return
        if info is not None:
            analytics.device_type = info.device_type
            analytics.browser = info.browser
            analytics.os = info.os
            analytics.is_bot = info.is_bot

    def _apply_geo(self, analytics: ClickAnalytics, headers) -> None:
        # Country headers come from the same edge as X-Forwarded-For
        if not self.trust_proxy_headers:
            return
        try:
            info: Optional[GeoInfo] = self.geo_lookup.lookup(analytics.ip_address, headers)
        except Exception as e:
            logger.warning(f"Geo lookup failed: {e}")
            return
        if info is not None:
            analytics.country_code = info.country_code
            analytics.country_name = info.country_name

    def _apply_referrer(self, analytics: ClickAnalytics) -> None:
        try:
            info: ReferrerInfo = classify_referrer(analytics.referer)
        except Exception as e:
            logger.warning(f"Referrer classification failed: {e}")
            return
        analytics.referrer_type = info.type
        analytics.referrer_domain = _clip(info.domain, 255)
        analytics.referrer_source = _clip(info.source, 100)
