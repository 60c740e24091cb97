"""Click analytics: derivation from requests and background persistence."""

from linkly.analytics.extractor import AnalyticsExtractor, ClickAnalytics, get_client_ip
from linkly.analytics.geo import GeoInfo, GeoLookup
from linkly.analytics.recorder import AnalyticsRecorder
from linkly.analytics.referrer import ReferrerInfo, classify_referrer
from linkly.analytics.user_agent import UserAgentInfo, parse_user_agent

__all__ = [
    "AnalyticsExtractor",
    "AnalyticsRecorder",
    "ClickAnalytics",
    "GeoInfo",
    "GeoLookup",
    "ReferrerInfo",
    "UserAgentInfo",
    "classify_referrer",
    "get_client_ip",
    "parse_user_agent",
]
