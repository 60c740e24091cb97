"""Referer header classification.

Types: ``direct``, ``social``, ``search``, ``email``, ``ad`` and ``website``.
"""

from dataclasses import dataclass
from typing import Optional
from urllib.parse import parse_qs, urlsplit

SOCIAL_SOURCES = {
    "facebook.com": "Facebook",
    "fb.com": "Facebook",
    "fb.me": "Facebook",
    "instagram.com": "Instagram",
    "twitter.com": "Twitter",
    "t.co": "Twitter",
    "x.com": "Twitter",
    "linkedin.com": "LinkedIn",
    "lnkd.in": "LinkedIn",
    "reddit.com": "Reddit",
    "youtube.com": "YouTube",
    "youtu.be": "YouTube",
    "tiktok.com": "TikTok",
    "pinterest.com": "Pinterest",
    "tumblr.com": "Tumblr",
    "whatsapp.com": "WhatsApp",
    "wa.me": "WhatsApp",
    "telegram.org": "Telegram",
    "t.me": "Telegram",
    "discord.com": "Discord",
    "snapchat.com": "Snapchat",
    "threads.net": "Threads",
    "news.ycombinator.com": "Hacker News",
}

SEARCH_SOURCES = {
    "google": "Google",
    "bing": "Bing",
    "yahoo": "Yahoo",
    "duckduckgo": "DuckDuckGo",
    "baidu": "Baidu",
    "yandex": "Yandex",
    "ecosia": "Ecosia",
    "ask": "Ask",
    "search.brave": "Brave",
    "startpage": "Startpage",
}

EMAIL_SOURCES = {
    "mail.google.com": "Gmail",
    "outlook.live.com": "Outlook",
    "outlook.office.com": "Outlook",
    "outlook.office365.com": "Outlook",
    "mail.yahoo.com": "Yahoo Mail",
    "mail.proton.me": "Proton Mail",
    "mail.aol.com": "AOL Mail",
}

AD_CLICK_PARAMS = ("gclid", "msclkid", "dclid")
AD_MEDIUMS = frozenset({"cpc", "ppc", "paid", "display"})


@dataclass(frozen=True)
class ReferrerInfo:
    type: str
    domain: Optional[str] = None
    source: Optional[str] = None


DIRECT = ReferrerInfo(type="direct")


def _match_domain(domain: str, table: dict) -> Optional[str]:
    """Match a host or any parent domain of it against a table."""
    parts = domain.split(".")
    for i in range(len(parts) - 1):
        source = table.get(".".join(parts[i:]))
        if source:
            return source
    return None


def _match_search(domain: str) -> Optional[str]:
    labels = domain.split(".")
    for key, name in SEARCH_SOURCES.items():
        if "." in key:
            if key in domain:
                return name
        elif key in labels[:-1]:
            return name
    return None


def classify_referrer(referer: Optional[str]) -> ReferrerInfo:
    """
    Classify a Referer header.

    A missing or unparsable header counts as direct traffic.
    """
    if not referer or not referer.strip():
        return DIRECT

    try:
        parts = urlsplit(referer.strip())
        host = (parts.hostname or "").lower()
        query = parse_qs(parts.query)
    except ValueError:
        return DIRECT

    if not host:
        return DIRECT

    domain = host[4:] if host.startswith("www.") else host

    utm_medium = (query.get("utm_medium") or [""])[0].lower()
    if any(param in query for param in AD_CLICK_PARAMS) or utm_medium in AD_MEDIUMS:
        utm_source = (query.get("utm_source") or [None])[0]
        return ReferrerInfo(type="ad", domain=domain, source=utm_source or domain)

    source = _match_domain(domain, EMAIL_SOURCES)
    if source or utm_medium == "email":
        return ReferrerInfo(type="email", domain=domain, source=source or domain)

    source = _match_domain(domain, SOCIAL_SOURCES)
    if source:
        return ReferrerInfo(type="social", domain=domain, source=source)

    source = _match_search(domain)
    if source:
        return ReferrerInfo(type="search", domain=domain, source=source)

    return ReferrerInfo(type="website", domain=domain, source=domain)
