"""Path segments that can never be short codes."""

from typing import FrozenSet, Optional

from linkly.core.config import settings

RESERVED_PATHS: FrozenSet[str] = frozenset({
    # Application routes
    "dashboard", "analytics", "auth", "login", "register", "signup", "signin",
    "logout", "api", "docs", "redoc", "openapi.json", "pricing", "health",
    "shorten",
    # Framework paths
    "_next", "_vercel", "static",
    # Common web paths
    "admin", "administrator", "root", "www", "mail", "email", "blog", "news",
    "help", "support", "contact", "about", "terms", "privacy", "policy", "legal",
    # Well-known files
    "favicon.ico", "robots.txt", "sitemap.xml", ".well-known",
    # Status and error pages
    "404", "500", "not-found", "error",
    # Short words that read like system routes
    "url", "link", "redirect", "go", "r", "l", "short",
    # Social networks
    "facebook", "twitter", "instagram", "linkedin", "youtube", "tiktok",
    # Protocols
    "security", "ssl", "tls", "https", "http",
})


def is_reserved_path(code: Optional[str], min_length: Optional[int] = None) -> bool:
    """Whether a path segment shadows a system route or is too short to be a code.

    Matching is case-insensitive. No I/O.
    """
    if not code:
        return True

    if min_length is None:
        min_length = settings.MIN_PATH_LENGTH
    if len(code) < min_length:
        return True

    return code.lower() in RESERVED_PATHS
