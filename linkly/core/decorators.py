"""Decorators for the Linkly application.

This module contains reusable decorators for route handlers.
"""

import functools

from fastapi import Request
from loguru import logger

from linkly.analytics.extractor import get_client_ip
from linkly.core.access_log import log_redirect_attempt


def log_redirect_attempt_decorator(code_param: str = "code"):
    """Access-log every request to a short code before the handler runs.

    Keeps the route's signature, so FastAPI still injects its dependencies.

    Args:
        code_param: Name of the path parameter holding the short code
    """
    def decorator(func):
        @functools.wraps(func)
        async def wrapper(*args, **kwargs):
            request: Request = kwargs["request"]
            short_code = kwargs.get(code_param, "")
            try:
                log_redirect_attempt(
                    short_code=short_code,
                    ip_address=get_client_ip(request),
                    user_agent=request.headers.get("user-agent", ""),
                    referer=request.headers.get("referer", ""),
                )
            except Exception as e:
                # The redirect goes ahead without its access log entry
                logger.warning(f"Access log failed for short code {short_code}: {e}")
            return await func(*args, **kwargs)
        return wrapper
    return decorator
