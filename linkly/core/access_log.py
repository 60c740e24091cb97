"""Redirect attempt logging using Loguru's built-in async features."""

import os
from datetime import datetime
from typing import Optional

from loguru import logger

from linkly.core.config import settings

access_logger = None
_sink_ids = []


def _is_access_record(record) -> bool:
    return record["extra"].get("event_type") == "redirect_attempt"


def setup_access_logging():
    """Configure the redirect access logger with async processing.

    Records are bound with ``event_type="redirect_attempt"`` and routed only to
    the access log sinks; the application sinks filter them out.
    """
    global access_logger

    os.makedirs(settings.LOG_DIR, exist_ok=True)

    access_logger = logger.bind(event_type="redirect_attempt")

    if _sink_ids:
        return access_logger

    _sink_ids.append(logger.add(
        os.path.join(settings.LOG_DIR, "access.log"),
        format="{time:YYYY-MM-DD HH:mm:ss.SSS} | {level} | IP:{extra[ip]} | Code:{extra[short_code]} | {message}",
        rotation=settings.LOG_ROTATION,
        retention=settings.LOG_RETENTION,
        enqueue=True,  # Loguru's internal queue keeps writes off the request path
        level="INFO",
        backtrace=False,
        diagnose=False,
        filter=_is_access_record,
    ))

    _sink_ids.append(logger.add(
        os.path.join(settings.LOG_DIR, "access.json"),
        serialize=True,
        enqueue=True,
        level="INFO",
        filter=_is_access_record,
    ))

    return access_logger


def reset_access_logging() -> None:
    """Forget registered sinks after ``logger.remove()`` dropped them."""
    global access_logger
    access_logger = None
    _sink_ids.clear()


def log_redirect_attempt(
    short_code: str,
    ip_address: Optional[str],
    user_agent: str = "",
    referer: str = "",
) -> None:
    """
    Log a redirect attempt using Loguru's non-blocking logging.

    Called for every request to a short code, whether or not it resolves.

    Args:
        short_code: The path segment that was requested
        ip_address: The client's IP address
        user_agent: Optional user agent string
        referer: Optional Referer header
    """
    if not settings.ACCESS_LOG_ENABLED:
        return

    if access_logger is None:
        setup_access_logging()

    access_logger.bind(
        ip=ip_address or "unknown",
        short_code=short_code,
        user_agent=user_agent,
        referer=referer,
        timestamp=datetime.utcnow().isoformat()
    ).info(f"Redirect attempt: {short_code}")
