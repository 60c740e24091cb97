"""
Request logging middleware for FastAPI using Loguru.

Emits one ``REQUEST`` level record per HTTP request and tags every response
with an ``X-Request-ID`` header.
"""

import time
import uuid

from loguru import logger
from starlette.datastructures import MutableHeaders
from starlette.requests import Request
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from linkly.analytics.extractor import get_client_ip


class LoggingMiddleware:
    """
    Pure ASGI request logger.

    Written against the raw ASGI interface rather than BaseHTTPMiddleware so
    that background tasks stay inside the request's own call.
    """

    def __init__(self, app: ASGIApp):
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        request = Request(scope)
        request_id = request.headers.get("x-request-id") or str(uuid.uuid4())
        start_time = time.perf_counter()
        status_code = 500

        async def send_wrapper(message: Message) -> None:
            nonlocal status_code
            if message["type"] == "http.response.start":
                status_code = message["status"]
                MutableHeaders(scope=message)["X-Request-ID"] = request_id
            await send(message)

        try:
            await self.app(scope, receive, send_wrapper)
        finally:
            process_time_ms = round((time.perf_counter() - start_time) * 1000, 2)
            logger.log(
                "REQUEST",
                "{method} {path} {status_code} {process_time_ms}ms {client_ip} {request_id}",
                method=request.method,
                path=request.url.path,
                status_code=status_code,
                process_time_ms=process_time_ms,
                client_ip=get_client_ip(request) or "unknown",
                request_id=request_id,
            )


def add_logging_middleware(app) -> None:
    """Add the request logging middleware to the FastAPI application."""
    app.add_middleware(LoggingMiddleware)
