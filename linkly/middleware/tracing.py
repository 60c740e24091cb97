"""Custom tracing middleware for the Linkly application."""

import time
from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

from opentelemetry.trace import SpanKind
from linkly.core.telemetry import get_tracer, get_meter

tracer = get_tracer("linkly.middleware")
meter = get_meter("linkly.middleware")

request_counter = meter.create_counter(
    name="linkly.http.requests",
    description="Number of HTTP requests",
    unit="1",
)

request_duration = meter.create_histogram(
    name="linkly.http.duration",
    description="Duration of HTTP requests",
    unit="ms",
)


class TracingMiddleware(BaseHTTPMiddleware):
    """Adds a server span and request metrics for each request.

    Span and metric attributes use the matched route template, so every
    short code lands in the same ``/{code}`` series.
    """

    async def dispatch(self, request: Request, call_next) -> Response:
        start_time = time.time()
        method = request.method

        with tracer.start_as_current_span(
            f"{method} {request.url.path}",
            attributes={
                "http.method": method,
                "http.flavor": request.scope.get("http_version", ""),
                "http.host": request.headers.get("host", ""),
            },
            kind=SpanKind.SERVER,
        ) as span:
            response = await call_next(request)

            route = request.scope.get("route")
            attributes = {
                "http.method": method,
                "http.route": getattr(route, "path", "unmatched"),
                "http.status_code": response.status_code,
            }
            span.set_attribute("http.route", attributes["http.route"])
            span.set_attribute("http.status_code", response.status_code)

            request_counter.add(1, attributes)
            request_duration.record((time.time() - start_time) * 1000, attributes)

            return response
