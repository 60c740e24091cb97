"""API package for the Linkly application.

This package contains the API layer components including routes,
request/response schemas, and dependency providers.
"""

from linkly.api.routes import api_router

__all__ = ["api_router"]
