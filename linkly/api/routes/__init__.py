"""Routes package initialization.

This module exports the route collection for the application.
"""

from fastapi import APIRouter

from linkly.api.routes import health, links, pages, redirect, shortener
from linkly.core.config import settings

api_router = APIRouter()

api_router.include_router(shortener.router, prefix=settings.API_PREFIX)
api_router.include_router(links.router, prefix=settings.API_PREFIX)
api_router.include_router(health.router, prefix=settings.API_PREFIX)

# Root-level routes; the catch-all /{code} must come last
api_router.include_router(pages.router)
api_router.include_router(shortener.form_router)
api_router.include_router(redirect.router)

__all__ = ["api_router"]
