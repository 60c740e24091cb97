"""Landing endpoints that redirects fall back to."""

from fastapi import APIRouter, status
from fastapi.responses import JSONResponse

from linkly.core.config import settings

router = APIRouter(tags=["pages"])


@router.get(settings.HOME_PATH, include_in_schema=False)
async def home():
    return {
        "name": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "description": settings.APP_DESCRIPTION,
    }


@router.get(settings.NOT_FOUND_PATH, include_in_schema=False)
async def not_found_page():
    return JSONResponse(
        status_code=status.HTTP_404_NOT_FOUND,
        content={"detail": "This short link does not exist or has been deactivated"},
        headers={"Cache-Control": "no-store"},
    )
