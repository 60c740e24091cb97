"""Link creation endpoints: a JSON API and a form submission entry point."""

from typing import Optional

from fastapi import APIRouter, Depends, Form, status
from fastapi.responses import JSONResponse
from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from linkly.api import schemas
from linkly.api.dependencies import get_shortener_service
from linkly.db.session import get_db
from linkly.services.exceptions import (
    CollisionError,
    GenerationExhausted,
    LinkCreationError,
    LinkValidationError,
)
from linkly.services.shortener import ShortenerService, build_short_url

router = APIRouter(tags=["shortener"])
form_router = APIRouter(tags=["shortener"])

CREATE_RESPONSES = {
    200: {"model": schemas.ShortenResponse, "description": "Existing link for the same destination"},
    400: {"model": schemas.ErrorResponse, "description": "Invalid URL or custom code"},
    409: {"model": schemas.ErrorResponse, "description": "Custom code already taken"},
    500: {"model": schemas.ErrorResponse, "description": "No short code could be allocated"},
}


def _errors(status_code: int, field: str, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"errors": {field: message}})


async def _create(
    service: ShortenerService,
    db: AsyncSession,
    url: str,
    custom: Optional[str] = None,
    title: Optional[str] = None,
    description: Optional[str] = None,
    owner_id: Optional[str] = None,
) -> JSONResponse:
    try:
        link, created = await service.create_link(
            db,
            url=url,
            custom=custom,
            title=title,
            description=description,
            owner_id=owner_id,
        )
    except LinkValidationError as e:
        return _errors(status.HTTP_400_BAD_REQUEST, e.field, e.message)
    except CollisionError as e:
        return _errors(status.HTTP_409_CONFLICT, e.field, e.message)
    except (GenerationExhausted, LinkCreationError) as e:
        logger.error(f"Short link creation failed: {e}")
        return _errors(
            status.HTTP_500_INTERNAL_SERVER_ERROR, "form", "Could not create a short link, please try again"
        )

    body = schemas.ShortenResponse(link=build_short_url(link.short_code), short_code=link.short_code)
    return JSONResponse(
        status_code=status.HTTP_201_CREATED if created else status.HTTP_200_OK,
        content=body.model_dump(),
    )


@router.post(
    "/shorten",
    response_model=schemas.ShortenResponse,
    status_code=status.HTTP_201_CREATED,
    responses=CREATE_RESPONSES,
)
async def create_short_link(
    payload: schemas.ShortenRequest,
    db: AsyncSession = Depends(get_db),
    shortener_service: ShortenerService = Depends(get_shortener_service),
):
    """Create a short link, or return the existing one for the destination."""
    return await _create(
        shortener_service,
        db,
        url=payload.url,
        custom=payload.custom,
        title=payload.title,
        description=payload.description,
        owner_id=payload.owner_id,
    )


@form_router.post(
    "/shorten",
    response_model=schemas.ShortenResponse,
    status_code=status.HTTP_201_CREATED,
    responses=CREATE_RESPONSES,
)
async def submit_shorten_form(
    url: str = Form(""),
    custom: Optional[str] = Form(None),
    db: AsyncSession = Depends(get_db),
    shortener_service: ShortenerService = Depends(get_shortener_service),
):
    """Form submission entry point with the same contract as the JSON API."""
    return await _create(shortener_service, db, url=url, custom=custom)
