"""Link management and analytics endpoints."""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Path, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from linkly.api import schemas
from linkly.api.dependencies import get_shortener_service, get_stats_service
from linkly.db.session import get_db
from linkly.models.link import ShortLink, ShortLinkUpdate
from linkly.services.exceptions import (
    LinkUpdateError,
    NotFoundError,
    StatsRetrievalError,
)
from linkly.services.shortener import ShortenerService, build_short_url
from linkly.services.stats import StatsService

router = APIRouter(tags=["links"])

DaysParam = Query(30, ge=1, le=365, description="Number of days covered by the daily series")
OwnerParam = Query(None, max_length=64, description="Restrict to links owned by this account")
ActingOwnerParam = Query(None, max_length=64, description="Account making the change; must match the link's owner")


def _link_response(link: ShortLink) -> schemas.LinkResponse:
    return schemas.LinkResponse(
        id=link.id,
        short_code=link.short_code,
        short_url=build_short_url(link.short_code),
        original_url=link.original_url,
        title=link.title,
        description=link.description,
        owner_id=link.owner_id,
        is_active=link.is_active,
        is_custom=link.is_custom,
        click_count=link.click_count,
        created_at=link.created_at,
        updated_at=link.updated_at,
    )


@router.get("/urls/{code}", response_model=schemas.LinkResponse)
async def get_link(
    code: str = Path(..., max_length=20),
    db: AsyncSession = Depends(get_db),
    shortener_service: ShortenerService = Depends(get_shortener_service),
):
    """Get a link by its short code, active or not."""
    try:
        link = await shortener_service.get_link(db, code)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    return _link_response(link)


@router.patch("/urls/{link_id}", response_model=schemas.LinkResponse)
async def update_link(
    payload: schemas.LinkUpdateRequest,
    link_id: int = Path(..., ge=1),
    owner_id: Optional[str] = ActingOwnerParam,
    db: AsyncSession = Depends(get_db),
    shortener_service: ShortenerService = Depends(get_shortener_service),
):
    """Update a link's title and description."""
    try:
        link = await shortener_service.update_metadata(
            db,
            link_id,
            ShortLinkUpdate(**payload.model_dump(exclude_unset=True)),
            owner_id=owner_id,
        )
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except LinkUpdateError as e:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(e))
    return _link_response(link)


@router.post("/urls/{link_id}/toggle", response_model=schemas.LinkResponse)
async def toggle_link(
    link_id: int = Path(..., ge=1),
    owner_id: Optional[str] = ActingOwnerParam,
    db: AsyncSession = Depends(get_db),
    shortener_service: ShortenerService = Depends(get_shortener_service),
):
    """Activate an inactive link or deactivate an active one."""
    try:
        link = await shortener_service.toggle_active(db, link_id, owner_id=owner_id)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except LinkUpdateError as e:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(e))
    return _link_response(link)


@router.get("/urls/{code}/stats", response_model=schemas.LinkStatsResponse)
async def get_link_stats(
    code: str = Path(..., max_length=20),
    days: int = DaysParam,
    db: AsyncSession = Depends(get_db),
    stats_service: StatsService = Depends(get_stats_service),
):
    """Click analytics for one link."""
    try:
        return await stats_service.get_link_stats(db, code, days=days)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except StatsRetrievalError as e:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(e))


@router.get("/analytics", response_model=schemas.OverallStatsResponse)
async def get_overall_stats(
    owner_id: Optional[str] = OwnerParam,
    days: int = DaysParam,
    db: AsyncSession = Depends(get_db),
    stats_service: StatsService = Depends(get_stats_service),
):
    """Click analytics across all links, or across one owner's links."""
    try:
        return await stats_service.get_overall_stats(db, owner_id=owner_id, days=days)
    except StatsRetrievalError as e:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(e))
