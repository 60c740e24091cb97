"""Short code redirection endpoint with background click recording."""

from fastapi import APIRouter, BackgroundTasks, Depends, Request
from loguru import logger
from starlette.responses import RedirectResponse
from sqlalchemy.ext.asyncio import AsyncSession

from linkly.analytics.extractor import AnalyticsExtractor
from linkly.analytics.recorder import AnalyticsRecorder
from linkly.api.dependencies import (
    get_analytics_extractor,
    get_analytics_recorder,
    get_redirect_resolver,
)
from linkly.core.decorators import log_redirect_attempt_decorator
from linkly.db.session import get_db
from linkly.services.resolver import RedirectResolver, Resolution

router = APIRouter(tags=["redirect"])


def _redirect(resolution: Resolution) -> RedirectResponse:
    # Neither a resolution nor its absence may be cached by browsers or proxies
    return RedirectResponse(
        url=resolution.location,
        status_code=resolution.status_code,
        headers={"Cache-Control": "no-store"},
    )


@router.get(
    "/{code}",
    response_class=RedirectResponse,
    status_code=302,
    summary="Resolve a short code",
    responses={307: {"description": "Not a short code, or no active link for it"}},
)
@log_redirect_attempt_decorator()
async def redirect_short_code(
    request: Request,
    background_tasks: BackgroundTasks,
    code: str,
    db: AsyncSession = Depends(get_db),
    resolver: RedirectResolver = Depends(get_redirect_resolver),
    extractor: AnalyticsExtractor = Depends(get_analytics_extractor),
    recorder: AnalyticsRecorder = Depends(get_analytics_recorder),
):
    """Redirect to the destination and record the click after responding.

    Reserved and malformed paths go home without a lookup. Missing, inactive
    and failing lookups all go to the not-found page.
    """
    short_circuit = resolver.classify(code)
    if short_circuit is not None:
        return _redirect(short_circuit)

    analytics = extractor.extract(request, code)
    resolution = await resolver.lookup(db, code)

    if resolution.resolved:
        background_tasks.add_task(recorder.record, resolution.link_id, analytics)
    else:
        logger.debug(
            f"Unresolved short code {code} ({resolution.outcome.value})",
            device_type=analytics.device_type,
            country_code=analytics.country_code,
        )

    return _redirect(resolution)
