"""Health check endpoints for monitoring application status."""

from datetime import datetime

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from linkly.api import schemas
from linkly.core.config import settings
from linkly.db.base import DatabaseHealthCheck
from linkly.db.session import get_db
from linkly.scheduler.scheduler import scheduler_service

router = APIRouter(tags=["health"])


@router.get(
    "/health",
    response_model=schemas.HealthResponse,
    status_code=status.HTTP_200_OK,
    summary="Get system health status",
    response_description="Health status of all system components"
)
async def health_check(db: AsyncSession = Depends(get_db)):
    """Check health of all system components."""
    database = await DatabaseHealthCheck.check_connection(db)
    scheduler = scheduler_service.get_status()

    return {
        "status": "healthy" if database["status"] == "healthy" else "degraded",
        "version": settings.APP_VERSION,
        "environment": settings.ENVIRONMENT.value,
        "timestamp": datetime.utcnow().isoformat(),
        "components": {
            "database": database,
            "scheduler": {"status": "running" if scheduler["running"] else "stopped"},
        },
    }


@router.get(
    "/health/ready",
    summary="Readiness probe",
    response_description="Application readiness status"
)
async def readiness_probe(db: AsyncSession = Depends(get_db)):
    """Check if application is ready to handle requests."""
    database = await DatabaseHealthCheck.check_connection(db)
    is_ready = database["status"] == "healthy"

    return JSONResponse(
        status_code=status.HTTP_200_OK if is_ready else status.HTTP_503_SERVICE_UNAVAILABLE,
        content={"ready": is_ready, "components": {"api": True, "database": is_ready}},
    )


@router.get(
    "/health/live",
    status_code=status.HTTP_200_OK,
    summary="Liveness probe",
    response_description="Application liveness status"
)
async def liveness_probe():
    """Simple check that application is running."""
    return {"alive": True}
