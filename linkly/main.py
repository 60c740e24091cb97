"""Main application module.

This module initializes the FastAPI application, includes routes,
and configures middleware and exception handlers.
"""

import time

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from linkly.api import api_router
from linkly.core.access_log import setup_access_logging
from linkly.core.config import settings
from linkly.core.logging import setup_logging
from linkly.core.telemetry import instrument_app, setup_telemetry
from linkly.db.base import create_tables, engine
from linkly.middleware.logging import add_logging_middleware
from linkly.scheduler.scheduler import scheduler_service

logger = setup_logging()

app = FastAPI(
    title=settings.APP_NAME,
    description=settings.APP_DESCRIPTION,
    version=settings.APP_VERSION,
    docs_url="/docs" if settings.DEBUG else None,
    redoc_url="/redoc" if settings.DEBUG else None,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_methods=["*"],
    allow_headers=["*"],
)

if settings.OTEL_ENABLED:
    from linkly.middleware.tracing import TracingMiddleware

    setup_telemetry()
    app.add_middleware(TracingMiddleware)
    instrument_app(app, engine)

if settings.REQUEST_LOGGING_ENABLED:
    add_logging_middleware(app)

app.include_router(api_router)


@app.exception_handler(HTTPException)
async def http_exception_handler(request, exc):
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail},
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Handle validation errors with detailed information."""
    logger.warning(f"Request validation error on {request.method} {request.url.path}")
    return JSONResponse(
        status_code=422,
        content={"detail": "Validation error", "errors": jsonable_errors(exc)}
    )


def jsonable_errors(exc: RequestValidationError) -> list:
    # pydantic error contexts can carry exception objects
    return [
        {key: (str(value) if key == "ctx" else value) for key, value in error.items()}
        for error in exc.errors()
    ]


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Global exception handler to catch and log all unhandled exceptions."""
    error_id = f"error-{time.time()}"

    logger.opt(exception=exc).bind(
        error_id=error_id,
        method=request.method,
        path=request.url.path,
    ).error(f"Unhandled exception in {request.method} {request.url.path}")

    return JSONResponse(
        status_code=500,
        content={
            "detail": "Internal server error occurred",
            "error_id": error_id,
            "message": str(exc) if settings.DEBUG else "Internal server error"
        }
    )


@app.on_event("startup")
async def startup_event():
    """Run startup tasks."""
    logger.info(f"Starting {settings.APP_NAME} v{settings.APP_VERSION}")
    logger.info(f"Environment: {settings.ENVIRONMENT.value}")

    setup_access_logging()
    logger.info("Redirect access logging initialized")

    if settings.DB_CREATE_TABLES:
        await create_tables()
        logger.info("Database tables ensured")

    if settings.SCHEDULER_ENABLED:
        try:
            scheduler_service.initialize()
            scheduler_service.start()
        except Exception as e:
            logger.opt(exception=e).critical("Scheduler could not be started")


@app.on_event("shutdown")
async def shutdown_event():
    """Run cleanup tasks."""
    logger.info(f"Shutting down {settings.APP_NAME}")

    if scheduler_service.is_running:
        try:
            scheduler_service.shutdown()
        except Exception as e:
            logger.opt(exception=e).error("Error shutting down scheduler")

    await engine.dispose()
