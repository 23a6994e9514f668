"""
Main FastAPI application entry point
"""

import logging
import os
from collections.abc import Awaitable, Callable
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.openapi.utils import get_openapi
from fastapi.responses import JSONResponse
from scalar_fastapi import get_scalar_api_reference  # type: ignore[import-untyped]
from starlette.responses import Response

from app.api.v1.router import api_router
from app.core.config import settings
from app.core.database import Database
from app.core.errors import TaskManagerError
from app.core.events import TaskEventBus
from app.core.realtime import RealtimeBroadcaster
from app.jobs.rollover_job import RolloverScheduler
from app.services.rollover import RolloverSweep

logger = logging.getLogger("uvicorn.error")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan context manager for startup and shutdown events
    """
    # Startup
    logger.info("Starting Task Manager API Server...")
    database = Database()
    # Skip init if SKIP_DB_INIT is set (for multi-worker deployments where
    # migrations are run separately before starting workers)
    if not os.getenv("SKIP_DB_INIT"):
        await database.init()
        logger.info("Database initialized")
    else:
        logger.info("Skipping database initialization (SKIP_DB_INIT is set)")

    event_bus = TaskEventBus()
    broadcaster = RealtimeBroadcaster(queue_size=settings.REALTIME_QUEUE_SIZE)
    broadcaster.attach(event_bus)
    rollover_sweep = RolloverSweep(database, event_bus)

    app.state.database = database
    app.state.event_bus = event_bus
    app.state.broadcaster = broadcaster
    app.state.rollover_sweep = rollover_sweep

    scheduler: RolloverScheduler | None = None
    if settings.ROLLOVER_ENABLED:
        scheduler = RolloverScheduler(
            rollover_sweep.sweep,
            cron=settings.ROLLOVER_CRON,
            timezone=settings.ROLLOVER_TIMEZONE,
        )
        scheduler.start()
    else:
        logger.info("Rollover scheduler disabled (ROLLOVER_ENABLED=false)")

    yield

    # Shutdown
    logger.info("Shutting down Task Manager API Server...")
    if scheduler is not None:
        await scheduler.stop()
    broadcaster.detach()
    await database.dispose()


# Create FastAPI application
app = FastAPI(
    title=settings.PROJECT_NAME,
    version=settings.VERSION,
    description=settings.DESCRIPTION,
    openapi_url=f"{settings.API_V1_STR}/openapi.json",
    docs_url=f"{settings.API_V1_STR}/docs",
    redoc_url=f"{settings.API_V1_STR}/redoc",
    lifespan=lifespan,
)


# Configure OpenAPI security schemes
def custom_openapi_for_api_key_auth():
    if app.openapi_schema:
        return app.openapi_schema

    openapi_schema = get_openapi(
        title=settings.PROJECT_NAME,
        version=settings.VERSION,
        description=settings.DESCRIPTION,
        routes=app.routes,
    )

    openapi_schema.setdefault("components", {})["securitySchemes"] = {
        "APIKeyHeader": {
            "type": "apiKey",
            "in": "header",
            "name": "x-api-key",
            "description": "API Key in x-api-key header. <p>ex) x-api-key: ...your-api-key... </p>",
        },
        "BearerAuth": {
            "type": "http",
            "scheme": "bearer",
            "bearerFormat": "API Key",
            "description": "API Key in Authorization: Bearer header. <p>ex) Authorization: Bearer ...your-api-key... </p>",
        },
    }

    # Apply security globally to all endpoints
    openapi_schema["security"] = [{"APIKeyHeader": []}, {"BearerAuth": []}]

    app.openapi_schema = openapi_schema
    return app.openapi_schema


app.openapi = custom_openapi_for_api_key_auth

# CORS Configuration
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.BACKEND_CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def api_key_guard(request: Request, call_next: Callable[[Request], Awaitable[Response]]) -> Response:
    """
    Enforce API key authentication for API routes when API keys are configured.
    Exempt health and docs endpoints.
    """
    __func__ = "api_key_guard"
    path = request.url.path

    exempt_paths = {
        "/",  # root health
        "/health",
        "/api/latest/docs",  # Scalar API reference
        f"{settings.API_V1_STR}/openapi.json",
        f"{settings.API_V1_STR}/docs",
        f"{settings.API_V1_STR}/redoc",
    }

    if path not in exempt_paths and settings.api_keys:
        api_key = request.headers.get("x-api-key")
        if not api_key:
            auth_header = request.headers.get("Authorization", "")
            if auth_header.startswith("Bearer "):
                api_key = auth_header.split(" ", 1)[1].strip()

        if not api_key or api_key not in settings.api_keys:
            logger.warning(f"[{__name__}:{__func__}] Access denied: Invalid or missing API key")
            return JSONResponse(
                status_code=401,
                content={"detail": "Access denied (Invalid or missing API key)"},
            )

        key_info = settings.api_keys[api_key]
        if not key_info["enabled"]:
            logger.warning(f"[{__name__}:{__func__}] Access denied: API key '{key_info['name']}' is disabled")
            return JSONResponse(
                status_code=401,
                content={"detail": "Access denied (API key is disabled)"},
            )

        request.state.api_key_info = key_info

    return await call_next(request)


# Error handlers
@app.exception_handler(TaskManagerError)
async def task_manager_error_handler(request: Request, exc: TaskManagerError) -> JSONResponse:
    """Render domain errors (validation, not found, boundary, invalid date)"""
    logger.info(f"{request.method} {request.url.path} -> {exc.status_code} {type(exc).__name__}: {exc.message}")
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message, "error": type(exc).__name__},
    )


@app.exception_handler(Exception)
async def unexpected_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Anything else is a server failure; details stay in the log"""
    logger.error(f"Unexpected error on {request.method} {request.url.path}: {exc}", exc_info=exc)
    return JSONResponse(
        status_code=500,
        content={"detail": "Unexpected server error"},
    )


# Health check endpoint
@app.get("/", tags=["Health"])
async def root():
    """Root endpoint - health check"""
    return {
        "status": "healthy",
        "service": settings.PROJECT_NAME,
        "version": settings.VERSION,
        "environment": settings.ENVIRONMENT,
    }


@app.get("/health", tags=["Health"])
async def health_check(request: Request):
    """Detailed health check endpoint"""
    database: Database | None = getattr(request.app.state, "database", None)
    db_ok = database is not None and await database.check_health()
    return JSONResponse(
        status_code=200 if db_ok else 503,
        content={
            "status": "healthy" if db_ok else "degraded",
            "service": settings.PROJECT_NAME,
            "version": settings.VERSION,
            "environment": settings.ENVIRONMENT,
            "database": "connected" if db_ok else "unavailable",
        },
    )


@app.get("/api/latest/docs", include_in_schema=False)
async def scalar_html():
    return get_scalar_api_reference(
        openapi_url=app.openapi_url,
        title=app.title,
    )


# Include API router
app.include_router(api_router, prefix=settings.API_V1_STR)


if __name__ == "__main__":
    import uvicorn

    #
    # Use '$ python -m app.main' on the root directory of the project for development
    # Use '$ uvicorn app.main:app --host 0.0.0.0 --port 4000' for production deployment
    #
    uvicorn.run(
        "app.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=True,
        log_level="debug",
    )
