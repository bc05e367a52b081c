"""
Main FastAPI application for the football-data sync service.
"""
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from prometheus_fastapi_instrumentator import Instrumentator

from football_sync.api.routes import sync
from football_sync.core import metrics
from football_sync.core.config import settings
from football_sync.core.exceptions import SyncError
from football_sync.core.logging import configure_logging, get_logger
from football_sync.core.middleware import CorrelationIdMiddleware

# Configure structured logging (JSON in deployments, colored for local work)
configure_logging(
    level=settings.LOG_LEVEL,
    json_output=settings.LOG_JSON
)
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator:
    """Application lifespan events."""
    # Startup
    logger.info(f"Starting {settings.APP_NAME} v{settings.APP_VERSION}")

    from football_sync.core.scheduler import start_scheduler
    await start_scheduler()

    metrics.update_scheduler_metrics()
    logger.info("Application started")

    yield

    # Shutdown
    from football_sync.core.scheduler import stop_scheduler
    await stop_scheduler()
    metrics.update_scheduler_metrics()
    logger.info("Shutting down application")


app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="Scheduled ingestion of football-data.org competitions, teams and matches",
    lifespan=lifespan
)

# Add correlation ID middleware (must be added before CORS for proper header handling)
app.add_middleware(CorrelationIdMiddleware)

# Initialize Prometheus metrics BEFORE including routes
instrumentator = Instrumentator()
instrumentator.instrument(app).expose(app, endpoint="/metrics", include_in_schema=False)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# API v1
app.include_router(sync.router, prefix="/api/v1")


@app.exception_handler(SyncError)
async def sync_error_handler(request: Request, exc: SyncError):
    """Fatal sync errors raised outside the sync routes' own envelope handling."""
    return JSONResponse(status_code=exc.status_code, content={"success": False, "error": str(exc)})


@app.get("/")
async def root():
    """Root endpoint with API information."""
    return {
        "name": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "status": "running",
        "endpoints": {
            "api_version": "v1",
            "sync": {
                "all": "/api/v1/sync/all",
                "competitions": "/api/v1/sync/competitions",
                "teams": "/api/v1/sync/teams",
                "matches": "/api/v1/sync/matches",
                "status": "/api/v1/sync/status",
                "quota": "/api/v1/sync/quota",
                "scheduler": "/api/v1/sync/scheduler/status"
            },
            "docs": "/docs",
            "health": "/health",
            "metrics": "/metrics"
        }
    }


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {
        "status": "healthy",
        "version": settings.APP_VERSION
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "football_sync.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG
    )
