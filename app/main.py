"""FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.api.middleware import RequestIdMiddleware
from app.api.routes import api_router
from app.core.exceptions import ServiceError
from app.infrastructure.handoff_store import InMemoryHandoffStore, RedisHandoffStore
from app.infrastructure.notifications import build_notifier
from app.infrastructure.redis import redis_client
from app.infrastructure.rejection_state_store import (
    InMemoryRejectionStateStore,
    RedisRejectionStateStore,
)
from app.infrastructure.scheduler import TaskScheduler
from app.logging_config import setup_logging
from app.settings import settings
from app.workers import reminder_worker

# Setup logging
setup_logging()

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    # Startup
    await redis_client.connect()
    if redis_client.enabled:
        app.state.handoff_store = RedisHandoffStore(redis_client, ttl_seconds=settings.handoff_ttl_seconds)
        app.state.rejection_store = RedisRejectionStateStore(redis_client)
    else:
        app.state.handoff_store = InMemoryHandoffStore(ttl_seconds=settings.handoff_ttl_seconds)
        app.state.rejection_store = InMemoryRejectionStateStore()
    app.state.notifier = build_notifier(settings)

    scheduler = None
    if settings.scheduler_enabled:
        scheduler = TaskScheduler(app.state.notifier, app.state.handoff_store)
        scheduler.start()

    yield

    # Shutdown
    if scheduler is not None:
        scheduler.stop()
    await redis_client.disconnect()


# Create FastAPI app
app = FastAPI(
    title="Leadflow API",
    description="Lead intake, identity reconciliation and review workflow",
    version="0.1.0",
    lifespan=lifespan,
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Configure appropriately for production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_middleware(RequestIdMiddleware)


@app.exception_handler(ServiceError)
async def service_error_handler(request: Request, exc: ServiceError) -> JSONResponse:
    """Render service errors with their own status code."""
    log = logger.error if exc.status_code >= 500 else logger.info
    log(f"{exc.code} on {request.method} {request.url.path}: {exc.message}")
    return JSONResponse(
        status_code=exc.status_code,
        content={"code": exc.code, "message": exc.message, "details": exc.details},
    )


# Include API routes
app.include_router(api_router, prefix=settings.api_v1_prefix)

# Include worker routes
app.include_router(reminder_worker.router, prefix="/workers", tags=["workers"])


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy"}
