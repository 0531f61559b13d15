"""
Stagebook Programming API - Main Application Entry Point

Scheduling and conditions engine for venue programming:
- Sunday-aligned week generation with demand tiers
- Layered conditions resolution (program baseline, slot override)
- Concurrency-safe booking confirmation (one artist per slot)
- Roadmap assembly for confirmed bookings
- Structured logging with request correlation
"""

from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from stagebook.core.config import get_settings
from stagebook.core.logging import setup_logging, get_logger
from stagebook.core.metrics import metrics_endpoint
from stagebook.api.errors import install_error_handlers
from stagebook.api.router import api_router
from stagebook.api.middleware import RequestLoggingMiddleware
from stagebook.infrastructure.redis_client import get_redis, close_redis, redis_status

settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifecycle: startup and shutdown hooks."""
    setup_logging()
    logger = get_logger(__name__)

    logger.info(
        "application_starting",
        app=settings.APP_NAME,
        version=settings.APP_VERSION,
        environment=settings.ENVIRONMENT,
        event_publisher=settings.EVENT_PUBLISHER,
    )

    # Redis only carries notifications; the engine runs without it
    if settings.EVENT_PUBLISHER == "redis":
        redis_client = await get_redis()
        if redis_client:
            logger.info("redis_ready")
        else:
            logger.warning("redis_unavailable", message="Events will be dropped")

    yield

    # Cleanup
    await close_redis()
    logger.info("application_shutdown")


app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="Programming scheduling and conditions-resolution API",
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Restrict in production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Custom middleware
app.add_middleware(RequestLoggingMiddleware)

install_error_handlers(app)

# Routes
app.include_router(api_router)


@app.get("/health", tags=["Health"])
async def health_check():
    """Health check endpoint for Docker and load balancers."""
    events = await redis_status() if settings.EVENT_PUBLISHER == "redis" else {"status": "disabled"}
    return {
        "status": "healthy",
        "version": settings.APP_VERSION,
        "environment": settings.ENVIRONMENT,
        "events": events,
    }


@app.get("/metrics", tags=["Health"], include_in_schema=False)
async def metrics():
    return metrics_endpoint()


@app.get("/", tags=["Root"])
async def root():
    return {
        "message": f"Welcome to {settings.APP_NAME}",
        "version": settings.APP_VERSION,
        "docs": "/docs",
    }
