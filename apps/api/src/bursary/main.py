"""
Bursary Portal API - Main Application Entry Point

This module initializes and configures the FastAPI application including:
- Logging
- Redis, database and document storage
- CORS middleware
- API routing and the public /uploads mount
- Health check endpoints
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from bursary.api import api_router
from bursary.core.config import settings
from bursary.core.database import close_db, init_db
from bursary.core.logging import configure_logging
from bursary.core.redis import close_redis, init_redis
from bursary.core.storage import storage

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_app: FastAPI):
    """
    Application lifespan manager.

    Redis is optional outside production (drafts and rate limits fall back
    to process memory); the database and storage are not.
    """
    configure_logging()
    logger.info(f"Starting Bursary Portal API in {settings.python_env} mode...")

    # Initialize Redis
    try:
        await init_redis()
        logger.info("[OK] Redis connected")
    except Exception as e:
        logger.error(f"[FAIL] Redis connection failed: {e}")
        if settings.is_production:
            raise

    # Initialize Database
    try:
        await init_db()
        logger.info("[OK] Database connected")
    except Exception as e:
        logger.error(f"[FAIL] Database connection failed: {e}")
        if settings.is_production:
            raise

    # Initialize document storage
    try:
        storage.ensure_root()
        logger.info(f"[OK] Document storage ready at {storage.root}")
    except OSError as e:
        logger.error(f"[FAIL] Document storage unavailable: {e}")
        if settings.is_production:
            raise

    yield  # Application runs here

    # Shutdown
    logger.info("Shutting down Bursary Portal API...")
    await close_redis()
    await close_db()
    logger.info("[OK] Cleanup complete")


app = FastAPI(
    title="Bursary Portal API",
    description="Health and education bursary applications: apply, track and review",
    version="0.1.0",
    docs_url="/docs" if settings.is_development else None,
    redoc_url="/redoc" if settings.is_development else None,
    lifespan=lifespan,
)

app.include_router(api_router, prefix="/api/v1")

# Uploaded documents are served from the storage root
app.mount(
    "/uploads",
    StaticFiles(directory=settings.upload_dir, check_dir=False),
    name="uploads",
)

# CORS configuration
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/", tags=["Root"])
async def root() -> dict[str, str]:
    """Root endpoint - API welcome message."""
    return {
        "message": "Welcome to the Bursary Portal API",
        "status": "running",
        "environment": settings.python_env,
    }


@app.get("/health", tags=["Health"])
async def health_check() -> dict[str, str]:
    """Health check endpoint for container orchestration."""
    return {"status": "healthy"}


@app.get("/ready", tags=["Health"])
async def readiness_check() -> dict[str, str]:
    """Readiness check endpoint."""
    return {"status": "ready"}
