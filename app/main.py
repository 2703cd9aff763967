"""ApplyBot - queued job applications for hh.ru."""

import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.core.config import settings
from app.core.redis_client import close_redis
from app.core.storage import init_models
from app.routers import applications_router
from app.services.maintenance_service import maintenance_service

log_level = os.getenv("LOG_LEVEL", "INFO").upper()
logging.basicConfig(
    level=getattr(logging, log_level, logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    logger.info("Initializing application...")
    await init_models()

    if settings.maintenance_enabled:
        logger.info("Starting queue maintenance...")
        await maintenance_service.start()

    logger.info("Application initialized")

    yield

    logger.info("Shutting down...")
    await maintenance_service.stop()
    close_redis()
    logger.info("Shutdown complete")


app = FastAPI(
    title="ApplyBot",
    description="Queued AI job applications for hh.ru",
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(applications_router)


@app.get("/api")
async def api_info():
    """API information endpoint."""
    return {
        "message": "ApplyBot API",
        "version": "1.0.0",
        "docs": "/docs",
        "queue": settings.queue_name,
        "maintenance_enabled": settings.maintenance_enabled,
    }


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {
        "status": "healthy",
        "service": "applybot",
        "maintenance": maintenance_service.get_status(),
    }
