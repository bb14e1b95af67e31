from __future__ import annotations
"""MotionRelay — FastAPI application entry point.

Mounts the video API, configures CORS, serves stored artifacts from the
media volume and closes the shared HTTP client on shutdown.
"""

import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from motionrelay.api.router import api_router
from motionrelay.api.ws import router as ws_router
from motionrelay.config import get_settings
from motionrelay.services.provider_registry import PROVIDER_REGISTRY
from motionrelay.services.providers.base import close_http_client

settings = get_settings()

# Configure logging
logging.basicConfig(
    level=logging.DEBUG if settings.DEBUG else logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan: prepare media dir on startup, close HTTP client on shutdown."""
    logger.info("%s starting up...", settings.APP_NAME)
    logger.info("Platform keys configured: %s", ", ".join(settings.platform_keys) or "none")

    os.makedirs(settings.MEDIA_VOLUME, exist_ok=True)

    yield

    await close_http_client()
    logger.info("%s shut down", settings.APP_NAME)


app = FastAPI(
    title="MotionRelay API",
    description="Multi-provider video generation with failover and parallel scene dispatch",
    version="0.1.0",
    lifespan=lifespan,
    redirect_slashes=False,
)

# CORS (configurable via CORS_ORIGINS env)
_cors_origins = os.environ.get(
    "CORS_ORIGINS",
    "http://localhost:3000,http://127.0.0.1:3000",
).split(",")
app.add_middleware(
    CORSMiddleware,
    allow_origins=_cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(api_router)
app.include_router(ws_router)

# Mount media static files
os.makedirs(settings.MEDIA_VOLUME, exist_ok=True)
app.mount(settings.MEDIA_BASE_URL, StaticFiles(directory=settings.MEDIA_VOLUME), name="media")


@app.get("/")
async def root():
    """Health check endpoint."""
    return {
        "service": settings.APP_NAME,
        "status": "running",
    }


@app.get("/health")
async def health():
    """Detailed health check."""
    return {
        "status": "healthy",
        "providers": PROVIDER_REGISTRY.ids(),
        "free_tier": PROVIDER_REGISTRY.free_tier().id,
    }
