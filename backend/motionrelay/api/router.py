from __future__ import annotations
"""Master API router — mounts all sub-routers."""

from fastapi import APIRouter

from motionrelay.api.video import router as video_router

api_router = APIRouter(prefix="/api", redirect_slashes=False)

api_router.include_router(video_router, prefix="/video", tags=["Video"])
