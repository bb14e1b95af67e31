"""Runway ML video generation provider.

Supports:
- gen4.5 text-to-video
- gen4_turbo image-to-video (first frame reference)

Task pattern: POST create → GET /tasks/{id} → output[0] is the video URL.
"""

from __future__ import annotations

import logging
from typing import Any

from motionrelay.config import get_settings
from motionrelay.services.providers.base import ProviderAdapter, extract_url
from motionrelay.services.video_types import (
    Artifact,
    AspectRatio,
    GenerationRequest,
    JobHandle,
    JobStatus,
)

logger = logging.getLogger(__name__)

_API_VERSION = "2024-11-06"

_RATIOS = {
    AspectRatio.LANDSCAPE: "1280:720",
    AspectRatio.PORTRAIT: "720:1280",
    AspectRatio.SQUARE: "960:960",
}


class RunwayAdapter(ProviderAdapter):
    """Runway Gen-4 task API."""

    provider_id = "runway"
    STATUS_MAP = {
        "pending": JobStatus.RUNNING,
        "throttled": JobStatus.RUNNING,
        "running": JobStatus.RUNNING,
        "succeeded": JobStatus.SUCCEEDED,
        "failed": JobStatus.FAILED,
        "cancelled": JobStatus.FAILED,
    }

    def __init__(self, *args: Any, base_url: str | None = None, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.base_url = (base_url or get_settings().RUNWAY_API_BASE).rstrip("/")

    def _headers(self, key: str) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {key}",
            "Content-Type": "application/json",
            "X-Runway-Version": _API_VERSION,
        }

    async def submit(self, request: GenerationRequest, key: str) -> JobHandle:
        duration = min(10, max(2, request.duration_seconds))
        body: dict[str, Any] = {
            "promptText": request.prompt,
            "ratio": _RATIOS[request.aspect_ratio],
            "duration": duration,
        }

        if request.reference_image_url:
            body["model"] = "gen4_turbo"
            body["promptImage"] = request.reference_image_url
            url = f"{self.base_url}/image_to_video"
        else:
            body["model"] = "gen4.5"
            url = f"{self.base_url}/text_to_video"

        data = await self._json("POST", url, json=body, headers=self._headers(key))
        handle = self._new_handle(data.get("id"), duration=duration)
        logger.info("Runway task created: %s (model=%s)", handle.vendor_job_id, body["model"])
        return handle

    async def poll(self, handle: JobHandle, key: str) -> JobStatus:
        data = await self._json(
            "GET", f"{self.base_url}/tasks/{handle.vendor_job_id}", headers=self._headers(key),
        )
        status = self.map_status(data.get("status"))
        if status is JobStatus.SUCCEEDED:
            self._remember(handle, data)
        elif status is JobStatus.FAILED:
            self._record_failure(handle, data.get("failure") or data.get("failureCode"))
        else:
            logger.debug("Runway task %s: %s (%s%%)", handle.vendor_job_id, data.get("status"), data.get("progress", 0))
        return status

    async def fetch(self, handle: JobHandle, key: str) -> Artifact | None:
        data = self._recall(handle)
        if data is None:
            data = await self._json(
                "GET", f"{self.base_url}/tasks/{handle.vendor_job_id}", headers=self._headers(key),
            )
        url = extract_url(data) or data.get("artifactUrl")
        if not url:
            return None
        return Artifact(url=url, duration_seconds=handle.context.get("duration"))
