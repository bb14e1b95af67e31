"""OpenAI Sora video generation provider.

Supports: sora-2 text-to-video and first-frame image-to-video.

Async job pattern:
1. POST /videos → create job
2. GET  /videos/{id} → poll status
3. GET  /videos/{id}/content → MP4 bytes (thumbnail via variant=thumbnail)
4. DELETE /videos/{id} → free vendor storage (best effort)
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from motionrelay.config import get_settings
from motionrelay.services.providers.base import IMAGE_TYPES, ProviderAdapter, normalize_response
from motionrelay.services.video_errors import VideoGenerationError
from motionrelay.services.video_types import (
    Artifact,
    AspectRatio,
    GenerationRequest,
    JobHandle,
    JobStatus,
    Resolution,
)

logger = logging.getLogger(__name__)


def map_seconds(seconds: int) -> str:
    """Map requested seconds to Sora's allowed values: 4, 8 or 12."""
    if seconds <= 5:
        return "4"
    if seconds <= 10:
        return "8"
    return "12"


def map_size(resolution: Resolution, aspect: AspectRatio) -> str:
    if aspect is AspectRatio.PORTRAIT:
        return "1024x1792" if resolution is Resolution.FHD else "720x1280"
    return "1792x1024" if resolution is Resolution.FHD else "1280x720"


class SoraAdapter(ProviderAdapter):
    """OpenAI videos API."""

    provider_id = "openai"
    STATUS_MAP = {
        "queued": JobStatus.RUNNING,
        "in_progress": JobStatus.RUNNING,
        "completed": JobStatus.SUCCEEDED,
        "failed": JobStatus.FAILED,
    }

    def __init__(self, *args: Any, base_url: str | None = None, model: str = "sora-2", **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.base_url = (base_url or get_settings().OPENAI_API_BASE).rstrip("/")
        self.model = model

    async def _reference_image(self, url: str) -> bytes | None:
        try:
            resp = await self.client.get(url, follow_redirects=True)
            resp.raise_for_status()
            return resp.content
        except httpx.HTTPError as e:
            logger.warning("Could not fetch reference image, proceeding text-only: %s", e)
            return None

    async def submit(self, request: GenerationRequest, key: str) -> JobHandle:
        seconds = map_seconds(request.duration_seconds)
        fields = {
            "model": self.model,
            "prompt": request.prompt,
            "seconds": seconds,
            "size": map_size(request.resolution, request.aspect_ratio),
        }
        headers = {"Authorization": f"Bearer {key}"}

        image = None
        if request.reference_image_url:
            image = await self._reference_image(request.reference_image_url)

        if image:
            files = {"input_reference": ("first_frame.png", image, "image/png")}
            data = await self._json("POST", f"{self.base_url}/videos", data=fields, files=files, headers=headers)
        else:
            data = await self._json("POST", f"{self.base_url}/videos", json=fields, headers=headers)

        handle = self._new_handle(data.get("id"), seconds=int(seconds))
        logger.info("Sora job created: %s (%ss at %s)", handle.vendor_job_id, seconds, fields["size"])
        return handle

    async def poll(self, handle: JobHandle, key: str) -> JobStatus:
        data = await self._json(
            "GET", f"{self.base_url}/videos/{handle.vendor_job_id}",
            headers={"Authorization": f"Bearer {key}"},
        )
        status = self.map_status(data.get("status"))
        if status is JobStatus.FAILED:
            error = data.get("error") or {}
            self._record_failure(handle, error.get("message") if isinstance(error, dict) else error)
        else:
            logger.debug("Sora job %s: %s (%s%%)", handle.vendor_job_id, data.get("status"), data.get("progress", 0))
        return status

    async def fetch(self, handle: JobHandle, key: str) -> Artifact | None:
        headers = {"Authorization": f"Bearer {key}"}
        content_url = f"{self.base_url}/videos/{handle.vendor_job_id}/content"

        resp = await self._request("GET", content_url, headers=headers, follow_redirects=True)
        video = normalize_response(resp, content_url)
        if video is None:
            return None

        thumbnail = None
        try:
            thumb_resp = await self._request(
                "GET", content_url, params={"variant": "thumbnail"}, headers=headers, follow_redirects=True,
            )
            thumbnail = normalize_response(thumb_resp, content_url, accept=IMAGE_TYPES)
        except VideoGenerationError as e:
            logger.warning("Could not download Sora thumbnail for %s: %s", handle.vendor_job_id, e)

        try:
            await self._request("DELETE", f"{self.base_url}/videos/{handle.vendor_job_id}", headers=headers)
        except VideoGenerationError as e:
            logger.warning("Could not delete Sora video %s from vendor storage: %s", handle.vendor_job_id, e)

        return Artifact(
            url=video.url,
            content=video.content,
            content_type=video.content_type,
            thumbnail=thumbnail,
            duration_seconds=handle.context.get("seconds"),
        )
