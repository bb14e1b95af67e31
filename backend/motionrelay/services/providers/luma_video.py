"""Luma AI Dream Machine provider."""

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


class LumaAdapter(ProviderAdapter):
    provider_id = "luma"
    STATUS_MAP = {
        "queued": JobStatus.RUNNING,
        "dreaming": JobStatus.RUNNING,
        "completed": JobStatus.SUCCEEDED,
        "failed": JobStatus.FAILED,
    }

    def __init__(self, *args: Any, base_url: str | None = None, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.base_url = (base_url or get_settings().LUMA_API_BASE).rstrip("/")

    async def submit(self, request: GenerationRequest, key: str) -> JobHandle:
        body: dict[str, Any] = {
            "prompt": request.prompt,
            "aspect_ratio": "9:16" if request.aspect_ratio is AspectRatio.PORTRAIT else "16:9",
            "loop": False,
        }
        if request.reference_image_url:
            body["keyframes"] = {"frame0": {"type": "image", "url": request.reference_image_url}}

        data = await self._json(
            "POST", f"{self.base_url}/generations", json=body,
            headers={"Authorization": f"Bearer {key}", "Content-Type": "application/json"},
        )
        handle = self._new_handle(data.get("id"))
        logger.info("Luma generation created: %s", handle.vendor_job_id)
        return handle

    async def poll(self, handle: JobHandle, key: str) -> JobStatus:
        data = await self._json(
            "GET", f"{self.base_url}/generations/{handle.vendor_job_id}",
            headers={"Authorization": f"Bearer {key}"},
        )
        status = self.map_status(data.get("state"))
        if status is JobStatus.SUCCEEDED:
            self._remember(handle, data)
        elif status is JobStatus.FAILED:
            self._record_failure(handle, data.get("failure_reason"))
        return status

    async def fetch(self, handle: JobHandle, key: str) -> Artifact | None:
        data = self._recall(handle)
        if data is None:
            data = await self._json(
                "GET", f"{self.base_url}/generations/{handle.vendor_job_id}",
                headers={"Authorization": f"Bearer {key}"},
            )
        assets = data.get("assets") or {}
        url = assets.get("video") or extract_url(data)
        if not url:
            return None
        thumb = assets.get("image")
        return Artifact(
            url=url,
            thumbnail=Artifact(url=thumb, content_type="image/jpeg") if thumb else None,
            duration_seconds=5,
        )
