"""fal.ai queue provider (HunyuanVideo).

Queue pattern:
1. POST {queue}/{model} → request_id
2. GET  {queue}/{model}/requests/{id}/status → IN_QUEUE / IN_PROGRESS / COMPLETED
3. GET  {queue}/{model}/requests/{id} → result with video.url
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
    Resolution,
)

logger = logging.getLogger(__name__)

_T2V_MODEL = "fal-ai/hunyuan-video"
_I2V_MODEL = "fal-ai/hunyuan-video/image-to-video"


class FalAdapter(ProviderAdapter):
    provider_id = "fal"
    STATUS_MAP = {
        "in_queue": JobStatus.RUNNING,
        "in_progress": JobStatus.RUNNING,
        "completed": JobStatus.SUCCEEDED,
        "failed": JobStatus.FAILED,
        "error": JobStatus.FAILED,
    }

    def __init__(self, *args: Any, base_url: str | None = None, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.base_url = (base_url or get_settings().FAL_QUEUE_BASE).rstrip("/")

    @staticmethod
    def _headers(key: str) -> dict[str, str]:
        return {"Authorization": f"Key {key}", "Content-Type": "application/json"}

    async def submit(self, request: GenerationRequest, key: str) -> JobHandle:
        model = _I2V_MODEL if request.reference_image_url else _T2V_MODEL
        body: dict[str, Any] = {
            "prompt": request.prompt,
            "num_frames": min(request.duration_seconds * 8, 129),
            "num_inference_steps": 30,
            "aspect_ratio": "9:16" if request.aspect_ratio is AspectRatio.PORTRAIT else "16:9",
            "resolution": "1080p" if request.resolution is Resolution.FHD else "720p",
            "enable_safety_checker": False,
        }
        if request.reference_image_url:
            body["image_url"] = request.reference_image_url

        data = await self._json("POST", f"{self.base_url}/{model}", json=body, headers=self._headers(key))
        handle = self._new_handle(data.get("request_id"), model=model)
        logger.info("fal.ai job submitted: %s (model=%s)", handle.vendor_job_id, model)
        return handle

    def _request_url(self, handle: JobHandle) -> str:
        return f"{self.base_url}/{handle.context['model']}/requests/{handle.vendor_job_id}"

    async def poll(self, handle: JobHandle, key: str) -> JobStatus:
        data = await self._json("GET", f"{self._request_url(handle)}/status", headers=self._headers(key))
        status = self.map_status(data.get("status"))
        if status is JobStatus.FAILED:
            self._record_failure(handle, data.get("error"))
        return status

    async def fetch(self, handle: JobHandle, key: str) -> Artifact | None:
        data = await self._json("GET", self._request_url(handle), headers=self._headers(key))
        url = extract_url(data.get("video")) or extract_url(data)
        return Artifact(url=url) if url else None
