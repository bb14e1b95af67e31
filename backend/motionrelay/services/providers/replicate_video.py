"""Replicate video generation provider (Wan 2.1 by default)."""

from __future__ import annotations

import logging
from typing import Any

from motionrelay.config import get_settings
from motionrelay.services.providers.base import ProviderAdapter, extract_url
from motionrelay.services.video_types import Artifact, GenerationRequest, JobHandle, JobStatus

logger = logging.getLogger(__name__)


class ReplicateAdapter(ProviderAdapter):
    provider_id = "replicate"
    STATUS_MAP = {
        "starting": JobStatus.RUNNING,
        "processing": JobStatus.RUNNING,
        "succeeded": JobStatus.SUCCEEDED,
        "failed": JobStatus.FAILED,
        "canceled": JobStatus.FAILED,
    }

    def __init__(
        self,
        *args: Any,
        base_url: str | None = None,
        model: str = "wan-ai/wan2.1-t2v-14b",
        **kwargs: Any,
    ) -> None:
        super().__init__(*args, **kwargs)
        self.base_url = (base_url or get_settings().REPLICATE_API_BASE).rstrip("/")
        self.model = model

    async def submit(self, request: GenerationRequest, key: str) -> JobHandle:
        inputs: dict[str, Any] = {
            "prompt": request.prompt,
            "num_frames": min(request.duration_seconds * 8, 81),
            "guidance_scale": 5.0,
            "num_inference_steps": 30,
        }
        if request.reference_image_url:
            inputs["image"] = request.reference_image_url

        data = await self._json(
            "POST", f"{self.base_url}/predictions",
            json={"model": self.model, "input": inputs},
            headers={"Authorization": f"Bearer {key}", "Content-Type": "application/json"},
        )
        handle = self._new_handle(data.get("id"))
        logger.info("Replicate prediction created: %s (model=%s)", handle.vendor_job_id, self.model)
        return handle

    async def poll(self, handle: JobHandle, key: str) -> JobStatus:
        data = await self._json(
            "GET", f"{self.base_url}/predictions/{handle.vendor_job_id}",
            headers={"Authorization": f"Bearer {key}"},
        )
        status = self.map_status(data.get("status"))
        if status is JobStatus.SUCCEEDED:
            self._remember(handle, data)
        elif status is JobStatus.FAILED:
            self._record_failure(handle, data.get("error"))
        return status

    async def fetch(self, handle: JobHandle, key: str) -> Artifact | None:
        data = self._recall(handle)
        if data is None:
            data = await self._json(
                "GET", f"{self.base_url}/predictions/{handle.vendor_job_id}",
                headers={"Authorization": f"Bearer {key}"},
            )
        url = extract_url(data)
        return Artifact(url=url) if url else None
