"""Hugging Face Inference API provider.

The inference endpoint blocks until the clip is rendered and answers with
the video bytes, so this adapter resolves the job inside submit(). A 503
means the model is still loading; we wait and retry a bounded number of
times.
"""

from __future__ import annotations

import logging
import uuid
from typing import Any

import httpx

from motionrelay.config import get_settings
from motionrelay.services.providers.base import (
    BlockingProviderAdapter,
    normalize_response,
    raise_for_vendor,
)
from motionrelay.services.video_errors import ArtifactMissing, VendorTransientFailure
from motionrelay.services.video_types import Artifact, GenerationRequest

logger = logging.getLogger(__name__)


class HuggingFaceAdapter(BlockingProviderAdapter):
    provider_id = "huggingface"

    def __init__(
        self,
        *args: Any,
        base_url: str | None = None,
        model: str | None = None,
        loading_wait: float | None = None,
        max_loading_retries: int | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(*args, **kwargs)
        settings = get_settings()
        self.base_url = (base_url or settings.HF_INFERENCE_BASE).rstrip("/")
        self.model = model or settings.HF_VIDEO_MODEL
        self.loading_wait = settings.HF_LOADING_WAIT if loading_wait is None else loading_wait
        self.max_loading_retries = (
            settings.HF_MAX_LOADING_RETRIES if max_loading_retries is None else max_loading_retries
        )

    async def _generate(self, request: GenerationRequest, key: str) -> tuple[str, Artifact]:
        url = f"{self.base_url}/{self.model}"
        headers = {"Content-Type": "application/json"}
        if key:
            headers["Authorization"] = f"Bearer {key}"
        payload = {
            "inputs": request.prompt,
            "parameters": {
                "num_frames": min(request.duration_seconds * 8, 65),
                "num_inference_steps": 25,
            },
        }

        for attempt in range(self.max_loading_retries + 1):
            try:
                resp = await self.client.post(url, json=payload, headers=headers, timeout=self.max_wait)
            except httpx.HTTPError as e:
                raise VendorTransientFailure(f"request failed: {e}", provider=self.provider_id) from e

            if resp.status_code == 503 and attempt < self.max_loading_retries:
                logger.info("HuggingFace model is loading, waiting %.0fs...", self.loading_wait)
                await self._sleep(self.loading_wait)
                continue

            raise_for_vendor(resp, self.provider_id)
            artifact = normalize_response(resp, url)
            if artifact is None:
                raise ArtifactMissing("did not return video data", provider=self.provider_id)

            job_id = f"hf-{uuid.uuid4().hex[:12]}"
            logger.info("HuggingFace video generated: %s (model=%s)", job_id, self.model)
            return job_id, Artifact(
                url=artifact.url,
                content=artifact.content,
                content_type=artifact.content_type,
                duration_seconds=request.duration_seconds,
            )

        raise VendorTransientFailure("model did not finish loading", provider=self.provider_id)
