"""Pollinations.ai free-tier provider — always available, no user key.

Free capacity is unreliable, so the adapter owns an ordered list of free
sub-models and tries each in turn within one submit. A sub-model is skipped
(not a hard failure) when the call errors or times out, answers non-2xx,
returns fewer than min_bytes, or returns something we cannot recognize as a
video. Only when every sub-model is exhausted does the adapter fail.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from typing import Any
from urllib.parse import quote

import httpx

from motionrelay.config import get_settings
from motionrelay.services.providers.base import BlockingProviderAdapter, normalize_response
from motionrelay.services.video_errors import VendorTransientFailure
from motionrelay.services.video_types import Artifact, AspectRatio, GenerationRequest

logger = logging.getLogger(__name__)

_MAX_DURATION = 8

_DIMENSIONS = {
    AspectRatio.LANDSCAPE: (848, 480),
    AspectRatio.PORTRAIT: (480, 848),
    AspectRatio.SQUARE: (480, 480),
}


@dataclass(frozen=True)
class FreeModel:
    """One free sub-model attempt and its short-circuit limits."""
    name: str
    timeout: float
    min_bytes: int


class PollinationsAdapter(BlockingProviderAdapter):
    provider_id = "pollinations"

    def __init__(
        self,
        *args: Any,
        base_url: str | None = None,
        sub_models: list[FreeModel] | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(*args, **kwargs)
        settings = get_settings()
        self.base_url = (base_url or settings.POLLINATIONS_VIDEO_BASE).rstrip("/")
        self.sub_models = sub_models or [
            FreeModel(name, settings.FREE_TIER_TIMEOUT, settings.FREE_TIER_MIN_BYTES)
            for name in settings.free_tier_models
        ]

    def _params(self, request: GenerationRequest, model: str) -> dict[str, str]:
        width, height = _DIMENSIONS[request.aspect_ratio]
        return {
            "duration": str(min(request.duration_seconds, _MAX_DURATION)),
            "width": str(width),
            "height": str(height),
            "model": model,
        }

    async def _try_model(
        self, sub: FreeModel, request: GenerationRequest, key: str,
    ) -> Artifact | None:
        url = f"{self.base_url}/{quote(request.prompt, safe='')}"
        params = self._params(request, sub.name)
        requested = str(httpx.URL(url, params=params))
        headers = {"Authorization": f"Bearer {key}"} if key else {}

        logger.info("Pollinations trying model: %s", sub.name)
        try:
            resp = await self.client.get(
                url, params=params, headers=headers, timeout=sub.timeout, follow_redirects=True,
            )
        except httpx.TimeoutException:
            logger.warning("Pollinations model %s timed out", sub.name)
            return None
        except httpx.HTTPError as e:
            logger.warning("Pollinations model %s error: %s", sub.name, e)
            return None

        if not resp.is_success:
            logger.warning("Pollinations model %s failed (%d): %s", sub.name, resp.status_code, resp.text[:200])
            return None

        artifact = normalize_response(resp, requested, min_bytes=sub.min_bytes)
        if artifact is None:
            logger.warning(
                "Pollinations model %s returned unusable response (content-type=%s, %d bytes)",
                sub.name, resp.headers.get("content-type", ""), len(resp.content),
            )
        return artifact

    async def _generate(self, request: GenerationRequest, key: str) -> tuple[str, Artifact]:
        for sub in self.sub_models:
            artifact = await self._try_model(sub, request, key)
            if artifact is None:
                continue

            job_id = f"pollinations-{sub.name}-{uuid.uuid4().hex[:8]}"
            logger.info("Pollinations video generated with %s", sub.name)
            return job_id, Artifact(
                url=artifact.url,
                content=artifact.content,
                content_type=artifact.content_type,
                duration_seconds=min(request.duration_seconds, _MAX_DURATION),
            )

        raise VendorTransientFailure(
            "all free video models failed; the service may be temporarily unavailable",
            provider=self.provider_id,
        )
