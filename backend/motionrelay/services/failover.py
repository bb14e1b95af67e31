from __future__ import annotations
"""Failover orchestrator: try candidate providers in order until one works.

No backoff and no second attempt on the same provider within one call.
Every failure is converted into "try the next candidate"; only
AggregateFailure escapes execute().
"""

import logging
import time
from dataclasses import dataclass
from typing import Any, Mapping

from motionrelay.config import get_settings
from motionrelay.services.artifact_ingestor import ArtifactIngestor
from motionrelay.services.credentials import resolve_available, resolve_keys, select_primary
from motionrelay.services.provider_registry import PROVIDER_REGISTRY, ProviderRegistry
from motionrelay.services.providers.base import ProviderAdapter
from motionrelay.services.video_errors import (
    AggregateFailure,
    VideoGenerationError,
)
from motionrelay.services.video_types import (
    GenerationRequest,
    GenerationResult,
    ProviderCredentials,
)

logger = logging.getLogger(__name__)


@dataclass
class ProviderStats:
    """Per-provider usage counters."""
    attempts: int = 0
    successes: int = 0
    failures: int = 0
    total_latency_ms: int = 0

    def to_dict(self, provider_id: str) -> dict[str, Any]:
        return {
            "provider": provider_id,
            "attempts": self.attempts,
            "successes": self.successes,
            "failures": self.failures,
            "error_rate": round(self.failures / max(self.attempts, 1), 3),
            "avg_latency_ms": round(self.total_latency_ms / self.successes) if self.successes else 0,
        }


class FailoverOrchestrator:
    """Runs one GenerationRequest across the ordered candidate providers."""

    def __init__(
        self,
        adapters: Mapping[str, ProviderAdapter],
        ingestor: ArtifactIngestor | None = None,
        platform_keys: Mapping[str, str] | None = None,
        registry: ProviderRegistry = PROVIDER_REGISTRY,
    ) -> None:
        self.adapters = dict(adapters)
        self.ingestor = ingestor or ArtifactIngestor()
        self.platform_keys = platform_keys
        self.registry = registry
        self._stats: dict[str, ProviderStats] = {}

    def _platform_keys(self) -> Mapping[str, str]:
        if self.platform_keys is None:
            return get_settings().platform_keys
        return self.platform_keys

    def candidates(
        self, creds: ProviderCredentials, provider_override: str | None = None,
    ) -> list[str]:
        """Ordered, de-duplicated provider ids; the free tier is always present."""
        platform = self._platform_keys()
        available = resolve_available(creds, platform, self.registry)
        free = self.registry.free_tier().id

        override = (provider_override or "").strip().lower()
        if override and override not in available:
            logger.info("Override provider %s has no usable key, ignoring", override)
            override = ""
        first = override or select_primary(creds, platform, self.registry)

        ordered = [first]
        ordered.extend(pid for pid in available if pid not in ordered and pid != free)
        if free not in ordered:
            ordered.append(free)
        return ordered

    async def execute(
        self,
        request: GenerationRequest,
        creds: ProviderCredentials | None = None,
        provider_override: str | None = None,
    ) -> GenerationResult:
        """Return the first successful result or raise AggregateFailure."""
        creds = creds or ProviderCredentials()
        keys = resolve_keys(creds, self._platform_keys(), self.registry)
        free = self.registry.free_tier().id

        attempts = 0
        failures: list[tuple[str, str]] = []

        for provider_id in self.candidates(creds, provider_override):
            key = keys.get(provider_id)
            if key is None and provider_id != free:
                logger.info("Skipping %s: no usable key", provider_id)
                continue

            adapter = self.adapters.get(provider_id)
            if adapter is None:
                logger.warning("Skipping %s: no adapter registered", provider_id)
                continue

            attempts += 1
            stats = self._stats.setdefault(provider_id, ProviderStats())
            stats.attempts += 1
            start = time.monotonic()

            try:
                handle, artifact = await adapter.submit_and_wait(request, key or "")
                url, thumbnail_url = await self.ingestor.ingest(
                    artifact, provider_id, handle.vendor_job_id,
                )
            except VideoGenerationError as e:
                stats.failures += 1
                failures.append((provider_id, e.message))
                logger.warning("Provider %s failed: %s", provider_id, e.message)
                continue
            except Exception as e:
                stats.failures += 1
                failures.append((provider_id, str(e)))
                logger.warning("Provider %s raised %s: %s", provider_id, type(e).__name__, e)
                continue

            latency = int((time.monotonic() - start) * 1000)
            stats.successes += 1
            stats.total_latency_ms += latency
            logger.info(
                "Video generated by %s in %dms (job=%s, attempt %d)",
                provider_id, latency, handle.vendor_job_id, attempts,
            )
            return GenerationResult(
                provider_id=provider_id,
                artifact_url=url,
                duration_seconds=artifact.duration_seconds or request.duration_seconds,
                vendor_job_id=handle.vendor_job_id,
                thumbnail_url=thumbnail_url,
            )

        logger.error("Video generation failed with all providers after %d attempts", attempts)
        last_error = failures[-1][1] if failures else None
        raise AggregateFailure(attempts, last_error, failures)

    def get_metrics(self) -> dict[str, Any]:
        """Return usage statistics per provider."""
        providers = [stats.to_dict(pid) for pid, stats in sorted(self._stats.items())]
        return {
            "service": "video_failover",
            "total_attempts": sum(s.attempts for s in self._stats.values()),
            "total_successes": sum(s.successes for s in self._stats.values()),
            "providers": providers,
        }
