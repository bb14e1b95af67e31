from __future__ import annotations
"""Video generation service: public entry points.

Async job pattern shared by every provider:
1. submit   → vendor job handle
2. poll     → until a terminal status or the wait ceiling
3. fetch    → artifact, persisted by the ingestor

generate() fails over across providers and raises only AggregateFailure;
generate_many() runs a batch of scenes and never raises.
"""

import logging
from typing import Mapping, Sequence

from motionrelay.services.artifact_ingestor import ArtifactIngestor
from motionrelay.services.failover import FailoverOrchestrator
from motionrelay.services.providers import build_adapters
from motionrelay.services.scene_dispatcher import OutcomeCallback, SceneDispatcher
from motionrelay.services.video_types import (
    GenerationRequest,
    GenerationResult,
    ProviderCredentials,
    SceneOutcome,
    SceneTask,
)

logger = logging.getLogger(__name__)

# Module-level singletons for metrics aggregation
_orchestrator: FailoverOrchestrator | None = None
_dispatcher: SceneDispatcher | None = None


def get_orchestrator() -> FailoverOrchestrator:
    """Return the singleton FailoverOrchestrator."""
    global _orchestrator
    if _orchestrator is None:
        _orchestrator = FailoverOrchestrator(build_adapters(), ArtifactIngestor())
    return _orchestrator


def get_dispatcher() -> SceneDispatcher:
    """Return the singleton SceneDispatcher bound to the orchestrator."""
    global _dispatcher
    if _dispatcher is None:
        _dispatcher = SceneDispatcher(get_orchestrator())
    return _dispatcher


def _as_credentials(credentials: ProviderCredentials | Mapping[str, str] | None) -> ProviderCredentials:
    if credentials is None:
        return ProviderCredentials()
    if isinstance(credentials, ProviderCredentials):
        return credentials
    return ProviderCredentials(keys=dict(credentials))


async def generate(
    request: GenerationRequest,
    credentials: ProviderCredentials | Mapping[str, str] | None = None,
    provider_override: str | None = None,
) -> GenerationResult:
    """Generate one clip, failing over across providers.

    Args:
        request: What to generate.
        credentials: BYOK keys, either ProviderCredentials or a plain
            {provider_id: key} mapping.
        provider_override: Provider to try first, honored only when usable.

    Raises:
        AggregateFailure: every candidate provider failed.
    """
    return await get_orchestrator().execute(request, _as_credentials(credentials), provider_override)


async def generate_many(
    tasks: Sequence[SceneTask],
    concurrency: int | None = None,
    credentials: ProviderCredentials | Mapping[str, str] | None = None,
    on_outcome: OutcomeCallback | None = None,
) -> list[SceneOutcome]:
    """Generate a batch of scenes with bounded concurrency."""
    return await get_dispatcher().generate_many(
        tasks, concurrency, _as_credentials(credentials), on_outcome,
    )
