from __future__ import annotations
"""Parallel scene dispatcher.

Runs many scene requests at once under a semaphore. Start providers are
assigned round-robin over the available list when tasks are created; each
task still fails over independently. generate_many never raises.
"""

import asyncio
import logging
from typing import Awaitable, Callable, Sequence, Union

from motionrelay.config import get_settings
from motionrelay.services.credentials import resolve_available
from motionrelay.services.failover import FailoverOrchestrator
from motionrelay.services.video_types import ProviderCredentials, SceneOutcome, SceneTask

logger = logging.getLogger(__name__)

OutcomeCallback = Callable[[SceneOutcome], Union[Awaitable[None], None]]


class SceneDispatcher:
    def __init__(self, orchestrator: FailoverOrchestrator) -> None:
        self.orchestrator = orchestrator

    async def generate_many(
        self,
        tasks: Sequence[SceneTask],
        concurrency: int | None = None,
        credentials: ProviderCredentials | None = None,
        on_outcome: OutcomeCallback | None = None,
    ) -> list[SceneOutcome]:
        """Generate every task; the output has one outcome per task, sorted by index."""
        if not tasks:
            return []

        creds = credentials or ProviderCredentials()
        limit = max(1, concurrency if concurrency is not None else get_settings().SCENE_CONCURRENCY)
        semaphore = asyncio.Semaphore(limit)
        available = resolve_available(
            creds, self.orchestrator.platform_keys, self.orchestrator.registry,
        )
        outcomes: list[SceneOutcome] = []

        logger.info(
            "Dispatching %d scenes (concurrency=%d, providers=%s)",
            len(tasks), limit, ",".join(available),
        )

        async def run_one(task: SceneTask, start_provider: str) -> None:
            async with semaphore:
                try:
                    result = await self.orchestrator.execute(task.request, creds, start_provider)
                    outcome = SceneOutcome(task.index, result.provider_id, result=result)
                except Exception as e:
                    logger.warning("Scene %d failed: %s", task.index, e)
                    outcome = SceneOutcome(task.index, start_provider, error=str(e))

            outcomes.append(outcome)
            if on_outcome is not None:
                try:
                    maybe = on_outcome(outcome)
                    if asyncio.iscoroutine(maybe):
                        await maybe
                except Exception as e:
                    logger.warning("Outcome callback failed for scene %d: %s", task.index, e)

        await asyncio.gather(*(
            run_one(task, available[i % len(available)])
            for i, task in enumerate(tasks)
        ))

        succeeded = sum(1 for o in outcomes if o.ok)
        logger.info("Scene batch finished: %d/%d succeeded", succeeded, len(tasks))
        return sorted(outcomes, key=lambda o: o.index)
