from __future__ import annotations
"""Vendor-agnostic bounded polling loop.

Async job pattern shared by every adapter:
1. submit → JobHandle
2. poll at a fixed interval until the status is terminal or the ceiling passes
3. fetch the artifact on success

Adapters only parameterize interval, ceiling and status mapping.
"""

import asyncio
import logging
import time
from typing import TYPE_CHECKING, Awaitable, Callable

from motionrelay.services.video_errors import (
    ArtifactMissing,
    TimedOut,
    VendorRejected,
    VendorTransientFailure,
)
from motionrelay.services.video_types import Artifact, GenerationRequest, JobHandle, JobStatus

if TYPE_CHECKING:
    from motionrelay.services.providers.base import ProviderAdapter

logger = logging.getLogger(__name__)


class JobPoller:
    """Drives one job handle from submission to a terminal state."""

    def __init__(
        self,
        interval: float = 5.0,
        ceiling: float = 600.0,
        *,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if interval <= 0:
            raise ValueError("interval must be positive")
        self.interval = interval
        self.ceiling = ceiling
        self._sleep = sleep
        self._clock = clock

    async def wait(self, adapter: ProviderAdapter, handle: JobHandle, key: str) -> JobStatus:
        """Poll until terminal. Returns TIMED_OUT once the ceiling is reached."""
        started = self._clock()
        polls = 0

        while self._clock() - started < self.ceiling:
            try:
                status = await adapter.poll(handle, key)
            except VendorTransientFailure as e:
                # A flaky status endpoint does not end the job
                logger.warning("%s poll error for %s: %s", handle.provider_id, handle.vendor_job_id, e)
                status = JobStatus.RUNNING
            polls += 1

            if status.is_terminal:
                logger.info(
                    "%s job %s: %s after %d poll(s)",
                    handle.provider_id, handle.vendor_job_id, status.value, polls,
                )
                return status

            logger.debug("%s job %s still running (poll %d)", handle.provider_id, handle.vendor_job_id, polls)
            await self._sleep(self.interval)

        logger.warning(
            "%s job %s timed out after %.0fs (%d polls)",
            handle.provider_id, handle.vendor_job_id, self.ceiling, polls,
        )
        return JobStatus.TIMED_OUT

    async def run(
        self,
        adapter: ProviderAdapter,
        request: GenerationRequest,
        key: str,
    ) -> tuple[JobHandle, Artifact]:
        """Submit, wait and fetch. Raises on every non-success outcome."""
        handle = await adapter.submit(request, key)
        status = await self.wait(adapter, handle, key)

        if status is JobStatus.TIMED_OUT:
            raise TimedOut(
                f"job {handle.vendor_job_id} timed out after {self.ceiling:.0f}s",
                provider=handle.provider_id,
            )
        if status is JobStatus.FAILED:
            reason = adapter.failure_reason(handle) or "unknown error"
            raise VendorRejected(
                f"job {handle.vendor_job_id} failed: {reason}",
                provider=handle.provider_id,
            )

        artifact = await adapter.fetch(handle, key)
        if artifact is None or artifact.is_empty:
            raise ArtifactMissing(
                f"job {handle.vendor_job_id} succeeded but returned no video",
                provider=handle.provider_id,
            )
        return handle, artifact
