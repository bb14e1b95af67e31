"""Pytest configuration helpers.

This conftest puts `backend/` on `sys.path` so tests can import the
`motionrelay` package regardless of how pytest is invoked, and pins settings
that would otherwise leak in from the developer's environment.
"""
import asyncio
import os
import sys
import tempfile

import pytest

ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
BACKEND = os.path.join(ROOT, "backend")
if BACKEND not in sys.path:
    sys.path.insert(0, BACKEND)

os.environ["MEDIA_VOLUME"] = tempfile.mkdtemp(prefix="motionrelay-media-")
for _name in ("RUNWAY_API_KEY", "OPENAI_API_KEY", "POLLINATIONS_API_KEY"):
    os.environ[_name] = ""

from motionrelay.services.artifact_ingestor import ArtifactIngestor  # noqa: E402
from motionrelay.services.failover import FailoverOrchestrator  # noqa: E402
from motionrelay.services.providers.base import ProviderAdapter  # noqa: E402
from motionrelay.services.video_types import Artifact, JobStatus  # noqa: E402


class FakeAdapter(ProviderAdapter):
    """Scripted adapter: replays a status sequence and counts calls.

    Entries in `statuses` are vendor strings or exceptions to raise from
    poll(); the last entry repeats once the script runs out.
    """

    STATUS_MAP = {
        "queued": JobStatus.RUNNING,
        "processing": JobStatus.RUNNING,
        "succeeded": JobStatus.SUCCEEDED,
        "failed": JobStatus.FAILED,
    }

    def __init__(
        self,
        provider_id,
        *,
        statuses=("succeeded",),
        artifact="default",
        submit_error=None,
        delay=0.0,
        poll_interval=1,
        max_wait=100,
        sleep=None,
    ):
        super().__init__(poll_interval=poll_interval, max_wait=max_wait, sleep=sleep or asyncio.sleep)
        self.provider_id = provider_id
        self.statuses = list(statuses)
        self.artifact = Artifact(url=f"https://cdn.example.com/{provider_id}.mp4") if artifact == "default" else artifact
        self.submit_error = submit_error
        self.delay = delay
        self.submit_calls = 0
        self.poll_calls = 0
        self.keys_seen = []
        self.in_flight = 0
        self.max_in_flight = 0

    async def submit(self, request, key):
        self.submit_calls += 1
        self.keys_seen.append(key)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if self.delay:
                await asyncio.sleep(self.delay)
            if self.submit_error is not None:
                raise self.submit_error
        finally:
            self.in_flight -= 1
        return self._new_handle(f"{self.provider_id}-job-{self.submit_calls}")

    async def poll(self, handle, key):
        self.poll_calls += 1
        raw = self.statuses[min(self.poll_calls - 1, len(self.statuses) - 1)]
        if isinstance(raw, Exception):
            raise raw
        status = self.map_status(raw)
        if status is JobStatus.FAILED:
            self._record_failure(handle, "content policy violation")
        return status

    async def fetch(self, handle, key):
        return self.artifact


class MemoryBlobStore:
    """Blob store that keeps everything in a dict."""

    def __init__(self):
        self.blobs = {}

    async def put(self, data, filename, content_type):
        self.blobs[filename] = (data, content_type)
        return f"memory://{filename}"


class FakeClock:
    """Integer clock advanced only by its own sleep()."""

    def __init__(self):
        self.now = 0
        self.sleeps = []

    def __call__(self):
        return self.now

    async def sleep(self, seconds):
        self.sleeps.append(seconds)
        self.now += seconds


@pytest.fixture
def fake_adapter():
    return FakeAdapter


@pytest.fixture
def blob_store():
    return MemoryBlobStore()


@pytest.fixture
def fake_clock():
    return FakeClock()


@pytest.fixture
def make_orchestrator(blob_store):
    """Build an orchestrator over the given adapters with no platform keys."""

    def _make(*adapters, platform_keys=None):
        ingestor = ArtifactIngestor(blob_store, persist_remote=False)
        return FailoverOrchestrator(
            {a.provider_id: a for a in adapters},
            ingestor,
            platform_keys=platform_keys or {},
        )

    return _make
