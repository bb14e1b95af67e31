"""Base class and shared helpers for video provider adapters.

Every adapter implements submit → poll → fetch against its vendor and
normalizes the terminal output into an Artifact. Vendor status strings are
mapped onto JobStatus through a per-adapter STATUS_MAP; strings the map does
not know are treated as RUNNING so new in-progress states never fail a job.
"""

from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Any, Awaitable, Callable, Mapping

import httpx

from motionrelay.config import get_settings
from motionrelay.services.job_poller import JobPoller
from motionrelay.services.video_errors import (
    CredentialError,
    TimedOut,
    VendorRejected,
    VendorTransientFailure,
)
from motionrelay.services.video_types import (
    Artifact,
    GenerationRequest,
    JobHandle,
    JobStatus,
)

logger = logging.getLogger(__name__)

# JSON field precedence when a vendor returns the artifact inline
ARTIFACT_URL_FIELDS = ("url", "video_url", "output")

VIDEO_TYPES = ("video/", "application/octet-stream")
IMAGE_TYPES = ("image/",)

_MEDIA_PREFIXES = ("video/", "image/", "audio/")

# Module-level httpx client for connection reuse (lazy init)
_http_client: httpx.AsyncClient | None = None


def get_http_client(timeout: float = 60.0) -> httpx.AsyncClient:
    """Return a module-level httpx.AsyncClient, creating it on first use."""
    global _http_client
    if _http_client is None or _http_client.is_closed:
        _http_client = httpx.AsyncClient(timeout=timeout)
    return _http_client


async def close_http_client() -> None:
    global _http_client
    if _http_client is not None and not _http_client.is_closed:
        await _http_client.aclose()
    _http_client = None


# ---------------------------------------------------------------------------
# Response normalization
# ---------------------------------------------------------------------------

def extract_url(payload: Any) -> str | None:
    """Pick the artifact URL out of a JSON payload.

    Checks url > video_url > output. Lists yield their first entry and
    nested objects are unwrapped through the same precedence.
    """
    if isinstance(payload, str):
        return payload or None
    if isinstance(payload, list):
        return extract_url(payload[0]) if payload else None
    if not isinstance(payload, Mapping):
        return None

    for name in ARTIFACT_URL_FIELDS:
        value = payload.get(name)
        if not value:
            continue
        url = extract_url(value)
        if url:
            return url
    return None


def normalize_response(
    response: httpx.Response,
    requested_url: str | None = None,
    *,
    min_bytes: int = 0,
    accept: tuple[str, ...] = VIDEO_TYPES,
) -> Artifact | None:
    """Turn a terminal vendor response into an Artifact.

    Order: binary payload, JSON field, redirect. The first match wins.
    Only content types starting with one of ``accept`` count as a binary
    payload; any other media type (an image in place of a video) is
    unusable. Returns None when none of the three applies.
    """
    content_type = response.headers.get("content-type", "").split(";")[0].strip().lower()

    if content_type.startswith(_MEDIA_PREFIXES) and not content_type.startswith(accept):
        logger.debug("Unexpected media type %s, ignoring", content_type)
        return None

    # 1. Binary payload
    if content_type.startswith(accept):
        data = response.content
        if len(data) < max(min_bytes, 1):
            logger.debug("Binary response too small (%d bytes), ignoring", len(data))
            return None
        if content_type == "application/octet-stream":
            content_type = "video/mp4"
        return Artifact(content=data, content_type=content_type)

    # 2. JSON field
    if "json" in content_type:
        try:
            url = extract_url(response.json())
        except ValueError:
            url = None
        if url:
            return Artifact(url=url)

    # 3. Redirect: the final URL is the artifact
    final_url = str(response.url)
    if requested_url and response.history and final_url != requested_url:
        return Artifact(url=final_url)

    return None


def raise_for_vendor(response: httpx.Response, provider: str) -> None:
    """Map a vendor HTTP error onto the error taxonomy."""
    if response.is_success:
        return
    detail = response.text[:300] if response.text else response.reason_phrase
    message = f"API error {response.status_code}: {detail}"
    if response.status_code in (401, 403):
        raise CredentialError(message, provider=provider)
    if 400 <= response.status_code < 500:
        raise VendorRejected(message, provider=provider)
    raise VendorTransientFailure(message, provider=provider)


# ---------------------------------------------------------------------------
# Adapter base
# ---------------------------------------------------------------------------

class ProviderAdapter(ABC):
    """Base class for all video provider adapters."""

    provider_id: str = "base"
    STATUS_MAP: Mapping[str, JobStatus] = {}

    def __init__(
        self,
        http_client: httpx.AsyncClient | None = None,
        *,
        poll_interval: float | None = None,
        max_wait: float | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        settings = get_settings()
        self._http_client = http_client
        self.poll_interval = poll_interval if poll_interval is not None else settings.VIDEO_POLL_INTERVAL
        self.max_wait = max_wait if max_wait is not None else settings.VIDEO_MAX_WAIT
        self._sleep = sleep
        self._failures: dict[str, str] = {}
        self._payloads: dict[str, Any] = {}

    @property
    def client(self) -> httpx.AsyncClient:
        return self._http_client or get_http_client()

    @abstractmethod
    async def submit(self, request: GenerationRequest, key: str) -> JobHandle:
        """Create the vendor job. Raises on clearly fatal conditions."""

    @abstractmethod
    async def poll(self, handle: JobHandle, key: str) -> JobStatus:
        """Return the canonical status of a submitted job."""

    @abstractmethod
    async def fetch(self, handle: JobHandle, key: str) -> Artifact | None:
        """Resolve the terminal artifact, or None if there is none."""

    async def submit_and_wait(self, request: GenerationRequest, key: str) -> tuple[JobHandle, Artifact]:
        """Full job lifecycle under this adapter's interval and ceiling."""
        poller = JobPoller(self.poll_interval, self.max_wait, sleep=self._sleep)
        return await poller.run(self, request, key)

    def map_status(self, raw: Any) -> JobStatus:
        value = str(raw or "").strip().lower()
        status = self.STATUS_MAP.get(value)
        if status is None:
            logger.debug("%s unknown status %r, treating as running", self.provider_id, raw)
            return JobStatus.RUNNING
        return status

    def failure_reason(self, handle: JobHandle) -> str | None:
        return self._failures.pop(handle.vendor_job_id, None)

    def _record_failure(self, handle: JobHandle, reason: Any) -> None:
        self._failures[handle.vendor_job_id] = str(reason or "unknown error")

    def _remember(self, handle: JobHandle, payload: Any) -> None:
        self._payloads[handle.vendor_job_id] = payload

    def _recall(self, handle: JobHandle) -> Any:
        return self._payloads.pop(handle.vendor_job_id, None)

    def _new_handle(self, vendor_job_id: Any, **context: Any) -> JobHandle:
        if not vendor_job_id:
            raise VendorRejected("vendor returned no job id", provider=self.provider_id)
        return JobHandle(provider_id=self.provider_id, vendor_job_id=str(vendor_job_id), context=context)

    async def _request(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        """Send a request, mapping transport errors and HTTP failures."""
        try:
            response = await self.client.request(method, url, **kwargs)
        except httpx.TimeoutException as e:
            raise VendorTransientFailure(f"request timed out: {e}", provider=self.provider_id) from e
        except httpx.HTTPError as e:
            raise VendorTransientFailure(f"request failed: {e}", provider=self.provider_id) from e
        raise_for_vendor(response, self.provider_id)
        return response

    async def _json(self, method: str, url: str, **kwargs: Any) -> dict[str, Any]:
        response = await self._request(method, url, **kwargs)
        try:
            data = response.json()
        except ValueError as e:
            raise VendorTransientFailure(
                f"invalid JSON from {url}: {response.text[:200]}", provider=self.provider_id,
            ) from e
        return data if isinstance(data, dict) else {"output": data}


class BlockingProviderAdapter(ProviderAdapter):
    """Adapter for vendors that answer the generation call synchronously.

    The blocking call happens in submit() under the max_wait ceiling; poll()
    and fetch() then serve the already-resolved result, so the adapter still
    runs through the shared JobPoller like every other vendor.
    """

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self._ready: dict[str, Artifact] = {}

    @abstractmethod
    async def _generate(self, request: GenerationRequest, key: str) -> tuple[str, Artifact]:
        """Perform the blocking call; return (job id, artifact)."""

    async def submit(self, request: GenerationRequest, key: str) -> JobHandle:
        try:
            job_id, artifact = await asyncio.wait_for(self._generate(request, key), timeout=self.max_wait)
        except asyncio.TimeoutError as e:
            raise TimedOut(f"no response within {self.max_wait:.0f}s", provider=self.provider_id) from e
        handle = self._new_handle(job_id)
        self._ready[handle.vendor_job_id] = artifact
        return handle

    async def poll(self, handle: JobHandle, key: str) -> JobStatus:
        if handle.vendor_job_id in self._ready:
            return JobStatus.SUCCEEDED
        self._record_failure(handle, "no result recorded for job")
        return JobStatus.FAILED

    async def fetch(self, handle: JobHandle, key: str) -> Artifact | None:
        return self._ready.pop(handle.vendor_job_id, None)
