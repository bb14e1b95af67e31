from __future__ import annotations
"""Artifact ingestion: persist vendor output behind a stable URL.

Vendors hand back either bytes or a (usually short-lived) URL. Bytes are
stored directly; URLs are streamed down and stored unless
PERSIST_REMOTE_ARTIFACTS is off. The blob store is the only sink.
"""

import logging
import os
import uuid
from typing import Protocol

import httpx

from motionrelay.config import get_settings
from motionrelay.services.providers.base import get_http_client
from motionrelay.services.video_errors import (
    ArtifactMissing,
    VendorTransientFailure,
    VideoGenerationError,
)
from motionrelay.services.video_types import Artifact

logger = logging.getLogger(__name__)

_EXTENSIONS = {
    "video/mp4": ".mp4",
    "video/webm": ".webm",
    "video/quicktime": ".mov",
    "image/jpeg": ".jpg",
    "image/png": ".png",
    "image/webp": ".webp",
}


class BlobStore(Protocol):
    async def put(self, data: bytes, filename: str, content_type: str) -> str:
        """Store bytes and return a persistent URL."""
        ...


class LocalMediaStore:
    """Blob store backed by the media volume, served under MEDIA_BASE_URL."""

    def __init__(self, root: str | None = None, base_url: str | None = None) -> None:
        settings = get_settings()
        self.root = root or settings.MEDIA_VOLUME
        self.base_url = (base_url if base_url is not None else settings.MEDIA_BASE_URL).rstrip("/")

    async def put(self, data: bytes, filename: str, content_type: str) -> str:
        dir_path = os.path.join(self.root, "videos")
        os.makedirs(dir_path, exist_ok=True)

        filepath = os.path.join(dir_path, filename)
        with open(filepath, "wb") as f:
            f.write(data)

        logger.info("Stored %s (%.1f KB, %s)", filename, len(data) / 1024, content_type)
        return f"{self.base_url}/videos/{filename}"


class ArtifactIngestor:
    """Moves a resolved Artifact into the blob store."""

    def __init__(
        self,
        store: BlobStore | None = None,
        *,
        http_client: httpx.AsyncClient | None = None,
        persist_remote: bool | None = None,
        download_timeout: float | None = None,
    ) -> None:
        settings = get_settings()
        self.store = store or LocalMediaStore()
        self._http_client = http_client
        self.persist_remote = settings.PERSIST_REMOTE_ARTIFACTS if persist_remote is None else persist_remote
        self.download_timeout = download_timeout or settings.ARTIFACT_DOWNLOAD_TIMEOUT

    async def ingest(self, artifact: Artifact, provider_id: str, job_id: str) -> tuple[str, str | None]:
        """Return (video_url, thumbnail_url). Thumbnails are best effort."""
        video_url = await self._persist(artifact, provider_id, job_id, "video")

        thumbnail_url = None
        if artifact.thumbnail is not None and not artifact.thumbnail.is_empty:
            try:
                thumbnail_url = await self._persist(artifact.thumbnail, provider_id, job_id, "thumb")
            except (VideoGenerationError, OSError) as e:
                logger.warning("Could not store thumbnail for %s job %s: %s", provider_id, job_id, e)

        return video_url, thumbnail_url

    async def _persist(self, artifact: Artifact, provider_id: str, job_id: str, kind: str) -> str:
        if artifact.content:
            data, content_type = artifact.content, artifact.content_type
        elif not artifact.url:
            raise ArtifactMissing("artifact has neither content nor URL", provider=provider_id)
        elif not self.persist_remote:
            return artifact.url
        else:
            data, content_type = await self._download(artifact.url, provider_id)
            content_type = content_type or artifact.content_type

        if not data:
            raise ArtifactMissing(f"{kind} download is empty", provider=provider_id)

        ext = _EXTENSIONS.get(content_type, ".bin")
        filename = f"{provider_id}-{kind}-{job_id[:8]}-{uuid.uuid4().hex[:8]}{ext}"
        return await self.store.put(data, filename, content_type)

    async def _download(self, url: str, provider_id: str) -> tuple[bytes, str | None]:
        """Stream a remote artifact into memory."""
        client = self._http_client or get_http_client()
        chunks: list[bytes] = []
        try:
            async with client.stream("GET", url, timeout=self.download_timeout, follow_redirects=True) as response:
                if not response.is_success:
                    raise VendorTransientFailure(
                        f"artifact download failed with HTTP {response.status_code}", provider=provider_id,
                    )
                async for chunk in response.aiter_bytes(chunk_size=1024 * 1024):
                    chunks.append(chunk)
                content_type = response.headers.get("content-type", "").split(";")[0].strip().lower()
        except httpx.HTTPError as e:
            raise VendorTransientFailure(f"artifact download failed: {e}", provider=provider_id) from e

        data = b"".join(chunks)
        logger.info("Downloaded %.1fMB artifact from %s", len(data) / 1024 / 1024, provider_id)
        if not content_type.startswith(("video/", "image/")):
            content_type = None
        return data, content_type
