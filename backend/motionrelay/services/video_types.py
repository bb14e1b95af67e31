"""Core data types for multi-provider video generation.

Requests, credentials, job handles and results are immutable once built.
Vendor-specific shapes never leak past the adapters: every adapter
normalizes its terminal output into an Artifact, and the orchestrator turns
a persisted Artifact into a GenerationResult.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping


class AspectRatio(str, Enum):
    LANDSCAPE = "16:9"
    PORTRAIT = "9:16"
    SQUARE = "1:1"


class Resolution(str, Enum):
    SD = "480p"
    HD = "720p"
    FHD = "1080p"


class JobStatus(str, Enum):
    """Canonical job status, independent of the vendor's own strings."""
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    TIMED_OUT = "timed_out"

    @property
    def is_terminal(self) -> bool:
        return self is not JobStatus.RUNNING


@dataclass(frozen=True)
class GenerationRequest:
    """One clip to generate. The prompt is opaque to the engine."""
    prompt: str
    duration_seconds: int = 5
    aspect_ratio: AspectRatio = AspectRatio.LANDSCAPE
    resolution: Resolution = Resolution.HD
    reference_image_url: str | None = None

    def __post_init__(self) -> None:
        if not self.prompt or not self.prompt.strip():
            raise ValueError("prompt must not be empty")
        if self.duration_seconds <= 0:
            raise ValueError("duration_seconds must be positive")
        # Accept plain strings ("9:16", "1080p") from API callers
        object.__setattr__(self, "aspect_ratio", AspectRatio(self.aspect_ratio))
        object.__setattr__(self, "resolution", Resolution(self.resolution))


@dataclass(frozen=True)
class ProviderCredentials:
    """Per-call BYOK keys keyed by provider id, plus an optional preference."""
    keys: Mapping[str, str] = field(default_factory=dict)
    preferred_provider: str | None = None

    def key_for(self, provider_id: str) -> str | None:
        key = self.keys.get(provider_id)
        if key and key.strip():
            return key.strip()
        return None


@dataclass(frozen=True)
class KeyValidation:
    valid: bool
    message: str


@dataclass(frozen=True)
class ProviderDescriptor:
    """Static description of a vendor, used for selection and display."""
    id: str
    name: str
    priority: int
    description: str = ""
    key_prefix: str = ""
    signup_url: str = ""
    pricing: str = ""
    models: str = ""
    always_available: bool = False
    premium: bool = False

    def validate_key(self, key: str | None) -> KeyValidation:
        """Check key format only; the vendor is never contacted."""
        if self.always_available:
            return KeyValidation(True, f"{self.name} is free — no key validation needed")
        if not key or not key.strip():
            return KeyValidation(False, "API key cannot be empty")
        if self.key_prefix and not key.strip().startswith(self.key_prefix):
            return KeyValidation(False, f"{self.name} keys must start with '{self.key_prefix}'")
        return KeyValidation(True, "Key format looks valid")


@dataclass(frozen=True)
class JobHandle:
    """Bookkeeping for exactly one submission to one vendor."""
    provider_id: str
    vendor_job_id: str
    submitted_at: float = field(default_factory=time.time)
    context: Mapping[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class Artifact:
    """Canonical artifact reference: a URL or an in-memory payload."""
    url: str | None = None
    content: bytes | None = None
    content_type: str = "video/mp4"
    thumbnail: Artifact | None = None
    duration_seconds: int | None = None

    @property
    def is_empty(self) -> bool:
        return not self.url and not self.content


@dataclass(frozen=True)
class GenerationResult:
    provider_id: str
    artifact_url: str
    duration_seconds: int
    vendor_job_id: str
    thumbnail_url: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "provider_id": self.provider_id,
            "artifact_url": self.artifact_url,
            "thumbnail_url": self.thumbnail_url,
            "duration_seconds": self.duration_seconds,
            "vendor_job_id": self.vendor_job_id,
        }


@dataclass(frozen=True)
class SceneTask:
    index: int
    request: GenerationRequest


@dataclass(frozen=True)
class SceneOutcome:
    """Result of one scene in a batch: either a result or an error message."""
    index: int
    provider_id: str
    result: GenerationResult | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.result is not None

    def to_dict(self) -> dict[str, Any]:
        return {
            "index": self.index,
            "provider_id": self.provider_id,
            "result": self.result.to_dict() if self.result else None,
            "error": self.error,
        }
