"""Error taxonomy for video generation.

Every adapter and poller error derives from VideoGenerationError and is
caught at the failover boundary. Only AggregateFailure escapes generate().
"""

from __future__ import annotations


class VideoGenerationError(Exception):
    """Raised when a single provider attempt fails."""

    def __init__(self, message: str, provider: str | None = None):
        self.provider = provider
        self.message = message
        super().__init__(message)

    def __str__(self) -> str:
        if self.provider:
            return f"[{self.provider}] {self.message}"
        return self.message


class CredentialError(VideoGenerationError):
    """Key absent or malformed, or rejected by the vendor (401/403)."""


class VendorRejected(VideoGenerationError):
    """Vendor 4xx, explicit validation failure, or a vendor-reported failed job."""


class VendorTransientFailure(VideoGenerationError):
    """Network error, timeout on a single call, or vendor 5xx."""


class TimedOut(VideoGenerationError):
    """Polling ceiling exceeded."""


class ArtifactMissing(VideoGenerationError):
    """Terminal success with no resolvable output."""


class AggregateFailure(VideoGenerationError):
    """Every candidate provider failed."""

    def __init__(
        self,
        attempts: int,
        last_error: str | None,
        failures: list[tuple[str, str]] | None = None,
    ):
        self.attempts = attempts
        self.last_error = last_error
        self.failures = list(failures or [])
        super().__init__(
            f"Video generation failed with all providers "
            f"({attempts} attempt{'s' if attempts != 1 else ''}). "
            f"Last error: {last_error or 'no provider could be attempted'}"
        )
