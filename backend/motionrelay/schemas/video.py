from __future__ import annotations
"""Pydantic v2 schemas for the video generation API."""

from pydantic import BaseModel, ConfigDict, Field

from motionrelay.services.video_types import (
    AspectRatio,
    GenerationRequest,
    ProviderCredentials,
    Resolution,
    SceneTask,
)


class CredentialsIn(BaseModel):
    """BYOK keys keyed by provider id."""

    keys: dict[str, str] = Field(default_factory=dict)
    preferred_provider: str | None = None

    def to_credentials(self) -> ProviderCredentials:
        return ProviderCredentials(keys=dict(self.keys), preferred_provider=self.preferred_provider)


class VideoRequestIn(BaseModel):
    """One generation request."""

    model_config = ConfigDict(str_strip_whitespace=True)

    prompt: str = Field(..., min_length=1)
    duration_seconds: int = Field(5, gt=0, le=60)
    aspect_ratio: AspectRatio = AspectRatio.LANDSCAPE
    resolution: Resolution = Resolution.HD
    reference_image_url: str | None = None

    def to_request(self) -> GenerationRequest:
        return GenerationRequest(
            prompt=self.prompt,
            duration_seconds=self.duration_seconds,
            aspect_ratio=self.aspect_ratio,
            resolution=self.resolution,
            reference_image_url=self.reference_image_url,
        )


class GenerateIn(BaseModel):
    request: VideoRequestIn
    credentials: CredentialsIn = Field(default_factory=CredentialsIn)
    provider_override: str | None = None


class SceneIn(VideoRequestIn):
    index: int | None = None


class BatchIn(BaseModel):
    """A batch of scenes; scenes without an index take their list position."""

    scenes: list[SceneIn] = Field(..., min_length=1)
    credentials: CredentialsIn = Field(default_factory=CredentialsIn)
    concurrency: int | None = Field(None, ge=1)

    def to_tasks(self) -> list[SceneTask]:
        return [
            SceneTask(index=s.index if s.index is not None else i, request=s.to_request())
            for i, s in enumerate(self.scenes)
        ]


class GenerationResultOut(BaseModel):
    provider_id: str
    artifact_url: str
    thumbnail_url: str | None = None
    duration_seconds: int
    vendor_job_id: str


class SceneOutcomeOut(BaseModel):
    index: int
    provider_id: str
    result: GenerationResultOut | None = None
    error: str | None = None


class BatchOut(BaseModel):
    total: int
    succeeded: int
    outcomes: list[SceneOutcomeOut]


class ProviderOut(BaseModel):
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


class ValidateKeyIn(BaseModel):
    provider: str
    api_key: str = ""


class ValidateKeyOut(BaseModel):
    provider: str
    valid: bool
    message: str
