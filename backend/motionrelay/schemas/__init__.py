"""Pydantic v2 schemas package."""

from motionrelay.schemas.video import (
    BatchIn,
    BatchOut,
    CredentialsIn,
    GenerateIn,
    GenerationResultOut,
    ProviderOut,
    SceneIn,
    SceneOutcomeOut,
    ValidateKeyIn,
    ValidateKeyOut,
    VideoRequestIn,
)

__all__ = [
    "BatchIn",
    "BatchOut",
    "CredentialsIn",
    "GenerateIn",
    "GenerationResultOut",
    "ProviderOut",
    "SceneIn",
    "SceneOutcomeOut",
    "ValidateKeyIn",
    "ValidateKeyOut",
    "VideoRequestIn",
]
