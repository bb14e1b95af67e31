"""Video provider adapters.

Each adapter module implements the async generation pattern:
  submit → poll status → fetch artifact
and normalizes vendor output into an Artifact.
"""
from __future__ import annotations

from typing import Callable

from motionrelay.services.providers.base import ProviderAdapter
from motionrelay.services.providers.fal_video import FalAdapter
from motionrelay.services.providers.huggingface_video import HuggingFaceAdapter
from motionrelay.services.providers.luma_video import LumaAdapter
from motionrelay.services.providers.pollinations_video import PollinationsAdapter
from motionrelay.services.providers.replicate_video import ReplicateAdapter
from motionrelay.services.providers.runway_video import RunwayAdapter
from motionrelay.services.providers.sora_video import SoraAdapter

# Allow tests and scripts to inject alternate adapters.
ADAPTER_FACTORIES: dict[str, Callable[[], ProviderAdapter]] = {
    "runway": RunwayAdapter,
    "openai": SoraAdapter,
    "replicate": ReplicateAdapter,
    "fal": FalAdapter,
    "luma": LumaAdapter,
    "huggingface": HuggingFaceAdapter,
    "pollinations": PollinationsAdapter,
}


def build_adapters() -> dict[str, ProviderAdapter]:
    """Instantiate one adapter per registered provider."""
    return {pid: factory() for pid, factory in ADAPTER_FACTORIES.items()}


__all__ = ["ADAPTER_FACTORIES", "ProviderAdapter", "build_adapters"]
