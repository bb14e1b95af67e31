"""Declarative video provider registry.

Defines every supported vendor (display info, key format, priority) in a
single source of truth. Adapters live in services/providers; this module
only describes them.

Usage:
    from motionrelay.services.provider_registry import PROVIDER_REGISTRY
    desc = PROVIDER_REGISTRY.get("runway")
    PROVIDER_REGISTRY.validate_key("replicate", "r8_abc")
"""

from __future__ import annotations

import logging
from typing import Any

from motionrelay.services.video_types import KeyValidation, ProviderDescriptor

logger = logging.getLogger(__name__)

FREE_TIER_PROVIDER = "pollinations"

# Providers whose platform-level key outranks any BYOK key
PREMIUM_PROVIDERS = ("runway", "openai")

# Selection order for BYOK keys once premium providers are ruled out
BYOK_PRIORITY = ("fal", "replicate", "luma", "huggingface")


# ---------------------------------------------------------------------------
# Registry class
# ---------------------------------------------------------------------------

class ProviderRegistry:
    """In-memory registry of all supported video providers."""

    def __init__(self) -> None:
        self._providers: dict[str, ProviderDescriptor] = {}

    def register(self, desc: ProviderDescriptor) -> None:
        self._providers[desc.id] = desc

    def get(self, provider_id: str) -> ProviderDescriptor | None:
        return self._providers.get(provider_id)

    def __contains__(self, provider_id: object) -> bool:
        return provider_id in self._providers

    def list_providers(self) -> list[ProviderDescriptor]:
        """All providers ordered by priority (lowest first)."""
        return sorted(self._providers.values(), key=lambda d: d.priority)

    def ids(self) -> list[str]:
        return [d.id for d in self.list_providers()]

    def free_tier(self) -> ProviderDescriptor:
        for desc in self.list_providers():
            if desc.always_available:
                return desc
        raise LookupError("No always-available provider registered")

    def validate_key(self, provider_id: str, key: str | None) -> KeyValidation:
        desc = self.get(provider_id)
        if desc is None:
            return KeyValidation(False, "Unknown provider")
        return desc.validate_key(key)

    def to_dict_list(self) -> list[dict[str, Any]]:
        """Serialize all providers for API response."""
        return [
            {
                "id": d.id,
                "name": d.name,
                "priority": d.priority,
                "description": d.description,
                "key_prefix": d.key_prefix,
                "signup_url": d.signup_url,
                "pricing": d.pricing,
                "models": d.models,
                "always_available": d.always_available,
                "premium": d.premium,
            }
            for d in self.list_providers()
        ]


# ---------------------------------------------------------------------------
# Build the global registry
# ---------------------------------------------------------------------------

PROVIDER_REGISTRY = ProviderRegistry()

PROVIDER_REGISTRY.register(ProviderDescriptor(
    id="runway", name="Runway ML", priority=10, premium=True,
    description="Industry-leading AI video generation. Best quality and consistency.",
    key_prefix="key_",
    signup_url="https://app.runwayml.com/settings/api-keys",
    pricing="From $12/mo (Standard). ~$0.05-0.10 per second of video.",
    models="Gen-4.5, Gen-4 Turbo",
))

PROVIDER_REGISTRY.register(ProviderDescriptor(
    id="openai", name="OpenAI (Sora)", priority=20, premium=True,
    description="OpenAI's Sora video model.",
    key_prefix="sk-",
    signup_url="https://platform.openai.com/api-keys",
    pricing="Pay-per-second of generated video.",
    models="Sora 2, Sora 2 Pro",
))

PROVIDER_REGISTRY.register(ProviderDescriptor(
    id="replicate", name="Replicate", priority=30,
    description="Run open-source video models in the cloud. Great for Wan2.1.",
    key_prefix="r8_",
    signup_url="https://replicate.com/account/api-tokens",
    pricing="Pay-per-use. Free tier available for some models.",
    models="Wan2.1, CogVideoX, Stable Video Diffusion",
))

PROVIDER_REGISTRY.register(ProviderDescriptor(
    id="fal", name="fal.ai", priority=40,
    description="Fast and affordable. Supports HunyuanVideo, Veo3, LTX-Video.",
    signup_url="https://fal.ai/dashboard/keys",
    pricing="Pay-per-use. ~$0.40 per video clip.",
    models="HunyuanVideo, Google Veo 3, LTX-Video",
))

PROVIDER_REGISTRY.register(ProviderDescriptor(
    id="luma", name="Luma AI", priority=50,
    description="Dream Machine video generation. Great for cinematic content.",
    signup_url="https://lumalabs.ai/dream-machine/api",
    pricing="Pay-per-use. Free trial credits available.",
    models="Dream Machine 1.5, Dream Machine 2",
))

PROVIDER_REGISTRY.register(ProviderDescriptor(
    id="huggingface", name="Hugging Face", priority=60,
    description="Free inference API with open-source models. Limited but free.",
    key_prefix="hf_",
    signup_url="https://huggingface.co/settings/tokens",
    pricing="FREE tier: 300 requests/hour. Pro: $9/mo for more.",
    models="LTX-Video, Wan2.1, HunyuanVideo",
))

# Free tier is always last: highest priority number, no key needed
PROVIDER_REGISTRY.register(ProviderDescriptor(
    id=FREE_TIER_PROVIDER, name="Pollinations.ai (Free)", priority=1000,
    always_available=True,
    description="Free AI video generation. No API key needed. Lower quality but zero cost.",
    key_prefix="sk_",
    signup_url="https://pollinations.ai",
    pricing="FREE — no credit card required.",
    models="Seedance, Grok-Video (free models)",
))


logger.info("Provider registry initialized: %d providers", len(PROVIDER_REGISTRY._providers))
