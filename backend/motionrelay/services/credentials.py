"""Credential resolution and provider selection.

User (BYOK) keys are merged over platform-level keys; a provider is
available when its merged key is present and well formed. The free tier is
always available and always last, so the candidate list is never empty.
"""

from __future__ import annotations

import logging
from typing import Mapping

from motionrelay.config import get_settings
from motionrelay.services.provider_registry import (
    BYOK_PRIORITY,
    FREE_TIER_PROVIDER,
    PREMIUM_PROVIDERS,
    PROVIDER_REGISTRY,
    ProviderRegistry,
)
from motionrelay.services.video_types import KeyValidation, ProviderCredentials

logger = logging.getLogger(__name__)


def _platform_keys(platform_keys: Mapping[str, str] | None) -> Mapping[str, str]:
    if platform_keys is None:
        return get_settings().platform_keys
    return platform_keys


def resolve_keys(
    creds: ProviderCredentials,
    platform_keys: Mapping[str, str] | None = None,
    registry: ProviderRegistry = PROVIDER_REGISTRY,
) -> dict[str, str]:
    """Return the usable key per provider; user keys win over platform keys.

    Malformed keys are dropped. The free tier maps to its platform key or "".
    """
    shared = _platform_keys(platform_keys)
    merged: dict[str, str] = {}

    for desc in registry.list_providers():
        key = creds.key_for(desc.id) or (shared.get(desc.id) or "").strip() or None
        if desc.always_available:
            merged[desc.id] = key or ""
            continue
        if not key:
            continue
        check = desc.validate_key(key)
        if not check.valid:
            logger.warning("Ignoring %s key: %s", desc.id, check.message)
            continue
        merged[desc.id] = key

    return merged


def resolve_available(
    creds: ProviderCredentials,
    platform_keys: Mapping[str, str] | None = None,
    registry: ProviderRegistry = PROVIDER_REGISTRY,
) -> list[str]:
    """Ordered list of usable providers, free tier last."""
    keys = resolve_keys(creds, platform_keys, registry)
    free = registry.free_tier().id
    available = [pid for pid in registry.ids() if pid in keys and pid != free]
    available.append(free)
    return available


def select_primary(
    creds: ProviderCredentials,
    platform_keys: Mapping[str, str] | None = None,
    registry: ProviderRegistry = PROVIDER_REGISTRY,
) -> str:
    """Pick the provider to try first. Never fails."""
    available = resolve_available(creds, platform_keys, registry)
    free = registry.free_tier().id

    # 1. Explicit preference, if usable
    pref = (creds.preferred_provider or "").strip().lower()
    if pref:
        if pref == free or pref in available:
            return pref
        logger.info("Preferred provider %s has no usable key, ignoring", pref)

    # 2. Premium providers (platform keys count here)
    for pid in PREMIUM_PROVIDERS:
        if pid in available:
            return pid

    # 3. BYOK keys in fixed priority
    for pid in BYOK_PRIORITY:
        if pid in available:
            return pid

    # 4. Ultimate fallback
    return free


def validate_api_key(provider_id: str, key: str | None) -> KeyValidation:
    """Format check for a user-supplied key (no network call)."""
    return PROVIDER_REGISTRY.validate_key(provider_id, key)


__all__ = [
    "FREE_TIER_PROVIDER",
    "resolve_available",
    "resolve_keys",
    "select_primary",
    "validate_api_key",
]
