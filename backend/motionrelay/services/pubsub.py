"""Redis Pub/Sub bridge for batch progress notifications.

Celery workers publish scene outcomes and batch status to a Redis channel;
API consumers subscribe to follow a batch as it runs.
"""

from __future__ import annotations

import json
import logging
from typing import Any

import redis
import redis.asyncio as aioredis

from motionrelay.config import get_settings

logger = logging.getLogger(__name__)

CHANNEL_PREFIX = "motionrelay:batch:"

# ──────── Sync connection pool (used by Celery workers) ────────

_sync_pool: redis.ConnectionPool | None = None


def get_sync_pool() -> redis.ConnectionPool:
    """Lazy-init a module-level sync Redis ConnectionPool."""
    global _sync_pool
    if _sync_pool is None:
        settings = get_settings()
        _sync_pool = redis.ConnectionPool.from_url(settings.REDIS_URL)
    return _sync_pool


def channel_for(batch_id: str) -> str:
    return f"{CHANNEL_PREFIX}{batch_id}"


# ──────── Publisher (used by Celery workers, sync) ────────

def publish_scene_outcome(batch_id: str, outcome: dict[str, Any], completed: int, total: int) -> None:
    """Publish one finished scene of a batch."""
    _publish_sync(batch_id, {
        "type": "scene_outcome",
        "outcome": outcome,
        "completed": completed,
        "total": total,
        "percent": round(completed / total * 100) if total > 0 else 0,
    })


def publish_batch_update(batch_id: str, status: str, **extra: Any) -> None:
    """Publish a batch status change (started, completed, partial, failed, duplicate_blocked)."""
    _publish_sync(batch_id, {"type": "batch_update", "status": status, **extra})


def _publish_sync(batch_id: str, message: dict[str, Any]) -> None:
    try:
        r = redis.Redis(connection_pool=get_sync_pool())
        r.publish(channel_for(batch_id), json.dumps(message))
    except redis.RedisError:
        # Best-effort: don't crash the Celery task
        logger.warning("Failed to publish batch notification for %s", batch_id, exc_info=True)


# ──────── Subscriber (async) ────────

_async_client: aioredis.Redis | None = None


def _get_async_client() -> aioredis.Redis:
    """Lazy-init a module-level async Redis client (singleton)."""
    global _async_client
    if _async_client is None:
        settings = get_settings()
        _async_client = aioredis.from_url(settings.REDIS_URL)
    return _async_client


async def subscribe_batch(batch_id: str) -> aioredis.client.PubSub:
    """Subscribe to a batch channel. Caller closes the pubsub, not the client."""
    pubsub = _get_async_client().pubsub()
    await pubsub.subscribe(channel_for(batch_id))
    return pubsub


async def listen_pubsub(pubsub: aioredis.client.PubSub):
    """Async generator that yields parsed messages from a PubSub subscription."""
    async for raw_message in pubsub.listen():
        if raw_message["type"] == "message":
            try:
                yield json.loads(raw_message["data"])
            except (json.JSONDecodeError, TypeError):
                continue
