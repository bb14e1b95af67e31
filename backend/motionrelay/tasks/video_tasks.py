from __future__ import annotations
"""Celery task: generate a batch of scenes in the background.

Progress is pushed via Redis Pub/Sub on motionrelay:batch:<batch_id>.
"""

import logging
from typing import Any

import redis
from celery import shared_task

from motionrelay.services.pubsub import get_sync_pool, publish_batch_update, publish_scene_outcome
from motionrelay.services.video_types import GenerationRequest, ProviderCredentials, SceneOutcome, SceneTask
from motionrelay.tasks import run_async

logger = logging.getLogger(__name__)

LOCK_TTL = 3600


def build_scene_tasks(scenes: list[dict[str, Any]]) -> list[SceneTask]:
    """Turn JSON scene payloads into SceneTasks; missing indexes follow list order."""
    tasks = []
    for i, scene in enumerate(scenes):
        fields = dict(scene)
        index = fields.pop("index", i)
        tasks.append(SceneTask(index=index, request=GenerationRequest(**fields)))
    return tasks


@shared_task(bind=True, time_limit=7200, max_retries=0)
def generate_scene_batch(
    self,
    batch_id: str,
    scenes: list[dict[str, Any]],
    credentials: dict[str, Any] | None = None,
    concurrency: int | None = None,
):
    """Run generate_many for a batch and publish each outcome as it lands."""
    from motionrelay.services.video_gen import generate_many

    lock_key = f"motionrelay_batch_lock:{batch_id}"
    redis_client = redis.Redis(connection_pool=get_sync_pool())

    # Anti-duplicate: SETNX mutex
    if not redis_client.set(lock_key, "1", ex=LOCK_TTL, nx=True):
        logger.warning("Duplicate batch request blocked for %s", batch_id)
        publish_batch_update(batch_id, "duplicate_blocked")
        return {"batch_id": batch_id, "status": "duplicate_blocked"}

    try:
        try:
            tasks = build_scene_tasks(scenes)
            creds_data = credentials or {}
            creds = ProviderCredentials(
                keys=creds_data.get("keys") or {},
                preferred_provider=creds_data.get("preferred_provider"),
            )
        except (TypeError, ValueError, AttributeError) as e:
            logger.error("Batch %s has an invalid payload: %s", batch_id, e)
            publish_batch_update(batch_id, "failed", error=str(e))
            raise

        total = len(tasks)
        completed = 0

        def on_outcome(outcome: SceneOutcome) -> None:
            nonlocal completed
            completed += 1
            publish_scene_outcome(batch_id, outcome.to_dict(), completed, total)

        publish_batch_update(batch_id, "started", total=total)
        outcomes = run_async(generate_many(tasks, concurrency, creds, on_outcome))

        succeeded = sum(1 for o in outcomes if o.ok)
        status = "completed" if succeeded == total else "partial" if succeeded else "failed"
        publish_batch_update(batch_id, status, succeeded=succeeded, total=total)
        logger.info("Batch %s %s: %d/%d scenes", batch_id, status, succeeded, total)

        return {
            "batch_id": batch_id,
            "status": status,
            "outcomes": [o.to_dict() for o in outcomes],
        }
    finally:
        redis_client.delete(lock_key)
