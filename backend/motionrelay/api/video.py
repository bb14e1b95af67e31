from __future__ import annotations
"""Video API — provider catalog, key checks, generation and batches."""

import logging
import uuid

from fastapi import APIRouter, HTTPException

from motionrelay.schemas.video import (
    BatchIn,
    BatchOut,
    GenerateIn,
    GenerationResultOut,
    ProviderOut,
    ValidateKeyIn,
    ValidateKeyOut,
)
from motionrelay.services.credentials import validate_api_key
from motionrelay.services.provider_registry import PROVIDER_REGISTRY
from motionrelay.services.video_errors import AggregateFailure

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/providers", response_model=list[ProviderOut])
async def list_providers():
    """All supported providers, highest priority first."""
    return PROVIDER_REGISTRY.to_dict_list()


@router.post("/providers/validate-key", response_model=ValidateKeyOut)
async def validate_key(req: ValidateKeyIn):
    """Check a key's format without contacting the vendor."""
    check = validate_api_key(req.provider.strip().lower(), req.api_key)
    return ValidateKeyOut(provider=req.provider, valid=check.valid, message=check.message)


@router.post("/generate", response_model=GenerationResultOut)
async def generate_video(req: GenerateIn):
    """Generate one clip, failing over across providers."""
    from motionrelay.services.video_gen import generate

    try:
        result = await generate(
            req.request.to_request(),
            req.credentials.to_credentials(),
            req.provider_override,
        )
    except AggregateFailure as e:
        raise HTTPException(
            status_code=502,
            detail={"message": e.message, "attempts": e.attempts, "last_error": e.last_error},
        )
    return result.to_dict()


@router.post("/generate-batch", response_model=BatchOut)
async def generate_batch(req: BatchIn):
    """Generate a batch of scenes and wait for every outcome."""
    from motionrelay.services.video_gen import generate_many

    outcomes = await generate_many(req.to_tasks(), req.concurrency, req.credentials.to_credentials())
    return {
        "total": len(outcomes),
        "succeeded": sum(1 for o in outcomes if o.ok),
        "outcomes": [o.to_dict() for o in outcomes],
    }


@router.post("/generate-batch/async")
async def generate_batch_async(req: BatchIn):
    """Queue a batch on the Celery worker; progress is published over Redis."""
    from motionrelay.services.pubsub import channel_for
    from motionrelay.tasks.video_tasks import generate_scene_batch

    batch_id = uuid.uuid4().hex
    scenes = [
        {**s.model_dump(mode="json", exclude={"index"}), "index": t.index}
        for s, t in zip(req.scenes, req.to_tasks())
    ]
    task = generate_scene_batch.delay(
        batch_id, scenes, req.credentials.model_dump(mode="json"), req.concurrency,
    )
    logger.info("Queued batch %s with %d scenes (task=%s)", batch_id, len(scenes), task.id)

    return {
        "batch_id": batch_id,
        "task_id": task.id,
        "channel": channel_for(batch_id),
        "status": "queued",
    }


@router.get("/metrics")
async def video_metrics():
    """Per-provider usage statistics for this process."""
    from motionrelay.services.video_gen import get_orchestrator

    return get_orchestrator().get_metrics()
