"""WebSocket endpoint for live batch progress.

Relays the Redis Pub/Sub messages that the batch task publishes to
connected clients.
"""

from __future__ import annotations

import asyncio
import logging

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from motionrelay.services.pubsub import listen_pubsub, subscribe_batch

router = APIRouter()
logger = logging.getLogger(__name__)


@router.websocket("/ws/batches/{batch_id}")
async def ws_batch(ws: WebSocket, batch_id: str):
    """Stream scene outcomes and status changes for one batch.

    Clients may send "ping" and receive {"type": "pong"}.
    """
    await ws.accept()
    logger.info("WS connected: batch=%s", batch_id)

    pubsub = None
    listener_task = None
    try:
        pubsub = await subscribe_batch(batch_id)
        listener_task = asyncio.create_task(_relay_pubsub_to_ws(pubsub, ws, batch_id))

        while True:
            data = await ws.receive_text()
            if data == "ping":
                await ws.send_json({"type": "pong"})
    except WebSocketDisconnect:
        logger.info("WS disconnected: batch=%s", batch_id)
    except Exception as exc:
        logger.warning("WS error for batch=%s: %s", batch_id, exc)
    finally:
        if listener_task:
            listener_task.cancel()
        if pubsub:
            await pubsub.unsubscribe()
            await pubsub.aclose()
        # The Redis client is a shared singleton; only the pubsub is closed


async def _relay_pubsub_to_ws(pubsub, ws: WebSocket, batch_id: str):
    """Background task: read from Redis Pub/Sub and forward to the client."""
    try:
        async for message in listen_pubsub(pubsub):
            await ws.send_json(message)
    except asyncio.CancelledError:
        pass
    except Exception as exc:
        logger.warning("Pub/Sub relay error for batch=%s: %s", batch_id, exc)
