"""WebSocket push channel for host state changes.

Every outbound frame, including replies to client messages, goes through the
subscriber's queue so that one writer task owns the socket and frames leave in
the order they were queued.
"""

import asyncio
import json
import logging

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from assistant_gateway.core.broadcast import BroadcastChannel, BroadcastEvent
from assistant_gateway.core.context import GatewayContext
from assistant_gateway.observability.tracing import SpanCategory, trace_facade_call

logger = logging.getLogger(__name__)

router = APIRouter()


@trace_facade_call("reply", category=SpanCategory.PUSH)
async def reply_to(channel: BroadcastChannel, raw: str) -> str:
    """Frame answering one inbound client message."""
    try:
        message = json.loads(raw)
    except json.JSONDecodeError:
        return BroadcastEvent(type="error", data={"message": "Invalid message format"}).encode()

    msg_type = message.get("type") if isinstance(message, dict) else None
    if msg_type == "ping":
        return BroadcastEvent(type="pong").encode()
    if msg_type == "get_state":
        return await channel.state_message()
    return BroadcastEvent(type="ack").encode()


@router.websocket("/ws")
async def push_endpoint(websocket: WebSocket):
    """
    Push channel for host state changes.

    Events sent to client:
    - state: full snapshot, always the first frame
    - state_update: host state changed
    - metrics: usage metrics changed
    - error: invalid client message, or an error reported by the host
    - ping: keep-alive after a quiet period

    Events received from client:
    - ping: answered with pong
    - get_state: answered with a fresh state frame
    - anything else: acknowledged with ack
    """
    gateway: GatewayContext = websocket.app.state.gateway
    channel = gateway.channel
    await websocket.accept()

    subscriber = await channel.connect(websocket.send_text)

    try:
        while True:
            try:
                raw = await asyncio.wait_for(
                    websocket.receive_text(), timeout=gateway.settings.push_ping_interval
                )
            except asyncio.TimeoutError:
                subscriber.offer(BroadcastEvent(type="ping").encode())
                continue

            if not subscriber.offer(await reply_to(channel, raw)):
                logger.warning(f"Push subscriber {subscriber.id} stopped accepting replies")
                break

    except WebSocketDisconnect:
        pass
    except Exception as e:
        logger.error(f"Push channel error for subscriber {subscriber.id}: {e}")
    finally:
        await channel.disconnect(subscriber)
