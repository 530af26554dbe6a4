"""Fan-out of host state changes to push-channel subscribers.

Each subscriber owns a bounded FIFO queue drained by its own writer task, so
per-subscriber delivery order always matches publish order and a slow or dead
connection never blocks the others. The registry is guarded by one lock;
publishing snapshots the registry under that lock and enqueues before
releasing it, and ``connect`` enqueues the baseline ``state`` message inside
the same critical section, so a new subscriber always sees ``state`` first.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, List, Literal, Optional, Set

from pydantic import BaseModel, Field

from assistant_gateway.core.facade import HOST_ERROR, METRICS_UPDATED, STATE_CHANGED

logger = logging.getLogger(__name__)

EventType = Literal["state", "state_update", "metrics", "error", "ping", "pong", "ack"]

SendText = Callable[[str], Awaitable[None]]
SnapshotProvider = Callable[[], Awaitable[Any]]


class BroadcastEvent(BaseModel):
    """One JSON frame on the push channel."""

    type: EventType
    data: Optional[Any] = None
    timestamp: str = Field(default_factory=lambda: datetime.now(timezone.utc).isoformat())

    def encode(self) -> str:
        return self.model_dump_json(by_alias=True, exclude_none=True)


class Subscriber:
    """A live push-channel connection and its outbound queue."""

    _ids = 0

    def __init__(self, send: SendText, queue_size: int = 256):
        Subscriber._ids += 1
        self.id = Subscriber._ids
        self._send = send
        self._queue: asyncio.Queue[Optional[str]] = asyncio.Queue(maxsize=queue_size)
        self._writer: Optional[asyncio.Task] = None
        self.closed = False

    def __repr__(self) -> str:
        return f"Subscriber(id={self.id}, closed={self.closed})"

    def offer(self, message: str) -> bool:
        """Queue ``message`` for delivery; False if closed or the queue is full."""
        if self.closed:
            return False
        try:
            self._queue.put_nowait(message)
        except asyncio.QueueFull:
            return False
        return True

    def start(self, on_failure: Callable[["Subscriber"], Awaitable[None]]) -> None:
        if self._writer is None:
            self._writer = asyncio.create_task(self._drain(on_failure))

    async def _drain(self, on_failure: Callable[["Subscriber"], Awaitable[None]]) -> None:
        while True:
            message = await self._queue.get()
            if message is None:
                break
            try:
                await self._send(message)
            except Exception as e:
                logger.warning(f"Failed to send to push subscriber {self.id}: {e}")
                self.closed = True
                await on_failure(self)
                break

    async def close(self, flush: bool = False, timeout: Optional[float] = None) -> None:
        """Stop the writer.

        With ``flush`` already-queued messages are sent first, for at most
        ``timeout`` seconds; a writer still busy after that is cancelled.
        """
        if self.closed and self._writer is None:
            return
        self.closed = True
        writer, self._writer = self._writer, None
        if writer is None or writer.done():
            return
        if flush:
            try:
                self._queue.put_nowait(None)
            except asyncio.QueueFull:
                pass
            else:
                try:
                    await asyncio.wait_for(asyncio.shield(writer), timeout)
                    return
                except asyncio.TimeoutError:
                    logger.warning(
                        f"Push subscriber {self.id} did not flush within {timeout}s, cancelling"
                    )
        writer.cancel()
        try:
            await writer
        except asyncio.CancelledError:
            pass


class BroadcastChannel:
    """Registry of subscribers plus the publish operation."""

    def __init__(
        self, snapshot: SnapshotProvider, queue_size: int = 256, close_timeout: float = 2.0
    ):
        self._snapshot = snapshot
        self._queue_size = queue_size
        self._close_timeout = close_timeout
        self._subscribers: Set[Subscriber] = set()
        self._lock = asyncio.Lock()

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    async def state_message(self) -> str:
        state = await self._snapshot()
        return BroadcastEvent(type="state", data=state).encode()

    async def connect(self, send: SendText) -> Subscriber:
        """Register a new subscriber whose first message is a full state snapshot."""
        subscriber = Subscriber(send, queue_size=self._queue_size)
        async with self._lock:
            subscriber.offer(await self.state_message())
            self._subscribers.add(subscriber)
        subscriber.start(self._on_send_failure)
        logger.info(f"Push subscriber {subscriber.id} connected ({self.subscriber_count} total)")
        return subscriber

    async def disconnect(self, subscriber: Subscriber) -> None:
        async with self._lock:
            self._subscribers.discard(subscriber)
        await subscriber.close()
        logger.info(
            f"Push subscriber {subscriber.id} disconnected ({self.subscriber_count} remaining)"
        )

    async def _on_send_failure(self, subscriber: Subscriber) -> None:
        async with self._lock:
            self._subscribers.discard(subscriber)

    async def publish(self, event_type: EventType, data: Any = None) -> int:
        """Queue one event for every open subscriber; returns how many accepted it."""
        message = BroadcastEvent(type=event_type, data=data).encode()
        async with self._lock:
            targets = list(self._subscribers)
            dropped: List[Subscriber] = [s for s in targets if not s.offer(message)]
            for subscriber in dropped:
                self._subscribers.discard(subscriber)

        for subscriber in dropped:
            logger.warning(
                f"Dropping push subscriber {subscriber.id}: outbound queue full or closed"
            )
            await subscriber.close()

        return len(targets) - len(dropped)

    async def publish_state_update(self, state: Any) -> int:
        return await self.publish("state_update", state)

    async def publish_metrics(self, metrics: Any) -> int:
        return await self.publish("metrics", metrics)

    async def publish_error(self, message: str) -> int:
        return await self.publish("error", {"message": message})

    async def on_host_event(self, event_type: str, payload: Any) -> None:
        """Facade listener: translate host notifications into broadcasts."""
        if event_type == STATE_CHANGED:
            await self.publish_state_update(payload)
        elif event_type == METRICS_UPDATED:
            await self.publish_metrics(payload)
        elif event_type == HOST_ERROR:
            await self.publish_error(str(payload))
        else:
            logger.debug(f"Ignoring unknown host event {event_type}")

    async def close(self) -> None:
        """Flush and close every subscriber (server shutdown)."""
        async with self._lock:
            subscribers = list(self._subscribers)
            self._subscribers.clear()
        await asyncio.gather(
            *(s.close(flush=True, timeout=self._close_timeout) for s in subscribers)
        )
