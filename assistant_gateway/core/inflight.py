"""De-duplication of identical requests that are still in flight.

A client that retries a slow call (task start, screenshot) before the first
attempt has answered must not run it twice. Callers asking for the same
operation with the same payload while a call is running wait on that call and
receive the same envelope.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, Dict, Tuple

from assistant_gateway.core.envelope import Envelope

logger = logging.getLogger(__name__)


class InFlightCalls:
    """Registry of running calls keyed by operation name and payload."""

    def __init__(self) -> None:
        self._calls: Dict[Tuple[str, str], asyncio.Future] = {}

    @property
    def running(self) -> int:
        return len(self._calls)

    async def run(
        self, operation: str, payload: str, fn: Callable[[], Awaitable[Envelope]]
    ) -> Envelope:
        """Run ``fn`` unless the same call is already running; then share its outcome."""
        key = (operation, payload)
        running = self._calls.get(key)
        if running is not None:
            logger.info(f"Joining in-flight {operation} call")
            return await asyncio.shield(running)

        future: asyncio.Future = asyncio.get_running_loop().create_future()
        self._calls[key] = future
        try:
            envelope = await fn()
        except BaseException:
            future.cancel()
            raise
        finally:
            self._calls.pop(key, None)
        future.set_result(envelope)
        return envelope
