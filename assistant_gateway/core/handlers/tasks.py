"""Handlers that drive the active task: start, message, approval buttons."""

import logging
from typing import Optional

from assistant_gateway.core.envelope import Envelope, handle_request
from assistant_gateway.core.facade import SessionFacade
from assistant_gateway.core.inflight import InFlightCalls
from assistant_gateway.core.schemas import MessageRequest, TaskRequest
from assistant_gateway.observability.tracing import add_span_attributes, trace_facade_call

logger = logging.getLogger(__name__)


@trace_facade_call("start_task")
async def start_task(
    facade: SessionFacade, request: TaskRequest, inflight: Optional[InFlightCalls] = None
) -> Envelope:
    """Start a new task from text and/or images.

    With ``inflight``, an identical start that is still running is joined
    instead of starting a second task.
    """

    async def run():
        add_span_attributes({"task.image_count": len(request.images or [])})
        await facade.start_new_task(request.task, request.images)
        logger.info("New task started")
        return {"message": "Task started"}

    if inflight is None:
        return await handle_request(run)
    payload = request.model_dump_json()
    return await inflight.run("start_task", payload, lambda: handle_request(run))


async def send_message(facade: SessionFacade, request: MessageRequest) -> Envelope:
    async def run():
        await facade.send_message(request.message, request.images)
        return {"message": "Message sent"}

    return await handle_request(run)


async def press_primary_button(facade: SessionFacade) -> Envelope:
    async def run():
        await facade.press_primary_button()
        return {"message": "Primary button pressed"}

    return await handle_request(run)


async def press_secondary_button(facade: SessionFacade) -> Envelope:
    async def run():
        await facade.press_secondary_button()
        return {"message": "Secondary button pressed"}

    return await handle_request(run)
