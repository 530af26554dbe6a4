"""Task control endpoints: start, resume, cancel, delete, export, search."""

import logging
from typing import Optional

from fastapi import APIRouter, Depends

from assistant_gateway.api.dependencies import (
    envelope_response,
    get_facade,
    get_inflight,
    json_body,
)
from assistant_gateway.core.facade import SessionFacade
from assistant_gateway.core.handlers import task_management, tasks
from assistant_gateway.core.inflight import InFlightCalls
from assistant_gateway.core.schemas import (
    MessageRequest,
    TaskCancelRequest,
    TaskDeleteRequest,
    TaskExportRequest,
    TaskRequest,
    TaskResumeRequest,
)

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/task")
async def start_task(
    body: TaskRequest = Depends(json_body(TaskRequest)),
    facade: SessionFacade = Depends(get_facade),
    inflight: InFlightCalls = Depends(get_inflight),
):
    """Start a new task with optional text and images"""
    return envelope_response(await tasks.start_task(facade, body, inflight))


@router.post("/task/resume")
async def resume_task(
    body: TaskResumeRequest = Depends(json_body(TaskResumeRequest)),
    facade: SessionFacade = Depends(get_facade),
):
    """Resume a previously interrupted task"""
    return envelope_response(await task_management.resume_task(facade, body))


@router.post("/task/cancel")
async def cancel_task(
    body: TaskCancelRequest = Depends(json_body(TaskCancelRequest)),
    facade: SessionFacade = Depends(get_facade),
):
    """Cancel a specific task"""
    return envelope_response(await task_management.cancel_task(facade, body))


@router.post("/task/delete")
async def delete_task(
    body: TaskDeleteRequest = Depends(json_body(TaskDeleteRequest)),
    facade: SessionFacade = Depends(get_facade),
):
    """Delete a task from history"""
    return envelope_response(await task_management.delete_task(facade, body))


@router.post("/task/export")
async def export_task(
    body: TaskExportRequest = Depends(json_body(TaskExportRequest)),
    facade: SessionFacade = Depends(get_facade),
):
    """Export a task with its messages, metrics and resources"""
    return envelope_response(await task_management.export_task(facade, body))


@router.get("/task/search")
async def search_tasks(
    query: Optional[str] = None,
    sort: Optional[str] = None,
    facade: SessionFacade = Depends(get_facade),
):
    """Search task history by text (sort: newest or oldest)"""
    return envelope_response(await task_management.search_tasks(facade, query, sort))


@router.get("/history")
async def get_history(facade: SessionFacade = Depends(get_facade)):
    """List conversations in task history"""
    return envelope_response(await task_management.get_history(facade))


@router.post("/message")
async def send_message(
    body: MessageRequest = Depends(json_body(MessageRequest)),
    facade: SessionFacade = Depends(get_facade),
):
    """Send a message to the active task"""
    return envelope_response(await tasks.send_message(facade, body))


@router.post("/button/primary")
async def press_primary_button(facade: SessionFacade = Depends(get_facade)):
    """Press the primary (approve) button"""
    return envelope_response(await tasks.press_primary_button(facade))


@router.post("/button/secondary")
async def press_secondary_button(facade: SessionFacade = Depends(get_facade)):
    """Press the secondary (reject) button"""
    return envelope_response(await tasks.press_secondary_button(facade))
