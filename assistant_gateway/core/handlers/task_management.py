"""Handlers over the host's task history.

Resume, cancel and delete are forwarded to the facade. Export, search and the
history listing are read-only views computed from what the facade returns.
"""

import logging
from typing import Any, Dict, List, Optional

from assistant_gateway.core.envelope import Envelope, handle_request
from assistant_gateway.core.facade import SessionFacade, TaskNotFoundError
from assistant_gateway.core.models import HistoryItem, SessionMessage, iso_from_millis
from assistant_gateway.core.schemas import (
    TaskCancelRequest,
    TaskDeleteRequest,
    TaskExportRequest,
    TaskResumeRequest,
)

logger = logging.getLogger(__name__)

# Accepted ``sort`` values and the order each maps to
SORT_ALIASES = {
    "newest": "newest",
    "desc": "newest",
    "oldest": "oldest",
    "asc": "oldest",
}


async def resume_task(facade: SessionFacade, request: TaskResumeRequest) -> Envelope:
    """Resume a task from history, optionally following up with feedback."""

    async def run():
        await facade.resume_task(request.task_id, request.feedback, request.images)
        if request.feedback:
            await facade.send_message(request.feedback, request.images)
        return {"message": "Task resumed", "taskId": request.task_id}

    return await handle_request(run)


async def cancel_task(facade: SessionFacade, request: TaskCancelRequest) -> Envelope:
    async def run():
        await facade.cancel_task(request.task_id, request.reason)
        return {"message": "Task cancelled", "taskId": request.task_id}

    return await handle_request(run)


async def delete_task(facade: SessionFacade, request: TaskDeleteRequest) -> Envelope:
    async def run():
        await facade.delete_task(request.task_id)
        logger.info(f"Task {request.task_id} deleted")
        return {"message": "Task deleted", "taskId": request.task_id}

    return await handle_request(run)


def _message_wire(message: SessionMessage) -> Dict[str, Any]:
    return message.model_dump(mode="json", by_alias=True, exclude_none=True)


def collect_resources(messages: List[SessionMessage]) -> List[str]:
    """Image references carried by ``messages``, in order of appearance."""
    resources: List[str] = []
    for message in messages:
        for image in message.images or []:
            if image not in resources:
                resources.append(image)
    return resources


def render_markdown(item: HistoryItem, messages: List[SessionMessage]) -> str:
    """Plain transcript of a task, one section per message."""
    lines = [f"# Task: {item.task}", "", f"_Started {item.timestamp}_", ""]
    for message in messages:
        kind = message.ask if message.type == "ask" else message.say
        heading = f"## {message.type}: {kind}" if kind else f"## {message.type}"
        lines.append(f"{heading} ({iso_from_millis(message.ts)})")
        lines.append("")
        if message.text:
            lines.append(message.text)
            lines.append("")
        for index, _ in enumerate(message.images or [], start=1):
            lines.append(f"![image {index}](attached)")
        if message.images:
            lines.append("")
    metrics = item.metrics
    lines.append(
        f"Tokens in: {metrics.tokens_in}, tokens out: {metrics.tokens_out}, "
        f"cost: {metrics.total_cost:.4f}"
    )
    return "\n".join(lines) + "\n"


async def export_task(facade: SessionFacade, request: TaskExportRequest) -> Envelope:
    """Snapshot one task with its message log, metrics and attached images."""

    async def run():
        item = await facade.get_task_with_id(request.task_id)
        if item is None:
            raise TaskNotFoundError(request.task_id)
        messages = await facade.get_task_messages(request.task_id)
        data: Dict[str, Any] = {
            "task": item.summary(),
            "messages": [_message_wire(m) for m in messages],
            "metrics": item.metrics.to_wire(),
            "resources": collect_resources(messages),
        }
        if request.format == "markdown":
            data["markdown"] = render_markdown(item, messages)
        return data

    return await handle_request(run)


def filter_history(
    items: List[HistoryItem], query: Optional[str] = None, sort: Optional[str] = None
) -> List[HistoryItem]:
    needle = (query or "").lower()
    matches = [item for item in items if needle in item.task.lower()]
    order = SORT_ALIASES.get((sort or "").lower(), "newest")
    return sorted(matches, key=lambda item: item.ts, reverse=order == "newest")


async def search_tasks(
    facade: SessionFacade, query: Optional[str] = None, sort: Optional[str] = None
) -> Envelope:
    async def run():
        results = filter_history(await facade.get_history(), query, sort)
        return {
            "results": [item.summary() for item in results],
            "total": len(results),
            "page": 1,
            "hasMore": False,
        }

    return await handle_request(run)


async def get_history(facade: SessionFacade) -> Envelope:
    async def run():
        history = await facade.get_history()
        return {"conversations": [item.summary() for item in history]}

    return await handle_request(run)
