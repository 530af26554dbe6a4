"""In-process session used when no host is attached.

``InMemorySession`` implements the full facade over a small task store so the
gateway can run standalone (local development, demos, tests). Every mutation
is reported to facade listeners, exactly as a real host would.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, List, Optional
from uuid import uuid4

from assistant_gateway.core.facade import (
    METRICS_UPDATED,
    STATE_CHANGED,
    FacadeError,
    NoActiveTaskError,
    SessionFacade,
    TaskNotFoundError,
)
from assistant_gateway.core.models import (
    ApiMetrics,
    Diagnostic,
    HistoryItem,
    Metrics,
    SessionMessage,
    SessionState,
    now_millis,
)

logger = logging.getLogger(__name__)

DEFAULT_MODELS: List[Dict[str, Any]] = [
    {
        "id": "claude-3-5-sonnet-20241022",
        "maxTokens": 8192,
        "contextWindow": 200000,
        "supportsImages": True,
        "inputPrice": 3.0,
        "outputPrice": 15.0,
    },
    {
        "id": "claude-3-5-haiku-20241022",
        "maxTokens": 8192,
        "contextWindow": 200000,
        "supportsImages": False,
        "inputPrice": 1.0,
        "outputPrice": 5.0,
    },
    {
        "id": "gpt-4o",
        "maxTokens": 4096,
        "contextWindow": 128000,
        "supportsImages": True,
        "inputPrice": 5.0,
        "outputPrice": 15.0,
    },
]

DEFAULT_CONFIGURATION: Dict[str, Any] = {
    "apiProvider": "anthropic",
    "apiModelId": "claude-3-5-sonnet-20241022",
}


class InMemorySession(SessionFacade):
    """Facade implementation backed by in-process dictionaries."""

    def __init__(
        self,
        version: str = "unknown",
        workspace: Optional[Path] = None,
        configuration: Optional[Dict[str, Any]] = None,
        custom_instructions: str = "",
        models: Optional[List[Dict[str, Any]]] = None,
    ):
        super().__init__()
        self.version = version
        self.workspace = Path(workspace) if workspace else Path.cwd()
        self._configuration: Dict[str, Any] = dict(
            DEFAULT_CONFIGURATION if configuration is None else configuration
        )
        self._custom_instructions = custom_instructions
        self._models = list(models) if models is not None else list(DEFAULT_MODELS)
        self._history: Dict[str, HistoryItem] = {}
        self._logs: Dict[str, List[SessionMessage]] = {}
        self._active_task_id: Optional[str] = None
        self._api_metrics: Optional[ApiMetrics] = None
        self._diagnostics: List[Diagnostic] = []
        self.debug_options: Dict[str, Any] = {}

    # Internal helpers

    def _active_log(self) -> List[SessionMessage]:
        if self._active_task_id is None:
            raise NoActiveTaskError()
        return self._logs.setdefault(self._active_task_id, [])

    def _append(self, message: SessionMessage) -> None:
        self._active_log().append(message)

    async def _state_changed(self) -> None:
        await self.notify(STATE_CHANGED, await self.get_state())

    # Configuration

    async def get_configuration(self) -> Dict[str, Any]:
        return dict(self._configuration)

    async def update_configuration(self, changes: Dict[str, Any]) -> Dict[str, Any]:
        self._configuration.update(changes)
        await self._state_changed()
        return dict(self._configuration)

    async def reset_configuration(self) -> None:
        self._configuration = {}
        await self._state_changed()

    async def get_available_models(self) -> List[Dict[str, Any]]:
        return [dict(m) for m in self._models]

    # State

    async def get_state(self) -> SessionState:
        messages = self._logs.get(self._active_task_id, []) if self._active_task_id else []
        return SessionState(
            version=self.version,
            messages=[m.model_copy(deep=True) for m in messages],
            task_history=[h.model_copy() for h in self._history.values()],
            current_task_id=self._active_task_id,
            api_configuration=dict(self._configuration),
            custom_instructions=self._custom_instructions,
            api_metrics=self._api_metrics.model_copy() if self._api_metrics else None,
        )

    # Task management

    async def start_new_task(self, task: Optional[str], images: Optional[List[str]] = None) -> None:
        if not task and not images:
            raise FacadeError("Cannot start a task without text or images")

        task_id = uuid4().hex
        ts = now_millis()
        self._history[task_id] = HistoryItem(id=task_id, ts=ts, task=task or "")
        self._logs[task_id] = [
            SessionMessage(ts=ts, type="say", say="task", text=task or "", images=images or None)
        ]
        self._active_task_id = task_id
        logger.info(f"Started task {task_id}")
        await self._state_changed()

    async def resume_task(
        self, task_id: str, feedback: Optional[str] = None, images: Optional[List[str]] = None
    ) -> None:
        if task_id not in self._history:
            raise TaskNotFoundError(task_id)
        self._active_task_id = task_id
        self._logs.setdefault(task_id, []).append(
            SessionMessage(ts=now_millis(), type="ask", ask="resume_task")
        )
        logger.info(f"Resumed task {task_id}")
        await self._state_changed()

    async def cancel_task(self, task_id: Optional[str] = None, reason: Optional[str] = None) -> None:
        if self._active_task_id is None:
            raise NoActiveTaskError()
        if task_id is not None and task_id != self._active_task_id:
            raise TaskNotFoundError(task_id)
        logger.info(f"Cancelled task {self._active_task_id}: {reason or 'no reason given'}")
        self._active_task_id = None
        await self._state_changed()

    async def delete_task(self, task_id: str) -> None:
        if task_id not in self._history:
            raise TaskNotFoundError(task_id)
        del self._history[task_id]
        self._logs.pop(task_id, None)
        if self._active_task_id == task_id:
            self._active_task_id = None
        logger.info(f"Deleted task {task_id}")
        await self._state_changed()

    async def get_task_with_id(self, task_id: str) -> Optional[HistoryItem]:
        item = self._history.get(task_id)
        return item.model_copy() if item else None

    async def get_task_messages(self, task_id: str) -> List[SessionMessage]:
        if task_id not in self._history:
            raise TaskNotFoundError(task_id)
        return [m.model_copy(deep=True) for m in self._logs.get(task_id, [])]

    async def get_history(self) -> List[HistoryItem]:
        return [h.model_copy() for h in self._history.values()]

    async def clear_history(self) -> None:
        """Drop every task, including the active one."""
        if self._active_task_id is not None:
            logger.info(f"Clearing history ends active task {self._active_task_id}")
        self._history = {}
        self._logs = {}
        self._active_task_id = None
        await self._state_changed()

    # Interaction

    async def send_message(self, message: Optional[str], images: Optional[List[str]] = None) -> None:
        self._append(
            SessionMessage(
                ts=now_millis(),
                type="say",
                say="user_feedback",
                text=message or "",
                images=images or None,
            )
        )
        await self._state_changed()

    async def press_primary_button(self) -> None:
        self._append(
            SessionMessage(ts=now_millis(), type="say", say="user_feedback", text="approved")
        )
        await self._state_changed()

    async def press_secondary_button(self) -> None:
        if self._active_task_id is None:
            raise NoActiveTaskError()
        self._active_task_id = None
        await self._state_changed()

    async def set_custom_instructions(self, instructions: str) -> None:
        self._custom_instructions = instructions
        await self._state_changed()

    async def get_custom_instructions(self) -> Optional[str]:
        return self._custom_instructions

    # Workspace / diagnostics

    async def get_workspace_url(self) -> str:
        return self.workspace.resolve().as_uri()

    async def get_diagnostics(self) -> List[Diagnostic]:
        return [d.model_copy() for d in self._diagnostics]

    def set_diagnostics(self, diagnostics: List[Diagnostic]) -> None:
        self._diagnostics = list(diagnostics)

    async def update_debug_options(self, options: Dict[str, Any]) -> None:
        self.debug_options.update(options)

    # Host-side activity (what the assistant engine would normally drive)

    async def add_message(self, message: SessionMessage) -> None:
        """Append or, for a streaming update, replace the trailing partial message."""
        log = self._active_log()
        if log and log[-1].partial and log[-1].ts == message.ts:
            log[-1] = message
        else:
            log.append(message)
        await self._state_changed()

    async def record_usage(
        self,
        tokens_in: int = 0,
        tokens_out: int = 0,
        cache_writes: int = 0,
        cache_reads: int = 0,
        cost: float = 0.0,
    ) -> Metrics:
        """Add usage to the active task and session totals, then report metrics."""
        if self._active_task_id is None:
            raise NoActiveTaskError()
        item = self._history[self._active_task_id]
        item.tokens_in += tokens_in
        item.tokens_out += tokens_out
        item.cache_writes = (item.cache_writes or 0) + cache_writes
        item.cache_reads = (item.cache_reads or 0) + cache_reads
        item.total_cost += cost

        totals = self._api_metrics or ApiMetrics()
        totals.total_tokens_in += tokens_in
        totals.total_tokens_out += tokens_out
        totals.total_cache_writes += cache_writes
        totals.total_cache_reads += cache_reads
        totals.total_cost += cost
        self._api_metrics = totals

        metrics = item.metrics
        await self.notify(METRICS_UPDATED, metrics)
        return metrics
