"""Capability facade into the host session manager.

The gateway never drives the assistant itself. It only calls the narrow set of
capabilities declared here and listens for the host's state-change and
metrics notifications.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any, Awaitable, Callable, Dict, List, Optional

from assistant_gateway.core.models import Diagnostic, HistoryItem, SessionMessage, SessionState

logger = logging.getLogger(__name__)

# Host event names forwarded to the broadcast channel
STATE_CHANGED = "state_update"
METRICS_UPDATED = "metrics"
HOST_ERROR = "error"

HostListener = Callable[[str, Any], Awaitable[None]]


class FacadeError(Exception):
    """The host rejected an operation."""


class TaskNotFoundError(FacadeError):
    def __init__(self, task_id: Optional[str] = None):
        self.task_id = task_id
        super().__init__("Task not found")


class NoActiveTaskError(FacadeError):
    def __init__(self) -> None:
        super().__init__("No active task")


class BrowserUnavailableError(FacadeError):
    pass


class SessionFacade(ABC):
    """Narrow async interface onto the host session.

    Implementations own no gateway state. Host-side mutations are reported to
    registered listeners as ``(event_type, payload)`` pairs where event_type is
    ``STATE_CHANGED`` (payload: ``SessionState``), ``METRICS_UPDATED``
    (payload: ``Metrics``) or ``HOST_ERROR`` (payload: message text).
    """

    def __init__(self) -> None:
        self._listeners: List[HostListener] = []

    # Listener management

    def add_listener(self, listener: HostListener) -> None:
        if listener not in self._listeners:
            self._listeners.append(listener)

    async def notify(self, event_type: str, payload: Any) -> None:
        """Deliver a host event to every listener, in registration order."""
        for listener in list(self._listeners):
            try:
                await listener(event_type, payload)
            except Exception:
                logger.exception(f"Host listener failed while handling {event_type}")

    async def report_error(self, message: str) -> None:
        """Tell listeners the host hit an error outside any gateway request."""
        logger.warning(f"Host reported error: {message}")
        await self.notify(HOST_ERROR, message)

    # Configuration

    @abstractmethod
    async def get_configuration(self) -> Dict[str, Any]: ...

    @abstractmethod
    async def update_configuration(self, changes: Dict[str, Any]) -> Dict[str, Any]:
        """Merge ``changes`` into the configuration and return the result."""

    @abstractmethod
    async def reset_configuration(self) -> None: ...

    @abstractmethod
    async def get_available_models(self) -> List[Dict[str, Any]]: ...

    # State

    @abstractmethod
    async def get_state(self) -> SessionState: ...

    # Task management

    @abstractmethod
    async def start_new_task(self, task: Optional[str], images: Optional[List[str]] = None) -> None: ...

    @abstractmethod
    async def resume_task(
        self, task_id: str, feedback: Optional[str] = None, images: Optional[List[str]] = None
    ) -> None: ...

    @abstractmethod
    async def cancel_task(self, task_id: Optional[str] = None, reason: Optional[str] = None) -> None: ...

    @abstractmethod
    async def delete_task(self, task_id: str) -> None: ...

    @abstractmethod
    async def get_task_with_id(self, task_id: str) -> Optional[HistoryItem]: ...

    @abstractmethod
    async def get_task_messages(self, task_id: str) -> List[SessionMessage]: ...

    @abstractmethod
    async def get_history(self) -> List[HistoryItem]: ...

    @abstractmethod
    async def clear_history(self) -> None: ...

    # Interaction

    @abstractmethod
    async def send_message(self, message: Optional[str], images: Optional[List[str]] = None) -> None: ...

    @abstractmethod
    async def press_primary_button(self) -> None: ...

    @abstractmethod
    async def press_secondary_button(self) -> None: ...

    @abstractmethod
    async def set_custom_instructions(self, instructions: str) -> None: ...

    @abstractmethod
    async def get_custom_instructions(self) -> Optional[str]: ...

    # Workspace / diagnostics

    @abstractmethod
    async def get_workspace_url(self) -> str: ...

    @abstractmethod
    async def get_diagnostics(self) -> List[Diagnostic]: ...

    @abstractmethod
    async def update_debug_options(self, options: Dict[str, Any]) -> None: ...
