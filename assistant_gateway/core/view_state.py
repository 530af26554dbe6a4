"""Ephemeral presentation state tracked by the gateway.

The host does not own this state, so it lives here for the lifetime of the
server process and is never persisted. A single lock serializes every
read-modify-write so concurrent handlers cannot interleave their updates.
"""

from __future__ import annotations

import asyncio
import copy
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import Any, AsyncIterator, Dict, List, Literal, Set

View = Literal["history", "chat"]


@dataclass
class ViewState:
    current_view: View = "chat"
    show_announcement: bool = True
    is_at_bottom: bool = True
    show_scroll_to_bottom: bool = False
    expanded_message_ids: Set[int] = field(default_factory=set)
    selected_images: List[str] = field(default_factory=list)

    def view_dict(self) -> Dict[str, Any]:
        """The ``viewState`` block of the status payload."""
        return {
            "currentView": self.current_view,
            "showAnnouncement": self.show_announcement,
            "isAtBottom": self.is_at_bottom,
            "showScrollToBottom": self.show_scroll_to_bottom,
        }

    def to_dict(self) -> Dict[str, Any]:
        return {
            **self.view_dict(),
            "expandedMessageIds": sorted(self.expanded_message_ids),
            "selectedImages": list(self.selected_images),
        }


class ViewStateTracker:
    """Owner of the single ``ViewState`` record."""

    def __init__(self, initial: ViewState | None = None):
        self._state = initial or ViewState()
        self._lock = asyncio.Lock()

    async def snapshot(self) -> ViewState:
        """Consistent copy of the current state."""
        async with self._lock:
            return copy.deepcopy(self._state)

    @asynccontextmanager
    async def mutate(self) -> AsyncIterator[ViewState]:
        """Exclusive access to the live state for one read-modify-write."""
        async with self._lock:
            yield self._state
