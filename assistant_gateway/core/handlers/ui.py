"""View-state handlers and the combined status snapshot."""

from typing import Any, Dict, List

from assistant_gateway.core.envelope import Envelope, handle_request
from assistant_gateway.core.facade import SessionFacade
from assistant_gateway.core.models import ApiMetrics, Metrics, SessionMessage
from assistant_gateway.core.schemas import MessageDisplayRequest, ScrollRequest, ViewRequest
from assistant_gateway.core.view_state import ViewState, ViewStateTracker


async def set_view(tracker: ViewStateTracker, request: ViewRequest) -> Envelope:
    async def run():
        async with tracker.mutate() as state:
            state.current_view = request.view
            if request.show_announcement is not None:
                state.show_announcement = request.show_announcement
            return state.view_dict()

    return await handle_request(run)


async def set_message_display(tracker: ViewStateTracker, request: MessageDisplayRequest) -> Envelope:
    """Expand or collapse one message. Repeating a request changes nothing."""

    async def run():
        async with tracker.mutate() as state:
            if request.expanded:
                state.expanded_message_ids.add(request.message_id)
            else:
                state.expanded_message_ids.discard(request.message_id)
            return {"expandedMessageIds": sorted(state.expanded_message_ids)}

    return await handle_request(run)


async def set_scroll(tracker: ViewStateTracker, request: ScrollRequest) -> Envelope:
    async def run():
        async with tracker.mutate() as state:
            state.is_at_bottom = request.is_at_bottom
            state.show_scroll_to_bottom = (
                request.show_scroll_to_bottom
                if request.show_scroll_to_bottom is not None
                else not request.is_at_bottom
            )
            return {
                "isAtBottom": state.is_at_bottom,
                "showScrollToBottom": state.show_scroll_to_bottom,
            }

    return await handle_request(run)


def derive_ui_state(messages: List[SessionMessage], view: ViewState) -> Dict[str, Any]:
    """Input affordances implied by the tail of the message log."""
    last = messages[-1] if messages else None
    is_streaming = bool(last and last.partial)
    return {
        "isStreaming": is_streaming,
        "textAreaDisabled": is_streaming or last is None,
        "enableButtons": bool(last and last.type == "ask" and not last.partial),
        "expandedMessageIds": sorted(view.expanded_message_ids),
        "selectedImages": list(view.selected_images),
    }


async def get_status(facade: SessionFacade, tracker: ViewStateTracker) -> Envelope:
    async def run():
        state = await facade.get_state()
        view = await tracker.snapshot()

        metrics = state.api_metrics.as_metrics() if state.api_metrics else Metrics.zero()
        api_metrics = state.api_metrics or ApiMetrics()

        return {
            "taskStatus": {
                "active": bool(state.messages),
                "messages": [
                    m.model_dump(mode="json", by_alias=True, exclude_none=True)
                    for m in state.messages
                ],
                "metrics": metrics.to_wire(),
                "uiState": derive_ui_state(state.messages, view),
            },
            "browserSessions": state.browser_sessions,
            "apiMetrics": api_metrics.to_wire(),
            "viewState": view.view_dict(),
        }

    return await handle_request(run)
