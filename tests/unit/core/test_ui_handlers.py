"""Tests for view-state, status, image and screenshot handlers."""

import asyncio
from unittest.mock import AsyncMock

import pytest

from assistant_gateway.core.browser import UnavailableBrowser
from assistant_gateway.core.facade import SessionFacade
from assistant_gateway.core.handlers import media, ui
from assistant_gateway.core.inflight import InFlightCalls
from assistant_gateway.core.models import ApiMetrics, SessionMessage, SessionState
from assistant_gateway.core.schemas import (
    ImageUploadRequest,
    MessageDisplayRequest,
    ScreenshotRequest,
    ScrollRequest,
    ViewRequest,
)
from assistant_gateway.core.view_state import ViewStateTracker


@pytest.fixture
def tracker():
    return ViewStateTracker()


def _facade_with(messages=None, api_metrics=None):
    facade = AsyncMock(spec=SessionFacade)
    facade.get_state.return_value = SessionState(
        messages=messages or [], api_metrics=api_metrics
    )
    facade.get_workspace_url.return_value = "file:///workspace"
    return facade


class TestViewHandlers:
    @pytest.mark.asyncio
    async def test_set_view_keeps_announcement_when_absent(self, tracker):
        await ui.set_view(tracker, ViewRequest(view="history", show_announcement=False))
        env = await ui.set_view(tracker, ViewRequest(view="chat"))

        assert env.data["currentView"] == "chat"
        assert env.data["showAnnouncement"] is False

    @pytest.mark.asyncio
    async def test_set_view_is_idempotent(self, tracker):
        first = await ui.set_view(tracker, ViewRequest(view="history"))
        second = await ui.set_view(tracker, ViewRequest(view="history"))
        assert first.data == second.data

    @pytest.mark.asyncio
    async def test_message_display_set_semantics(self, tracker):
        await ui.set_message_display(tracker, MessageDisplayRequest(message_id=5, expanded=True))
        await ui.set_message_display(tracker, MessageDisplayRequest(message_id=5, expanded=True))
        env = await ui.set_message_display(
            tracker, MessageDisplayRequest(message_id=2, expanded=True)
        )
        assert env.data == {"expandedMessageIds": [2, 5]}

        await ui.set_message_display(tracker, MessageDisplayRequest(message_id=5, expanded=False))
        env = await ui.set_message_display(
            tracker, MessageDisplayRequest(message_id=9, expanded=False)
        )
        assert env.data == {"expandedMessageIds": [2]}

    @pytest.mark.asyncio
    async def test_scroll_defaults_button_to_inverse(self, tracker):
        env = await ui.set_scroll(tracker, ScrollRequest(is_at_bottom=False))
        assert env.data == {"isAtBottom": False, "showScrollToBottom": True}

        env = await ui.set_scroll(
            tracker, ScrollRequest(is_at_bottom=False, show_scroll_to_bottom=False)
        )
        assert env.data == {"isAtBottom": False, "showScrollToBottom": False}


class TestStatus:
    @pytest.mark.asyncio
    async def test_empty_session(self, tracker):
        env = await ui.get_status(_facade_with(), tracker)

        task_status = env.data["taskStatus"]
        assert task_status["active"] is False
        assert task_status["metrics"] == {
            "tokensIn": 0,
            "tokensOut": 0,
            "cacheWrites": 0,
            "cacheReads": 0,
            "totalCost": 0.0,
        }
        assert task_status["uiState"]["textAreaDisabled"] is True
        assert task_status["uiState"]["enableButtons"] is False
        assert env.data["apiMetrics"]["totalTokensIn"] == 0
        assert env.data["browserSessions"] == []
        assert env.data["viewState"]["currentView"] == "chat"

    @pytest.mark.asyncio
    async def test_completed_ask_enables_buttons(self, tracker):
        facade = _facade_with([SessionMessage(ts=1, type="ask", ask="command", text="ls")])
        ui_state = (await ui.get_status(facade, tracker)).data["taskStatus"]["uiState"]

        assert ui_state["isStreaming"] is False
        assert ui_state["textAreaDisabled"] is False
        assert ui_state["enableButtons"] is True

    @pytest.mark.asyncio
    async def test_partial_message_is_streaming(self, tracker):
        facade = _facade_with([SessionMessage(ts=1, type="ask", ask="command", partial=True)])
        ui_state = (await ui.get_status(facade, tracker)).data["taskStatus"]["uiState"]

        assert ui_state["isStreaming"] is True
        assert ui_state["textAreaDisabled"] is True
        assert ui_state["enableButtons"] is False

    @pytest.mark.asyncio
    async def test_metrics_from_session_totals(self, tracker):
        facade = _facade_with(
            [SessionMessage(ts=1, type="say", say="text", text="hi")],
            ApiMetrics(total_tokens_in=12, total_tokens_out=3, total_cost=0.2),
        )
        data = (await ui.get_status(facade, tracker)).data

        assert data["taskStatus"]["active"] is True
        assert data["taskStatus"]["metrics"]["tokensIn"] == 12
        assert data["apiMetrics"]["totalTokensOut"] == 3

    @pytest.mark.asyncio
    async def test_ui_state_carries_view_selection(self, tracker):
        async with tracker.mutate() as state:
            state.expanded_message_ids.update({3, 1})
            state.selected_images.append("img")

        ui_state = (await ui.get_status(_facade_with(), tracker)).data["taskStatus"]["uiState"]
        assert ui_state["expandedMessageIds"] == [1, 3]
        assert ui_state["selectedImages"] == ["img"]

    @pytest.mark.asyncio
    async def test_facade_failure_becomes_error(self, tracker):
        facade = AsyncMock(spec=SessionFacade)
        facade.get_state.side_effect = RuntimeError("host unavailable")

        env = await ui.get_status(facade, tracker)
        assert env.to_wire() == {"status": "error", "error": "host unavailable"}


class TestImages:
    @pytest.mark.asyncio
    async def test_upload_appends(self, tracker):
        await media.upload_images(tracker, ImageUploadRequest(images=["a"]))
        env = await media.upload_images(tracker, ImageUploadRequest(images=["b"]))

        assert env.data == {"uploadedImages": ["b"], "selectedImages": ["a", "b"]}

    @pytest.mark.asyncio
    async def test_clear(self, tracker):
        await media.upload_images(tracker, ImageUploadRequest(images=["a"]))
        env = await media.clear_images(tracker)

        assert env.data["selectedImages"] == []
        assert (await tracker.snapshot()).selected_images == []


class TestScreenshot:
    @pytest.mark.asyncio
    async def test_webpage_requires_url(self, make_browser):
        browser = make_browser()
        env = await media.take_screenshot(
            _facade_with(), browser, ScreenshotRequest(type="webpage"), settle_delay=0
        )

        assert env.error == "URL is required for webpage screenshots"
        assert browser.calls == []

    @pytest.mark.asyncio
    async def test_webpage_capture(self, make_browser):
        browser = make_browser()
        env = await media.take_screenshot(
            _facade_with(),
            browser,
            ScreenshotRequest(type="webpage", url="https://example.com"),
            settle_delay=0,
        )

        assert env.data["image"] == browser.screenshot
        assert env.data["format"] == "png"
        assert env.data["dimensions"] == {"width": 900, "height": 600}
        assert browser.calls == ["launch", ("navigate", "https://example.com"), "close"]

    @pytest.mark.asyncio
    async def test_vscode_targets_workspace(self, make_browser):
        browser = make_browser()
        await media.take_screenshot(
            _facade_with(), browser, ScreenshotRequest(type="vscode"), settle_delay=0
        )
        assert ("navigate", "file:///workspace") in browser.calls

    @pytest.mark.asyncio
    async def test_full_page_scrolls_down_then_up(self, make_browser):
        browser = make_browser(mouse_heights=[300, 600, 600], scroll_up_steps=2)
        env = await media.take_screenshot(
            _facade_with(),
            browser,
            ScreenshotRequest(type="webpage", url="https://example.com", full_page=True),
            settle_delay=0,
        )

        assert env.ok
        assert browser.calls[2:] == [
            "scroll_down",
            "scroll_down",
            "scroll_down",
            "scroll_up",
            "scroll_up",
            "close",
        ]

    @pytest.mark.asyncio
    async def test_browser_closed_on_failure(self, make_browser):
        browser = make_browser(fail_navigate=True)
        env = await media.take_screenshot(
            _facade_with(),
            browser,
            ScreenshotRequest(type="webpage", url="https://example.com"),
            settle_delay=0,
        )

        assert env.error == "navigation failed"
        assert browser.closed

    @pytest.mark.asyncio
    async def test_timeout_becomes_error(self, make_browser):
        browser = make_browser(navigate_delay=1.0)
        env = await media.take_screenshot(
            _facade_with(),
            browser,
            ScreenshotRequest(type="webpage", url="https://example.com"),
            timeout=0.05,
            settle_delay=0,
        )

        assert env.error == "Screenshot timed out after 0.05s"
        assert browser.closed

    @pytest.mark.asyncio
    async def test_unconfigured_browser(self):
        env = await media.take_screenshot(
            _facade_with(),
            UnavailableBrowser(),
            ScreenshotRequest(type="webpage", url="https://example.com"),
            settle_delay=0,
        )
        assert env.error == "Browser automation is not configured"

    @pytest.mark.asyncio
    async def test_concurrent_identical_captures_share_browser(self, make_browser):
        browser = make_browser(navigate_delay=0.05)
        inflight = InFlightCalls()
        request = ScreenshotRequest(type="webpage", url="https://example.com")

        first, second = await asyncio.gather(
            media.take_screenshot(
                _facade_with(), browser, request, settle_delay=0, inflight=inflight
            ),
            media.take_screenshot(
                _facade_with(), browser, request, settle_delay=0, inflight=inflight
            ),
        )

        assert first.data == second.data
        assert browser.calls.count("launch") == 1
