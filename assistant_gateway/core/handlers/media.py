"""Image selection and screenshot capture handlers."""

import asyncio
import logging
import re
from datetime import datetime, timezone
from typing import Optional

from assistant_gateway.core.browser import BrowserSession
from assistant_gateway.core.envelope import Envelope, handle_request
from assistant_gateway.core.facade import SessionFacade
from assistant_gateway.core.inflight import InFlightCalls
from assistant_gateway.core.schemas import ImageUploadRequest, ScreenshotRequest
from assistant_gateway.core.view_state import ViewStateTracker
from assistant_gateway.observability.tracing import SpanCategory, trace_facade_call

logger = logging.getLogger(__name__)

SCREENSHOT_WIDTH = 900
SCREENSHOT_HEIGHT = 600

# Upper bounds on scroll steps during a full-page capture
MAX_SCROLL_STEPS = 50

_MOUSE_Y = re.compile(r"\d+,(\d+)")


async def upload_images(tracker: ViewStateTracker, request: ImageUploadRequest) -> Envelope:
    """Append images to the current selection."""

    async def run():
        async with tracker.mutate() as state:
            state.selected_images.extend(request.images)
            return {
                "uploadedImages": list(request.images),
                "selectedImages": list(state.selected_images),
            }

    return await handle_request(run)


async def clear_images(tracker: ViewStateTracker) -> Envelope:
    async def run():
        async with tracker.mutate() as state:
            state.selected_images.clear()
            return {"uploadedImages": [], "selectedImages": []}

    return await handle_request(run)


async def _scroll_to_bottom(browser: BrowserSession) -> None:
    """Scroll down until the reported mouse y-position stops increasing."""
    last_height = 0
    for _ in range(MAX_SCROLL_STEPS):
        result = await browser.scroll_down()
        if not result.screenshot:
            break
        match = _MOUSE_Y.search(result.current_mouse_position or "")
        if not match:
            break
        height = int(match.group(1))
        if height <= last_height:
            break
        last_height = height


async def _scroll_to_top(browser: BrowserSession) -> None:
    for _ in range(MAX_SCROLL_STEPS):
        if not await browser.scroll_up():
            break


async def _capture(
    browser: BrowserSession, url: str, full_page: bool, settle_delay: float
) -> str:
    try:
        await browser.launch()
        result = await browser.navigate(url)
        await asyncio.sleep(settle_delay)
        if full_page:
            await _scroll_to_bottom(browser)
            await _scroll_to_top(browser)
        return result.screenshot or ""
    finally:
        await browser.close()


@trace_facade_call("screenshot", category=SpanCategory.BROWSER)
async def take_screenshot(
    facade: SessionFacade,
    browser: BrowserSession,
    request: ScreenshotRequest,
    timeout: float = 30.0,
    settle_delay: float = 1.0,
    inflight: Optional[InFlightCalls] = None,
) -> Envelope:
    """Capture the host workspace or a web page through the browser collaborator.

    Identical captures requested while one is running share its result.
    """

    async def run():
        if request.type == "vscode":
            url = await facade.get_workspace_url()
        else:
            if not request.url:
                raise ValueError("URL is required for webpage screenshots")
            url = request.url

        logger.info(f"Capturing {request.type} screenshot of {url}")
        try:
            image = await asyncio.wait_for(
                _capture(browser, url, request.full_page, settle_delay), timeout=timeout
            )
        except asyncio.TimeoutError:
            raise TimeoutError(f"Screenshot timed out after {timeout:g}s") from None

        return {
            "image": image,
            "format": "png",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "dimensions": {"width": SCREENSHOT_WIDTH, "height": SCREENSHOT_HEIGHT},
        }

    if inflight is None:
        return await handle_request(run)
    payload = request.model_dump_json()
    return await inflight.run("screenshot", payload, lambda: handle_request(run))
