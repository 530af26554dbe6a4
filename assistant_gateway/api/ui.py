"""View-state, image selection and screenshot endpoints."""

from fastapi import APIRouter, Depends

from assistant_gateway.api.dependencies import (
    envelope_response,
    get_browser,
    get_facade,
    get_gateway,
    get_view_state,
    json_body,
)
from assistant_gateway.core.browser import BrowserSession
from assistant_gateway.core.context import GatewayContext
from assistant_gateway.core.facade import SessionFacade
from assistant_gateway.core.handlers import media, ui
from assistant_gateway.core.schemas import (
    ImageUploadRequest,
    MessageDisplayRequest,
    ScreenshotRequest,
    ScrollRequest,
    ViewRequest,
)
from assistant_gateway.core.view_state import ViewStateTracker

router = APIRouter()


@router.post("/view")
async def set_view(
    body: ViewRequest = Depends(json_body(ViewRequest)),
    tracker: ViewStateTracker = Depends(get_view_state),
):
    """Switch between the history and chat views"""
    return envelope_response(await ui.set_view(tracker, body))


@router.post("/message-display")
async def set_message_display(
    body: MessageDisplayRequest = Depends(json_body(MessageDisplayRequest)),
    tracker: ViewStateTracker = Depends(get_view_state),
):
    """Expand or collapse a message"""
    return envelope_response(await ui.set_message_display(tracker, body))


@router.post("/scroll")
async def set_scroll(
    body: ScrollRequest = Depends(json_body(ScrollRequest)),
    tracker: ViewStateTracker = Depends(get_view_state),
):
    """Update the chat scroll position"""
    return envelope_response(await ui.set_scroll(tracker, body))


@router.get("/status")
async def get_status(
    facade: SessionFacade = Depends(get_facade),
    tracker: ViewStateTracker = Depends(get_view_state),
):
    """Current task, UI, browser and metrics status"""
    return envelope_response(await ui.get_status(facade, tracker))


@router.post("/images")
async def upload_images(
    body: ImageUploadRequest = Depends(json_body(ImageUploadRequest)),
    tracker: ViewStateTracker = Depends(get_view_state),
):
    """Add images to the current selection"""
    return envelope_response(await media.upload_images(tracker, body))


@router.delete("/images")
async def clear_images(tracker: ViewStateTracker = Depends(get_view_state)):
    """Clear the current image selection"""
    return envelope_response(await media.clear_images(tracker))


@router.post("/screenshot")
async def take_screenshot(
    body: ScreenshotRequest = Depends(json_body(ScreenshotRequest)),
    gateway: GatewayContext = Depends(get_gateway),
    facade: SessionFacade = Depends(get_facade),
    browser: BrowserSession = Depends(get_browser),
):
    """Capture a screenshot of the workspace or a web page"""
    envelope = await media.take_screenshot(
        facade,
        browser,
        body,
        timeout=gateway.settings.screenshot_timeout,
        settle_delay=gateway.settings.screenshot_settle_delay,
        inflight=gateway.inflight,
    )
    return envelope_response(envelope)
