"""
Test configuration and fixtures for Assistant Gateway.
"""

import asyncio
import os
from typing import List, Optional

import pytest
import pytest_asyncio
from fastapi.testclient import TestClient
from httpx import ASGITransport, AsyncClient

# Keep tests independent of a developer's local environment
os.environ.setdefault("GATEWAY_APP_NAME", "Assistant Gateway Test")
os.environ.setdefault("GATEWAY_LOG_LEVEL", "INFO")

from assistant_gateway.core.config import Settings  # noqa: E402
from assistant_gateway.core.context import GatewayContext  # noqa: E402
from assistant_gateway.core.models import BrowserActionResult  # noqa: E402
from assistant_gateway.core.session import InMemorySession  # noqa: E402

TEST_VERSION = "1.2.3"
TEST_SCREENSHOT = "data:image/png;base64,iVBORw0KGgo="


class FakeBrowser:
    """Scripted browser collaborator that records every call."""

    screenshot = TEST_SCREENSHOT

    def __init__(
        self,
        mouse_heights: Optional[List[int]] = None,
        scroll_up_steps: int = 2,
        navigate_delay: float = 0.0,
        fail_navigate: bool = False,
    ):
        self.calls: List[object] = []
        self.mouse_heights = list(mouse_heights if mouse_heights is not None else [300, 600, 600])
        self.scroll_up_steps = scroll_up_steps
        self.navigate_delay = navigate_delay
        self.fail_navigate = fail_navigate
        self.closed = False

    async def launch(self) -> None:
        self.calls.append("launch")

    async def navigate(self, url: str) -> BrowserActionResult:
        self.calls.append(("navigate", url))
        if self.navigate_delay:
            await asyncio.sleep(self.navigate_delay)
        if self.fail_navigate:
            raise RuntimeError("navigation failed")
        return BrowserActionResult(
            screenshot=TEST_SCREENSHOT, current_url=url, current_mouse_position="450,0"
        )

    async def scroll_down(self) -> BrowserActionResult:
        self.calls.append("scroll_down")
        height = self.mouse_heights.pop(0) if self.mouse_heights else 0
        return BrowserActionResult(
            screenshot=TEST_SCREENSHOT, current_mouse_position=f"450,{height}"
        )

    async def scroll_up(self) -> bool:
        self.calls.append("scroll_up")
        self.scroll_up_steps -= 1
        return self.scroll_up_steps > 0

    async def close(self) -> None:
        self.calls.append("close")
        self.closed = True


@pytest.fixture
def test_settings() -> Settings:
    return Settings(
        app_name="Assistant Gateway Test",
        extension_version=TEST_VERSION,
        screenshot_settle_delay=0.0,
        screenshot_timeout=5.0,
    )


@pytest.fixture
def session() -> InMemorySession:
    return InMemorySession(version=TEST_VERSION)


@pytest.fixture
def make_browser():
    """Factory for scripted browsers with custom behaviour."""
    return FakeBrowser


@pytest.fixture
def fake_browser() -> FakeBrowser:
    return FakeBrowser()


@pytest.fixture
def gateway(session, fake_browser, test_settings) -> GatewayContext:
    return GatewayContext.create(session, browser=fake_browser, settings=test_settings)


@pytest.fixture
def test_app(gateway):
    """FastAPI app wired to an in-memory session and a scripted browser."""
    from assistant_gateway.api.app import create_app

    return create_app(gateway)


@pytest.fixture
def test_client(test_app):
    """Test client for the FastAPI app."""
    return TestClient(test_app)


@pytest_asyncio.fixture
async def async_test_client(test_app):
    """Async test client for the FastAPI app."""
    async with AsyncClient(transport=ASGITransport(app=test_app), base_url="http://test") as client:
        yield client
