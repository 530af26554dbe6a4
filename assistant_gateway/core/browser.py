"""Browser-automation collaborator used for screenshots.

The automation itself lives outside the gateway. ``BrowserSession`` is the
shape the screenshot handler drives; ``UnavailableBrowser`` is installed when
nothing is configured so screenshot requests fail with a clear message.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from assistant_gateway.core.facade import BrowserUnavailableError
from assistant_gateway.core.models import BrowserActionResult


@runtime_checkable
class BrowserSession(Protocol):
    async def launch(self) -> None: ...

    async def navigate(self, url: str) -> BrowserActionResult: ...

    async def scroll_down(self) -> BrowserActionResult: ...

    async def scroll_up(self) -> bool:
        """Scroll one viewport up; False once the top has been reached."""
        ...

    async def close(self) -> None: ...


class UnavailableBrowser:
    """Placeholder collaborator that rejects every capture."""

    async def launch(self) -> None:
        raise BrowserUnavailableError("Browser automation is not configured")

    async def navigate(self, url: str) -> BrowserActionResult:
        raise BrowserUnavailableError("Browser automation is not configured")

    async def scroll_down(self) -> BrowserActionResult:
        raise BrowserUnavailableError("Browser automation is not configured")

    async def scroll_up(self) -> bool:
        return False

    async def close(self) -> None:
        return None
