"""Process-wide collaborators shared by the HTTP app and the push channel."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from assistant_gateway.core.broadcast import BroadcastChannel
from assistant_gateway.core.browser import BrowserSession, UnavailableBrowser
from assistant_gateway.core.config import Settings, settings as default_settings
from assistant_gateway.core.facade import SessionFacade
from assistant_gateway.core.inflight import InFlightCalls
from assistant_gateway.core.session import InMemorySession
from assistant_gateway.core.view_state import ViewStateTracker


@dataclass
class GatewayContext:
    """Everything a handler may touch, passed explicitly instead of as globals."""

    facade: SessionFacade
    browser: BrowserSession
    view_state: ViewStateTracker
    channel: BroadcastChannel
    settings: Settings
    inflight: InFlightCalls

    @classmethod
    def create(
        cls,
        facade: SessionFacade,
        browser: Optional[BrowserSession] = None,
        settings: Optional[Settings] = None,
    ) -> "GatewayContext":
        settings = settings or default_settings

        async def snapshot():
            return await facade.get_state()

        channel = BroadcastChannel(
            snapshot,
            queue_size=settings.push_queue_size,
            close_timeout=settings.push_close_timeout,
        )
        facade.add_listener(channel.on_host_event)
        return cls(
            facade=facade,
            browser=browser or UnavailableBrowser(),
            view_state=ViewStateTracker(),
            channel=channel,
            settings=settings,
            inflight=InFlightCalls(),
        )

    @classmethod
    def standalone(cls, settings: Optional[Settings] = None) -> "GatewayContext":
        """Context backed by an in-process session (no host attached)."""
        settings = settings or default_settings
        session = InMemorySession(
            version=settings.extension_version,
            custom_instructions=settings.default_instructions,
        )
        return cls.create(session, settings=settings)
