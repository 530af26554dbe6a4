"""Request-scoped dependencies shared by the API routers."""

import json
import logging
from typing import Any, Callable, Type, TypeVar

from fastapi import Depends, Request
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from assistant_gateway.core.browser import BrowserSession
from assistant_gateway.core.context import GatewayContext
from assistant_gateway.core.envelope import Envelope, parse_payload
from assistant_gateway.core.facade import SessionFacade
from assistant_gateway.core.inflight import InFlightCalls
from assistant_gateway.core.view_state import ViewStateTracker

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)


class BodyParseError(Exception):
    """The request body is not a JSON object."""


def get_gateway(request: Request) -> GatewayContext:
    return request.app.state.gateway


def get_facade(gateway: GatewayContext = Depends(get_gateway)) -> SessionFacade:
    return gateway.facade


def get_view_state(gateway: GatewayContext = Depends(get_gateway)) -> ViewStateTracker:
    return gateway.view_state


def get_browser(gateway: GatewayContext = Depends(get_gateway)) -> BrowserSession:
    return gateway.browser


def get_inflight(gateway: GatewayContext = Depends(get_gateway)) -> InFlightCalls:
    return gateway.inflight


def json_body(model: Type[M]) -> Callable[..., Any]:
    """Dependency that decodes the body as a JSON object and validates it.

    An empty body is treated as ``{}``. The returned callable exposes ``model``
    so the documentation endpoint can describe the expected payload.
    """

    async def _parse(request: Request) -> M:
        raw = await request.body()
        if raw.strip():
            try:
                data = json.loads(raw)
            except (json.JSONDecodeError, UnicodeDecodeError) as e:
                raise BodyParseError(f"Invalid JSON: {e}") from e
        else:
            data = {}
        if not isinstance(data, dict):
            raise BodyParseError("Request body must be a JSON object")
        return parse_payload(model, data)

    _parse.model = model  # type: ignore[attr-defined]
    return _parse


def envelope_response(envelope: Envelope) -> JSONResponse:
    """Serialize an envelope; HTTP status mirrors the envelope status."""
    return JSONResponse(
        status_code=envelope.http_status, content=jsonable_encoder(envelope.to_wire())
    )
