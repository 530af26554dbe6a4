"""FastAPI middleware for CORS, error handling, and logging.

NOTE: We use pure ASGI middleware instead of BaseHTTPMiddleware so WebSocket
upgrades on the push channel pass through untouched. BaseHTTPMiddleware does
not handle the WebSocket protocol and can close connections before they are
established. See: https://starlette.dev/middleware/#pure-asgi-middleware
"""

import json
import logging
import time

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from assistant_gateway.core.config import Settings, settings as default_settings
from assistant_gateway.core.envelope import Envelope, EnvelopeStatus
from assistant_gateway.observability.tracing import (
    ATTR_CATEGORY,
    ATTR_OPERATION,
    ATTR_OUTCOME,
    SpanCategory,
    add_span_attributes,
    get_tracer,
)

logger = logging.getLogger(__name__)
_tracer = get_tracer(__name__)


class LoggingMiddleware:
    """Pure ASGI middleware that logs each HTTP exchange with its envelope outcome.

    One line per request: method, path, status, envelope status and timing.
    Error envelopes are logged at warning level together with their ``error``
    text. Each exchange runs in an ``http`` span. WebSocket and lifespan
    scopes pass through untouched.
    """

    def __init__(self, app: ASGIApp, max_error_body: int = 4096) -> None:
        self.app = app
        self.max_error_body = max_error_body

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        start_time = time.perf_counter()
        method, path = scope["method"], scope["path"]
        status_code = 0
        error_body = bytearray()

        async def send_wrapper(message: Message) -> None:
            nonlocal status_code
            if message["type"] == "http.response.start":
                status_code = message.get("status", 0)
                headers = list(message.get("headers", []))
                headers.append(
                    (b"x-process-time", str(time.perf_counter() - start_time).encode())
                )
                message = {**message, "headers": headers}
            elif message["type"] == "http.response.body" and status_code >= 400:
                room = self.max_error_body - len(error_body)
                if room > 0:
                    error_body.extend(message.get("body", b"")[:room])
            await send(message)

        with _tracer.start_as_current_span(
            f"{SpanCategory.HTTP.value}.{method}",
            attributes={
                ATTR_CATEGORY: SpanCategory.HTTP.value,
                ATTR_OPERATION: f"{method} {path}",
            },
        ):
            try:
                await self.app(scope, receive, send_wrapper)
            except Exception as e:
                logger.error(
                    f"{method} {path} failed after {time.perf_counter() - start_time:.4f}s: {e}"
                )
                raise

            elapsed = time.perf_counter() - start_time
            outcome = response_outcome(status_code)
            add_span_attributes({"http.status_code": status_code, ATTR_OUTCOME: outcome})
            if outcome == EnvelopeStatus.ERROR.value:
                logger.warning(
                    f"{method} {path} -> {status_code} {outcome}: "
                    f"{envelope_error(bytes(error_body))} ({elapsed:.4f}s)"
                )
            else:
                logger.info(f"{method} {path} -> {status_code} {outcome} ({elapsed:.4f}s)")


def response_outcome(status_code: int) -> str:
    """Envelope status implied by an HTTP status code."""
    if status_code < 400:
        return EnvelopeStatus.SUCCESS.value
    return EnvelopeStatus.ERROR.value


def envelope_error(body: bytes) -> str:
    """``error`` member of an error envelope body, or a placeholder."""
    try:
        data = json.loads(body)
    except ValueError:
        return "unreadable response body"
    if isinstance(data, dict) and data.get("error"):
        return str(data["error"])
    if isinstance(data, dict) and data.get("detail"):
        return str(data["detail"])
    return "no error message"


class ErrorHandlerMiddleware:
    """Pure ASGI middleware that turns unhandled exceptions into a 500 envelope.

    This middleware skips WebSocket connections (scope["type"] == "websocket")
    to avoid interfering with WebSocket handshakes.
    """

    def __init__(self, app: ASGIApp) -> None:
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        response_started = False

        async def send_wrapper(message: Message) -> None:
            nonlocal response_started
            if message["type"] == "http.response.start":
                response_started = True
            await send(message)

        try:
            await self.app(scope, receive, send_wrapper)
        except Exception as e:
            request = Request(scope)
            logger.exception(f"Unhandled error in {request.method} {request.url.path}: {e}")
            if response_started:
                raise

            envelope = Envelope.failure(str(e) or "Internal server error")
            response = JSONResponse(status_code=500, content=envelope.to_wire())
            await response(scope, receive, send)


def setup_middleware(app: FastAPI, settings: Settings = default_settings) -> None:
    """Configure all middleware for the FastAPI application."""

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_hosts,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["*"],
    )

    # Custom middleware (last added is outermost)
    app.add_middleware(ErrorHandlerMiddleware)
    app.add_middleware(LoggingMiddleware)

    logger.info("Middleware setup completed")
