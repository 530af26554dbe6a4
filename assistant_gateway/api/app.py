"""FastAPI applications for the gateway: the HTTP control API and the push channel."""

import logging
from contextlib import asynccontextmanager
from typing import Optional, Set, Tuple

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from fastapi.routing import APIRoute, APIWebSocketRoute
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from starlette.exceptions import HTTPException as StarletteHTTPException

from assistant_gateway import __version__
from assistant_gateway.api.dependencies import BodyParseError
from assistant_gateway.api.diagnostics import router as diagnostics_router
from assistant_gateway.api.docs import router as docs_router
from assistant_gateway.api.health import router as health_router
from assistant_gateway.api.middleware import setup_middleware
from assistant_gateway.api.session import router as session_router
from assistant_gateway.api.tasks import router as tasks_router
from assistant_gateway.api.ui import router as ui_router
from assistant_gateway.api.websockets import push_endpoint
from assistant_gateway.api.websockets import router as websockets_router
from assistant_gateway.core.config import settings
from assistant_gateway.core.context import GatewayContext
from assistant_gateway.core.envelope import (
    Envelope,
    RequestValidationFailed,
    format_validation_errors,
)
from assistant_gateway.observability.tracing import setup_tracing as setup_base_tracing

# Configure logging with consistent format
LOG_FORMAT = "%(asctime)s %(name)s %(levelname)s %(message)s"
LOG_DATE_FORMAT = "%H:%M:%S"

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format=LOG_FORMAT,
    datefmt=LOG_DATE_FORMAT,
)

logger = logging.getLogger(__name__)


class RouteConflictError(RuntimeError):
    """Two routes claim the same method and path."""


def verify_route_table(app: FastAPI) -> int:
    """Fail fast on duplicate (method, path) registrations; returns the route count."""
    seen: Set[Tuple[str, str]] = set()
    for route in app.routes:
        if isinstance(route, APIRoute):
            keys = [(method, route.path) for method in route.methods]
        elif isinstance(route, APIWebSocketRoute):
            keys = [("WEBSOCKET", route.path)]
        else:
            continue
        for key in keys:
            if key in seen:
                raise RouteConflictError(f"Duplicate route registration: {key[0]} {key[1]}")
            seen.add(key)
    return len(seen)


def setup_tracing(app: FastAPI) -> None:
    """Initialize OpenTelemetry tracing if an OTLP endpoint is configured."""
    if not setup_base_tracing(settings.app_name, __version__):
        return  # Tracing not enabled

    FastAPIInstrumentor.instrument_app(app, excluded_urls=r"^/health$,^/api-docs$")
    logger.info("OpenTelemetry tracing initialized (FastAPI + libs instrumented)")


def _error_response(status_code: int, message: str, headers=None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=Envelope.failure(message).to_wire(),
        headers=headers,
    )


def install_exception_handlers(app: FastAPI) -> None:
    """Map routing, parsing and validation failures onto error envelopes."""

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        return _error_response(exc.status_code, str(exc.detail), getattr(exc, "headers", None))

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        return _error_response(400, f"Invalid parameters: {format_validation_errors(exc)}")

    @app.exception_handler(RequestValidationFailed)
    async def payload_exception_handler(request: Request, exc: RequestValidationFailed):
        return _error_response(exc.status_code, str(exc))

    @app.exception_handler(BodyParseError)
    async def body_parse_exception_handler(request: Request, exc: BodyParseError):
        logger.warning(f"Rejected body for {request.method} {request.url.path}: {exc}")
        return _error_response(500, str(exc))


@asynccontextmanager
async def lifespan(app: FastAPI):
    """FastAPI lifespan context manager for startup and shutdown."""
    gateway: GatewayContext = app.state.gateway
    logger.info(f"Starting up {app.title}...")
    logger.info(f"Debug mode: {gateway.settings.debug}")

    yield

    logger.info(f"Shutting down {app.title}...")
    await gateway.channel.close()


def create_app(gateway: Optional[GatewayContext] = None) -> FastAPI:
    """Build the HTTP control API around ``gateway`` (standalone session by default)."""
    gateway = gateway or GatewayContext.standalone(settings)

    app = FastAPI(
        title=gateway.settings.app_name,
        description="Local control plane for an AI coding-assistant session",
        version=__version__,
        lifespan=lifespan,
        debug=gateway.settings.debug,
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )
    app.state.gateway = gateway

    # Setup tracing (no-op if not configured)
    setup_tracing(app)
    setup_middleware(app, gateway.settings)
    install_exception_handlers(app)

    app.include_router(health_router, tags=["Health"])
    app.include_router(docs_router, tags=["Docs"])
    app.include_router(tasks_router, tags=["Tasks"])
    app.include_router(ui_router, tags=["UI"])
    app.include_router(session_router, tags=["Session"])
    app.include_router(diagnostics_router, tags=["Editor"])
    app.include_router(websockets_router, tags=["WebSockets"])

    count = verify_route_table(app)
    logger.debug(f"Registered {count} routes")
    return app


def create_push_app(gateway: GatewayContext) -> FastAPI:
    """Standalone push-channel app served on its own port (paths ``/`` and ``/ws``)."""
    app = FastAPI(
        title=f"{gateway.settings.app_name} push channel",
        version=__version__,
        lifespan=lifespan,
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )
    app.state.gateway = gateway
    app.add_api_websocket_route("/", push_endpoint)
    app.include_router(websockets_router)
    verify_route_table(app)
    return app


# Create FastAPI application
app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "assistant_gateway.api.app:app",
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )
