"""Top-level `serve` CLI command."""

from __future__ import annotations

import asyncio
import logging
from typing import Optional

import click
import uvicorn

from assistant_gateway.core.config import settings


async def run_servers(host: str, port: int, ws_port: int, log_level: str) -> None:
    """Serve the control API and the push channel from one event loop."""
    from assistant_gateway.api.app import create_app, create_push_app
    from assistant_gateway.core.context import GatewayContext

    gateway = GatewayContext.standalone(settings)
    http_app = create_app(gateway)
    push_app = create_push_app(gateway)

    servers = [
        uvicorn.Server(
            uvicorn.Config(http_app, host=host, port=port, log_level=log_level.lower())
        ),
        uvicorn.Server(
            uvicorn.Config(push_app, host=host, port=ws_port, log_level=log_level.lower())
        ),
    ]
    await asyncio.gather(*(server.serve() for server in servers))


@click.command()
@click.option("--host", default=None, help="Bind address (default from GATEWAY_HOST)")
@click.option("--port", "-p", type=int, default=None, help="HTTP control API port")
@click.option("--ws-port", type=int, default=None, help="Push channel port (default: port + 1)")
@click.option("--log-level", default=None, help="Logging level")
def serve(
    host: Optional[str], port: Optional[int], ws_port: Optional[int], log_level: Optional[str]
):
    """Run the control API and the push channel."""
    host = host or settings.host
    if ws_port is None:
        ws_port = settings.ws_port if port is None else port + 1
    port = port or settings.port
    log_level = log_level or settings.log_level

    logging.basicConfig(
        level=getattr(logging, log_level.upper(), logging.INFO),
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
        datefmt="%H:%M:%S",
    )

    click.echo(f"✅ Control API on http://{host}:{port}")
    click.echo(f"✅ Push channel on ws://{host}:{ws_port}")
    try:
        asyncio.run(run_servers(host, port, ws_port, log_level))
    except KeyboardInterrupt:
        click.echo("\nGateway stopped by user")
