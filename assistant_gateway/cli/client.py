"""CLI commands that query a running gateway over HTTP."""

from __future__ import annotations

import json as _json
import sys
from typing import Any, Dict, Optional

import click
import httpx
from rich.console import Console
from rich.table import Table

from assistant_gateway.core.config import settings

url_option = click.option(
    "--url", default=None, help="Gateway base URL (default: http://GATEWAY_HOST:GATEWAY_PORT)"
)
json_option = click.option("--json", "as_json", is_flag=True, help="Output JSON")


def _get(base_url: Optional[str], path: str) -> Dict[str, Any]:
    url = (base_url or settings.base_url).rstrip("/") + path
    try:
        response = httpx.get(url, timeout=10.0)
    except httpx.HTTPError as e:
        click.echo(f"❌ Could not reach gateway at {url}: {e}")
        sys.exit(1)
    try:
        body = response.json()
    except ValueError:
        click.echo(f"❌ Unexpected response from {url}: HTTP {response.status_code}")
        sys.exit(1)
    if body.get("status") == "error":
        click.echo(f"❌ {body.get('error', 'Unknown error')}")
        sys.exit(1)
    return body


@click.command()
@url_option
@json_option
def health(url: Optional[str], as_json: bool):
    """Check whether the gateway is up"""
    body = _get(url, "/health")
    if as_json:
        click.echo(_json.dumps(body, indent=2))
        return
    click.echo(
        f"✅ {body.get('status')} (host version {body.get('extensionVersion')}, "
        f"at {body.get('timestamp')})"
    )


@click.command()
@url_option
@json_option
def status(url: Optional[str], as_json: bool):
    """Show task, UI and metrics status"""
    data = _get(url, "/status").get("data", {})
    if as_json:
        click.echo(_json.dumps(data, indent=2))
        return

    task_status = data.get("taskStatus", {})
    ui_state = task_status.get("uiState", {})
    metrics = task_status.get("metrics", {})
    view = data.get("viewState", {})

    console = Console()
    table = Table(title="Gateway Status")
    table.add_column("Field", no_wrap=True)
    table.add_column("Value")
    table.add_row("Active task", "yes" if task_status.get("active") else "no")
    table.add_row("Messages", str(len(task_status.get("messages", []))))
    table.add_row("Streaming", str(ui_state.get("isStreaming", False)))
    table.add_row("Buttons enabled", str(ui_state.get("enableButtons", False)))
    table.add_row("View", view.get("currentView", "-"))
    table.add_row("Tokens in/out", f"{metrics.get('tokensIn', 0)} / {metrics.get('tokensOut', 0)}")
    table.add_row("Total cost", f"{metrics.get('totalCost', 0):.4f}")
    table.add_row("Selected images", str(len(ui_state.get("selectedImages", []))))
    console.print(table)


@click.command()
@url_option
@json_option
def docs(url: Optional[str], as_json: bool):
    """List the endpoints a running gateway serves"""
    body = _get(url, "/api-docs")
    if as_json:
        click.echo(_json.dumps(body, indent=2))
        return

    endpoints = body.get("endpoints", [])
    if not endpoints:
        click.echo("No endpoints found.")
        return

    console = Console()
    table = Table(title=f"Gateway API {body.get('version', '')} at {body.get('baseUrl', '')}")
    table.add_column("Method", no_wrap=True)
    table.add_column("Path", no_wrap=True)
    table.add_column("Body", no_wrap=True)
    table.add_column("Description")
    for endpoint in endpoints:
        table.add_row(
            endpoint.get("method", "-"),
            endpoint.get("path", "-"),
            endpoint.get("body", "-"),
            endpoint.get("description", ""),
        )
    console.print(table)
