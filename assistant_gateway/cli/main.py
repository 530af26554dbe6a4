"""CLI interface for Assistant Gateway."""

import importlib

import click

# Map command names to their module:attribute for lazy import
_COMMANDS = {
    "serve": "assistant_gateway.cli.serve:serve",
    "health": "assistant_gateway.cli.client:health",
    "status": "assistant_gateway.cli.client:status",
    "docs": "assistant_gateway.cli.client:docs",
}


class LazyGroup(click.Group):
    """
    Lazy loading of CLI commands to avoid hard dependencies at top level.

    ``serve`` pulls in uvicorn and the whole API; the client commands only
    need httpx and rich.
    """

    def list_commands(self, ctx):
        # Keep stable ordering for help output
        return list(_COMMANDS.keys())

    def get_command(self, ctx, name):
        target = _COMMANDS.get(name)
        if not target:
            return None
        module_path, attr = target.split(":", 1)
        mod = importlib.import_module(module_path)
        return getattr(mod, attr)


@click.command(cls=LazyGroup)
def main():
    """Assistant Gateway CLI."""
    pass


if __name__ == "__main__":
    main()
