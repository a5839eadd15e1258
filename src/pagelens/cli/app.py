"""Unified CLI entry point for PageLens.

Config precedence: settings.default.toml -> settings.<env>.toml -> settings.local.toml -> env vars (PAGELENS_* with double underscores) -> CLI flags.
"""

from __future__ import annotations

from typing import Optional

import typer

from pagelens.cli.page_cmd import page_app
from pagelens.cli.settings_cmd import settings_app
from pagelens.logging_setup import configure_logging

try:
    from importlib.metadata import version

    VERSION = version("pagelens")
except Exception:
    VERSION = "unknown"

APP_HELP = (
    "pagelens: load pages in a stealth browser and list their interactive elements. "
    "Config precedence: settings.default.toml -> settings.local.toml -> env vars (PAGELENS_* with __) -> CLI flags."
)

app = typer.Typer(add_completion=True, help=APP_HELP)

app.add_typer(page_app, name="page")
app.add_typer(settings_app, name="settings")


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    version: bool = typer.Option(False, "--version", help="Show version and exit."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging."),
) -> None:
    """Show help when no subcommand is provided."""
    if version:
        typer.echo(f"pagelens {VERSION}")
        raise typer.Exit()
    configure_logging("DEBUG" if verbose else None)
    if ctx.invoked_subcommand is None:
        typer.echo(ctx.get_help())
        raise typer.Exit()


@app.command("serve")
def serve(
    host: Optional[str] = typer.Option(None, "--host", help="Bind address (defaults to api.host)."),
    port: Optional[int] = typer.Option(None, "--port", "-p", help="Bind port (defaults to api.port)."),
) -> None:
    """Run the HTTP API server."""
    from pagelens.api.app import run_server

    run_server(host=host, port=port)


if __name__ == "__main__":
    app()
