"""CLI commands for inspecting and validating PageLens settings."""

from __future__ import annotations

import json
from typing import Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

settings_app = typer.Typer(help="Inspect and validate PageLens configuration.")
console = Console()

SECTIONS = ("browser", "stealth", "api")


def _section_table(name: str, values: dict) -> Table:
    table = Table(title=escape(f"[{name}]"), title_justify="left")
    table.add_column("Key", style="cyan")
    table.add_column("Value")
    for key, value in values.items():
        if isinstance(value, list):
            value = "\n".join(str(v) for v in value) or "[]"
        table.add_row(key, escape(str(value)) if value != "" else "[dim]unset[/dim]")
    return table


def collect_problems(settings) -> tuple[list[str], list[str]]:
    """Return ``(errors, warnings)`` for settings that load but will misbehave."""
    errors: list[str] = []
    warnings: list[str] = []
    b, st = settings.browser, settings.stealth

    if not b.min_timeout_ms <= b.navigation_timeout_ms <= b.max_timeout_ms:
        warnings.append(
            f"browser.navigation_timeout_ms={b.navigation_timeout_ms} lies outside "
            f"[{b.min_timeout_ms}, {b.max_timeout_ms}]; requests without a timeout use it unclamped"
        )
    if b.min_timeout_ms <= 0:
        errors.append("browser.min_timeout_ms must be positive")
    if (st.viewport_width > 0) != (st.viewport_height > 0):
        warnings.append("stealth.viewport_width and viewport_height must both be set; viewport rotation is used")
    if st.proxy and "://" not in st.proxy:
        warnings.append(f"stealth.proxy {st.proxy!r} has no scheme (expected e.g. http:// or socks5://)")
    if st.user_agent and st.rotate_user_agent:
        warnings.append("stealth.user_agent is set, so rotate_user_agent has no effect")
    if st.color_scheme not in ("light", "dark", "no-preference"):
        errors.append(f"stealth.color_scheme {st.color_scheme!r} is not light, dark or no-preference")
    return errors, warnings


@settings_app.command("show")
def show_settings(
    section: Optional[str] = typer.Option(None, "--section", "-s", help=f"Only show one of: {', '.join(SECTIONS)}."),
    json_output: bool = typer.Option(False, "--json", "-j", help="Output as JSON."),
) -> None:
    """Display the currently resolved settings, one table per section."""
    from pagelens.settings import get_settings

    data = get_settings().model_dump(mode="json")
    if section is not None:
        if section not in SECTIONS:
            console.print(f"[red]✗[/red] Unknown section {section!r}; choose from {', '.join(SECTIONS)}.")
            raise typer.Exit(code=1)
        data = {section: data[section]}

    if json_output:
        console.print_json(json.dumps(data, default=str))
        return

    if section is None:
        console.print(f"[bold]env:[/bold] {data['env']}  [bold]log_level:[/bold] {data['log_level']}")
    for name in SECTIONS:
        if name in data:
            console.print(_section_table(name, data[name]))


@settings_app.command("validate")
def validate_settings() -> None:
    """Load the settings and check browser, stealth and API values for mistakes."""
    from pagelens.settings import get_settings

    try:
        settings = get_settings()
    except Exception as e:
        console.print(f"[red]✗[/red] Settings failed to load: {e}")
        raise typer.Exit(code=1)

    errors, warnings = collect_problems(settings)
    for message in warnings:
        console.print(f"[yellow]![/yellow] {escape(message)}", soft_wrap=True)
    for message in errors:
        console.print(f"[red]✗[/red] {escape(message)}", soft_wrap=True)
    if errors:
        raise typer.Exit(code=1)

    b, st = settings.browser, settings.stealth
    console.print("[green]✓[/green] Settings are valid.")
    console.print(f"  Browser: headless={b.headless}, timeout {b.navigation_timeout_ms} ms")
    if st.user_agent:
        fingerprint = "fixed user-agent"
    elif st.rotate_user_agent:
        fingerprint = "rotating user-agent"
    else:
        fingerprint = "engine default user-agent"
    console.print(f"  Fingerprint: {fingerprint}, proxy {st.proxy or 'none'}")
    console.print(f"  API: http://{settings.api.host}:{settings.api.port}")
