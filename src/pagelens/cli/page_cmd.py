"""CLI commands that load one page and report on it."""

from __future__ import annotations

import asyncio
import base64
import json
from collections.abc import Awaitable, Callable
from pathlib import Path
from typing import Optional, TypeVar

import typer
from rich.console import Console
from rich.table import Table

from pagelens.browser import operations
from pagelens.browser.navigation import normalize_url
from pagelens.browser.session import SessionManager
from pagelens.models import BoxedElement, ExtractedElement

page_app = typer.Typer(help="Load a page and list, scan or inspect it.")
console = Console()

T = TypeVar("T")


def _run(op: Callable[[SessionManager], Awaitable[T]]) -> T:
    """Run *op* against a throwaway session manager."""

    async def runner() -> T:
        manager = SessionManager()
        try:
            return await op(manager)
        finally:
            await manager.close()

    return asyncio.run(runner())


def _element_table(title: str, elements: list[ExtractedElement]) -> Table:
    boxed = bool(elements) and isinstance(elements[0], BoxedElement)
    table = Table(title=title)
    table.add_column("ID", style="cyan", max_width=16)
    table.add_column("Tag")
    table.add_column("Action")
    table.add_column("Selector", style="green", max_width=40)
    table.add_column("Text", max_width=50)
    if boxed:
        table.add_column("Box", style="dim")
        table.add_column("Conf", justify="right")
    for el in elements:
        row = [el.id, el.tag, el.action.value, el.selector, el.text or ""]
        if isinstance(el, BoxedElement):
            b = el.bbox
            row += [f"{b.x},{b.y} {b.width}×{b.height}", f"{el.confidence:.2f}"]
        table.add_row(*row)
    return table


@page_app.command("elements")
def elements_cmd(
    url: str = typer.Argument(..., help="Page to extract elements from."),
    timeout: Optional[int] = typer.Option(None, "--timeout", "-t", help="Navigation timeout in ms."),
    json_output: bool = typer.Option(False, "--json", "-j", help="Output as JSON."),
) -> None:
    """Extract interactive elements from a page."""
    target = normalize_url(url)
    result = _run(lambda m: operations.extract(m, target, timeout_ms=timeout))

    if json_output:
        console.print_json(json.dumps(result.to_dict()))
    elif result.is_empty:
        console.print(f"[yellow]No interactive elements found[/yellow] (status={result.status}, url={result.final_url})")
    else:
        console.print(_element_table(f"{result.final_url} (HTTP {result.status})", result.elements))

    if result.is_empty:
        raise typer.Exit(code=2)


@page_app.command("scan")
def scan_cmd(
    url: str = typer.Argument(..., help="Page to scan."),
    timeout: Optional[int] = typer.Option(None, "--timeout", "-t", help="Navigation timeout in ms."),
    screenshot: Optional[Path] = typer.Option(None, "--screenshot", "-s", help="Write the viewport PNG here."),
    json_output: bool = typer.Option(False, "--json", "-j", help="Output as JSON."),
) -> None:
    """Vision-style scan with bounding boxes and confidence scores."""
    target = normalize_url(url)
    result = _run(lambda m: operations.visual_scan(m, target, timeout_ms=timeout))

    if result.blocked:
        console.print(f"[red]✗[/red] Page looks blocked ({result.block_reason}); results withheld.")
        raise typer.Exit(code=3)

    if screenshot and result.screenshot:
        screenshot.parent.mkdir(parents=True, exist_ok=True)
        screenshot.write_bytes(base64.b64decode(result.screenshot))
        console.print(f"Screenshot saved to: {screenshot}")

    if json_output:
        payload = result.to_dict()
        payload.pop("screenshot", None)
        console.print_json(json.dumps(payload))
    elif result.is_empty:
        console.print(f"[yellow]No visible actionable elements[/yellow] (status={result.status}, title={result.title!r})")
    else:
        console.print(_element_table(f"{result.title} (HTTP {result.status})", result.elements))

    if result.is_empty:
        raise typer.Exit(code=2)


@page_app.command("state")
def state_cmd(
    url: str = typer.Argument(..., help="Page to inspect."),
    timeout: Optional[int] = typer.Option(None, "--timeout", "-t", help="Navigation timeout in ms."),
) -> None:
    """Show a page's title, final URL and interactive element count."""
    state = _run(lambda m: operations.page_state(m, normalize_url(url), timeout_ms=timeout))
    console.print(f"[bold]Title:[/bold]    {state.title}")
    console.print(f"[bold]URL:[/bold]      {state.url}")
    console.print(f"[bold]Elements:[/bold] {state.element_count}")
