"""Developer CLI: replay stored webhook requests and inspect intent routing."""

from __future__ import annotations

import asyncio
import importlib
import json
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from actionturn.app import ConversationApp
from actionturn.config import get_settings
from actionturn.errors import ConfigurationError
from actionturn.logging_utils import configure_logging

app = typer.Typer(
    name="actionturn",
    help="Replay webhook turns and inspect intent routing.",
    add_completion=False,
    rich_markup_mode="rich",
)
console = Console()


def load_app(target: str) -> ConversationApp:
    """Import ``module:attribute`` and return the conversation app it names.

    The attribute may also be a zero-argument factory returning the app.
    """

    module_name, _, attribute = target.partition(":")
    if not module_name or not attribute:
        raise ConfigurationError(f"expected MODULE:ATTRIBUTE, got {target!r}")
    module = importlib.import_module(module_name)
    value = getattr(module, attribute, None)
    if value is None:
        raise ConfigurationError(f"{module_name} has no attribute {attribute!r}")
    if not isinstance(value, ConversationApp) and callable(value):
        value = value()
    if not isinstance(value, ConversationApp):
        raise ConfigurationError(f"{target} is not a conversation app")
    return value


def _load_or_exit(target: str) -> ConversationApp:
    try:
        return load_app(target)
    except (ConfigurationError, ImportError) as exc:
        console.print(f"[bold red]Error:[/bold red] {exc}")
        raise typer.Exit(2) from exc


def _parse_headers(values: list[str]) -> dict[str, str]:
    headers: dict[str, str] = {}
    for value in values:
        name, sep, content = value.partition("=")
        if not sep or not name.strip():
            raise typer.BadParameter(f"expected NAME=VALUE, got {value!r}", param_hint="--header")
        headers[name.strip()] = content.strip()
    return headers


def _describe(handler: object) -> str:
    module = getattr(handler, "__module__", None)
    name = getattr(handler, "__qualname__", None) or repr(handler)
    return f"{module}.{name}" if module else name


@app.callback()
def main(
    log_level: Optional[str] = typer.Option(None, "--log-level", help="Log level for the stderr sink"),
) -> None:
    configure_logging(level=log_level or get_settings().log_level)


@app.command()
def replay(
    request: Path = typer.Argument(..., exists=True, dir_okay=False, readable=True, help="Webhook request body (JSON)"),
    target: str = typer.Option(..., "--app", help="Conversation app as MODULE:ATTRIBUTE"),
    header: Optional[list[str]] = typer.Option(None, "--header", "-H", help="Request header as NAME=VALUE"),
) -> None:
    """Run one stored webhook request through an app and print the response."""

    conversation_app = _load_or_exit(target)
    headers = _parse_headers(header or [])
    try:
        body = json.loads(request.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        console.print(f"[bold red]Error:[/bold red] {request} is not valid JSON: {exc}")
        raise typer.Exit(2) from exc

    response = asyncio.run(conversation_app.handle(body, headers))
    style = "green" if response.status < 400 else "red"
    console.print(f"[bold]Status:[/bold] [{style}]{response.status}[/{style}]")
    console.print_json(data=response.body)
    if response.status >= 400:
        raise typer.Exit(1)


@app.command()
def routes(
    target: str = typer.Option(..., "--app", help="Conversation app as MODULE:ATTRIBUTE"),
) -> None:
    """Print the intent handlers, redirects and fallback of an app."""

    conversation_app = _load_or_exit(target)
    table = Table(title="Intents")
    table.add_column("Intent", style="cyan")
    table.add_column("Target")
    for name, handler in conversation_app.routes.handlers().items():
        table.add_row(name, _describe(handler))
    for name, redirect in conversation_app.routes.redirects().items():
        table.add_row(name, f"-> {redirect}")
    console.print(table)

    fallback = conversation_app.routes.fallback
    console.print(f"[bold]Fallback:[/bold] {_describe(fallback) if fallback else '[dim](none)[/dim]'}")
    for hook_name, plugins in conversation_app.hook_report().items():
        console.print(f"[bold]Hook {hook_name}:[/bold] {', '.join(plugins)}")
