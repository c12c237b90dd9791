"""
Web Macro - CLI Entry Point.

Configuration Priority:
    1. CLI arguments (--speed, --visible, etc.)
    2. Environment variables (WEB_MACRO__REPLAY__DEFAULT_SPEED, etc.)
    3. Config file (web_macro.yaml)

Usage:
    web-macro record https://example.com/login --name login
    web-macro replay login --speed 2
    web-macro list
"""

import asyncio
import json
from pathlib import Path
from typing import Any, Dict, Optional

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from web_macro.config import load_config
from web_macro.config.settings import Settings
from web_macro.exceptions import WebMacroError
from web_macro.messaging.bus import MessageBus
from web_macro.messaging.messages import Message, MessageType
from web_macro.recorder.models import Macro
from web_macro.runtime import MacroRuntime
from web_macro.session.controller import MacroController
from web_macro.storage import create_stores
from web_macro.utils.logging import setup_logging

app = typer.Typer(
    name="web-macro",
    help="Record and replay macros of user interactions on web pages",
    add_completion=False,
)

console = Console()


def _settings(config: Optional[Path], verbose: bool, **overrides: Any) -> Settings:
    try:
        settings = load_config(config_path=config, **overrides)
    except WebMacroError as e:
        console.print(f"[red]✗ {e}[/red]")
        raise typer.Exit(1)
    level = "DEBUG" if verbose or settings.debug else settings.logging.level
    setup_logging(level, settings.logging.file, settings.logging.json_format)
    return settings


async def _query(settings: Settings, message: Message) -> dict:
    """Run one controller request without a browser."""
    macro_store, session_store = create_stores(settings.storage)
    controller = MacroController(MessageBus(), macro_store, session_store, settings)
    await controller.start()
    try:
        return await controller.handle(message)
    finally:
        await controller.stop()


def _fail(response: Dict[str, Any]) -> None:
    console.print(f"[red]✗ {response.get('error', 'Request failed')}[/red]")
    raise typer.Exit(1)


@app.command()
def record(
    url: str = typer.Argument(..., help="Page to start recording on"),
    name: Optional[str] = typer.Option(None, "--name", "-n", help="Save the recording under this name"),
    browser: Optional[str] = typer.Option(None, "--browser", "-b", help="Browser: chromium, firefox, webkit"),
    config: Optional[Path] = typer.Option(None, "--config", "-c", help="Config file"),
    verbose: bool = typer.Option(False, "--verbose", help="Enable verbose output"),
):
    """
    Open a browser window and record what you do in it.

    Press Enter in the terminal to stop. Without --name you are asked for
    a name; an empty answer discards the recording.
    """
    overrides: Dict[str, Any] = {"browser": {"headless": False}}
    if browser:
        overrides["browser"]["browser_type"] = browser
    settings = _settings(config, verbose, **overrides)

    console.print(Panel.fit(
        f"[bold red]● Web Macro Recorder[/bold red]\n"
        f"[dim]URL:[/dim] {url}\n"
        f"[dim]Press Enter here to stop recording[/dim]",
        border_style="red",
    ))

    try:
        asyncio.run(_record_async(settings, url, name))
    except WebMacroError as e:
        console.print(f"[red]✗ {e}[/red]")
        raise typer.Exit(1)
    except KeyboardInterrupt:
        console.print("[dim]Interrupted[/dim]")


async def _record_async(settings: Settings, url: str, name: Optional[str]) -> None:
    async with MacroRuntime(settings) as runtime:
        await runtime.open(url)
        await runtime.start_recording()

        await asyncio.to_thread(console.input, "")
        result = await runtime.stop_recording()
        console.print(f"[green]✓ Recorded {result['count']} actions[/green]")

        if not result["count"]:
            return
        if not name:
            name = (await asyncio.to_thread(console.input, "Macro name (empty to discard): ")).strip()
        if not name:
            console.print("[dim]Recording discarded[/dim]")
            return
        await runtime.save(name)
        console.print(f"[green]✓ Saved as[/green] [bold]{name}[/bold]")


@app.command()
def replay(
    name: str = typer.Argument(..., help="Macro to replay"),
    url: Optional[str] = typer.Option(None, "--url", "-u", help="Start page (default: where recording began)"),
    speed: Optional[float] = typer.Option(None, "--speed", "-s", help="Speed multiplier (2 = twice as fast)"),
    visible: bool = typer.Option(False, "--visible", "-v", help="Run with visible browser"),
    config: Optional[Path] = typer.Option(None, "--config", "-c", help="Config file"),
    verbose: bool = typer.Option(False, "--verbose", help="Enable verbose output"),
):
    """Replay a saved macro."""
    overrides: Dict[str, Any] = {}
    if visible:
        overrides["browser"] = {"headless": False}
    settings = _settings(config, verbose, **overrides)

    try:
        report = asyncio.run(_replay_async(settings, name, url, speed))
    except WebMacroError as e:
        console.print(f"[red]✗ {e}[/red]")
        raise typer.Exit(1)
    except KeyboardInterrupt:
        console.print("[dim]Interrupted[/dim]")
        raise typer.Exit(130)

    colour = "yellow" if report.stopped or report.skipped else "green"
    console.print(Panel.fit(
        f"[bold {colour}]{'Replay stopped' if report.stopped else 'Macro complete'}[/bold {colour}]\n"
        f"[dim]Played:[/dim] {report.played}\n"
        f"[dim]Skipped:[/dim] {report.skipped}\n"
        f"[dim]Total:[/dim] {report.total}",
        border_style=colour,
    ))
    if report.stopped:
        raise typer.Exit(1)


async def _replay_async(settings: Settings, name: str, url: Optional[str], speed: Optional[float]):
    async with MacroRuntime(settings) as runtime:
        response = await runtime.send(MessageType.GET_MACRO, name=name)
        macro = Macro.from_dict(response["macro"])
        start_url = url or next((a.url for a in macro.actions if a.url), None)
        if not start_url:
            raise WebMacroError(f"Macro '{name}' has no start URL; pass --url")

        await runtime.open(start_url)
        console.print(f"[dim]▶ Replaying {name} ({macro.count} actions) on {start_url}[/dim]")
        return await runtime.replay(name, speed=speed)


@app.command("list")
def list_macros(
    config: Optional[Path] = typer.Option(None, "--config", "-c", help="Config file"),
):
    """List saved macros."""
    settings = _settings(config, False)
    response = asyncio.run(_query(settings, Message(MessageType.GET_MACROS)))
    if not response.get("ok"):
        _fail(response)

    macros = response["macros"]
    if not macros:
        console.print("[dim]No macros saved[/dim]")
        return

    table = Table(show_header=True, header_style="bold cyan", box=None)
    table.add_column("Name")
    table.add_column("Actions", justify="right")
    table.add_column("Saved")
    for name, data in sorted(macros.items()):
        table.add_row(name, str(data["count"]), _format_time(data.get("saved_at")))
    console.print(table)


@app.command()
def show(
    name: str = typer.Argument(..., help="Macro to show"),
    config: Optional[Path] = typer.Option(None, "--config", "-c", help="Config file"),
):
    """Show the actions of a saved macro."""
    settings = _settings(config, False)
    response = asyncio.run(_query(settings, Message(MessageType.GET_MACRO, {"name": name})))
    if not response.get("ok"):
        _fail(response)

    macro = Macro.from_dict(response["macro"])
    table = Table(show_header=True, header_style="bold cyan", box=None)
    table.add_column("#", justify="right", style="dim")
    table.add_column("Type")
    table.add_column("Target")
    table.add_column("Value")
    for i, action in enumerate(macro.actions, 1):
        target = action.selector or action.url or ""
        value = action.value if action.value is not None else (action.text or "")
        table.add_row(str(i), action.type.value, target, value)
    console.print(Panel.fit(f"[bold]{macro.name}[/bold] - {macro.count} actions", border_style="blue"))
    console.print(table)


@app.command()
def delete(
    name: str = typer.Argument(..., help="Macro to delete"),
    config: Optional[Path] = typer.Option(None, "--config", "-c", help="Config file"),
):
    """Delete a saved macro."""
    settings = _settings(config, False)
    response = asyncio.run(_query(settings, Message(MessageType.DELETE_MACRO, {"name": name})))
    if not response.get("ok"):
        _fail(response)
    console.print(f"[green]✓ Deleted {name}[/green]")


@app.command()
def export(
    name: str = typer.Argument(..., help="Macro to export"),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Write JSON here instead of stdout"),
    config: Optional[Path] = typer.Option(None, "--config", "-c", help="Config file"),
):
    """Export a saved macro as JSON."""
    settings = _settings(config, False)
    response = asyncio.run(_query(settings, Message(MessageType.GET_MACRO, {"name": name})))
    if not response.get("ok"):
        _fail(response)

    text = json.dumps(response["macro"], indent=2)
    if output:
        output.write_text(text, encoding="utf-8")
        console.print(f"[green]✓ Exported {name} to {output}[/green]")
    else:
        typer.echo(text)


@app.command()
def version():
    """Show version information."""
    from web_macro import __version__
    console.print(f"[bold]Web Macro[/bold] v{__version__}")


def _format_time(epoch_ms: Optional[int]) -> str:
    if not epoch_ms:
        return "-"
    from datetime import datetime
    return datetime.fromtimestamp(epoch_ms / 1000).strftime("%Y-%m-%d %H:%M")


if __name__ == "__main__":
    app()
