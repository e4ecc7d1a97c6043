"""CLI for the ``potluck`` package.

Command handlers (``cmd_*``) hold the session logic and return an exit code;
the Typer commands below only resolve settings and delegate. Environment
variables (``POTLUCK_SHEET_CSV_URL``, ``POTLUCK_SCRIPT_URL``, ...) are loaded
from a local ``.env`` with ``python-dotenv`` by the root callback.
"""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Annotated

import typer
from dotenv import load_dotenv
from prompt_toolkit import PromptSession
from rich.console import Console
from rich.markup import escape

from .config import Settings, load_settings
from .errors import ConfigError
from .logging_setup import configure_logging, get_logger
from .models import SignupForm
from .remote import SheetClient
from .sync import SheetSource, SyncController
from .term_ui import prompt_action, prompt_signup
from .view import LiveListView, RichListView, render_groups

console = Console()

_logger = get_logger("potluck.cli")


# ---- Session wiring -------------------------------------------------------------


def _make_client(settings: Settings) -> SheetSource:
    return SheetClient(settings.csv_url, settings.script_url)


def _make_controller(settings: Settings) -> SyncController:
    return SyncController(
        _make_client(settings),
        refresh_interval=settings.refresh_interval,
        resync_delay=settings.resync_delay,
    )


# ---- Command handlers -----------------------------------------------------------


def cmd_show(settings: Settings, *, plain: bool = False) -> int:
    """Fetch the sheet once and print the grouped list."""

    async def _run() -> SyncController:
        async with _make_controller(settings) as controller:
            await controller.refresh()
            return controller

    controller = asyncio.run(_run())
    if controller.error:
        console.print(f"[red]Error:[/red] {escape(controller.error)}")
        return 1
    if plain:
        typer.echo(render_groups(controller.grouped))
    else:
        RichListView(console).render(controller)
    return 0


def cmd_add(settings: Settings, form: SignupForm) -> int:
    """Submit one entry and report the outcome.

    The post-submission re-sync is not awaited; the process exits as soon as
    the write endpoint acknowledged the entry.
    """

    async def _run() -> tuple[bool, str]:
        async with _make_controller(settings) as controller:
            ok = await controller.submit(form)
            return ok, controller.error

    ok, error = asyncio.run(_run())
    if not ok:
        console.print(f"[red]Error:[/red] {escape(error)}")
        return 1
    item, name = escape(form.item.strip()), escape(form.name.strip())
    console.print(f"[green]Ajouté :[/green] {item} ({name})")
    return 0


def cmd_watch(settings: Settings) -> int:
    """Show the list and keep it refreshed until interrupted."""

    async def _run() -> None:
        with LiveListView(console) as view:
            async with _make_controller(settings) as controller:
                controller.add_listener(view.render)
                await controller.run()

    try:
        asyncio.run(_run())
    except KeyboardInterrupt:
        _logger.debug("watch interrupted")
    return 0


async def _interactive_session(
    controller: SyncController, session: PromptSession, view: RichListView
) -> None:
    stop = asyncio.Event()
    runner = asyncio.create_task(controller.run(stop))
    try:
        while True:
            view.render(controller)
            action = await prompt_action(session)
            if action == "quit":
                break
            if action == "refresh":
                await controller.refresh(show_spinner=True)
                continue
            edited = await prompt_signup(
                controller.form,
                known_items=[g.item for g in controller.grouped],
                session=session,
            )
            if edited is None:
                break
            if not await controller.submit(edited):
                console.print(f"[red]{escape(controller.error)}[/red]")
    finally:
        stop.set()
        await runner


def cmd_interactive(settings: Settings, *, session: PromptSession | None = None) -> int:
    """Prompt for entries while the list refreshes in the background."""

    async def _run() -> None:
        async with _make_controller(settings) as controller:
            await _interactive_session(controller, session or PromptSession(), RichListView(console))

    try:
        asyncio.run(_run())
    except KeyboardInterrupt:
        _logger.debug("interactive session interrupted")
    return 0


# ---- Typer-based console interface ----------------------------------------------


app = typer.Typer(
    no_args_is_help=True,
    add_completion=False,
    help=(
        "Shared 'who brings what' list backed by a published spreadsheet. "
        "Loads POTLUCK_* settings from a local .env before running."
    ),
)


def _settings(ctx: typer.Context) -> Settings:
    opts = ctx.obj or {}
    try:
        return load_settings(csv_url=opts.get("csv_url"), script_url=opts.get("script_url"))
    except ConfigError as e:
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(1) from e


@app.command("show")
def show_cmd(
    ctx: typer.Context,
    plain: Annotated[bool, typer.Option(help="Print plain text instead of panels.")] = False,
) -> None:
    """Fetch the list once and print it grouped by item."""

    raise typer.Exit(cmd_show(_settings(ctx), plain=plain))


@app.command("add")
def add_cmd(
    ctx: typer.Context,
    name: Annotated[str, typer.Option("--name", help="Who brings it.")] = "",
    item: Annotated[str, typer.Option("--item", help="What they bring.")] = "",
    qty: Annotated[str, typer.Option("--qty", help="How much (free text).")] = "",
    note: Annotated[str, typer.Option("--note", help="Optional note.")] = "",
) -> None:
    """Add one entry to the list."""

    form = SignupForm(name=name, item=item, qty=qty, note=note)
    raise typer.Exit(cmd_add(_settings(ctx), form))


@app.command("watch")
def watch_cmd(ctx: typer.Context) -> None:
    """Display the list and refresh it periodically (Ctrl-C to stop)."""

    raise typer.Exit(cmd_watch(_settings(ctx)))


@app.command("interactive")
def interactive_cmd(ctx: typer.Context) -> None:
    """Add entries from prompts while the list keeps refreshing."""

    raise typer.Exit(cmd_interactive(_settings(ctx)))


@app.callback()
def _root(
    ctx: typer.Context,
    csv_url: Annotated[
        str | None, typer.Option(help="Override POTLUCK_SHEET_CSV_URL (published CSV export).")
    ] = None,
    script_url: Annotated[
        str | None, typer.Option(help="Override POTLUCK_SCRIPT_URL (write endpoint).")
    ] = None,
    log_level: Annotated[
        str | None, typer.Option(help="Log level (falls back to POTLUCK_LOG_LEVEL, then INFO).")
    ] = None,
) -> None:
    """Root command.

    Loads ``.env`` from the current working directory (without overriding any
    already-set environment variables) and configures logging once.
    """

    load_dotenv(dotenv_path=Path.cwd() / ".env", override=False)
    configure_logging(log_level)
    ctx.obj = {"csv_url": csv_url, "script_url": script_url}


def main() -> None:
    app()


if __name__ == "__main__":  # pragma: no cover - exercised via console script
    main()
