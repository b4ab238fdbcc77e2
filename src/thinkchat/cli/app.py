"""Main CLI application using Typer."""
import asyncio
import logging
from datetime import datetime
from pathlib import Path

import typer
from dotenv import load_dotenv
from rich.console import Console
from rich.logging import RichHandler
from rich.markdown import Markdown
from rich.table import Table

from ..chat import ConversationController
from ..sessions import ChatSession, Role, SessionStore, StoreSnapshot
from ..ui.formatting import summarize_inline_images
from .providers import get_gateway, get_settings, get_store

# Load environment variables
load_dotenv()

app = typer.Typer(
    name="thinkchat",
    help="Terminal chat client for hosted text and image models",
    no_args_is_help=True,
    add_completion=True,
)

sessions_app = typer.Typer(help="Inspect and manage stored chat sessions", no_args_is_help=True)
app.add_typer(sessions_app, name="sessions")

# Replies go to stdout, diagnostics to stderr
console = Console()
err_console = Console(stderr=True)

NOISY_LOGGERS = ("httpx", "httpcore", "google_genai", "openai", "aiosqlite")


def setup_logging(level: str = "WARNING", to_stderr: bool = True) -> None:
    """Configure logging once for the process.

    Args:
        level: Level name for thinkchat loggers
        to_stderr: Attach a RichHandler on stderr. The TUI passes False and
            mirrors records into its log panel instead.
    """
    numeric = getattr(logging, level.upper(), logging.WARNING)
    root = logging.getLogger()
    root.setLevel(numeric)
    if to_stderr and not any(isinstance(h, RichHandler) for h in root.handlers):
        root.addHandler(RichHandler(console=err_console, show_path=False, rich_tracebacks=True))
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(numeric, logging.WARNING))


def _format_time(ms: int) -> str:
    return datetime.fromtimestamp(ms / 1000).strftime("%Y-%m-%d %H:%M")


def _resolve_session(store: SessionStore, ref: str) -> ChatSession:
    """Find a session by id or unique id prefix.

    Raises:
        typer.Exit: If no session or more than one session matches
    """
    exact = store.get(ref)
    if exact is not None:
        return exact
    matches = [s for s in store.sessions if s.id.startswith(ref)]
    if len(matches) == 1:
        return matches[0]
    if not matches:
        err_console.print(f"[red]Error: no session matches '{ref}'[/red]")
    else:
        err_console.print(f"[red]Error: '{ref}' matches {len(matches)} sessions, use a longer prefix[/red]")
    raise typer.Exit(code=1)


@app.command()
def chat(
    storage: str | None = typer.Option(
        None,
        "--storage",
        "-s",
        help="Storage backend: json, sqlite or memory (default: THINKCHAT_STORAGE or json)"
    ),
    data_dir: Path | None = typer.Option(
        None,
        "--data-dir",
        "-d",
        help="Directory for stored history (default: THINKCHAT_DATA_DIR or ~/.thinkchat)"
    ),
    log_level: str | None = typer.Option(
        None,
        "--log-level",
        "-l",
        help="Show the log panel at this level (debug, info, warning, error)"
    ),
):
    """Launch the interactive chat TUI.

    Keyboard shortcuts:
      Ctrl+J: Send message
      Ctrl+N: New chat
      Ctrl+X: Delete current chat
      Escape: Cancel the running reply
      Ctrl+B: Toggle sidebar
      Ctrl+D: Toggle log panel
      Ctrl+Q: Quit
    """
    from ..ui import run_tui

    settings = get_settings()
    setup_logging(log_level or settings.log_level, to_stderr=False)

    async def _chat():
        store = get_store(settings, storage, data_dir, console=err_console)
        gateway = get_gateway(settings, console=err_console)
        try:
            await store.load()
            controller = ConversationController(store, gateway)
            await run_tui(store, controller, model_name=gateway.model, show_debug=log_level is not None)
        finally:
            await gateway.close()
            await store.close()

    asyncio.run(_chat())


@app.command()
def ask(
    text: str = typer.Argument(..., help="Message to send; start with /image to generate an image"),
    new: bool = typer.Option(
        False,
        "--new",
        "-n",
        help="Start a new session instead of continuing the most recent one"
    ),
    storage: str | None = typer.Option(None, "--storage", "-s", help="Storage backend override"),
    data_dir: Path | None = typer.Option(None, "--data-dir", "-d", help="Data directory override"),
):
    """Send one message and stream the reply to stdout."""
    settings = get_settings()
    setup_logging(settings.log_level)

    if not text.strip():
        err_console.print("[red]Error: nothing to send[/red]")
        raise typer.Exit(code=1)

    async def _ask() -> bool:
        store = get_store(settings, storage, data_dir, console=err_console)
        gateway = get_gateway(settings, console=err_console)
        try:
            await store.load()
            if new:
                store.create_session()
            session_id = store.active_id
            controller = ConversationController(store, gateway)

            printed = ""

            def _stream(snapshot: StoreSnapshot) -> None:
                # Print only the new suffix of the reply as it grows
                nonlocal printed
                session = snapshot.active_session
                last = session.last_message if session else None
                if session is None or session.id != session_id or last is None:
                    return
                if last.role != Role.MODEL or not last.content.startswith(printed):
                    return
                delta = last.content[len(printed):]
                if delta:
                    console.out(delta, end="", highlight=False)
                    printed = last.content

            unsubscribe = store.subscribe(_stream)
            try:
                result = await controller.submit(text, session_id=session_id)
            finally:
                unsubscribe()

            if result is None:
                return False
            if result.message.content != printed:
                if printed:
                    console.out("")
                console.out(result.message.content, end="", highlight=False)
            console.out("")

            if not result.succeeded:
                err_console.print(f"[red]{controller.error}[/red]")
            return result.succeeded
        finally:
            await gateway.close()
            await store.close()

    if not asyncio.run(_ask()):
        raise typer.Exit(code=1)


@sessions_app.command("list")
def list_sessions(
    storage: str | None = typer.Option(None, "--storage", "-s", help="Storage backend override"),
    data_dir: Path | None = typer.Option(None, "--data-dir", "-d", help="Data directory override"),
):
    """List stored sessions, most recent first."""
    settings = get_settings()
    setup_logging(settings.log_level)

    async def _list():
        store = get_store(settings, storage, data_dir, console=err_console)
        try:
            await store.load(persist_fresh=False)
            table = Table(title="Chat Sessions")
            table.add_column("ID", style="cyan", no_wrap=True)
            table.add_column("Title", style="bold")
            table.add_column("Messages", justify="right")
            table.add_column("Updated", style="dim")
            for session in store.sessions:
                marker = " *" if session.id == store.active_id else ""
                table.add_row(
                    session.id[:8] + marker,
                    session.title,
                    str(len(session.messages)),
                    _format_time(session.updated_at),
                )
            console.print(table)
        finally:
            await store.close()

    asyncio.run(_list())


@sessions_app.command("show")
def show_session(
    session_ref: str = typer.Argument(..., help="Session id or unique id prefix"),
    storage: str | None = typer.Option(None, "--storage", "-s", help="Storage backend override"),
    data_dir: Path | None = typer.Option(None, "--data-dir", "-d", help="Data directory override"),
):
    """Print every message of a session."""
    settings = get_settings()
    setup_logging(settings.log_level)

    async def _show():
        store = get_store(settings, storage, data_dir, console=err_console)
        try:
            await store.load(persist_fresh=False)
            session = _resolve_session(store, session_ref)
            console.rule(f"[bold]{session.title}[/bold]")
            if not session.messages:
                console.print("[dim]No messages yet.[/dim]")
            for message in session.messages:
                if message.role == Role.USER:
                    console.print(f"[bold blue]You[/bold blue] [dim]{_format_time(message.timestamp)}[/dim]")
                    console.print(message.content, markup=False, highlight=False)
                else:
                    console.print(f"[bold cyan]THINK[/bold cyan] [dim]{_format_time(message.timestamp)}[/dim]")
                    console.print(Markdown(summarize_inline_images(message.content)))
                console.print()
        finally:
            await store.close()

    asyncio.run(_show())


@sessions_app.command("delete")
def delete_session(
    session_ref: str = typer.Argument(..., help="Session id or unique id prefix"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
    storage: str | None = typer.Option(None, "--storage", "-s", help="Storage backend override"),
    data_dir: Path | None = typer.Option(None, "--data-dir", "-d", help="Data directory override"),
):
    """Delete one session."""
    settings = get_settings()
    setup_logging(settings.log_level)

    async def _delete():
        store = get_store(settings, storage, data_dir, console=err_console)
        try:
            await store.load(persist_fresh=False)
            session = _resolve_session(store, session_ref)
            if not yes and not typer.confirm(f"Delete session '{session.title}'?"):
                console.print("[dim]Aborted.[/dim]")
                return
            store.delete_session(session.id)
            console.print(f"[green]Deleted session {session.id[:8]}[/green]")
        finally:
            await store.close()

    asyncio.run(_delete())


@sessions_app.command("clear")
def clear_sessions(
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
    storage: str | None = typer.Option(None, "--storage", "-s", help="Storage backend override"),
    data_dir: Path | None = typer.Option(None, "--data-dir", "-d", help="Data directory override"),
):
    """Delete every stored session."""
    settings = get_settings()
    setup_logging(settings.log_level)

    async def _clear():
        store = get_store(settings, storage, data_dir, console=err_console)
        try:
            await store.load(persist_fresh=False)
            count = len(store)
            if not yes:
                console.print(f"[yellow]WARNING: this deletes {count} session(s).[/yellow]")
                if not typer.confirm("Are you sure you want to continue?"):
                    console.print("[dim]Aborted.[/dim]")
                    return
            store.clear_all()
            console.print(f"[green]Cleared {count} session(s).[/green]")
        finally:
            await store.close()

    asyncio.run(_clear())


if __name__ == "__main__":
    app()
