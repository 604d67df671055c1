"""Run an interactive CLI in a pty and dump what it drew."""

from __future__ import annotations

import typer
from rich.console import Console

from quotaprobe.cli.app import ExitCode
from quotaprobe.cli.app import app
from quotaprobe.cli.commands.usage import CATEGORY_EXIT_CODES
from quotaprobe.config.settings import get_config
from quotaprobe.errors.classify import classify_exception
from quotaprobe.errors.exceptions import QuotaprobeFetchError
from quotaprobe.terminal.markers import echoed_command_with_markers
from quotaprobe.terminal.markers import strip_ansi
from quotaprobe.terminal.runner import PTYOptions
from quotaprobe.terminal.runner import get_pty_runner


@app.command("pty")
async def pty_command(
    ctx: typer.Context,
    binary: str = typer.Argument(..., help="Binary to run (name or path)"),
    send: str = typer.Option(
        None,
        "--send",
        help="Text to type once the session starts (a newline is appended)",
    ),
    timeout: float = typer.Option(
        None,
        "--timeout",
        "-t",
        help="Seconds to wait before giving up (default: pty.timeout from config)",
    ),
    until: list[str] = typer.Option(
        None,
        "--until",
        help="Stop early once --send was echoed and this text appeared (repeatable)",
    ),
    raw: bool = typer.Option(
        False,
        "--raw",
        help="Print the capture with escape sequences left in",
    ),
) -> None:
    """Capture a CLI's terminal output, e.g. to debug a usage parser."""
    console = Console()
    pty_config = get_config().pty

    completion = None
    if send and until:
        completion = echoed_command_with_markers(send, until)

    options = PTYOptions(
        rows=pty_config.rows,
        cols=pty_config.cols,
        timeout=timeout if timeout is not None else pty_config.timeout,
        poll_interval=pty_config.poll_interval,
        completion=completion,
    )
    payload = f"{send}\n" if send else ""

    try:
        result = await get_pty_runner().run(binary, payload, options)
    except QuotaprobeFetchError as e:
        from quotaprobe.cli.display import show_error

        error = classify_exception(e)
        show_error(error, console)
        raise typer.Exit(
            CATEGORY_EXIT_CODES.get(error.category, ExitCode.GENERAL_ERROR)
        ) from None

    text = result.text if raw else strip_ansi(result.text)
    # Bypass rich markup; with --raw keep escapes even when piped
    typer.echo(text, color=True if raw else None)

    if ctx.meta.get("verbose", False):
        state = "completion marker" if result.exited_early else (
            "timeout" if result.timed_out else "child exit"
        )
        console.print(
            f"[dim]{result.binary}: {len(result.text)} chars, stopped on {state}[/dim]"
        )
