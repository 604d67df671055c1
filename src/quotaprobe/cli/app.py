"""Main CLI application for quotaprobe."""

from __future__ import annotations

import asyncio
from enum import IntEnum

import typer

from quotaprobe.cli.atyper import ATyper

# Create the main app
app = ATyper(
    name="quotaprobe",
    help="Acquire usage and quota telemetry for AI coding tools",
    add_completion=True,
    no_args_is_help=False,
    invoke_without_command=True,
)


class ExitCode(IntEnum):
    """Exit codes for quotaprobe."""

    SUCCESS = 0
    GENERAL_ERROR = 1
    AUTH_ERROR = 2
    NETWORK_ERROR = 3
    CONFIG_ERROR = 4
    PARTIAL_FAILURE = 5


@app.callback()
def main(
    ctx: typer.Context,
    json: bool = typer.Option(False, "--json", "-j", help="Enable JSON output mode"),
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Enable verbose output"
    ),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Enable quiet mode"),
    version: bool = typer.Option(False, "--version", help="Show version and exit"),
) -> None:
    """Quotaprobe - usage and quota telemetry for Claude, Codex and z.ai."""
    if version:
        from quotaprobe import __version__

        typer.echo(f"quotaprobe {__version__}")
        raise typer.Exit()

    # Quiet takes precedence
    if verbose and quiet:
        verbose = False

    from quotaprobe.log import configure_logging

    configure_logging(verbose=verbose, quiet=quiet)

    ctx.meta["json"] = json
    ctx.meta["verbose"] = verbose
    ctx.meta["quiet"] = quiet

    # If no command provided, run default usage command
    if ctx.invoked_subcommand is None:
        exit_code = asyncio.run(run_default_usage(ctx))
        if exit_code != ExitCode.SUCCESS:
            raise typer.Exit(exit_code)


async def run_default_usage(ctx: typer.Context) -> ExitCode:
    """Fetch every enabled provider with the configured sources."""
    from rich.console import Console

    from quotaprobe.cli.commands.usage import run_usage

    return await run_usage(
        Console(),
        None,
        json_mode=ctx.meta.get("json", False),
        verbose=ctx.meta.get("verbose", False),
        quiet=ctx.meta.get("quiet", False),
    )


def run_app() -> None:
    """Run the CLI app."""
    app()


# Command modules register themselves via @app.command() decorators,
# so they must be imported after app is defined
from quotaprobe.cli.commands import browsers as browsers_cmd  # noqa: E402
from quotaprobe.cli.commands import pty  # noqa: E402,F401
from quotaprobe.cli.commands import usage  # noqa: E402,F401

app.add_typer(browsers_cmd.browsers_app, name="browsers")
