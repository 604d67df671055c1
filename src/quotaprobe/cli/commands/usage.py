"""Usage display commands for quotaprobe."""

from __future__ import annotations

import time

import typer
from rich.console import Console

from quotaprobe.cli.app import ExitCode
from quotaprobe.cli.app import app
from quotaprobe.config.settings import get_config
from quotaprobe.core.http import cleanup
from quotaprobe.core.orchestrator import fetch_all_providers
from quotaprobe.core.orchestrator import fetch_enabled_providers
from quotaprobe.core.pipeline import build_fetch_context
from quotaprobe.errors.classify import classify_exception
from quotaprobe.errors.types import ErrorCategory
from quotaprobe.providers import create_provider
from quotaprobe.providers import get_all_providers
from quotaprobe.providers import list_provider_ids
from quotaprobe.strategies.base import FetchContext
from quotaprobe.strategies.base import FetchOutcome
from quotaprobe.strategies.base import RuntimeKind
from quotaprobe.strategies.base import SourceMode

CATEGORY_EXIT_CODES = {
    ErrorCategory.AUTHENTICATION: ExitCode.AUTH_ERROR,
    ErrorCategory.AUTHORIZATION: ExitCode.AUTH_ERROR,
    ErrorCategory.NETWORK: ExitCode.NETWORK_ERROR,
    ErrorCategory.TIMEOUT: ExitCode.NETWORK_ERROR,
    ErrorCategory.RATE_LIMITED: ExitCode.NETWORK_ERROR,
    ErrorCategory.CONFIGURATION: ExitCode.CONFIG_ERROR,
}


@app.command("usage")
async def usage_command(
    ctx: typer.Context,
    provider: str = typer.Argument(
        None,
        help="Provider to show (default: all enabled)",
    ),
    source: SourceMode = typer.Option(
        None,
        "--source",
        "-s",
        help="Data source to use instead of the configured one",
        case_sensitive=False,
    ),
    runtime: RuntimeKind = typer.Option(
        RuntimeKind.CLI,
        "--runtime",
        help="Resolve strategies as a one-shot CLI run or as a long-lived app",
        case_sensitive=False,
    ),
    json_output: bool = typer.Option(
        False,
        "--json",
        "-j",
        help="Output in JSON format",
    ),
) -> None:
    """Show usage for all enabled providers or a specific provider."""
    console = Console()

    exit_code = await run_usage(
        console,
        provider,
        source_mode=source,
        runtime=runtime,
        json_mode=json_output or ctx.meta.get("json", False),
        verbose=ctx.meta.get("verbose", False),
        quiet=ctx.meta.get("quiet", False),
    )
    if exit_code != ExitCode.SUCCESS:
        raise typer.Exit(exit_code)


async def run_usage(
    console: Console,
    provider_id: str | None,
    *,
    source_mode: SourceMode | None = None,
    runtime: RuntimeKind = RuntimeKind.CLI,
    json_mode: bool = False,
    verbose: bool = False,
    quiet: bool = False,
) -> ExitCode:
    """Fetch, render, and map the outcomes to an exit code."""
    config = get_config()

    def make_context(pid: str) -> FetchContext:
        return build_fetch_context(
            pid,
            runtime=runtime,
            source_mode=source_mode,
            verbose=verbose,
            config=config,
        )

    start_time = time.monotonic()
    try:
        if provider_id:
            available = list_provider_ids()
            if provider_id not in available:
                if not quiet:
                    console.print(
                        f"[red]Unknown provider:[/red] {provider_id}. "
                        f"Available: {', '.join(available)}"
                    )
                return ExitCode.CONFIG_ERROR
            outcomes = await fetch_all_providers([create_provider(provider_id)], make_context)
        else:
            providers = [cls() for cls in get_all_providers().values()]
            outcomes = await fetch_enabled_providers(providers, make_context)
    except KeyboardInterrupt:
        if not quiet:
            console.print("\n[yellow]Interrupted[/yellow]")
        return ExitCode.GENERAL_ERROR
    finally:
        await cleanup()
    duration_ms = (time.monotonic() - start_time) * 1000

    if not outcomes:
        if not quiet:
            console.print("[yellow]No providers enabled[/yellow]")
        return ExitCode.CONFIG_ERROR

    display_outcomes(
        console,
        outcomes,
        json_mode=json_mode,
        verbose=verbose,
        quiet=quiet,
        total_duration_ms=duration_ms,
    )
    return exit_code_for(outcomes)


def exit_code_for(outcomes: dict[str, FetchOutcome]) -> ExitCode:
    """SUCCESS, PARTIAL_FAILURE, or the category code of the first failure."""
    failures = [o for o in outcomes.values() if not o.success]
    if not failures:
        return ExitCode.SUCCESS
    if len(failures) < len(outcomes):
        return ExitCode.PARTIAL_FAILURE

    first = failures[0]
    if first.error is None:
        return ExitCode.GENERAL_ERROR
    category = classify_exception(first.error, first.provider_id).category
    return CATEGORY_EXIT_CODES.get(category, ExitCode.GENERAL_ERROR)


def display_outcomes(
    console: Console,
    outcomes: dict[str, FetchOutcome],
    json_mode: bool = False,
    verbose: bool = False,
    quiet: bool = False,
    total_duration_ms: float = 0,
) -> None:
    """Render outcomes as JSON, quiet lines, or panels."""
    if json_mode:
        from quotaprobe.display.json import outcomes_to_dict
        from quotaprobe.display.json import output_json_pretty

        output_json_pretty(outcomes_to_dict(outcomes))
        return

    from quotaprobe.cli.display import ProviderPanel
    from quotaprobe.cli.display import quiet_lines
    from quotaprobe.cli.display import show_error
    from quotaprobe.cli.display import show_partial_failures

    failures: dict[str, BaseException] = {}
    for provider_id, outcome in outcomes.items():
        metadata = create_provider(provider_id).metadata
        if outcome.success and outcome.result is not None:
            if quiet:
                for line in quiet_lines(outcome, metadata):
                    console.print(line)
            else:
                console.print(ProviderPanel(outcome, metadata, verbose=verbose))
        elif outcome.error is not None:
            failures[provider_id] = outcome.error

    if quiet:
        return

    if len(outcomes) == 1 and failures:
        provider_id, error = next(iter(failures.items()))
        show_error(error, console, provider_id)
    else:
        show_partial_failures(failures, console, verbose=verbose)

    if verbose and total_duration_ms > 0:
        console.print(f"\n[dim]Total fetch time: {total_duration_ms:.0f}ms[/dim]")
