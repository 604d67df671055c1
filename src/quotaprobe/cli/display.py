"""Rich display components for quotaprobe CLI."""

from __future__ import annotations

from rich.console import Console
from rich.console import ConsoleOptions
from rich.console import RenderResult
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from quotaprobe.display.rich import format_bar_and_percentage
from quotaprobe.display.rich import format_credits
from quotaprobe.display.rich import format_reset
from quotaprobe.display.rich import format_window_line
from quotaprobe.errors.classify import classify_exception
from quotaprobe.errors.types import ErrorCategory
from quotaprobe.errors.types import ErrorSeverity
from quotaprobe.errors.types import ProbeError
from quotaprobe.providers.base import ProviderMetadata
from quotaprobe.strategies.base import FetchOutcome
from quotaprobe.strategies.base import FetchResult


def _labelled_windows(result: FetchResult, metadata: ProviderMetadata):
    usage = result.usage
    windows = (usage.primary, usage.secondary, usage.tertiary)
    return [(label, w) for label, w in zip(metadata.window_labels, windows) if w is not None]


class ProviderPanel:
    """Rich panel showing one provider's usage windows."""

    def __init__(
        self,
        outcome: FetchOutcome,
        metadata: ProviderMetadata,
        verbose: bool = False,
    ):
        self.outcome = outcome
        self.metadata = metadata
        self.verbose = verbose

    def __rich_console__(self, console: Console, options: ConsoleOptions) -> RenderResult:
        result = self.outcome.result
        assert result is not None

        # 3 columns: window name, bar + percentage, reset time
        grid = Table.grid(padding=(0, 2))
        grid.add_column(min_width=12, justify="left")
        grid.add_column(min_width=22, justify="left")
        grid.add_column(justify="right")

        for label, window in _labelled_windows(result, self.metadata):
            grid.add_row(
                Text(label, style="bold"),
                format_bar_and_percentage(window),
                format_reset(window),
            )

        if result.credits is not None:
            grid.add_row(format_credits(result.credits), Text(), Text())

        identity = result.usage.identity
        if identity is not None:
            parts = [p for p in (identity.email, identity.organization, identity.login_method) if p]
            if parts:
                grid.add_row(Text(" • ".join(parts), style="dim"), Text(), Text())

        subtitle = None
        if self.verbose:
            duration = sum(a.duration_ms for a in self.outcome.attempts)
            subtitle = f"via {self.outcome.source} in {duration}ms"
            if result.dashboard and result.dashboard.source_label:
                subtitle = f"{subtitle} ({result.dashboard.source_label})"

        yield Panel(
            grid,
            title=self.metadata.name,
            subtitle=subtitle,
            border_style="dim",
            padding=(0, 1),
        )


def quiet_lines(outcome: FetchOutcome, metadata: ProviderMetadata) -> list[Text]:
    """One line per window, prefixed with the provider id."""
    if outcome.result is None:
        return []
    lines = []
    for label, window in _labelled_windows(outcome.result, metadata):
        line = Text(f"{metadata.id} ")
        line.append_text(format_window_line(label, window))
        lines.append(line)
    return lines


class ErrorDisplay:
    """Rich renderable for displaying structured errors."""

    def __init__(self, error: ProbeError):
        self.error = error

    def __rich_console__(self, console: Console, options: ConsoleOptions) -> RenderResult:
        # Color by severity
        colors = {
            ErrorSeverity.FATAL: "red",
            ErrorSeverity.RECOVERABLE: "yellow",
            ErrorSeverity.TRANSIENT: "yellow",
            ErrorSeverity.WARNING: "dim",
        }
        color = colors.get(self.error.severity, "red")

        content = Text()
        content.append(self.error.message, style=color)

        if self.error.remediation:
            content.append("\n\n")
            content.append_text(Text.from_markup(self.error.remediation, style="dim"))

        title = "Error"
        if self.error.provider:
            title = f"{self.error.provider.title()} Error"
        if self.error.category != ErrorCategory.UNKNOWN:
            title = f"{title} {escape(f'[{self.error.category}]')}"

        yield Panel(
            content,
            title=title,
            border_style=color,
            title_align="left",
        )


def show_error(
    error: ProbeError | BaseException,
    console: Console | None = None,
    provider_id: str | None = None,
) -> None:
    """Display a formatted error message."""
    if console is None:
        console = Console()

    if not isinstance(error, ProbeError):
        error = classify_exception(error, provider_id)

    console.print(ErrorDisplay(error))


def show_partial_failures(
    failures: dict[str, BaseException],
    console: Console | None = None,
    verbose: bool = False,
) -> None:
    """Show summary of provider failures below the successful panels."""
    if not failures:
        return

    if console is None:
        console = Console()

    console.print()
    console.print("[dim]─── Errors ───[/dim]")

    for provider_id, error in failures.items():
        probe_error = classify_exception(error, provider_id)
        line = Text()
        line.append(provider_id, style="red")
        line.append(f": {probe_error.message}")
        if verbose and probe_error.strategy:
            line.append(f" ({probe_error.strategy})", style="dim")
        console.print(line)
        if probe_error.remediation:
            console.print(Text.from_markup(probe_error.remediation, style="dim"))
