"""Browser cookie source commands for quotaprobe."""

from __future__ import annotations

import sys
from datetime import datetime

import typer
from rich.console import Console
from rich.table import Table

from quotaprobe.browser.browsers import Browser
from quotaprobe.browser.browsers import parse_browser
from quotaprobe.browser.browsers import parse_browser_order
from quotaprobe.browser.detection import get_browser_detection
from quotaprobe.browser.gate import get_access_gate
from quotaprobe.cli.app import ExitCode
from quotaprobe.cli.atyper import ATyper
from quotaprobe.config.settings import get_config

browsers_app = ATyper(
    help="Inspect browser cookie sources and the keychain access gate",
    invoke_without_command=True,
)


def ordered_browsers() -> list[Browser]:
    """Configured cookie order first, then the remaining known browsers."""
    configured = parse_browser_order(get_config().browser.cookie_order)
    return configured + [b for b in Browser if b not in configured]


def browser_rows(now: float | None = None) -> list[dict]:
    detection = get_browser_detection()
    gate = get_access_gate()
    configured = set(parse_browser_order(get_config().browser.cookie_order))

    rows = []
    for browser in ordered_browsers():
        installed = detection.is_installed(browser)
        denied_until = gate.denied_until(browser, now=now)
        rows.append(
            {
                "browser": browser.value,
                "name": browser.display_name,
                "configured": browser in configured,
                "installed": installed,
                "profiles": len(detection.profile_dirs(browser)) if installed else 0,
                "uses_keychain": browser.uses_keychain(sys.platform),
                "denied_until": (
                    datetime.fromtimestamp(denied_until).astimezone().isoformat()
                    if denied_until
                    else None
                ),
            }
        )
    return rows


def _yes_no(value: bool) -> str:
    return "[green]yes[/green]" if value else "[dim]no[/dim]"


@browsers_app.callback()
def browsers_command(
    ctx: typer.Context,
    json_output: bool = typer.Option(
        False,
        "--json",
        "-j",
        help="Output in JSON format",
    ),
) -> None:
    """Show which browsers are installed and which are cooling down."""
    if ctx.invoked_subcommand is not None:
        return

    rows = browser_rows()
    parent_meta = ctx.parent.meta if ctx.parent else {}
    if json_output or parent_meta.get("json", False):
        from quotaprobe.display.json import output_json_pretty

        output_json_pretty({"browsers": rows})
        return

    table = Table(title="Browser cookie sources")
    table.add_column("Browser", style="bold")
    table.add_column("Order")
    table.add_column("Installed")
    table.add_column("Profiles", justify="right")
    table.add_column("Keychain")
    table.add_column("Access gate")

    for row in rows:
        if row["denied_until"]:
            until = datetime.fromisoformat(row["denied_until"]).strftime("%Y-%m-%d %H:%M")
            gate = f"[yellow]denied until {until}[/yellow]"
        elif row["uses_keychain"]:
            gate = "[green]open[/green]"
        else:
            gate = "[dim]n/a[/dim]"
        table.add_row(
            row["name"],
            _yes_no(row["configured"]),
            _yes_no(row["installed"]),
            str(row["profiles"]),
            _yes_no(row["uses_keychain"]),
            gate,
        )

    Console().print(table)


@browsers_app.command("reset-gate")
def reset_gate_command(
    browser: str = typer.Argument(
        None,
        help="Browser to clear (default: all)",
    ),
) -> None:
    """Forget keychain denials so the next fetch may prompt again."""
    console = Console()
    gate = get_access_gate()

    if browser is None:
        gate.reset()
        console.print("Cleared access denials for all browsers.")
        return

    try:
        target = parse_browser(browser)
    except ValueError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(ExitCode.CONFIG_ERROR) from None

    gate.reset(target)
    console.print(f"Cleared access denial for {target.display_name}.")
