"""Rich-based rendering utilities for quotaprobe."""

from __future__ import annotations

from rich.text import Text

from quotaprobe.models import CreditsSnapshot
from quotaprobe.models import RateWindow
from quotaprobe.models import format_reset_countdown
from quotaprobe.models import usage_to_color


def render_usage_bar(
    used_percent: float,
    width: int = 20,
    color: str | None = None,
) -> Text:
    """Render a usage progress bar.

    Args:
        used_percent: Usage percentage (0-100)
        width: Bar width in characters
        color: Optional color override

    Returns:
        Rich Text with the progress bar
    """
    filled = int(max(0.0, min(100.0, used_percent)) * width // 100)
    bar = "█" * filled + "░" * (width - filled)

    text = Text()
    text.append(bar, style=color or "default")
    return text


def format_bar_and_percentage(window: RateWindow) -> Text:
    color = usage_to_color(window.used_percent)
    text = Text()
    text.append_text(render_usage_bar(window.used_percent, color=color))
    text.append(f" {window.used_percent:.0f}%", style=color)
    return text


def format_reset(window: RateWindow) -> Text:
    """Countdown when the reset time is known, else the source's own wording."""
    text = Text()
    time_until = window.time_until_reset()
    if time_until is not None:
        text.append(f"resets in {format_reset_countdown(time_until)}", style="dim")
    elif window.reset_description:
        text.append(window.reset_description, style="dim")
    return text


def format_window_line(label: str, window: RateWindow) -> Text:
    """Single-line form used by quiet output."""
    text = Text()
    text.append(f"{label}: ", style="bold")
    text.append(f"{window.used_percent:.0f}%", style=usage_to_color(window.used_percent))
    reset = format_reset(window)
    if reset.plain:
        text.append(" ")
        text.append_text(reset)
    return text


def format_credits(credits: CreditsSnapshot) -> Text:
    text = Text()
    text.append("Credits: ", style="bold")
    text.append(f"{credits.remaining:,.2f}", style="cyan")
    text.append(" remaining", style="dim")
    return text
