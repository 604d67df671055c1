"""quotaprobe: Acquire usage and quota telemetry for AI coding tools."""

from __future__ import annotations

__version__ = "0.1.0"

from quotaprobe.models import CreditsSnapshot
from quotaprobe.models import DashboardSnapshot
from quotaprobe.models import ProviderIdentity
from quotaprobe.models import RateWindow
from quotaprobe.models import UsageSnapshot
from quotaprobe.models import format_reset_countdown
from quotaprobe.models import usage_to_color
from quotaprobe.models import validate_rate_window
from quotaprobe.models import validate_snapshot

__all__ = [
    "__version__",
    "RateWindow",
    "ProviderIdentity",
    "UsageSnapshot",
    "CreditsSnapshot",
    "DashboardSnapshot",
    "validate_rate_window",
    "validate_snapshot",
    "format_reset_countdown",
    "usage_to_color",
]


def main() -> None:
    """Entry point for the quotaprobe CLI."""
    from quotaprobe.cli.app import run_app

    run_app()
