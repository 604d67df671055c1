"""Data models for quotaprobe.

Defines the normalized structures every fetch strategy must produce.
These models abstract CLI panels, web dashboards and API responses into a
single consistent shape.
"""

from __future__ import annotations

from datetime import datetime
from datetime import timedelta
from datetime import timezone

import msgspec


class RateWindow(msgspec.Struct, frozen=True):
    """A usage rate window (e.g., 5-hour session, 7-day weekly)."""

    used_percent: float  # 0-100 percentage used
    window_minutes: int | None = None  # Window length, when known
    resets_at: datetime | None = None  # When the window resets (UTC)
    reset_description: str | None = None  # Human text from the source ("resets 4pm")

    def remaining_percent(self) -> float:
        """Return percentage remaining, clamped to [0, 100]."""
        return max(0.0, min(100.0, 100.0 - self.used_percent))

    def elapsed_ratio(self, now: datetime | None = None) -> float | None:
        """
        Calculate ratio of time elapsed in the current window (0.0 to 1.0).
        Returns None if the reset time or window length is unknown.
        """
        if self.resets_at is None or not self.window_minutes:
            return None

        now = now or datetime.now(self.resets_at.tzinfo)
        start_time = self.resets_at - timedelta(minutes=self.window_minutes)
        elapsed = (now - start_time).total_seconds() / 60.0
        return max(0.0, min(elapsed / self.window_minutes, 1.0))

    def time_until_reset(self, now: datetime | None = None) -> timedelta | None:
        """Return time remaining until reset."""
        if self.resets_at is None:
            return None
        now = now or datetime.now(self.resets_at.tzinfo)
        return max(timedelta(0), self.resets_at - now)


class ProviderIdentity(msgspec.Struct, frozen=True):
    """Account information reported alongside usage."""

    email: str | None = None  # Account email
    organization: str | None = None  # Organization name
    login_method: str | None = None  # Plan or login kind (e.g., "Claude Max")


class UsageSnapshot(msgspec.Struct, frozen=True):
    """Complete usage snapshot from a provider."""

    updated_at: datetime
    primary: RateWindow | None = None  # Shortest window (session)
    secondary: RateWindow | None = None  # Weekly window
    tertiary: RateWindow | None = None  # Model-specific window (e.g., Opus)
    identity: ProviderIdentity | None = None

    def windows(self) -> tuple[RateWindow, ...]:
        """Return all present windows, primary first."""
        return tuple(
            w for w in (self.primary, self.secondary, self.tertiary) if w is not None
        )

    def is_stale(self, max_age_minutes: int = 10) -> bool:
        """Check if snapshot is older than max_age_minutes."""
        age = datetime.now(self.updated_at.tzinfo) - self.updated_at
        return age.total_seconds() > max_age_minutes * 60


class CreditsSnapshot(msgspec.Struct, frozen=True):
    """Prepaid credit balance (Codex)."""

    remaining: float
    updated_at: datetime


class DashboardSnapshot(msgspec.Struct, frozen=True):
    """Extra metadata scraped from a web dashboard session."""

    signed_in_email: str | None = None
    source_label: str | None = None  # Browser candidate that produced the session
    account_plan: str | None = None


def utc_now() -> datetime:
    """Timezone-aware current time."""
    return datetime.now(timezone.utc)


def validate_rate_window(window: RateWindow) -> list[str]:
    """Return list of validation errors, empty if valid."""
    errors = []
    if not 0 <= window.used_percent <= 100:
        errors.append(f"used_percent {window.used_percent} out of range [0, 100]")
    if window.window_minutes is not None and window.window_minutes <= 0:
        errors.append(f"window_minutes {window.window_minutes} must be positive")
    return errors


def validate_snapshot(snapshot: UsageSnapshot) -> list[str]:
    """Return list of validation errors, empty if valid."""
    errors = []
    if not snapshot.windows():
        errors.append("at least one rate window required")
    for window in snapshot.windows():
        errors.extend(validate_rate_window(window))
    return errors


def format_reset_countdown(delta: timedelta | None) -> str:
    """Format reset time as countdown string."""
    if delta is None:
        return ""

    total_seconds = int(delta.total_seconds())
    if total_seconds <= 0:
        return "now"

    days, remainder = divmod(total_seconds, 86400)
    hours, remainder = divmod(remainder, 3600)
    minutes = remainder // 60

    if days > 0:
        return f"{days}d {hours}h"
    elif hours > 0:
        return f"{hours}h {minutes}m"
    else:
        return f"{minutes}m"


def usage_to_color(used_percent: float) -> str:
    """Threshold-based display color for a usage percentage."""
    if used_percent < 50:
        return "green"
    elif used_percent < 80:
        return "yellow"
    else:
        return "red"
