"""Parsers for Claude usage: the CLI /usage panel and the usage JSON.

The same JSON shape is served by the OAuth usage endpoint and the
claude.ai organization usage endpoint:

    {
        "five_hour": {"utilization": 12.0, "resets_at": "2026-01-17T06:59:59.846865+00:00"},
        "seven_day": {"utilization": 27.0, "resets_at": "2026-01-22T18:59:59.846886+00:00"},
        "seven_day_opus": {"utilization": 3.0, "resets_at": "..."},
        "extra_usage": {"is_enabled": false, ...}
    }
"""

from __future__ import annotations

import re
from datetime import datetime

from quotaprobe.errors.exceptions import LoginRequired
from quotaprobe.errors.exceptions import ParseFailed
from quotaprobe.models import ProviderIdentity
from quotaprobe.models import RateWindow
from quotaprobe.models import UsageSnapshot
from quotaprobe.models import utc_now
from quotaprobe.terminal.markers import strip_ansi

SESSION_MINUTES = 5 * 60
WEEK_MINUTES = 7 * 24 * 60

PERCENT_PATTERN = re.compile(r"([0-9]{1,3}(?:\.[0-9]+)?)\s*%\s*(used|left)", re.IGNORECASE)
RESET_PATTERN = re.compile(r"^\s*(Resets?\b.*?)\s*$", re.IGNORECASE)
EMAIL_PATTERN = re.compile(r"Account:\s+([^\s@]+@[^\s@]+)", re.IGNORECASE)
ORG_PATTERN = re.compile(r"Org(?:anization)?:\s*(.+)", re.IGNORECASE)
LOGIN_HINTS = ("/login", "not logged in", "invalid api key", "please log in")

# How many lines below a label may hold its percentage
LABEL_WINDOW = 4


def _find_window(lines: list[str], label: str, window_minutes: int) -> RateWindow | None:
    label_lower = label.lower()
    for idx, line in enumerate(lines):
        if label_lower not in line.lower():
            continue

        block = lines[idx : idx + LABEL_WINDOW]
        used: float | None = None
        reset: str | None = None
        for candidate in block:
            if used is None and (match := PERCENT_PATTERN.search(candidate)):
                value = float(match.group(1))
                used = value if match.group(2).lower() == "used" else 100.0 - value
            if reset is None and (match := RESET_PATTERN.match(candidate)):
                reset = match.group(1)

        if used is not None:
            return RateWindow(
                used_percent=max(0.0, min(100.0, used)),
                window_minutes=window_minutes,
                reset_description=reset,
            )
    return None


def parse_usage_panel(raw_text: str, now: datetime | None = None) -> UsageSnapshot:
    """Parse the text drawn by ``claude`` after typing ``/usage``.

    Raises:
        LoginRequired: the CLI asked the user to log in
        ParseFailed: no usage percentages could be found
    """
    text = strip_ansi(raw_text)
    lines = text.splitlines()

    primary = _find_window(lines, "Current session", SESSION_MINUTES)
    secondary = _find_window(lines, "Current week (all models)", WEEK_MINUTES)
    tertiary = _find_window(lines, "Current week (Opus)", WEEK_MINUTES) or _find_window(
        lines, "Current week (Sonnet", WEEK_MINUTES
    )

    if primary is None and secondary is None and tertiary is None:
        lowered = text.lower()
        if any(hint in lowered for hint in LOGIN_HINTS):
            raise LoginRequired("Claude CLI is not logged in.")
        raise ParseFailed(
            "Could not find usage in Claude CLI output.", raw_excerpt=text[:400]
        )

    email = EMAIL_PATTERN.search(text)
    org = ORG_PATTERN.search(text)
    identity = None
    if email or org:
        identity = ProviderIdentity(
            email=email.group(1).strip() if email else None,
            organization=org.group(1).strip() if org else None,
        )

    return UsageSnapshot(
        updated_at=now or utc_now(),
        primary=primary,
        secondary=secondary,
        tertiary=tertiary,
        identity=identity,
    )


def _parse_timestamp(value: object) -> datetime | None:
    if not isinstance(value, str) or not value:
        return None
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None


def _json_window(data: dict, key: str, window_minutes: int) -> RateWindow | None:
    period = data.get(key)
    if not isinstance(period, dict):
        return None
    utilization = period.get("utilization")
    if not isinstance(utilization, (int, float)):
        return None
    return RateWindow(
        used_percent=max(0.0, min(100.0, float(utilization))),
        window_minutes=window_minutes,
        resets_at=_parse_timestamp(period.get("resets_at")),
    )


def parse_usage_json(
    data: object,
    identity: ProviderIdentity | None = None,
    now: datetime | None = None,
) -> UsageSnapshot:
    """Parse the usage JSON served to OAuth and web sessions.

    Raises:
        ParseFailed: the payload holds no usage window
    """
    if not isinstance(data, dict):
        raise ParseFailed("Claude usage response is not an object.")

    primary = _json_window(data, "five_hour", SESSION_MINUTES)
    secondary = _json_window(data, "seven_day", WEEK_MINUTES)
    tertiary = _json_window(data, "seven_day_opus", WEEK_MINUTES) or _json_window(
        data, "seven_day_sonnet", WEEK_MINUTES
    )

    if primary is None and secondary is None and tertiary is None:
        raise ParseFailed(
            "Claude usage response has no usage windows.",
            raw_excerpt=", ".join(sorted(data))[:400],
        )

    return UsageSnapshot(
        updated_at=now or utc_now(),
        primary=primary,
        secondary=secondary,
        tertiary=tertiary,
        identity=identity,
    )
