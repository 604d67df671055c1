"""Parsers for Codex usage sources.

Three shapes are understood:

- the ``/status`` panel drawn by the codex CLI
- the ChatGPT ``wham/usage`` JSON served to a signed-in browser session
- ``token_count`` events in the CLI's session logs, which carry the
  ``rate_limits`` the backend last reported
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from datetime import datetime
from datetime import timedelta
from datetime import timezone

import msgspec

from quotaprobe.errors.exceptions import LoginRequired
from quotaprobe.errors.exceptions import ParseFailed
from quotaprobe.models import CreditsSnapshot
from quotaprobe.models import ProviderIdentity
from quotaprobe.models import RateWindow
from quotaprobe.models import UsageSnapshot
from quotaprobe.models import utc_now
from quotaprobe.terminal.markers import strip_ansi

SESSION_MINUTES = 5 * 60
WEEK_MINUTES = 7 * 24 * 60

CREDITS_PATTERN = re.compile(r"Credits:\s*([0-9][0-9.,]*)", re.IGNORECASE)
FIVE_HOUR_PATTERN = re.compile(r"5h limit[^\n]*?([0-9]{1,3})%\s+left", re.IGNORECASE)
WEEKLY_PATTERN = re.compile(r"Weekly limit[^\n]*?([0-9]{1,3})%\s+left", re.IGNORECASE)
RESETS_PATTERN = re.compile(r"\((resets?[^)]*)\)", re.IGNORECASE)
ACCOUNT_PATTERN = re.compile(
    r"Account:\s+([^\s@]+@[^\s@()]+)(?:\s*\(([^)]+)\))?", re.IGNORECASE
)
LOGIN_HINTS = ("codex login", "not logged in", "sign in with chatgpt")


def _number(pattern: re.Pattern[str], text: str) -> float | None:
    match = pattern.search(text)
    if match is None:
        return None
    try:
        return float(match.group(1).replace(",", ""))
    except ValueError:
        return None


def _left_window(
    pattern: re.Pattern[str], text: str, window_minutes: int
) -> RateWindow | None:
    match = pattern.search(text)
    if match is None:
        return None
    left = float(match.group(1))
    line_end = text.find("\n", match.end())
    rest = text[match.end() : line_end if line_end >= 0 else None]
    reset = RESETS_PATTERN.search(rest)
    return RateWindow(
        used_percent=max(0.0, min(100.0, 100.0 - left)),
        window_minutes=window_minutes,
        reset_description=reset.group(1) if reset else None,
    )


def parse_status_panel(
    raw_text: str, now: datetime | None = None
) -> tuple[UsageSnapshot, CreditsSnapshot | None]:
    """Parse the text drawn by ``codex`` after typing ``/status``.

    Raises:
        LoginRequired: the CLI is not signed in
        ParseFailed: neither credits nor limits could be found
    """
    now = now or utc_now()
    text = strip_ansi(raw_text)

    credits = _number(CREDITS_PATTERN, text)
    primary = _left_window(FIVE_HOUR_PATTERN, text, SESSION_MINUTES)
    secondary = _left_window(WEEKLY_PATTERN, text, WEEK_MINUTES)

    if credits is None and primary is None and secondary is None:
        lowered = text.lower()
        if any(hint in lowered for hint in LOGIN_HINTS):
            raise LoginRequired("Codex CLI is not logged in.")
        raise ParseFailed(
            "Could not parse codex status.", raw_excerpt=text[:400]
        )

    identity = None
    if account := ACCOUNT_PATTERN.search(text):
        identity = ProviderIdentity(email=account.group(1), login_method=account.group(2))

    usage = UsageSnapshot(
        updated_at=now, primary=primary, secondary=secondary, identity=identity
    )
    credit_snapshot = (
        CreditsSnapshot(remaining=credits, updated_at=now) if credits is not None else None
    )
    return usage, credit_snapshot


# ChatGPT wham/usage


class WhamWindow(msgspec.Struct):
    used_percent: float
    limit_window_seconds: int | None = None
    reset_after_seconds: int | None = None
    reset_at: int | None = None  # Epoch seconds


class WhamRateLimit(msgspec.Struct):
    primary_window: WhamWindow | None = None
    secondary_window: WhamWindow | None = None


class WhamCredits(msgspec.Struct):
    has_credits: bool = False
    unlimited: bool = False
    balance: float | str | None = None


class WhamUsage(msgspec.Struct):
    plan_type: str | None = None
    rate_limit: WhamRateLimit | None = None
    credits: WhamCredits | None = None


def _wham_window(window: WhamWindow | None, now: datetime) -> RateWindow | None:
    if window is None:
        return None
    resets_at = None
    if window.reset_at:
        resets_at = datetime.fromtimestamp(window.reset_at, tz=timezone.utc)
    elif window.reset_after_seconds is not None:
        resets_at = now + timedelta(seconds=window.reset_after_seconds)
    minutes = window.limit_window_seconds // 60 if window.limit_window_seconds else None
    return RateWindow(
        used_percent=max(0.0, min(100.0, window.used_percent)),
        window_minutes=minutes or None,
        resets_at=resets_at,
    )


def parse_wham_usage(
    content: bytes,
    identity: ProviderIdentity | None = None,
    now: datetime | None = None,
) -> tuple[UsageSnapshot, CreditsSnapshot | None]:
    """Parse the ChatGPT usage JSON for Codex.

    Raises:
        ParseFailed: the body is not the expected JSON or holds no limits
    """
    now = now or utc_now()
    try:
        data = msgspec.json.decode(content, type=WhamUsage)
    except msgspec.DecodeError as e:
        raise ParseFailed(
            f"Invalid Codex usage response: {e}",
            raw_excerpt=content[:400].decode("utf-8", "replace"),
        ) from e

    limits = data.rate_limit or WhamRateLimit()
    primary = _wham_window(limits.primary_window, now)
    secondary = _wham_window(limits.secondary_window, now)
    if primary is None and secondary is None:
        raise ParseFailed("Codex usage response has no rate limits.")

    if data.plan_type and (identity is None or identity.login_method is None):
        identity = msgspec.structs.replace(
            identity or ProviderIdentity(), login_method=data.plan_type
        )

    credits = None
    if data.credits and data.credits.has_credits and not data.credits.unlimited:
        try:
            credits = CreditsSnapshot(
                remaining=float(data.credits.balance or 0), updated_at=now
            )
        except ValueError:
            credits = None

    usage = UsageSnapshot(
        updated_at=now, primary=primary, secondary=secondary, identity=identity
    )
    return usage, credits


# Session logs


class SessionWindow(msgspec.Struct):
    used_percent: float
    window_minutes: int | None = None
    resets_at: float | None = None  # Epoch seconds
    resets_in_seconds: float | None = None


class SessionRateLimits(msgspec.Struct):
    primary: SessionWindow | None = None
    secondary: SessionWindow | None = None


class SessionPayload(msgspec.Struct):
    type: str | None = None
    rate_limits: SessionRateLimits | None = None


class SessionLine(msgspec.Struct):
    timestamp: str | None = None
    payload: SessionPayload | None = None


_session_decoder = msgspec.json.Decoder(SessionLine)


def _session_window(window: SessionWindow | None, at: datetime) -> RateWindow | None:
    if window is None:
        return None
    resets_at = None
    if window.resets_at is not None:
        resets_at = datetime.fromtimestamp(window.resets_at, tz=timezone.utc)
    elif window.resets_in_seconds is not None:
        resets_at = at + timedelta(seconds=window.resets_in_seconds)
    return RateWindow(
        used_percent=max(0.0, min(100.0, window.used_percent)),
        window_minutes=window.window_minutes,
        resets_at=resets_at,
    )


def _timestamp(value: str | None) -> datetime | None:
    if not value:
        return None
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None


def parse_session_lines(
    lines: Iterable[bytes | str],
    identity: ProviderIdentity | None = None,
) -> UsageSnapshot | None:
    """Usage from the last ``token_count`` event with rate limits, if any.

    ``lines`` are in file order; undecodable lines are skipped.
    """
    latest: SessionLine | None = None
    for line in lines:
        if not line.strip():
            continue
        try:
            event = _session_decoder.decode(line)
        except msgspec.DecodeError:
            continue
        payload = event.payload
        if payload and payload.type == "token_count" and payload.rate_limits:
            latest = event

    if latest is None:
        return None

    at = _timestamp(latest.timestamp) or utc_now()
    limits = latest.payload.rate_limits
    primary = _session_window(limits.primary, at)
    secondary = _session_window(limits.secondary, at)
    if primary is None and secondary is None:
        return None
    return UsageSnapshot(
        updated_at=at, primary=primary, secondary=secondary, identity=identity
    )
