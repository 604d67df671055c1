"""JSON output utilities for quotaprobe."""

from __future__ import annotations

import json
import sys
from datetime import datetime

import msgspec

from quotaprobe.errors.classify import classify_exception
from quotaprobe.errors.types import ProbeError
from quotaprobe.models import RateWindow
from quotaprobe.strategies.base import FetchOutcome

__all__ = [
    "ErrorResponse",
    "ErrorData",
    "from_probe_error",
    "outcome_to_dict",
    "outcomes_to_dict",
    "output_json",
    "output_json_pretty",
    "encode_json",
]


class ErrorData(msgspec.Struct, frozen=True, omit_defaults=True):
    """Error data with category, severity, and remediation."""

    message: str
    category: str
    severity: str
    timestamp: str
    provider: str | None = None
    strategy: str | None = None
    remediation: str | None = None
    details: dict | None = None


class ErrorResponse(msgspec.Struct, frozen=True):
    """Structured error response for JSON output."""

    error: ErrorData


def from_probe_error(error: ProbeError) -> ErrorResponse:
    return ErrorResponse(
        error=ErrorData(
            message=error.message,
            category=error.category.value,
            severity=error.severity.value,
            timestamp=error.timestamp.isoformat(),
            provider=error.provider,
            strategy=error.strategy,
            remediation=error.remediation,
            details=error.details,
        )
    )


def _window(window: RateWindow | None) -> dict | None:
    if window is None:
        return None
    return {
        "used_percent": window.used_percent,
        "remaining_percent": window.remaining_percent(),
        "window_minutes": window.window_minutes,
        "resets_at": window.resets_at.isoformat() if window.resets_at else None,
        "reset_description": window.reset_description,
    }


def outcome_to_dict(outcome: FetchOutcome) -> dict:
    """Serialize one provider outcome, success or failure."""
    attempts = [msgspec.to_builtins(a) for a in outcome.attempts]

    if not outcome.success or outcome.result is None:
        error = outcome.error or RuntimeError("Unknown error occurred")
        return {
            "provider": outcome.provider_id,
            "success": False,
            "attempts": attempts,
            **msgspec.to_builtins(from_probe_error(classify_exception(error, outcome.provider_id))),
        }

    result = outcome.result
    usage = result.usage
    return {
        "provider": outcome.provider_id,
        "success": True,
        "source": outcome.source,
        "updated_at": usage.updated_at.isoformat(),
        "primary": _window(usage.primary),
        "secondary": _window(usage.secondary),
        "tertiary": _window(usage.tertiary),
        "identity": msgspec.to_builtins(usage.identity) if usage.identity else None,
        "credits": (
            {"remaining": result.credits.remaining} if result.credits is not None else None
        ),
        "dashboard": msgspec.to_builtins(result.dashboard) if result.dashboard else None,
        "attempts": attempts,
    }


def outcomes_to_dict(outcomes: dict[str, FetchOutcome]) -> dict:
    return {
        "providers": {pid: outcome_to_dict(o) for pid, o in outcomes.items()},
        "fetched_at": datetime.now().astimezone().isoformat(),
    }


def output_json(data: object) -> None:
    """Output data as JSON to stdout.

    Args:
        data: Any msgspec-serializable object (Struct, dict, list, etc.)
    """
    json_bytes = msgspec.json.encode(data)
    sys.stdout.buffer.write(json_bytes)
    sys.stdout.buffer.write(b"\n")


def output_json_pretty(data: object, indent: int = 2) -> None:
    """Output data as pretty-printed JSON to stdout."""
    # msgspec handles Structs and datetimes; json handles the indentation
    python_obj = msgspec.to_builtins(data)
    sys.stdout.write(json.dumps(python_obj, indent=indent))
    sys.stdout.write("\n")


def encode_json(data: object) -> bytes:
    return msgspec.json.encode(data)
