"""Structured errors shown to the user and written to JSON output."""

from __future__ import annotations

from datetime import datetime
from enum import StrEnum

import msgspec


class ErrorCategory(StrEnum):
    """What went wrong, in terms the CLI maps to exit codes."""

    AUTHENTICATION = "authentication"  # No session, expired token, CLI not logged in
    AUTHORIZATION = "authorization"  # Keychain refused, HTTP 403
    RATE_LIMITED = "rate_limited"
    NETWORK = "network"
    PROVIDER = "provider"  # Upstream 5xx
    PARSE = "parse"  # Panel or payload not recognized
    CONFIGURATION = "configuration"  # Missing binary, no usable source
    NOT_FOUND = "not_found"
    TIMEOUT = "timeout"  # PTY deadline or per-strategy timeout
    UNKNOWN = "unknown"


class ErrorSeverity(StrEnum):
    FATAL = "fatal"  # Retrying will not help without user action
    RECOVERABLE = "recoverable"
    TRANSIENT = "transient"  # Likely to pass on its own
    WARNING = "warning"


class ProbeError(msgspec.Struct, frozen=True):
    """A classified failure with optional remediation text."""

    message: str
    category: ErrorCategory
    severity: ErrorSeverity
    provider: str | None = None
    strategy: str | None = None  # Strategy id, e.g. "claude.web"
    remediation: str | None = None
    details: dict | None = None
    timestamp: datetime = msgspec.field(
        default_factory=lambda: datetime.now().astimezone()
    )


class HTTPErrorMapping(msgspec.Struct, frozen=True):
    """How an HTTP status is reported and whether it is worth retrying."""

    category: ErrorCategory
    severity: ErrorSeverity
    should_retry: bool = False


_STATUS_CATEGORIES: dict[int, ErrorCategory] = {
    401: ErrorCategory.AUTHENTICATION,
    403: ErrorCategory.AUTHORIZATION,
    404: ErrorCategory.NOT_FOUND,
    429: ErrorCategory.RATE_LIMITED,
}


def classify_http_error(status_code: int) -> HTTPErrorMapping:
    """Map an HTTP status to a category; 429 and 5xx are retryable."""
    retryable = status_code == 429 or 500 <= status_code < 600

    category = _STATUS_CATEGORIES.get(status_code)
    if category is None:
        category = ErrorCategory.PROVIDER if 500 <= status_code < 600 else ErrorCategory.UNKNOWN

    return HTTPErrorMapping(
        category=category,
        severity=ErrorSeverity.TRANSIENT if retryable else ErrorSeverity.RECOVERABLE,
        should_retry=retryable,
    )
