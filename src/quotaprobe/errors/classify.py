"""Exception classification for structured error handling."""

from __future__ import annotations

import asyncio

import httpx
import msgspec

from quotaprobe.errors.exceptions import AccessDenied
from quotaprobe.errors.exceptions import BinaryNotFound
from quotaprobe.errors.exceptions import LaunchFailed
from quotaprobe.errors.exceptions import LoginRequired
from quotaprobe.errors.exceptions import NoCredential
from quotaprobe.errors.exceptions import NoStrategyAvailable
from quotaprobe.errors.exceptions import ParseFailed
from quotaprobe.errors.exceptions import PTYTimeout
from quotaprobe.errors.exceptions import QuotaprobeFetchError
from quotaprobe.errors.exceptions import StrategyTimeout
from quotaprobe.errors.exceptions import TokenMissing
from quotaprobe.errors.exceptions import TokenRejected
from quotaprobe.errors.http import extract_error_message
from quotaprobe.errors.messages import get_provider_remediation
from quotaprobe.errors.types import ErrorCategory
from quotaprobe.errors.types import ErrorSeverity
from quotaprobe.errors.types import ProbeError
from quotaprobe.errors.types import classify_http_error

# Ordered: first matching class wins.
_FETCH_ERROR_CLASSES: list[tuple[type[QuotaprobeFetchError], ErrorCategory, ErrorSeverity]] = [
    (BinaryNotFound, ErrorCategory.CONFIGURATION, ErrorSeverity.FATAL),
    (LaunchFailed, ErrorCategory.CONFIGURATION, ErrorSeverity.RECOVERABLE),
    (PTYTimeout, ErrorCategory.TIMEOUT, ErrorSeverity.TRANSIENT),
    (StrategyTimeout, ErrorCategory.TIMEOUT, ErrorSeverity.TRANSIENT),
    (NoCredential, ErrorCategory.AUTHENTICATION, ErrorSeverity.RECOVERABLE),
    (LoginRequired, ErrorCategory.AUTHENTICATION, ErrorSeverity.RECOVERABLE),
    (AccessDenied, ErrorCategory.AUTHORIZATION, ErrorSeverity.RECOVERABLE),
    (TokenMissing, ErrorCategory.AUTHENTICATION, ErrorSeverity.RECOVERABLE),
    (TokenRejected, ErrorCategory.AUTHENTICATION, ErrorSeverity.FATAL),
    (ParseFailed, ErrorCategory.PARSE, ErrorSeverity.RECOVERABLE),
    (NoStrategyAvailable, ErrorCategory.CONFIGURATION, ErrorSeverity.FATAL),
]


def classify_fetch_error(
    error: QuotaprobeFetchError,
    provider_id: str | None = None,
) -> ProbeError:
    """Classify one of our own fetch errors."""
    provider = provider_id or error.provider
    category, severity = ErrorCategory.UNKNOWN, ErrorSeverity.RECOVERABLE
    for cls, cls_category, cls_severity in _FETCH_ERROR_CLASSES:
        if isinstance(error, cls):
            category, severity = cls_category, cls_severity
            break

    details: dict = {"type": type(error).__name__}
    if isinstance(error, TokenRejected) and error.status_code is not None:
        details["status_code"] = error.status_code
    if isinstance(error, AccessDenied):
        details["browser"] = error.browser.value
    if isinstance(error, ParseFailed) and error.raw_excerpt:
        details["raw_excerpt"] = error.raw_excerpt

    return ProbeError(
        message=error.message,
        category=category,
        severity=severity,
        provider=provider,
        strategy=error.strategy_id,
        remediation=get_provider_remediation(provider, error) if provider else None,
        details=details,
    )


def classify_http_status_error(error: httpx.HTTPStatusError) -> ProbeError:
    """Classify HTTP status errors into structured errors."""

    status = error.response.status_code
    mapping = classify_http_error(status)

    detail = extract_error_message(error.response)

    return ProbeError(
        message=f"HTTP {status}: {detail}",
        category=mapping.category,
        severity=mapping.severity,
        details={"status_code": status, "response": detail},
    )


def classify_exception(
    e: BaseException,
    provider_id: str | None = None,
) -> ProbeError:
    """Classify any exception into a structured error."""

    if isinstance(e, QuotaprobeFetchError):
        return classify_fetch_error(e, provider_id)

    if isinstance(e, httpx.TimeoutException):
        return ProbeError(
            message="Request timed out",
            category=ErrorCategory.NETWORK,
            severity=ErrorSeverity.TRANSIENT,
            provider=provider_id,
            remediation="Check your network connection and try again.",
        )

    if isinstance(e, httpx.ConnectError):
        return ProbeError(
            message="Failed to connect to server",
            category=ErrorCategory.NETWORK,
            severity=ErrorSeverity.TRANSIENT,
            provider=provider_id,
            remediation="Check your internet connection. The provider may be down.",
        )

    if isinstance(e, httpx.HTTPStatusError):
        error = classify_http_status_error(e)
        return _with_provider(error, provider_id)

    if isinstance(e, (KeyError, ValueError, TypeError)):
        return ProbeError(
            message=f"Invalid response format: {e}",
            category=ErrorCategory.PARSE,
            severity=ErrorSeverity.RECOVERABLE,
            provider=provider_id,
        )

    if isinstance(e, asyncio.TimeoutError):
        return ProbeError(
            message="Operation timed out",
            category=ErrorCategory.TIMEOUT,
            severity=ErrorSeverity.TRANSIENT,
            provider=provider_id,
            remediation="Try again. If the issue persists, raise the fetch timeout.",
        )

    if isinstance(e, asyncio.CancelledError):
        return ProbeError(
            message="Operation cancelled",
            category=ErrorCategory.UNKNOWN,
            severity=ErrorSeverity.RECOVERABLE,
            provider=provider_id,
        )

    if isinstance(e, PermissionError):
        filename = getattr(e, "filename", None)
        return ProbeError(
            message=f"Permission denied: {filename}" if filename else "Permission denied",
            category=ErrorCategory.CONFIGURATION,
            severity=ErrorSeverity.FATAL,
            provider=provider_id,
            remediation="Check file permissions for the quotaprobe state directory.",
        )

    if isinstance(e, FileNotFoundError):
        filename = getattr(e, "filename", None)
        return ProbeError(
            message=f"File not found: {filename}" if filename else "File not found",
            category=ErrorCategory.CONFIGURATION,
            severity=ErrorSeverity.RECOVERABLE,
            provider=provider_id,
        )

    return ProbeError(
        message=str(e),
        category=ErrorCategory.UNKNOWN,
        severity=ErrorSeverity.RECOVERABLE,
        provider=provider_id,
        details={"type": type(e).__name__},
    )


def _with_provider(error: ProbeError, provider_id: str | None) -> ProbeError:
    """Attach a provider id to a classified error when one is known."""
    if provider_id is None:
        return error
    return msgspec.structs.replace(error, provider=provider_id)
