"""Exception taxonomy raised by fetch strategies and the acquisition core.

Strategies raise these; the pipeline reads them to decide on fallback, and
``errors.classify`` turns them into structured ``ProbeError``s for display.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from quotaprobe.browser.browsers import Browser


class QuotaprobeFetchError(Exception):
    """Base class for every acquisition failure."""

    def __init__(
        self,
        message: str,
        *,
        provider: str | None = None,
        strategy_id: str | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.provider = provider
        self.strategy_id = strategy_id

    def __str__(self) -> str:
        return self.message


# PTY runner


class BinaryNotFound(QuotaprobeFetchError):
    """The CLI binary could not be resolved on PATH."""

    def __init__(self, binary: str, **kwargs) -> None:
        super().__init__(f"Binary not found on PATH: {binary}", **kwargs)
        self.binary = binary


class LaunchFailed(QuotaprobeFetchError):
    """The pty could not be allocated or the child failed to spawn."""


class PTYTimeout(QuotaprobeFetchError):
    """The deadline passed without capturing any output."""

    def __init__(self, binary: str, timeout: float, **kwargs) -> None:
        super().__init__(
            f"PTY command timed out after {timeout:.1f}s: {binary}", **kwargs
        )
        self.binary = binary
        self.timeout = timeout


# Web / cookie


class NoCredential(QuotaprobeFetchError):
    """No usable cookie or session exists for a web strategy."""


class LoginRequired(QuotaprobeFetchError):
    """A session was found but the dashboard still requires login."""


class AccessDenied(QuotaprobeFetchError):
    """The OS credential store refused access to a browser's cookie key."""

    def __init__(self, browser: Browser, details: str | None = None, **kwargs) -> None:
        message = f"Access to {browser.display_name} cookies was denied"
        if details:
            message = f"{message}: {details}"
        super().__init__(message, **kwargs)
        self.browser = browser
        self.details = details


class CredentialAccessDenied(Exception):
    """Raised by a CredentialStore when the OS denies a read."""


# OAuth / API token


class TokenMissing(QuotaprobeFetchError):
    """No OAuth credential or API token is configured."""


class TokenRejected(QuotaprobeFetchError):
    """A present token was rejected by the provider."""

    def __init__(self, message: str, status_code: int | None = None, **kwargs) -> None:
        super().__init__(message, **kwargs)
        self.status_code = status_code


# Parsing


class ParseFailed(QuotaprobeFetchError):
    """Raw text or JSON did not contain recognizable usage data."""

    def __init__(self, message: str, raw_excerpt: str | None = None, **kwargs) -> None:
        super().__init__(message, **kwargs)
        self.raw_excerpt = raw_excerpt


# Pipeline


class NoStrategyAvailable(QuotaprobeFetchError):
    """No resolved strategy was eligible to run."""

    def __init__(self, provider: str) -> None:
        super().__init__(
            f"No available fetch strategy for {provider}.", provider=provider
        )


class StrategyTimeout(QuotaprobeFetchError):
    """A strategy exceeded the pipeline's per-strategy deadline."""
