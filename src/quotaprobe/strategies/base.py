"""Fetch strategy base classes."""

from __future__ import annotations

from abc import ABC
from abc import abstractmethod
from enum import StrEnum
from typing import TYPE_CHECKING
from typing import Any
from typing import ClassVar

import msgspec

from quotaprobe.errors.exceptions import AccessDenied
from quotaprobe.errors.exceptions import LoginRequired
from quotaprobe.errors.exceptions import NoCredential
from quotaprobe.models import CreditsSnapshot
from quotaprobe.models import DashboardSnapshot
from quotaprobe.models import UsageSnapshot

if TYPE_CHECKING:
    from quotaprobe.browser.browsers import Browser
    from quotaprobe.browser.cookies import BrowserCookieImporter
    from quotaprobe.browser.gate import BrowserCookieAccessGate
    from quotaprobe.config.keyring import CredentialStore
    from quotaprobe.terminal.runner import PTYCommandRunner
    from quotaprobe.terminal.runner import PTYOptions


class FetchKind(StrEnum):
    """How a strategy obtains its data."""

    CLI = "cli"
    WEB = "web"
    OAUTH = "oauth"
    API_TOKEN = "api_token"
    LOCAL_PROBE = "local_probe"


class RuntimeKind(StrEnum):
    """Who is asking: a one-shot CLI run or a long-lived app."""

    CLI = "cli"
    APP = "app"


class SourceMode(StrEnum):
    """User-selected data source for a provider."""

    AUTO = "auto"
    CLI = "cli"
    WEB = "web"
    OAUTH = "oauth"
    API_TOKEN = "api_token"


class ProviderSettingsSnapshot(msgspec.Struct, frozen=True):
    """Per-provider settings needed while resolving strategies."""

    zai_api_token: str | None = None
    claude_prefer_oauth: bool = True
    claude_oauth_available: bool = False  # Credentials file seen when the context was built
    cookie_browsers: tuple[Browser, ...] = ()


class FetchContext(msgspec.Struct, frozen=True):
    """Everything a strategy may consult, created fresh for every fetch."""

    runtime: RuntimeKind = RuntimeKind.CLI
    source_mode: SourceMode = SourceMode.AUTO
    web_timeout: float = 60.0
    cli_timeout: float = 8.0
    include_credits: bool = True
    verbose: bool = False
    env: dict[str, str] = msgspec.field(default_factory=dict)
    settings: ProviderSettingsSnapshot = msgspec.field(
        default_factory=ProviderSettingsSnapshot
    )
    pty_runner: PTYCommandRunner | None = None
    pty_options: PTYOptions | None = None
    cookie_importer: BrowserCookieImporter | None = None
    access_gate: BrowserCookieAccessGate | None = None
    credential_store: CredentialStore | None = None
    preferences: Any = None  # PreferencesStore; remembers the last good cookie candidate


class FetchResult(msgspec.Struct, frozen=True):
    """Successful result of a fetch."""

    usage: UsageSnapshot
    credits: CreditsSnapshot | None = None
    dashboard: DashboardSnapshot | None = None
    source_override: str | None = None  # Label shown instead of the strategy id


class FetchAttempt(msgspec.Struct):
    """Record of a single fetch attempt."""

    strategy: str
    kind: FetchKind
    success: bool
    error: str | None = None
    error_type: str | None = None
    duration_ms: int = 0


class FetchOutcome(msgspec.Struct):
    """Complete result of fetching from a provider."""

    provider_id: str
    success: bool
    result: FetchResult | None
    source: str | None  # Which strategy succeeded
    attempts: list[FetchAttempt]  # All attempts for debugging
    error: BaseException | None = None  # Final error if all failed

    @property
    def snapshot(self) -> UsageSnapshot | None:
        return self.result.usage if self.result else None


WEB_FALLBACK_ERRORS = (NoCredential, LoginRequired, AccessDenied)


def default_should_fallback(
    kind: FetchKind, error: BaseException, context: FetchContext
) -> bool:
    """Fallback policy by strategy kind.

    Only web strategies fall back, and only in auto mode when the browser
    had no usable session. A reachable page with missing data
    (ParseFailed) is reported, not papered over.
    """
    if kind == FetchKind.WEB:
        return context.source_mode == SourceMode.AUTO and isinstance(
            error, WEB_FALLBACK_ERRORS
        )
    return False


class FetchStrategy(ABC):
    """Base class for fetch strategies."""

    id: ClassVar[str]  # e.g. "claude.web"
    kind: ClassVar[FetchKind]

    @property
    def name(self) -> str:
        """Strategy identifier (e.g., 'claude.oauth', 'codex.cli')."""
        return self.id

    async def is_available(self, context: FetchContext) -> bool:
        """
        Check if this strategy can be attempted.

        Returns True if credentials/requirements exist.
        Should be fast (no network calls).
        """
        return True

    @abstractmethod
    async def fetch(self, context: FetchContext) -> FetchResult:
        """
        Attempt to fetch usage data.

        Returns a FetchResult; raises a QuotaprobeFetchError on failure.
        """
        ...

    def should_fallback(self, error: BaseException, context: FetchContext) -> bool:
        """Whether the pipeline should move on to the next strategy."""
        return default_should_fallback(self.kind, error, context)

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.id}>"
