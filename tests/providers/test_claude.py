"""Tests for the Claude provider (parsers, strategies, resolution)."""

from __future__ import annotations

import json
import time
from unittest.mock import patch

import httpx
import pytest

from quotaprobe.browser.browsers import Browser
from quotaprobe.browser.cookies import LAST_CANDIDATE_KEY
from quotaprobe.browser.cookies import BrowserCandidate
from quotaprobe.errors.exceptions import BinaryNotFound
from quotaprobe.errors.exceptions import LoginRequired
from quotaprobe.errors.exceptions import NoCredential
from quotaprobe.errors.exceptions import ParseFailed
from quotaprobe.errors.exceptions import TokenMissing
from quotaprobe.errors.exceptions import TokenRejected
from quotaprobe.providers.claude import ClaudeProvider
from quotaprobe.providers.claude.cli import ClaudeCLIStrategy
from quotaprobe.providers.claude.oauth import ClaudeOAuthStrategy
from quotaprobe.providers.claude.oauth import load_oauth_credentials
from quotaprobe.providers.claude.parser import parse_usage_json
from quotaprobe.providers.claude.parser import parse_usage_panel
from quotaprobe.providers.claude.web import ClaudeWebStrategy
from quotaprobe.providers.claude.web import select_organization
from quotaprobe.strategies.base import FetchContext
from quotaprobe.strategies.base import ProviderSettingsSnapshot
from quotaprobe.strategies.base import RuntimeKind
from quotaprobe.strategies.base import SourceMode
from quotaprobe.terminal.runner import PTYOptions

from tests.helpers import FakeCookieImporter
from tests.helpers import FakePTYRunner
from tests.helpers import MemoryPreferences

USAGE_PANEL = (
    "\x1b[2J\x1b[H > /usage\r\n"
    "  Settings:  Status   Config   \x1b[7mUsage\x1b[0m\r\n"
    "\r\n"
    "  Current session\r\n"
    "  \x1b[38;5;75m█████████\x1b[0m                                17% used\r\n"
    "  Resets 4pm (Europe/London)\r\n"
    "\r\n"
    "  Current week (all models)\r\n"
    "  ███▌                                             7% used\r\n"
    "  Resets Jan 22, 7pm (Europe/London)\r\n"
    "\r\n"
    "  Current week (Opus)\r\n"
    "                                                   0% used\r\n"
)

USAGE_JSON = {
    "five_hour": {"utilization": 12.0, "resets_at": "2026-01-17T06:59:59.846865+00:00"},
    "seven_day": {"utilization": 27.0, "resets_at": "2026-01-22T18:59:59Z"},
    "seven_day_opus": {"utilization": 3.0, "resets_at": None},
    "extra_usage": {"is_enabled": False},
}


class TestParseUsagePanel:
    """Tests for parse_usage_panel."""

    def test_parses_all_windows(self, utc_now):
        snapshot = parse_usage_panel(USAGE_PANEL, now=utc_now)

        assert snapshot.primary.used_percent == 17
        assert snapshot.primary.window_minutes == 300
        assert snapshot.primary.reset_description == "Resets 4pm (Europe/London)"
        assert snapshot.secondary.used_percent == 7
        assert snapshot.secondary.window_minutes == 10080
        assert snapshot.tertiary.used_percent == 0
        assert snapshot.updated_at == utc_now

    def test_left_is_converted_to_used(self):
        snapshot = parse_usage_panel("Current session\n  ██  83% left\n")
        assert snapshot.primary.used_percent == 17
        assert snapshot.secondary is None

    def test_sonnet_fallback_for_tertiary(self):
        text = "Current session\n 5% used\nCurrent week (Sonnet only)\n 44% used\n"
        assert parse_usage_panel(text).tertiary.used_percent == 44

    def test_identity(self):
        text = USAGE_PANEL + "  Account: dev@example.com\r\n  Organization: Acme Corp\r\n"
        identity = parse_usage_panel(text).identity
        assert identity.email == "dev@example.com"
        assert identity.organization == "Acme Corp"

    def test_login_required(self):
        with pytest.raises(LoginRequired):
            parse_usage_panel("Welcome to Claude Code\nPlease run /login to continue")

    def test_unrecognized_output(self):
        with pytest.raises(ParseFailed) as excinfo:
            parse_usage_panel("\x1b[31msomething else entirely\x1b[0m")
        assert excinfo.value.raw_excerpt == "something else entirely"


class TestParseUsageJson:
    """Tests for parse_usage_json."""

    def test_parses_windows(self):
        snapshot = parse_usage_json(USAGE_JSON)
        assert snapshot.primary.used_percent == 12
        assert snapshot.primary.resets_at.year == 2026
        assert snapshot.secondary.resets_at.tzinfo is not None
        assert snapshot.tertiary.used_percent == 3
        assert snapshot.tertiary.resets_at is None

    def test_clamps_utilization(self):
        snapshot = parse_usage_json({"five_hour": {"utilization": 140}})
        assert snapshot.primary.used_percent == 100

    def test_no_windows(self):
        with pytest.raises(ParseFailed):
            parse_usage_json({"extra_usage": {}})

    def test_not_an_object(self):
        with pytest.raises(ParseFailed):
            parse_usage_json(["five_hour"])


class TestSelectOrganization:
    """Tests for select_organization."""

    def test_prefers_chat_capability(self):
        orgs = [
            {"uuid": "api-org", "capabilities": ["api"]},
            {"uuid": "chat-org", "capabilities": ["chat", "claude_max"]},
        ]
        assert select_organization(orgs)["uuid"] == "chat-org"

    def test_falls_back_to_first(self):
        assert select_organization([{"uuid": "a"}, {"uuid": "b"}])["uuid"] == "a"

    def test_nothing_usable(self):
        assert select_organization([{"name": "no id"}]) is None
        assert select_organization({"error": "x"}) is None


class TestClaudeOAuthStrategy:
    """Tests for ClaudeOAuthStrategy."""

    def write_credentials(self, tmp_path, **oauth):
        path = tmp_path / ".credentials.json"
        path.write_text(json.dumps({"claudeAiOauth": oauth}))
        path.chmod(0o600)
        return path

    def test_load_oauth_credentials(self):
        content = b'{"claudeAiOauth": {"accessToken": "tok", "expiresAt": 1}}'
        credentials = load_oauth_credentials(content)
        assert credentials.accessToken == "tok"
        assert load_oauth_credentials(b"not json") is None

    @pytest.mark.asyncio
    async def test_available_from_settings(self):
        context = FetchContext(
            settings=ProviderSettingsSnapshot(claude_oauth_available=True)
        )
        assert await ClaudeOAuthStrategy().is_available(context) is True

    @pytest.mark.asyncio
    async def test_fetch(self, tmp_path, install_http):
        path = self.write_credentials(
            tmp_path,
            accessToken="tok-123",
            expiresAt=int((time.time() + 3600) * 1000),
            subscriptionType="max",
        )
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["auth"] = request.headers["Authorization"]
            seen["beta"] = request.headers["anthropic-beta"]
            return httpx.Response(200, json=USAGE_JSON)

        install_http(handler)
        with patch(
            "quotaprobe.providers.claude.oauth.provider_credential_path", return_value=path
        ):
            result = await ClaudeOAuthStrategy().fetch(FetchContext())

        assert seen == {"auth": "Bearer tok-123", "beta": "oauth-2025-04-20"}
        assert result.usage.primary.used_percent == 12
        assert result.usage.identity.login_method == "max"

    @pytest.mark.asyncio
    async def test_missing_credentials(self, tmp_path):
        with patch(
            "quotaprobe.providers.claude.oauth.provider_credential_path",
            return_value=tmp_path / "absent.json",
        ):
            with pytest.raises(TokenMissing):
                await ClaudeOAuthStrategy().fetch(FetchContext())

    @pytest.mark.asyncio
    async def test_expired_token(self, tmp_path):
        path = self.write_credentials(tmp_path, accessToken="old", expiresAt=1000)
        with patch(
            "quotaprobe.providers.claude.oauth.provider_credential_path", return_value=path
        ):
            with pytest.raises(TokenRejected, match="expired"):
                await ClaudeOAuthStrategy().fetch(FetchContext())

    @pytest.mark.asyncio
    async def test_rejected_token(self, tmp_path, install_http):
        path = self.write_credentials(tmp_path, accessToken="bad")
        install_http(lambda request: httpx.Response(401, json={"error": "invalid"}))
        with patch(
            "quotaprobe.providers.claude.oauth.provider_credential_path", return_value=path
        ):
            with pytest.raises(TokenRejected) as excinfo:
                await ClaudeOAuthStrategy().fetch(FetchContext())
        assert excinfo.value.status_code == 401


def candidate(label: str, session: str, browser: Browser = Browser.CHROME) -> BrowserCandidate:
    return BrowserCandidate(browser=browser, label=label, cookies={"sessionKey": session})


def claude_web_handler(valid_sessions: set[str]):
    def handler(request: httpx.Request) -> httpx.Response:
        session = request.headers.get("Cookie", "").removeprefix("sessionKey=")
        if session not in valid_sessions:
            return httpx.Response(401, json={"error": "unauthorized"})
        if request.url.path == "/api/organizations":
            return httpx.Response(
                200,
                json=[
                    {
                        "uuid": "org-1",
                        "name": "Acme",
                        "capabilities": ["chat"],
                        "rate_limit_tier": "default_claude_max_5x",
                    }
                ],
            )
        if request.url.path == "/api/organizations/org-1/usage":
            return httpx.Response(200, json=USAGE_JSON)
        return httpx.Response(404)

    return handler


class TestClaudeWebStrategy:
    """Tests for ClaudeWebStrategy."""

    @pytest.mark.asyncio
    async def test_fetch_uses_next_candidate_after_expired_session(self, install_http):
        """An expired profile is skipped; the working one is remembered."""
        preferences = MemoryPreferences()
        importer = FakeCookieImporter(
            [candidate("Chrome", "stale"), candidate("Chrome Profile 1", "good")]
        )
        install_http(claude_web_handler({"good"}))
        context = FetchContext(
            cookie_importer=importer,
            preferences=preferences,
            settings=ProviderSettingsSnapshot(cookie_browsers=(Browser.CHROME,)),
        )

        result = await ClaudeWebStrategy().fetch(context)

        assert result.usage.secondary.used_percent == 27
        assert result.usage.identity.organization == "Acme"
        assert result.dashboard.account_plan == "default_claude_max_5x"
        assert result.dashboard.source_label == "Chrome Profile 1"
        assert preferences.get(LAST_CANDIDATE_KEY) == {"claude": "Chrome Profile 1"}
        assert importer.calls == [("claude.ai", ("sessionKey",), (Browser.CHROME,))]

    @pytest.mark.asyncio
    async def test_remembered_candidate_tried_first(self, install_http):
        tried = []
        preferences = MemoryPreferences({LAST_CANDIDATE_KEY: {"claude": "Brave"}})
        importer = FakeCookieImporter(
            [candidate("Chrome", "a"), candidate("Brave", "b", Browser.BRAVE)]
        )
        inner = claude_web_handler({"a", "b"})

        def handler(request):
            tried.append(request.headers["Cookie"])
            return inner(request)

        install_http(handler)
        context = FetchContext(
            cookie_importer=importer,
            preferences=preferences,
            settings=ProviderSettingsSnapshot(cookie_browsers=(Browser.CHROME,)),
        )
        result = await ClaudeWebStrategy().fetch(context)

        assert tried[0] == "sessionKey=b"
        assert result.dashboard.source_label == "Brave"

    @pytest.mark.asyncio
    async def test_all_sessions_expired(self, install_http):
        importer = FakeCookieImporter([candidate("Chrome", "stale")])
        install_http(claude_web_handler(set()))
        context = FetchContext(
            cookie_importer=importer,
            settings=ProviderSettingsSnapshot(cookie_browsers=(Browser.CHROME,)),
        )
        with pytest.raises(LoginRequired):
            await ClaudeWebStrategy().fetch(context)

    @pytest.mark.asyncio
    async def test_no_cookies(self):
        importer = FakeCookieImporter(error=NoCredential("No claude.ai session cookies"))
        context = FetchContext(
            cookie_importer=importer,
            settings=ProviderSettingsSnapshot(cookie_browsers=(Browser.CHROME,)),
        )
        with pytest.raises(NoCredential):
            await ClaudeWebStrategy().fetch(context)


class TestClaudeCLIStrategy:
    """Tests for ClaudeCLIStrategy."""

    @pytest.mark.asyncio
    async def test_fetch_sends_usage_command(self):
        runner = FakePTYRunner(USAGE_PANEL)
        context = FetchContext(
            pty_runner=runner, pty_options=PTYOptions(cols=120), cli_timeout=4.0
        )

        result = await ClaudeCLIStrategy().fetch(context)

        binary, send, options = runner.calls[0]
        assert (binary, send) == ("claude", "/usage\n")
        assert options.cols == 120
        assert options.timeout == 4.0
        assert options.completion("/usage\nCurrent session") is True
        assert result.usage.primary.used_percent == 17

    @pytest.mark.asyncio
    async def test_always_available(self):
        assert await ClaudeCLIStrategy().is_available(FetchContext()) is True

    @pytest.mark.asyncio
    async def test_binary_missing_propagates(self):
        context = FetchContext(pty_runner=FakePTYRunner(error=BinaryNotFound("claude")))
        with pytest.raises(BinaryNotFound):
            await ClaudeCLIStrategy().fetch(context)


class TestClaudeProvider:
    """Tests for ClaudeProvider.resolve_strategies."""

    def ids(self, context: FetchContext) -> list[str]:
        return [s.id for s in ClaudeProvider().resolve_strategies(context)]

    @pytest.mark.parametrize(
        ("mode", "expected"),
        [
            (SourceMode.OAUTH, ["claude.oauth"]),
            (SourceMode.WEB, ["claude.web"]),
            (SourceMode.CLI, ["claude.cli"]),
        ],
    )
    def test_explicit_modes(self, mode, expected):
        assert self.ids(FetchContext(source_mode=mode)) == expected

    def test_auto_cli_runtime(self):
        context = FetchContext(
            settings=ProviderSettingsSnapshot(claude_oauth_available=True)
        )
        assert self.ids(context) == ["claude.web", "claude.cli"]

    def test_auto_app_with_oauth(self):
        context = FetchContext(
            runtime=RuntimeKind.APP,
            settings=ProviderSettingsSnapshot(claude_oauth_available=True),
        )
        assert self.ids(context) == ["claude.oauth"]

    def test_auto_app_without_oauth(self):
        context = FetchContext(runtime=RuntimeKind.APP)
        assert self.ids(context) == ["claude.web", "claude.cli"]

    def test_auto_app_oauth_not_preferred(self):
        context = FetchContext(
            runtime=RuntimeKind.APP,
            settings=ProviderSettingsSnapshot(
                claude_oauth_available=True, claude_prefer_oauth=False
            ),
        )
        assert self.ids(context) == ["claude.web", "claude.cli"]

    def test_resolution_is_deterministic(self):
        context = FetchContext(runtime=RuntimeKind.APP)
        assert self.ids(context) == self.ids(context)
