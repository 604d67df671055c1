"""OAuth strategy for Claude provider."""

from __future__ import annotations

import logging
import time

import httpx
import msgspec

from quotaprobe.config.credentials import has_provider_credential
from quotaprobe.config.credentials import provider_credential_path
from quotaprobe.config.credentials import read_credential
from quotaprobe.core.http import get_http_client
from quotaprobe.core.retry import with_retry
from quotaprobe.errors.exceptions import ParseFailed
from quotaprobe.errors.exceptions import TokenMissing
from quotaprobe.errors.exceptions import TokenRejected
from quotaprobe.models import ProviderIdentity
from quotaprobe.providers.claude.parser import parse_usage_json
from quotaprobe.strategies.base import FetchContext
from quotaprobe.strategies.base import FetchKind
from quotaprobe.strategies.base import FetchResult
from quotaprobe.strategies.base import FetchStrategy

log = logging.getLogger(__name__)


class ClaudeOAuthCredentials(msgspec.Struct):
    """The ``claudeAiOauth`` entry written by the Claude CLI."""

    accessToken: str | None = None
    refreshToken: str | None = None
    expiresAt: int | None = None  # Milliseconds since the epoch
    subscriptionType: str | None = None


class ClaudeCredentialsFile(msgspec.Struct):
    claudeAiOauth: ClaudeOAuthCredentials | None = None


def load_oauth_credentials(content: bytes) -> ClaudeOAuthCredentials | None:
    try:
        data = msgspec.json.decode(content, type=ClaudeCredentialsFile)
    except msgspec.DecodeError:
        return None
    return data.claudeAiOauth


class ClaudeOAuthStrategy(FetchStrategy):
    """Fetch Claude usage with the Claude CLI's OAuth token."""

    id = "claude.oauth"
    kind = FetchKind.OAUTH

    USAGE_URL = "https://api.anthropic.com/api/oauth/usage"
    BETA_HEADER = "oauth-2025-04-20"

    async def is_available(self, context: FetchContext) -> bool:
        return context.settings.claude_oauth_available or has_provider_credential(
            "claude", context.env
        )

    def _access_token(self, context: FetchContext) -> tuple[str, str | None]:
        path = provider_credential_path("claude", context.env)
        content = read_credential(path) if path else None
        if not content:
            raise TokenMissing("No Claude OAuth credentials found.")

        credentials = load_oauth_credentials(content)
        if credentials is None or not credentials.accessToken:
            raise TokenMissing("Claude credentials file has no OAuth access token.")

        # Refreshing is left to the Claude CLI, which owns the file
        if credentials.expiresAt and credentials.expiresAt / 1000 <= time.time():
            raise TokenRejected("Claude OAuth token has expired.")

        return credentials.accessToken, credentials.subscriptionType

    async def fetch(self, context: FetchContext) -> FetchResult:
        token, plan = self._access_token(context)
        headers = {
            "Authorization": f"Bearer {token}",
            "anthropic-beta": self.BETA_HEADER,
        }

        async with get_http_client() as client:

            async def request() -> httpx.Response:
                response = await client.get(
                    self.USAGE_URL, headers=headers, timeout=context.web_timeout
                )
                response.raise_for_status()
                return response

            try:
                response = await with_retry(request)
            except httpx.HTTPStatusError as e:
                status = e.response.status_code
                if status in (401, 403):
                    raise TokenRejected(
                        "Claude OAuth token was rejected.", status_code=status
                    ) from e
                raise

        try:
            data = response.json()
        except ValueError as e:
            raise ParseFailed(
                "Invalid response from Claude usage endpoint.",
                raw_excerpt=response.text[:400],
            ) from e

        snapshot = parse_usage_json(data)
        if plan and snapshot.identity is None:
            snapshot = msgspec.structs.replace(
                snapshot, identity=ProviderIdentity(login_method=plan)
            )
        log.debug("Claude OAuth usage: %d windows", len(snapshot.windows()))
        return FetchResult(usage=snapshot)
