"""Web (chatgpt.com session cookie) strategy for Codex provider."""

from __future__ import annotations

import asyncio
import logging

import httpx
import msgspec

from quotaprobe.browser.cookies import BrowserCandidate
from quotaprobe.browser.cookies import remember_label
from quotaprobe.core.http import get_http_client
from quotaprobe.core.retry import with_retry
from quotaprobe.errors.exceptions import LoginRequired
from quotaprobe.models import DashboardSnapshot
from quotaprobe.models import ProviderIdentity
from quotaprobe.providers.codex.account import load_account
from quotaprobe.providers.codex.parser import parse_wham_usage
from quotaprobe.strategies.base import FetchContext
from quotaprobe.strategies.base import FetchResult
from quotaprobe.strategies.web import BrowserSessionStrategy

log = logging.getLogger(__name__)


class ChatGPTUser(msgspec.Struct):
    email: str | None = None


class ChatGPTSession(msgspec.Struct):
    """The subset of ``/api/auth/session`` needed here."""

    accessToken: str | None = None
    user: ChatGPTUser | None = None


class SignedInSession(msgspec.Struct, frozen=True):
    candidate: BrowserCandidate
    email: str | None
    access_token: str


def choose_session(
    sessions: list[SignedInSession], target_email: str | None
) -> SignedInSession:
    """Pick the session signed in as the Codex CLI account.

    Without a known CLI account the first signed-in session wins.

    Raises:
        LoginRequired: no session is signed in, or none matches the account
    """
    if not sessions:
        raise LoginRequired("No browser is signed in to chatgpt.com.")
    if not target_email:
        return sessions[0]

    for session in sessions:
        if session.email and session.email.lower() == target_email.lower():
            return session

    found = sorted({s.email for s in sessions if s.email})
    raise LoginRequired(
        f"Browser sessions are signed in as {', '.join(found) or 'an unknown account'}, "
        f"not {target_email}."
    )


class CodexWebStrategy(BrowserSessionStrategy):
    """Fetch Codex usage from chatgpt.com with a browser's session."""

    id = "codex.web"
    provider_id = "codex"
    cookie_domain = "chatgpt.com"

    SESSION_URL = "https://chatgpt.com/api/auth/session"
    USAGE_URL = "https://chatgpt.com/backend-api/wham/usage"

    async def probe_session(
        self,
        client: httpx.AsyncClient,
        candidate: BrowserCandidate,
        context: FetchContext,
    ) -> SignedInSession | None:
        """Ask chatgpt.com who this profile is signed in as."""
        try:
            response = await client.get(
                self.SESSION_URL,
                headers={"Cookie": candidate.header(), "Accept": "application/json"},
                timeout=context.web_timeout,
            )
        except httpx.HTTPError as e:
            log.debug("Session probe failed for %s: %s", candidate.label, e)
            return None

        if response.status_code != 200:
            log.debug("Session probe for %s: HTTP %d", candidate.label, response.status_code)
            return None
        try:
            session = msgspec.json.decode(response.content, type=ChatGPTSession)
        except msgspec.DecodeError:
            return None
        if not session.accessToken:
            return None

        email = session.user.email if session.user else None
        log.debug("%s is signed in as %s", candidate.label, email or "unknown")
        return SignedInSession(candidate=candidate, email=email, access_token=session.accessToken)

    async def fetch(self, context: FetchContext) -> FetchResult:
        candidates = await self.load_candidates(context)
        account = load_account(context.env)
        target_email = account.email if account else None

        async with get_http_client() as client:
            probes = await asyncio.gather(
                *(self.probe_session(client, c, context) for c in candidates)
            )
            session = choose_session([p for p in probes if p is not None], target_email)
            result = await self.fetch_with_session(client, session, account, context)

        remember_label(context.preferences, self.provider_id, session.candidate.label)
        return result

    async def fetch_with_session(
        self,
        client: httpx.AsyncClient,
        session: SignedInSession,
        account: ProviderIdentity | None,
        context: FetchContext,
    ) -> FetchResult:
        headers = {
            "Authorization": f"Bearer {session.access_token}",
            "Cookie": session.candidate.header(),
            "Accept": "application/json",
        }

        async def request() -> httpx.Response:
            response = await client.get(
                self.USAGE_URL, headers=headers, timeout=context.web_timeout
            )
            if response.status_code in (401, 403):
                raise LoginRequired("chatgpt.com session was rejected.")
            response.raise_for_status()
            return response

        response = await with_retry(request)
        identity = ProviderIdentity(
            email=session.email or (account.email if account else None),
            login_method=account.login_method if account else None,
        )
        usage, credits = parse_wham_usage(response.content, identity=identity)
        return FetchResult(
            usage=usage,
            credits=credits if context.include_credits else None,
            dashboard=DashboardSnapshot(
                signed_in_email=session.email,
                source_label=session.candidate.label,
                account_plan=usage.identity.login_method if usage.identity else None,
            ),
        )

    async def fetch_with_candidate(
        self, candidate: BrowserCandidate, context: FetchContext
    ) -> FetchResult:
        async with get_http_client() as client:
            session = await self.probe_session(client, candidate, context)
            if session is None:
                raise LoginRequired(f"{candidate.label} is not signed in to chatgpt.com.")
            return await self.fetch_with_session(
                client, session, load_account(context.env), context
            )
