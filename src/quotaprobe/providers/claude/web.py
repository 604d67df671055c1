"""Web (claude.ai session cookie) strategy for Claude provider."""

from __future__ import annotations

import httpx

from quotaprobe.browser.cookies import BrowserCandidate
from quotaprobe.core.http import get_http_client
from quotaprobe.core.retry import with_retry
from quotaprobe.errors.exceptions import LoginRequired
from quotaprobe.errors.exceptions import ParseFailed
from quotaprobe.models import DashboardSnapshot
from quotaprobe.models import ProviderIdentity
from quotaprobe.providers.claude.parser import parse_usage_json
from quotaprobe.strategies.base import FetchContext
from quotaprobe.strategies.base import FetchResult
from quotaprobe.strategies.web import BrowserSessionStrategy


def select_organization(orgs: object) -> dict | None:
    """Pick the organization with the "chat" capability, else the first."""
    if not isinstance(orgs, list):
        return None
    orgs = [org for org in orgs if isinstance(org, dict) and (org.get("uuid") or org.get("id"))]
    for org in orgs:
        if "chat" in (org.get("capabilities") or []):
            return org
    return orgs[0] if orgs else None


class ClaudeWebStrategy(BrowserSessionStrategy):
    """Fetch Claude usage with the sessionKey cookie from a browser."""

    id = "claude.web"
    provider_id = "claude"
    cookie_domain = "claude.ai"
    cookie_names = ("sessionKey",)

    ORG_URL = "https://claude.ai/api/organizations"
    USAGE_URL_TEMPLATE = "https://claude.ai/api/organizations/{org_id}/usage"

    async def _get_json(self, client: httpx.AsyncClient, url: str, headers: dict, timeout: float):
        async def request() -> httpx.Response:
            response = await client.get(url, headers=headers, timeout=timeout)
            if response.status_code in (401, 403):
                raise LoginRequired("claude.ai session is not signed in.")
            response.raise_for_status()
            return response

        response = await with_retry(request)
        try:
            return response.json()
        except ValueError as e:
            raise ParseFailed(
                f"Invalid JSON from {url}", raw_excerpt=response.text[:400]
            ) from e

    async def fetch_with_candidate(
        self, candidate: BrowserCandidate, context: FetchContext
    ) -> FetchResult:
        headers = {"Cookie": candidate.header(), "Accept": "application/json"}

        async with get_http_client() as client:
            orgs = await self._get_json(client, self.ORG_URL, headers, context.web_timeout)
            org = select_organization(orgs)
            if org is None:
                raise LoginRequired("claude.ai session has no organization.")

            org_id = org.get("uuid") or org.get("id")
            usage = await self._get_json(
                client,
                self.USAGE_URL_TEMPLATE.format(org_id=org_id),
                headers,
                context.web_timeout,
            )

        identity = ProviderIdentity(organization=org.get("name"))
        return FetchResult(
            usage=parse_usage_json(usage, identity=identity),
            dashboard=DashboardSnapshot(account_plan=org.get("rate_limit_tier")),
        )
