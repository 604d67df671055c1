"""API token strategy for z.ai provider."""

from __future__ import annotations

import httpx

from quotaprobe.core.http import get_http_client
from quotaprobe.core.retry import with_retry
from quotaprobe.errors.exceptions import TokenMissing
from quotaprobe.errors.exceptions import TokenRejected
from quotaprobe.providers.zai.parser import parse_quota_response
from quotaprobe.strategies.base import FetchContext
from quotaprobe.strategies.base import FetchKind
from quotaprobe.strategies.base import FetchResult
from quotaprobe.strategies.base import FetchStrategy

ENV_VAR = "Z_AI_API_KEY"


def resolve_token(context: FetchContext) -> str | None:
    """Configured token first, then the environment."""
    token = (context.settings.zai_api_token or "").strip()
    if token:
        return token
    return context.env.get(ENV_VAR, "").strip() or None


class ZaiAPIStrategy(FetchStrategy):
    """Fetch z.ai quota with an API key."""

    id = "zai.api"
    kind = FetchKind.API_TOKEN

    QUOTA_URL = "https://api.z.ai/api/monitor/usage/quota/limit"

    async def is_available(self, context: FetchContext) -> bool:
        return resolve_token(context) is not None

    async def fetch(self, context: FetchContext) -> FetchResult:
        token = resolve_token(context)
        if token is None:
            raise TokenMissing(f"No z.ai API key configured (set {ENV_VAR}).")

        async with get_http_client() as client:

            async def request() -> httpx.Response:
                response = await client.get(
                    self.QUOTA_URL,
                    headers={
                        "Authorization": f"Bearer {token}",
                        "Accept": "application/json",
                    },
                    timeout=context.web_timeout,
                )
                response.raise_for_status()
                return response

            try:
                response = await with_retry(request)
            except httpx.HTTPStatusError as e:
                status = e.response.status_code
                if status in (401, 403):
                    raise TokenRejected(
                        "z.ai rejected the API key.", status_code=status
                    ) from e
                raise

        return FetchResult(usage=parse_quota_response(response.content), source_override="zai")
