"""Process-wide httpx client shared by the web and token strategies."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import httpx

from quotaprobe import __version__
from quotaprobe.config.settings import get_config

log = logging.getLogger(__name__)

USER_AGENT = f"quotaprobe/{__version__}"
CONNECT_TIMEOUT = 10.0

_client: httpx.AsyncClient | None = None


def get_timeout_config() -> httpx.Timeout:
    """Overall deadline from ``fetch.web_timeout``; connecting gets less."""
    web_timeout = get_config().fetch.web_timeout
    return httpx.Timeout(web_timeout, connect=min(CONNECT_TIMEOUT, web_timeout))


def _new_client() -> httpx.AsyncClient:
    # Each provider may hold a couple of requests open (Codex probes profiles)
    per_provider = 4
    max_concurrent = max(1, get_config().fetch.max_concurrent)
    return httpx.AsyncClient(
        timeout=get_timeout_config(),
        limits=httpx.Limits(
            max_connections=max_concurrent * per_provider,
            max_keepalive_connections=max_concurrent,
        ),
        follow_redirects=True,
        headers={"User-Agent": USER_AGENT},
    )


@asynccontextmanager
async def get_http_client() -> AsyncIterator[httpx.AsyncClient]:
    """Yield the shared client, creating it on first use.

    Leaving the block does not close it; ``cleanup()`` does, once the
    command is done.
    """
    global _client
    if _client is None:
        _client = _new_client()
        log.debug("Created HTTP client (%s)", USER_AGENT)
    yield _client


async def cleanup() -> None:
    global _client
    client, _client = _client, None
    if client is not None:
        await client.aclose()
