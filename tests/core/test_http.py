"""Tests for core/http.py (shared HTTP client)."""

from __future__ import annotations

from unittest.mock import patch

import httpx
import pytest

import quotaprobe.core.http as http_module
from quotaprobe.config.settings import Config
from quotaprobe.config.settings import FetchConfig
from quotaprobe.core.http import USER_AGENT
from quotaprobe.core.http import cleanup
from quotaprobe.core.http import get_http_client
from quotaprobe.core.http import get_timeout_config


@pytest.fixture(autouse=True)
def fresh_client():
    http_module._client = None
    yield
    http_module._client = None


class TestGetTimeoutConfig:
    """Tests for get_timeout_config."""

    def test_uses_web_timeout(self):
        with patch("quotaprobe.core.http.get_config") as mock_get_config:
            mock_get_config.return_value = Config(fetch=FetchConfig(web_timeout=45.0))
            timeout = get_timeout_config()

        assert isinstance(timeout, httpx.Timeout)
        assert timeout.read == 45.0
        assert timeout.write == 45.0
        assert timeout.connect == 10.0

    def test_connect_never_exceeds_web_timeout(self):
        with patch("quotaprobe.core.http.get_config") as mock_get_config:
            mock_get_config.return_value = Config(fetch=FetchConfig(web_timeout=3.0))
            timeout = get_timeout_config()

        assert timeout.connect == 3.0


class TestGetHttpClient:
    """Tests for the get_http_client context manager."""

    @pytest.mark.asyncio
    async def test_creates_client_on_first_use(self, temp_config_dir):
        async with get_http_client() as client:
            assert isinstance(client, httpx.AsyncClient)
            assert client.headers["User-Agent"] == USER_AGENT
        assert http_module._client is client
        await cleanup()

    @pytest.mark.asyncio
    async def test_reuses_client_across_blocks(self, temp_config_dir):
        async with get_http_client() as first:
            pass
        async with get_http_client() as second:
            pass
        assert first is second
        assert not first.is_closed
        await cleanup()

    @pytest.mark.asyncio
    async def test_cleanup_closes_and_resets(self, temp_config_dir):
        async with get_http_client() as client:
            pass
        await cleanup()

        assert client.is_closed
        assert http_module._client is None

    @pytest.mark.asyncio
    async def test_cleanup_without_client_is_noop(self):
        await cleanup()
        assert http_module._client is None
