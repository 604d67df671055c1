"""Pytest configuration and shared fixtures for quotaprobe tests."""

from __future__ import annotations

from collections.abc import Generator
from datetime import datetime
from datetime import timedelta
from datetime import timezone
from pathlib import Path
from unittest.mock import patch

import pytest

from quotaprobe.browser.browsers import Browser
from quotaprobe.models import ProviderIdentity
from quotaprobe.models import RateWindow
from quotaprobe.models import UsageSnapshot
from quotaprobe.strategies.base import FetchContext
from quotaprobe.strategies.base import FetchResult

from tests.helpers import FakeClock
from tests.helpers import FakeCredentialStore
from tests.helpers import MemoryPreferences


@pytest.fixture
def utc_now() -> datetime:
    """Fixed UTC datetime for consistent testing."""
    return datetime(2026, 1, 15, 12, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def sample_window(utc_now: datetime) -> RateWindow:
    """Session window with a known reset."""
    return RateWindow(
        used_percent=65,
        window_minutes=300,
        resets_at=utc_now + timedelta(hours=3),
    )


@pytest.fixture
def sample_identity() -> ProviderIdentity:
    """Sample provider identity."""
    return ProviderIdentity(
        email="user@example.com",
        organization="Acme Corp",
        login_method="Claude Max",
    )


@pytest.fixture
def sample_snapshot(
    utc_now: datetime,
    sample_window: RateWindow,
    sample_identity: ProviderIdentity,
) -> UsageSnapshot:
    """Snapshot with session and weekly windows."""
    return UsageSnapshot(
        updated_at=utc_now,
        primary=sample_window,
        secondary=RateWindow(used_percent=30, window_minutes=10080),
        identity=sample_identity,
    )


@pytest.fixture
def sample_result(sample_snapshot: UsageSnapshot) -> FetchResult:
    return FetchResult(usage=sample_snapshot)


@pytest.fixture
def memory_preferences() -> MemoryPreferences:
    return MemoryPreferences()


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def denying_store() -> FakeCredentialStore:
    """Credential store that refuses the Chrome Safe Storage item."""
    return FakeCredentialStore({Browser.CHROME.info.keychain_service})


@pytest.fixture
def auto_context() -> FetchContext:
    """Minimal auto-mode context with no services attached."""
    return FetchContext()


@pytest.fixture
def temp_config_dir(tmp_path: Path) -> Generator[Path, None, None]:
    """Point config and state paths at a temporary directory."""
    config_dir = tmp_path / "config"
    state_dir = tmp_path / "state"
    config_dir.mkdir()
    state_dir.mkdir()

    with patch.dict(
        "os.environ",
        {
            "QUOTAPROBE_CONFIG_DIR": str(config_dir),
            "QUOTAPROBE_STATE_DIR": str(state_dir),
        },
    ):
        yield config_dir


@pytest.fixture(autouse=True)
def reset_singletons() -> Generator[None, None, None]:
    """Drop process-wide singletons so tests do not leak state."""
    import quotaprobe.browser.cookies
    import quotaprobe.browser.detection
    import quotaprobe.browser.gate
    import quotaprobe.config.preferences
    import quotaprobe.config.settings

    yield
    quotaprobe.browser.cookies._importer = None
    quotaprobe.browser.detection._detection = None
    quotaprobe.browser.gate._gate = None
    quotaprobe.config.preferences._preferences = None
    quotaprobe.config.settings._config = None


@pytest.fixture
def install_http(monkeypatch):
    """Route the shared HTTP client through an httpx.MockTransport handler."""
    import httpx

    import quotaprobe.core.http as http_module

    def install(handler) -> httpx.AsyncClient:
        client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        monkeypatch.setattr(http_module, "_client", client)
        return client

    return install
