"""Test doubles shared across the quotaprobe test suite."""

from __future__ import annotations

from typing import Any

from quotaprobe.errors.exceptions import CredentialAccessDenied


class MemoryPreferences:
    """In-memory stand-in for PreferencesStore."""

    def __init__(self, data: dict[str, Any] | None = None) -> None:
        self.data: dict[str, Any] = dict(data or {})
        self.writes = 0

    def get(self, key: str, default: Any = None) -> Any:
        return self.data.get(key, default)

    def set(self, key: str, value: Any) -> None:
        self.data[key] = value
        self.writes += 1


class FakeCredentialStore:
    """CredentialStore that denies reads for chosen keychain services."""

    def __init__(self, denied_services: set[str] | None = None) -> None:
        self.denied_services = denied_services or set()
        self.reads: list[tuple[str, str]] = []

    def read(self, service: str, account: str) -> bytes | None:
        self.reads.append((service, account))
        if service in self.denied_services:
            raise CredentialAccessDenied(f"{service}: user denied access")
        return b"secret"

    def write(self, service: str, account: str, value: bytes) -> None:
        pass

    def delete(self, service: str, account: str) -> None:
        pass


class FakeClock:
    """Manually advanced clock for TTL tests."""

    def __init__(self, start: float = 1000.0) -> None:
        self.value = start

    def __call__(self) -> float:
        return self.value

    def advance(self, seconds: float) -> None:
        self.value += seconds


class FakePTYRunner:
    """Runner that returns canned pty output and records what it was asked."""

    def __init__(self, text: str = "", error: BaseException | None = None) -> None:
        self.text = text
        self.error = error
        self.calls: list[tuple[str, str, Any]] = []

    async def run(self, binary: str, send: str = "", options: Any = None):
        from quotaprobe.terminal.runner import PTYResult

        self.calls.append((binary, send, options))
        if self.error is not None:
            raise self.error
        return PTYResult(text=self.text, exited_early=True, binary=binary)


class FakeCookieImporter:
    """Importer returning fixed candidates (or raising) without touching browsers."""

    def __init__(self, candidates: list | None = None, error: BaseException | None = None) -> None:
        self.candidates = candidates or []
        self.error = error
        self.calls: list[tuple] = []

    def load_candidates(self, domain, cookie_names, browsers):
        self.calls.append((domain, cookie_names, tuple(browsers)))
        if self.error is not None:
            raise self.error
        return list(self.candidates)
