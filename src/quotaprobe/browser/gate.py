"""Browser cookie access gate.

When the OS credential store denies access to a browser's cookie
decryption key, the user has usually just dismissed a keychain prompt.
The gate remembers that denial for a cooldown window so the next fetches
do not prompt again, and persists it so restarts honor the window too.
"""

from __future__ import annotations

import logging
import sys
import threading
import time
from datetime import datetime
from datetime import timedelta
from typing import Any
from typing import Protocol

from quotaprobe.browser.browsers import Browser
from quotaprobe.errors.exceptions import AccessDenied

log = logging.getLogger(__name__)

PREFERENCES_KEY = "browserCookieAccessDeniedUntil"
DEFAULT_COOLDOWN = timedelta(hours=6)


class Preferences(Protocol):
    def get(self, key: str, default: Any = None) -> Any: ...

    def set(self, key: str, value: Any) -> None: ...


class BrowserCookieAccessGate:
    """Cooldown state machine suppressing repeated keychain prompts.

    State is ``{browser_id: denied_until_epoch_seconds}``, loaded lazily
    on first use and written back on every mutation.
    """

    def __init__(
        self,
        preferences: Preferences,
        cooldown: timedelta = DEFAULT_COOLDOWN,
        platform: str | None = None,
    ) -> None:
        self._preferences = preferences
        self.cooldown = cooldown
        self.platform = platform or sys.platform
        self._lock = threading.Lock()
        self._loaded = False
        self._denied_until: dict[str, float] = {}

    def _load_locked(self) -> None:
        if self._loaded:
            return
        self._loaded = True
        raw = self._preferences.get(PREFERENCES_KEY)
        if not isinstance(raw, dict):
            return
        for browser_id, until in raw.items():
            if isinstance(until, (int, float)):
                self._denied_until[str(browser_id)] = float(until)

    def _persist_locked(self) -> None:
        self._preferences.set(PREFERENCES_KEY, dict(self._denied_until))

    def should_attempt(self, browser: Browser, now: float | None = None) -> bool:
        """Return False while a denial for ``browser`` is still cooling down."""
        if not browser.uses_keychain(self.platform):
            return True
        now = time.time() if now is None else now
        with self._lock:
            self._load_locked()
            until = self._denied_until.get(browser.value)
            if until is None:
                return True
            if until > now:
                return False
            del self._denied_until[browser.value]
            self._persist_locked()
            return True

    def record_denied(self, browser: Browser, now: float | None = None) -> None:
        """Start (or restart) the cooldown window for ``browser``."""
        if not browser.uses_keychain(self.platform):
            return
        now = time.time() if now is None else now
        until = now + self.cooldown.total_seconds()
        with self._lock:
            self._load_locked()
            self._denied_until[browser.value] = until
            self._persist_locked()
        log.info(
            "Browser cookie access denied for %s; suppressing prompts until %s",
            browser.display_name,
            datetime.fromtimestamp(until).isoformat(timespec="seconds"),
        )

    def record_if_needed(self, error: BaseException, now: float | None = None) -> None:
        """Record a denial when ``error`` is an AccessDenied for a browser."""
        if not isinstance(error, AccessDenied):
            return
        self.record_denied(error.browser, now=now)

    def reset(self, browser: Browser | None = None) -> None:
        """Clear the denial for one browser, or for all of them."""
        with self._lock:
            self._load_locked()
            if browser is None:
                self._denied_until.clear()
            else:
                self._denied_until.pop(browser.value, None)
            self._persist_locked()

    def denied_until(self, browser: Browser, now: float | None = None) -> float | None:
        """Epoch seconds until which ``browser`` is suppressed, if it is."""
        now = time.time() if now is None else now
        with self._lock:
            self._load_locked()
            until = self._denied_until.get(browser.value)
        if until is None or until <= now:
            return None
        return until


_gate: BrowserCookieAccessGate | None = None


def get_access_gate() -> BrowserCookieAccessGate:
    """Get the process-wide access gate (singleton)."""
    global _gate
    if _gate is None:
        from quotaprobe.config.preferences import get_preferences
        from quotaprobe.config.settings import get_config

        hours = get_config().browser.access_cooldown_hours
        _gate = BrowserCookieAccessGate(get_preferences(), timedelta(hours=hours))
    return _gate
