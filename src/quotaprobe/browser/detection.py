"""Browser presence cache.

Cheap, TTL-cached answer to "is this browser worth trying?". Skipping
browsers without profile data on disk avoids needless keychain prompts
for browsers the user never ran.
"""

from __future__ import annotations

import sys
import threading
import time
from collections.abc import Callable
from collections.abc import Iterable
from pathlib import Path
from typing import Any

from quotaprobe.browser.browsers import Browser

DEFAULT_CACHE_TTL = 600.0  # seconds


def _default_file_exists(path: Path) -> bool:
    return path.exists()


def _default_list_dir(path: Path) -> list[str] | None:
    try:
        return [entry.name for entry in path.iterdir()]
    except OSError:
        return None


def _is_chromium_profile(name: str) -> bool:
    return name == "Default" or name.startswith("Profile ") or name.startswith("user-")


def _is_firefox_profile(name: str) -> bool:
    return ".default" in name


class BrowserDetection:
    """Presence heuristics for browsers, cached per (browser, probe)."""

    def __init__(
        self,
        home: Path | None = None,
        cache_ttl: float = DEFAULT_CACHE_TTL,
        now: Callable[[], float] = time.monotonic,
        file_exists: Callable[[Path], bool] = _default_file_exists,
        list_dir: Callable[[Path], list[str] | None] = _default_list_dir,
        platform: str | None = None,
    ) -> None:
        self.home = home or Path.home()
        self.cache_ttl = cache_ttl
        self.platform = platform or sys.platform
        self._now = now
        self._file_exists = file_exists
        self._list_dir = list_dir
        self._cache: dict[tuple[Browser, str], tuple[Any, float]] = {}
        self._lock = threading.Lock()

    def _cached(self, browser: Browser, probe: str, compute: Callable[[], Any]) -> Any:
        now = self._now()
        key = (browser, probe)
        with self._lock:
            cached = self._cache.get(key)
        if cached is not None and now - cached[1] < self.cache_ttl:
            return cached[0]

        value = compute()
        with self._lock:
            self._cache[key] = (value, now)
        return value

    def profile_root(self, browser: Browser) -> Path | None:
        relative = browser.info.profile_root(self.platform)
        if relative is None:
            return None
        return self.home / relative

    def is_installed(self, browser: Browser) -> bool:
        """Return True when a cookie import from this browser is worth trying."""
        # Safari is always present on macOS
        if browser is Browser.SAFARI and self.platform == "darwin":
            return True
        return self._cached(browser, "installed", lambda: self._detect_installed(browser))

    def filter_installed(self, browsers: Iterable[Browser]) -> list[Browser]:
        """Order-preserving filter of ``browsers`` through ``is_installed``."""
        return [browser for browser in browsers if self.is_installed(browser)]

    def profile_dirs(self, browser: Browser) -> list[Path]:
        """List usable profile directories for a browser, sorted by name."""
        return self._cached(browser, "profiles", lambda: self._detect_profiles(browser))

    def clear_cache(self) -> None:
        with self._lock:
            self._cache.clear()

    def _detect_installed(self, browser: Browser) -> bool:
        root = self.profile_root(browser)
        if root is None or not self._file_exists(root):
            return False
        if not self._requires_profile_validation(browser):
            return True
        return bool(self._matching_profiles(browser, root))

    def _detect_profiles(self, browser: Browser) -> list[Path]:
        root = self.profile_root(browser)
        if root is None or not self._file_exists(root):
            return []
        if not self._requires_profile_validation(browser):
            return [root]
        return [root / name for name in self._matching_profiles(browser, root)]

    def _requires_profile_validation(self, browser: Browser) -> bool:
        if browser.family == "safari":
            return False
        return not browser.info.flat_profile

    def _matching_profiles(self, browser: Browser, root: Path) -> list[str]:
        contents = self._list_dir(root)
        if not contents:
            return []
        matcher = _is_firefox_profile if browser.family == "firefox" else _is_chromium_profile
        # Default first, then lexical
        return sorted(
            (name for name in contents if matcher(name)),
            key=lambda name: (name != "Default", name),
        )


_detection: BrowserDetection | None = None


def get_browser_detection() -> BrowserDetection:
    """Get the process-wide presence cache (singleton)."""
    global _detection
    if _detection is None:
        from quotaprobe.config.settings import get_config

        ttl = get_config().browser.presence_ttl_minutes * 60
        _detection = BrowserDetection(cache_ttl=ttl)
    return _detection
