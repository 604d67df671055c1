"""Browser cookie import for web strategies.

Walks the configured browsers in order, consulting the presence cache and
the access gate before anything can trigger a keychain prompt, and
returns one candidate per browser profile that holds the wanted cookies.

On macOS a denied "<Browser> Safe Storage" read is invisible to
browser_cookie3: it falls back to a default key and yields undecryptable
values. The importer therefore reads the keychain item itself first, so a
denial can be recorded in the gate. A granted read is remembered for the
life of the importer, which keeps this to one extra read per browser.
"""

from __future__ import annotations

import logging
import sys
import threading
from collections.abc import Callable
from collections.abc import Collection
from collections.abc import Iterable
from http.cookiejar import Cookie
from pathlib import Path
from typing import Any

import browser_cookie3
from msgspec import Struct

from quotaprobe.browser.browsers import Browser
from quotaprobe.browser.detection import BrowserDetection
from quotaprobe.browser.gate import BrowserCookieAccessGate
from quotaprobe.config.keyring import CredentialStore
from quotaprobe.errors.exceptions import AccessDenied
from quotaprobe.errors.exceptions import CredentialAccessDenied
from quotaprobe.errors.exceptions import NoCredential

log = logging.getLogger(__name__)

CookieLoader = Callable[[Browser, Path | None, str], Iterable[Cookie]]

# Preferences key: {provider_id: candidate label}
LAST_CANDIDATE_KEY = "lastCookieCandidate"


class BrowserCandidate(Struct, frozen=True):
    """Cookies found in one browser profile."""

    browser: Browser
    label: str  # e.g. "Chrome Profile 1"
    cookies: dict[str, str]

    def header(self) -> str:
        """Render as a Cookie header value."""
        return "; ".join(f"{name}={value}" for name, value in self.cookies.items())


def _cookie_file(browser: Browser, profile: Path) -> Path | None:
    if browser.family == "safari":
        return None
    if browser.family == "firefox":
        return profile / "cookies.sqlite"
    network = profile / "Network" / "Cookies"
    if network.exists():
        return network
    return profile / "Cookies"


def load_browser_cookies(
    browser: Browser, cookie_file: Path | None, domain: str
) -> Iterable[Cookie]:
    """Read cookies for ``domain`` with browser_cookie3."""
    loader = getattr(browser_cookie3, browser.info.loader, None)
    if loader is None:
        raise browser_cookie3.BrowserCookieError(
            f"browser_cookie3 has no loader for {browser.display_name}"
        )
    if cookie_file is None:
        return loader(domain_name=domain)
    return loader(cookie_file=str(cookie_file), domain_name=domain)


def _wanted(name: str, cookie_names: Collection[str] | None) -> bool:
    if cookie_names is None:
        return True
    # Chunked cookies arrive as "<name>.0", "<name>.1", ...
    return any(name == wanted or name.startswith(f"{wanted}.") for wanted in cookie_names)


def profile_label(browser: Browser, profile: Path | None) -> str:
    if profile is None or profile.name in ("Default", "") or browser.info.flat_profile:
        return browser.display_name
    return f"{browser.display_name} {profile.name}"


class BrowserCookieImporter:
    """Collects cookie candidates across browsers and profiles."""

    def __init__(
        self,
        detection: BrowserDetection,
        gate: BrowserCookieAccessGate,
        credential_store: CredentialStore | None = None,
        loader: CookieLoader = load_browser_cookies,
        platform: str | None = None,
    ) -> None:
        self.detection = detection
        self.gate = gate
        self.credential_store = credential_store
        self.loader = loader
        self.platform = platform or sys.platform
        self._keychain_granted: set[Browser] = set()
        # Providers import concurrently; one keychain prompt at a time
        self._keychain_lock = threading.Lock()

    def _keychain_allows(self, browser: Browser) -> bool:
        """Touch the browser's keychain item once; record a denial."""
        if self.credential_store is None or not browser.uses_keychain(self.platform):
            return True
        info = browser.info
        with self._keychain_lock:
            if browser in self._keychain_granted:
                return True
            try:
                self.credential_store.read(info.keychain_service, info.keychain_account)
            except CredentialAccessDenied as e:
                log.debug("Keychain denied %s: %s", browser.display_name, e)
                self.gate.record_denied(browser)
                return False
            self._keychain_granted.add(browser)
        return True

    def _profiles(self, browser: Browser) -> list[Path | None]:
        if browser.family == "safari":
            return [None]
        return list(self.detection.profile_dirs(browser))

    def load_candidates(
        self,
        domain: str,
        cookie_names: Collection[str] | None,
        browsers: Iterable[Browser],
    ) -> list[BrowserCandidate]:
        """Return every profile holding the wanted cookies, in browser order.

        Raises:
            AccessDenied: nothing was found and a browser's keychain refused access
            NoCredential: nothing was found at all
        """
        candidates: list[BrowserCandidate] = []
        denied: Browser | None = None

        for browser in self.detection.filter_installed(browsers):
            if not self.gate.should_attempt(browser):
                log.debug("Skipping %s: access gate cooling down", browser.display_name)
                continue
            if not self._keychain_allows(browser):
                denied = denied or browser
                continue

            for profile in self._profiles(browser):
                cookie_file = _cookie_file(browser, profile) if profile else None
                try:
                    jar = self.loader(browser, cookie_file, domain)
                    cookies = {
                        c.name: c.value
                        for c in jar
                        if c.value is not None and _wanted(c.name, cookie_names)
                    }
                except (browser_cookie3.BrowserCookieError, OSError) as e:
                    log.debug("Cookie read failed for %s: %s", browser.display_name, e)
                    continue

                if cookies:
                    label = profile_label(browser, profile)
                    log.debug("Found %d %s cookies in %s", len(cookies), domain, label)
                    candidates.append(
                        BrowserCandidate(browser=browser, label=label, cookies=cookies)
                    )

        if candidates:
            return candidates
        if denied is not None:
            raise AccessDenied(denied, details=f"no {domain} cookies could be read")
        raise NoCredential(f"No {domain} session cookies found in any browser.")


def prioritize(
    candidates: list[BrowserCandidate], preferred_label: str | None
) -> list[BrowserCandidate]:
    """Move the candidate that last worked to the front."""
    if not preferred_label:
        return candidates
    preferred = [c for c in candidates if c.label == preferred_label]
    rest = [c for c in candidates if c.label != preferred_label]
    return preferred + rest


def remembered_label(preferences: Any, provider_id: str) -> str | None:
    """Label of the candidate that last produced usage for ``provider_id``."""
    if preferences is None:
        return None
    labels = preferences.get(LAST_CANDIDATE_KEY)
    if not isinstance(labels, dict):
        return None
    label = labels.get(provider_id)
    return label if isinstance(label, str) else None


def remember_label(preferences: Any, provider_id: str, label: str) -> None:
    if preferences is None or remembered_label(preferences, provider_id) == label:
        return
    labels = preferences.get(LAST_CANDIDATE_KEY)
    labels = dict(labels) if isinstance(labels, dict) else {}
    labels[provider_id] = label
    preferences.set(LAST_CANDIDATE_KEY, labels)


_importer: BrowserCookieImporter | None = None


def get_cookie_importer() -> BrowserCookieImporter:
    """Get the process-wide cookie importer (singleton)."""
    global _importer
    if _importer is None:
        from quotaprobe.browser.detection import get_browser_detection
        from quotaprobe.browser.gate import get_access_gate
        from quotaprobe.config.keyring import KeyringCredentialStore

        _importer = BrowserCookieImporter(
            get_browser_detection(), get_access_gate(), KeyringCredentialStore()
        )
    return _importer
