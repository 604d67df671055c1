"""Browser catalogue: identifiers, labels, profile roots and keychain items."""

from __future__ import annotations

import sys
from enum import StrEnum
from typing import Literal

from msgspec import Struct

BrowserFamily = Literal["safari", "chromium", "firefox"]


class Browser(StrEnum):
    """Browsers quotaprobe can import cookies from."""

    SAFARI = "safari"
    CHROME = "chrome"
    ARC = "arc"
    BRAVE = "brave"
    EDGE = "edge"
    CHROMIUM = "chromium"
    VIVALDI = "vivaldi"
    OPERA = "opera"
    FIREFOX = "firefox"
    ZEN = "zen"

    @property
    def info(self) -> BrowserInfo:
        return BROWSER_INFO[self]

    @property
    def display_name(self) -> str:
        return self.info.display_name

    @property
    def family(self) -> BrowserFamily:
        return self.info.family

    def uses_keychain(self, platform: str | None = None) -> bool:
        """Whether reading this browser's cookies needs an OS keychain item.

        Only Chromium-family browsers on macOS decrypt cookies with a
        "Safe Storage" keychain password; that read is what prompts the user.
        """
        platform = platform or sys.platform
        return platform == "darwin" and self.info.keychain_service is not None


class BrowserInfo(Struct, frozen=True):
    """Static facts about one browser."""

    display_name: str
    family: BrowserFamily
    loader: str  # browser_cookie3 function name
    macos_root: str | None = None  # Relative to the home directory
    linux_root: str | None = None
    keychain_service: str | None = None
    keychain_account: str | None = None
    flat_profile: bool = False  # Root is the profile (no Default/ subdir)

    def profile_root(self, platform: str) -> str | None:
        if platform == "darwin":
            return self.macos_root
        if platform.startswith("linux"):
            return self.linux_root
        return None


BROWSER_INFO: dict[Browser, BrowserInfo] = {
    Browser.SAFARI: BrowserInfo(
        display_name="Safari",
        family="safari",
        loader="safari",
        macos_root="Library/Cookies",
    ),
    Browser.CHROME: BrowserInfo(
        display_name="Chrome",
        family="chromium",
        loader="chrome",
        macos_root="Library/Application Support/Google/Chrome",
        linux_root=".config/google-chrome",
        keychain_service="Chrome Safe Storage",
        keychain_account="Chrome",
    ),
    Browser.ARC: BrowserInfo(
        display_name="Arc",
        family="chromium",
        loader="arc",
        macos_root="Library/Application Support/Arc/User Data",
        keychain_service="Arc Safe Storage",
        keychain_account="Arc",
    ),
    Browser.BRAVE: BrowserInfo(
        display_name="Brave",
        family="chromium",
        loader="brave",
        macos_root="Library/Application Support/BraveSoftware/Brave-Browser",
        linux_root=".config/BraveSoftware/Brave-Browser",
        keychain_service="Brave Safe Storage",
        keychain_account="Brave",
    ),
    Browser.EDGE: BrowserInfo(
        display_name="Edge",
        family="chromium",
        loader="edge",
        macos_root="Library/Application Support/Microsoft Edge",
        linux_root=".config/microsoft-edge",
        keychain_service="Microsoft Edge Safe Storage",
        keychain_account="Microsoft Edge",
    ),
    Browser.CHROMIUM: BrowserInfo(
        display_name="Chromium",
        family="chromium",
        loader="chromium",
        macos_root="Library/Application Support/Chromium",
        linux_root=".config/chromium",
        keychain_service="Chromium Safe Storage",
        keychain_account="Chromium",
    ),
    Browser.VIVALDI: BrowserInfo(
        display_name="Vivaldi",
        family="chromium",
        loader="vivaldi",
        macos_root="Library/Application Support/Vivaldi",
        linux_root=".config/vivaldi",
        keychain_service="Vivaldi Safe Storage",
        keychain_account="Vivaldi",
    ),
    Browser.OPERA: BrowserInfo(
        display_name="Opera",
        family="chromium",
        loader="opera",
        macos_root="Library/Application Support/com.operasoftware.Opera",
        linux_root=".config/opera",
        keychain_service="Opera Safe Storage",
        keychain_account="Opera",
        flat_profile=True,
    ),
    Browser.FIREFOX: BrowserInfo(
        display_name="Firefox",
        family="firefox",
        loader="firefox",
        macos_root="Library/Application Support/Firefox/Profiles",
        linux_root=".mozilla/firefox",
    ),
    Browser.ZEN: BrowserInfo(
        display_name="Zen",
        family="firefox",
        loader="firefox",
        macos_root="Library/Application Support/zen/Profiles",
        linux_root=".zen",
    ),
}


def parse_browser(value: str) -> Browser:
    """Parse a browser id, accepting display names case-insensitively."""
    normalized = value.strip().lower()
    for browser in Browser:
        if normalized in (browser.value, browser.display_name.lower()):
            return browser
    raise ValueError(f"Unknown browser: {value!r}")


def parse_browser_order(values: list[str]) -> list[Browser]:
    """Parse a configured browser order, dropping duplicates."""
    order: list[Browser] = []
    for value in values:
        browser = parse_browser(value)
        if browser not in order:
            order.append(browser)
    return order
