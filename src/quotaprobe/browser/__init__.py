"""Browser cookie discovery: presence cache, access gate and importer."""

from quotaprobe.browser.browsers import Browser
from quotaprobe.browser.browsers import parse_browser
from quotaprobe.browser.browsers import parse_browser_order
from quotaprobe.browser.cookies import BrowserCandidate
from quotaprobe.browser.cookies import BrowserCookieImporter
from quotaprobe.browser.cookies import get_cookie_importer
from quotaprobe.browser.cookies import prioritize
from quotaprobe.browser.cookies import remember_label
from quotaprobe.browser.cookies import remembered_label
from quotaprobe.browser.detection import BrowserDetection
from quotaprobe.browser.detection import get_browser_detection
from quotaprobe.browser.gate import BrowserCookieAccessGate
from quotaprobe.browser.gate import get_access_gate

__all__ = [
    "Browser",
    "parse_browser",
    "parse_browser_order",
    "BrowserCandidate",
    "BrowserCookieImporter",
    "get_cookie_importer",
    "prioritize",
    "remember_label",
    "remembered_label",
    "BrowserDetection",
    "get_browser_detection",
    "BrowserCookieAccessGate",
    "get_access_gate",
]
