"""Shared flow for strategies that reuse a browser's logged-in session."""

from __future__ import annotations

import asyncio
import logging
from abc import abstractmethod
from typing import ClassVar

import msgspec

from quotaprobe.browser.browsers import parse_browser_order
from quotaprobe.browser.cookies import BrowserCandidate
from quotaprobe.browser.cookies import prioritize
from quotaprobe.browser.cookies import remember_label
from quotaprobe.browser.cookies import remembered_label
from quotaprobe.errors.exceptions import LoginRequired
from quotaprobe.models import DashboardSnapshot
from quotaprobe.strategies.base import FetchContext
from quotaprobe.strategies.base import FetchKind
from quotaprobe.strategies.base import FetchResult
from quotaprobe.strategies.base import FetchStrategy

log = logging.getLogger(__name__)


class BrowserSessionStrategy(FetchStrategy):
    """Import session cookies, then try each browser profile in turn.

    The profile that last worked is tried first. A candidate whose session
    has expired (LoginRequired) moves on to the next one; any other error
    stops the strategy.
    """

    kind = FetchKind.WEB

    provider_id: ClassVar[str]
    cookie_domain: ClassVar[str]
    cookie_names: ClassVar[tuple[str, ...] | None] = None

    async def load_candidates(self, context: FetchContext) -> list[BrowserCandidate]:
        importer = context.cookie_importer
        if importer is None:
            from quotaprobe.browser.cookies import get_cookie_importer

            importer = get_cookie_importer()

        browsers = context.settings.cookie_browsers
        if not browsers:
            from quotaprobe.config.settings import get_config

            browsers = tuple(parse_browser_order(get_config().browser.cookie_order))

        # Cookie stores are sqlite files and keychain calls; keep them off the loop
        candidates = await asyncio.to_thread(
            importer.load_candidates, self.cookie_domain, self.cookie_names, browsers
        )
        return prioritize(
            candidates, remembered_label(context.preferences, self.provider_id)
        )

    async def fetch(self, context: FetchContext) -> FetchResult:
        candidates = await self.load_candidates(context)

        last_error: LoginRequired | None = None
        for candidate in candidates:
            try:
                result = await self.fetch_with_candidate(candidate, context)
            except LoginRequired as e:
                log.debug("%s: %s session rejected: %s", self.id, candidate.label, e)
                last_error = e
                continue

            remember_label(context.preferences, self.provider_id, candidate.label)
            dashboard = result.dashboard or DashboardSnapshot()
            return msgspec.structs.replace(
                result,
                dashboard=msgspec.structs.replace(dashboard, source_label=candidate.label),
            )

        if last_error is not None:
            raise last_error
        raise LoginRequired(f"No {self.cookie_domain} session could be used.")

    @abstractmethod
    async def fetch_with_candidate(
        self, candidate: BrowserCandidate, context: FetchContext
    ) -> FetchResult:
        """Fetch usage with one profile's cookies.

        Raises LoginRequired when the session is not (or no longer) valid.
        """
