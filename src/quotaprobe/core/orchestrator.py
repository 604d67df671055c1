"""Orchestration for multi-provider fetch operations."""

from __future__ import annotations

import asyncio
import logging
from collections import defaultdict
from collections.abc import Callable
from typing import TYPE_CHECKING

from quotaprobe.config.settings import get_config
from quotaprobe.core.pipeline import execute_fetch_pipeline
from quotaprobe.strategies.base import FetchContext
from quotaprobe.strategies.base import FetchOutcome

if TYPE_CHECKING:
    from quotaprobe.providers.base import Provider

log = logging.getLogger(__name__)

ContextFactory = Callable[[str], FetchContext]
OutcomeCallback = Callable[[FetchOutcome], None]


async def fetch_single_provider(
    provider: Provider,
    context: FetchContext,
    on_complete: OutcomeCallback | None = None,
) -> FetchOutcome:
    """Fetch usage data from a single provider.

    Args:
        provider: Provider to fetch
        context: Fetch context for this run
        on_complete: Optional callback called with outcome after fetch

    Returns:
        FetchOutcome with result or error
    """
    outcome = await execute_fetch_pipeline(provider, context)

    if on_complete:
        on_complete(outcome)

    return outcome


async def fetch_all_providers(
    providers: list[Provider],
    make_context: ContextFactory,
    on_complete: OutcomeCallback | None = None,
    max_concurrent: int | None = None,
) -> dict[str, FetchOutcome]:
    """Fetch usage data from all providers concurrently.

    Args:
        providers: Providers to fetch
        make_context: Builds a fresh context for a provider id
        on_complete: Optional callback called with each outcome after fetch
        max_concurrent: Concurrency bound, defaults to config.fetch.max_concurrent

    Returns:
        Dict of provider_id to FetchOutcome, in the order providers were given
    """
    if max_concurrent is None:
        max_concurrent = get_config().fetch.max_concurrent

    outcomes: dict[str, FetchOutcome] = {}
    semaphore = asyncio.Semaphore(max(1, max_concurrent))

    async def bounded_fetch(provider: Provider) -> None:
        async with semaphore:
            context = make_context(provider.id)
            outcomes[provider.id] = await fetch_single_provider(
                provider, context, on_complete
            )

    results = await asyncio.gather(
        *(bounded_fetch(p) for p in providers), return_exceptions=True
    )
    for provider, result in zip(providers, results):
        if isinstance(result, BaseException):
            # execute_fetch_pipeline never raises; this is a callback or context bug
            log.error("Fetching %s crashed: %r", provider.id, result)
            outcomes[provider.id] = FetchOutcome(
                provider_id=provider.id,
                success=False,
                result=None,
                source=None,
                attempts=[],
                error=result,
            )

    return {p.id: outcomes[p.id] for p in providers}


async def fetch_enabled_providers(
    providers: list[Provider],
    make_context: ContextFactory,
    on_complete: OutcomeCallback | None = None,
) -> dict[str, FetchOutcome]:
    """Fetch only enabled providers based on config.

    Returns:
        Dict of provider_id to FetchOutcome for enabled providers
    """
    config = get_config()
    enabled = [p for p in providers if config.is_provider_enabled(p.id)]
    return await fetch_all_providers(enabled, make_context, on_complete)


def categorize_results(outcomes: dict[str, FetchOutcome]) -> dict[str, list[str]]:
    """Categorize outcomes by result type.

    Returns dict with keys: 'success', 'failure'
    """
    categories: defaultdict[str, list[str]] = defaultdict(list)

    for provider_id, outcome in outcomes.items():
        if outcome.success:
            categories["success"].append(provider_id)
        else:
            categories["failure"].append(provider_id)

    return dict(categories)
