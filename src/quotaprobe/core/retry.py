"""Backoff for transient HTTP failures on the web and token paths.

Only the network layer is retried here. Whether a *strategy* failure moves
on to the next strategy is the pipeline's decision, not this module's.
"""

import asyncio
import logging
import random
from collections.abc import Awaitable
from collections.abc import Callable
from dataclasses import dataclass
from typing import TypeVar

import httpx

from quotaprobe.errors.http import get_retry_after_delay
from quotaprobe.errors.types import classify_http_error

log = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class RetryConfig:
    max_attempts: int = 3
    base_delay: float = 1.0  # Seconds before the second attempt
    max_delay: float = 30.0
    exponential_base: float = 2.0
    jitter: bool = True


def calculate_retry_delay(attempt: int, config: RetryConfig) -> float:
    """Delay after 0-indexed ``attempt``, with up to 25% jitter, capped."""
    delay = config.base_delay * config.exponential_base**attempt
    if config.jitter:
        delay += delay * random.uniform(0.0, 0.25)
    return min(delay, config.max_delay)


def should_retry_exception(exc: BaseException) -> bool:
    """Network errors, timeouts and retryable statuses (429, 5xx)."""
    if isinstance(exc, (httpx.NetworkError, httpx.TimeoutException)):
        return True
    if isinstance(exc, httpx.HTTPStatusError):
        return classify_http_error(exc.response.status_code).should_retry
    return False


def _delay_for(exc: Exception, attempt: int, config: RetryConfig) -> float:
    delay = calculate_retry_delay(attempt, config)
    if isinstance(exc, httpx.HTTPStatusError) and exc.response.status_code == 429:
        # Honor Retry-After, but never beyond the cap
        delay = max(delay, get_retry_after_delay(exc.response, delay))
    return min(delay, config.max_delay)


async def with_retry(
    factory: Callable[[], Awaitable[T]],
    config: RetryConfig | None = None,
) -> T:
    """Await ``factory()`` until it succeeds or a non-retryable error occurs.

    ``factory`` must build a fresh awaitable per call. Errors the caller
    raises itself (e.g. LoginRequired on a 401) pass straight through.

    Raises:
        The last exception once ``max_attempts`` is used up
    """
    config = config or RetryConfig()
    if config.max_attempts < 1:
        raise ValueError("max_attempts must be at least 1")

    attempt = 0
    while True:
        try:
            return await factory()
        except Exception as e:
            attempt += 1
            if attempt >= config.max_attempts or not should_retry_exception(e):
                raise
            delay = _delay_for(e, attempt - 1, config)
            log.debug("Retrying after %s (attempt %d): %.1fs", type(e).__name__, attempt, delay)
            await asyncio.sleep(delay)
