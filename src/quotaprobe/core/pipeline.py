"""Fetch pipeline for executing provider fetch strategies."""

from __future__ import annotations

import asyncio
import logging
import os
import time
from collections.abc import Callable
from collections.abc import Sequence
from typing import TYPE_CHECKING

from quotaprobe.config.credentials import has_provider_credential
from quotaprobe.config.settings import Config
from quotaprobe.config.settings import get_config
from quotaprobe.errors.exceptions import NoStrategyAvailable
from quotaprobe.errors.exceptions import QuotaprobeFetchError
from quotaprobe.errors.exceptions import StrategyTimeout
from quotaprobe.strategies.base import FetchAttempt
from quotaprobe.strategies.base import FetchContext
from quotaprobe.strategies.base import FetchOutcome
from quotaprobe.strategies.base import FetchResult
from quotaprobe.strategies.base import FetchStrategy
from quotaprobe.strategies.base import ProviderSettingsSnapshot
from quotaprobe.strategies.base import RuntimeKind
from quotaprobe.strategies.base import SourceMode

if TYPE_CHECKING:
    from quotaprobe.providers.base import Provider

log = logging.getLogger(__name__)

StrategyResolver = Callable[[FetchContext], Sequence[FetchStrategy]]


class FetchPipeline:
    """Ordered, fallback-aware execution of a provider's strategies."""

    def __init__(
        self,
        resolve_strategies: StrategyResolver,
        timeout: float | None = None,
    ) -> None:
        self._resolve_strategies = resolve_strategies
        self._timeout = timeout

    @property
    def timeout(self) -> float:
        """Hard per-strategy deadline in seconds."""
        if self._timeout is not None:
            return self._timeout
        return get_config().fetch.timeout

    def resolve(self, context: FetchContext) -> list[FetchStrategy]:
        """Ordered strategies for ``context``; a pure function of the context."""
        return list(self._resolve_strategies(context))

    async def run(
        self,
        context: FetchContext,
        provider_id: str,
        attempts: list[FetchAttempt] | None = None,
    ) -> FetchResult:
        """Try each resolved strategy in order until one succeeds.

        Unavailable strategies are skipped without being recorded. After a
        failure the access gate sees the error first, then the strategy
        decides whether the next one may run.

        Args:
            context: Fetch context for this run
            provider_id: Provider identifier, attached to raised errors
            attempts: Optional list that receives one FetchAttempt per run strategy

        Raises:
            NoStrategyAvailable: no resolved strategy was available
            QuotaprobeFetchError: the error that stopped the pipeline, or the
                last one when every strategy fell back
        """
        last_error: BaseException | None = None

        for strategy in self.resolve(context):
            if not await strategy.is_available(context):
                log.debug("%s: %s not available, skipping", provider_id, strategy.id)
                continue

            log.debug("%s: trying %s", provider_id, strategy.id)
            start_time = time.monotonic()
            error: BaseException | None = None
            try:
                result = await asyncio.wait_for(
                    strategy.fetch(context), timeout=self.timeout
                )
            except TimeoutError:
                error = StrategyTimeout(
                    f"{strategy.id} did not finish within {self.timeout:g}s",
                    provider=provider_id,
                    strategy_id=strategy.id,
                )
            except Exception as e:
                error = e

            duration_ms = int((time.monotonic() - start_time) * 1000)

            if error is None:
                log.debug("%s: %s succeeded in %dms", provider_id, strategy.id, duration_ms)
                if attempts is not None:
                    attempts.append(
                        FetchAttempt(
                            strategy=strategy.id,
                            kind=strategy.kind,
                            success=True,
                            duration_ms=duration_ms,
                        )
                    )
                return result

            if isinstance(error, QuotaprobeFetchError):
                error.provider = error.provider or provider_id
                error.strategy_id = error.strategy_id or strategy.id

            if attempts is not None:
                attempts.append(
                    FetchAttempt(
                        strategy=strategy.id,
                        kind=strategy.kind,
                        success=False,
                        error=str(error),
                        error_type=type(error).__name__,
                        duration_ms=duration_ms,
                    )
                )

            if context.access_gate is not None:
                context.access_gate.record_if_needed(error)

            if strategy.should_fallback(error, context):
                log.info("%s: %s failed (%s), falling back", provider_id, strategy.id, error)
                last_error = error
                continue

            log.debug("%s: %s failed without fallback: %s", provider_id, strategy.id, error)
            raise error

        if last_error is not None:
            raise last_error
        raise NoStrategyAvailable(provider_id)


async def execute_fetch_pipeline(
    provider: Provider,
    context: FetchContext,
) -> FetchOutcome:
    """Run a provider's pipeline and report the outcome instead of raising.

    Returns:
        FetchOutcome with result or error, plus every attempt made
    """
    attempts: list[FetchAttempt] = []
    try:
        result = await provider.pipeline.run(context, provider.id, attempts)
    except Exception as e:
        return FetchOutcome(
            provider_id=provider.id,
            success=False,
            result=None,
            source=None,
            attempts=attempts,
            error=e,
        )

    source = result.source_override or (attempts[-1].strategy if attempts else None)
    return FetchOutcome(
        provider_id=provider.id,
        success=True,
        result=result,
        source=source,
        attempts=attempts,
    )


def build_fetch_context(
    provider_id: str,
    *,
    runtime: RuntimeKind = RuntimeKind.CLI,
    source_mode: SourceMode | None = None,
    include_credits: bool = True,
    verbose: bool = False,
    config: Config | None = None,
    env: dict[str, str] | None = None,
) -> FetchContext:
    """Assemble a fresh FetchContext from configuration and shared services."""
    from quotaprobe.browser.browsers import parse_browser_order
    from quotaprobe.browser.cookies import get_cookie_importer
    from quotaprobe.browser.gate import get_access_gate
    from quotaprobe.config.keyring import KeyringCredentialStore
    from quotaprobe.config.preferences import get_preferences
    from quotaprobe.terminal.runner import PTYOptions
    from quotaprobe.terminal.runner import get_pty_runner

    config = config or get_config()
    env = dict(os.environ) if env is None else env
    mode = source_mode or SourceMode(config.get_provider_source(provider_id))

    zai_token = config.get_provider_config("zai").api_token
    settings = ProviderSettingsSnapshot(
        zai_api_token=zai_token.strip() if zai_token else None,
        claude_prefer_oauth=config.get_provider_config("claude").prefer_oauth,
        claude_oauth_available=has_provider_credential("claude", env),
        cookie_browsers=tuple(parse_browser_order(config.browser.cookie_order)),
    )

    pty = config.pty
    return FetchContext(
        runtime=runtime,
        source_mode=mode,
        web_timeout=config.fetch.web_timeout,
        cli_timeout=pty.timeout,
        include_credits=include_credits,
        verbose=verbose,
        env=env,
        settings=settings,
        pty_runner=get_pty_runner(),
        pty_options=PTYOptions(
            rows=pty.rows,
            cols=pty.cols,
            timeout=pty.timeout,
            poll_interval=pty.poll_interval,
            env=env,
        ),
        cookie_importer=get_cookie_importer(),
        access_gate=get_access_gate(),
        credential_store=KeyringCredentialStore(),
        preferences=get_preferences(),
    )
