"""Shared flow for strategies that scrape an interactive CLI in a pty."""

from __future__ import annotations

import dataclasses
import logging
from abc import abstractmethod
from typing import ClassVar

from quotaprobe.strategies.base import FetchContext
from quotaprobe.strategies.base import FetchKind
from quotaprobe.strategies.base import FetchResult
from quotaprobe.strategies.base import FetchStrategy
from quotaprobe.terminal.markers import CompletionPredicate
from quotaprobe.terminal.runner import PTYOptions
from quotaprobe.terminal.runner import PTYResult

log = logging.getLogger(__name__)


class PTYCommandStrategy(FetchStrategy):
    """Type a slash command into a CLI and parse what it draws.

    Always available: a missing binary surfaces as BinaryNotFound so the
    user learns why the CLI source produced nothing.
    """

    kind = FetchKind.CLI

    binary: ClassVar[str]
    command: ClassVar[str]  # e.g. "/usage"

    @abstractmethod
    def completion(self) -> CompletionPredicate: ...

    @abstractmethod
    def parse(self, result: PTYResult, context: FetchContext) -> FetchResult: ...

    def options(self, context: FetchContext) -> PTYOptions:
        base = context.pty_options or PTYOptions(env=context.env or None)
        return dataclasses.replace(
            base, timeout=context.cli_timeout, completion=self.completion()
        )

    async def fetch(self, context: FetchContext) -> FetchResult:
        runner = context.pty_runner
        if runner is None:
            from quotaprobe.terminal.runner import get_pty_runner

            runner = get_pty_runner()

        result = await runner.run(self.binary, f"{self.command}\n", self.options(context))
        log.debug(
            "%s: captured %d chars (timed_out=%s, exited_early=%s)",
            self.id,
            len(result.text),
            result.timed_out,
            result.exited_early,
        )
        return self.parse(result, context)
