"""CLI strategy for Codex provider."""

from __future__ import annotations

from quotaprobe.providers.codex.parser import parse_status_panel
from quotaprobe.strategies.base import FetchContext
from quotaprobe.strategies.base import FetchResult
from quotaprobe.strategies.cli import PTYCommandStrategy
from quotaprobe.terminal.markers import CompletionPredicate
from quotaprobe.terminal.markers import codex_status_complete
from quotaprobe.terminal.runner import PTYResult


class CodexCLIStrategy(PTYCommandStrategy):
    """Fetch Codex limits and credits from the ``/status`` panel."""

    id = "codex.cli"
    binary = "codex"
    command = "/status"

    def completion(self) -> CompletionPredicate:
        return codex_status_complete()

    def parse(self, result: PTYResult, context: FetchContext) -> FetchResult:
        usage, credits = parse_status_panel(result.text)
        return FetchResult(
            usage=usage, credits=credits if context.include_credits else None
        )
