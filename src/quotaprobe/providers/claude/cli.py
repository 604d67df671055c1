"""CLI strategy for Claude provider."""

from __future__ import annotations

from quotaprobe.providers.claude.parser import parse_usage_panel
from quotaprobe.strategies.base import FetchContext
from quotaprobe.strategies.base import FetchResult
from quotaprobe.strategies.cli import PTYCommandStrategy
from quotaprobe.terminal.markers import CompletionPredicate
from quotaprobe.terminal.markers import claude_usage_complete
from quotaprobe.terminal.runner import PTYResult


class ClaudeCLIStrategy(PTYCommandStrategy):
    """Fetch Claude usage from the ``/usage`` panel of the claude CLI."""

    id = "claude.cli"
    binary = "claude"
    command = "/usage"

    def completion(self) -> CompletionPredicate:
        return claude_usage_complete()

    def parse(self, result: PTYResult, context: FetchContext) -> FetchResult:
        return FetchResult(usage=parse_usage_panel(result.text))
