"""Codex (OpenAI/ChatGPT) provider for quotaprobe."""

from __future__ import annotations

from quotaprobe.providers.base import Provider
from quotaprobe.providers.base import ProviderMetadata
from quotaprobe.providers.codex.cli import CodexCLIStrategy
from quotaprobe.providers.codex.sessions import CodexSessionsStrategy
from quotaprobe.providers.codex.web import CodexWebStrategy
from quotaprobe.strategies.base import FetchContext
from quotaprobe.strategies.base import FetchStrategy
from quotaprobe.strategies.base import RuntimeKind
from quotaprobe.strategies.base import SourceMode


class CodexProvider(Provider):
    """Provider for Codex (OpenAI/ChatGPT) usage."""

    metadata = ProviderMetadata(
        id="codex",
        name="Codex",
        description="OpenAI's ChatGPT and Codex",
        homepage="https://chatgpt.com",
        dashboard_url="https://chatgpt.com/codex/settings/usage",
        window_labels=("5h limit", "Weekly", "Model"),
    )

    def resolve_strategies(self, context: FetchContext) -> list[FetchStrategy]:
        """Return ordered list of fetch strategies for Codex.

        A long-lived app in auto mode reads the local session logs rather
        than opening a browser session or a pty on every poll.
        """
        match context.source_mode:
            case SourceMode.WEB:
                return [CodexWebStrategy()]
            case SourceMode.CLI | SourceMode.OAUTH:
                return [CodexCLIStrategy()]

        if context.runtime == RuntimeKind.CLI:
            return [CodexWebStrategy(), CodexCLIStrategy()]
        return [CodexSessionsStrategy()]


__all__ = ["CodexProvider"]
