"""Claude (Anthropic) provider for quotaprobe."""

from __future__ import annotations

from quotaprobe.providers.base import Provider
from quotaprobe.providers.base import ProviderMetadata
from quotaprobe.providers.claude.cli import ClaudeCLIStrategy
from quotaprobe.providers.claude.oauth import ClaudeOAuthStrategy
from quotaprobe.providers.claude.web import ClaudeWebStrategy
from quotaprobe.strategies.base import FetchContext
from quotaprobe.strategies.base import FetchStrategy
from quotaprobe.strategies.base import RuntimeKind
from quotaprobe.strategies.base import SourceMode


class ClaudeProvider(Provider):
    """Provider for Claude (Anthropic) usage."""

    metadata = ProviderMetadata(
        id="claude",
        name="Claude",
        description="Anthropic's Claude AI assistant",
        homepage="https://claude.ai",
        dashboard_url="https://claude.ai/settings/usage",
        window_labels=("Session", "Weekly", "Opus"),
    )

    def resolve_strategies(self, context: FetchContext) -> list[FetchStrategy]:
        """Return ordered list of fetch strategies for Claude.

        Explicit modes pin a single strategy. In auto mode a one-shot CLI
        run tries the browser session before the claude CLI; an app run
        prefers OAuth when the Claude CLI credentials were present.
        """
        match context.source_mode:
            case SourceMode.OAUTH:
                return [ClaudeOAuthStrategy()]
            case SourceMode.WEB:
                return [ClaudeWebStrategy()]
            case SourceMode.CLI:
                return [ClaudeCLIStrategy()]

        settings = context.settings
        if (
            context.runtime == RuntimeKind.APP
            and settings.claude_prefer_oauth
            and settings.claude_oauth_available
        ):
            return [ClaudeOAuthStrategy()]
        return [ClaudeWebStrategy(), ClaudeCLIStrategy()]


__all__ = ["ClaudeProvider"]
