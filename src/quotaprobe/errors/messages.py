"""Provider-specific error message templates with remediation."""

from __future__ import annotations

from quotaprobe.errors.exceptions import AccessDenied
from quotaprobe.errors.exceptions import BinaryNotFound
from quotaprobe.errors.exceptions import LoginRequired
from quotaprobe.errors.exceptions import NoCredential
from quotaprobe.errors.exceptions import NoStrategyAvailable
from quotaprobe.errors.exceptions import PTYTimeout
from quotaprobe.errors.exceptions import QuotaprobeFetchError
from quotaprobe.errors.exceptions import TokenMissing
from quotaprobe.errors.exceptions import TokenRejected

REMEDIATION_TEMPLATES: dict[str, dict[str, str]] = {
    "claude": {
        "no_credentials": (
            "No Claude session found.\n"
            "Log into [cyan]claude.ai[/cyan] in your browser, or run "
            "[cyan]claude login[/cyan] for OAuth credentials."
        ),
        "login_required": (
            "Claude session expired.\n"
            "Log into [cyan]claude.ai[/cyan] in your browser again."
        ),
        "token_rejected": (
            "Claude OAuth token rejected.\nRun: [cyan]claude login[/cyan]"
        ),
        "cli_not_found": (
            "Claude CLI not found in PATH.\n"
            "Install it from: [cyan]https://claude.ai/download[/cyan] "
            "or set CLAUDE_CLI_PATH."
        ),
        "pty_timeout": (
            "Claude CLI did not answer /usage in time.\n"
            "Run [cyan]claude[/cyan] once interactively to finish any first-run prompts."
        ),
    },
    "codex": {
        "no_credentials": (
            "No ChatGPT session found.\n"
            "Log into [cyan]chatgpt.com[/cyan] in your browser first."
        ),
        "login_required": (
            "ChatGPT session expired.\n"
            "Log into [cyan]chatgpt.com[/cyan] in your browser again."
        ),
        "cli_not_found": (
            "Codex CLI not found in PATH.\n"
            "Install it with: [cyan]npm install -g @openai/codex[/cyan] "
            "or set CODEX_CLI_PATH."
        ),
        "pty_timeout": (
            "Codex CLI did not answer /status in time.\n"
            "Run [cyan]codex[/cyan] once interactively to sign in."
        ),
    },
    "zai": {
        "token_missing": (
            "No z.ai API token configured.\n"
            "Set [cyan]Z_AI_API_KEY[/cyan] or add api_token under "
            "[cyan]\\[providers.zai][/cyan] in config.toml."
        ),
        "token_rejected": (
            "z.ai rejected the API token.\n"
            "Create a new key at: [cyan]https://z.ai/manage-apikey/apikey-list[/cyan]"
        ),
    },
}


def _error_key(error: QuotaprobeFetchError) -> str | None:
    if isinstance(error, BinaryNotFound):
        return "cli_not_found"
    if isinstance(error, PTYTimeout):
        return "pty_timeout"
    if isinstance(error, LoginRequired):
        return "login_required"
    if isinstance(error, NoCredential):
        return "no_credentials"
    if isinstance(error, TokenMissing):
        return "token_missing"
    if isinstance(error, TokenRejected):
        return "token_rejected"
    return None


def get_provider_remediation(
    provider_id: str, error: QuotaprobeFetchError
) -> str | None:
    """Get remediation text for a provider fetch error.

    Args:
        provider_id: Provider identifier (e.g., "claude", "codex")
        error: The fetch error being reported

    Returns:
        Remediation message or None
    """
    if isinstance(error, AccessDenied):
        return (
            f"{error.browser.display_name} cookie access was denied by the system "
            "keychain. quotaprobe will not ask again for a few hours.\n"
            "Run '[cyan]quotaprobe browsers reset-gate[/cyan]' to retry sooner."
        )
    if isinstance(error, NoStrategyAvailable):
        return (
            f"No fetch source is enabled for {provider_id}.\n"
            "Check the 'source' setting with '[cyan]quotaprobe usage --help[/cyan]'."
        )

    key = _error_key(error)
    if key is None:
        return None
    return REMEDIATION_TEMPLATES.get(provider_id, {}).get(key)
