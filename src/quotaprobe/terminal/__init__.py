"""PTY session runner for interactive CLIs."""

from quotaprobe.terminal.markers import CompletionPredicate
from quotaprobe.terminal.markers import claude_usage_complete
from quotaprobe.terminal.markers import codex_status_complete
from quotaprobe.terminal.markers import echoed_command_with_markers
from quotaprobe.terminal.markers import strip_ansi
from quotaprobe.terminal.runner import PTYCommandRunner
from quotaprobe.terminal.runner import PTYOptions
from quotaprobe.terminal.runner import PTYResult
from quotaprobe.terminal.runner import get_pty_runner

__all__ = [
    "CompletionPredicate",
    "claude_usage_complete",
    "codex_status_complete",
    "echoed_command_with_markers",
    "strip_ansi",
    "PTYCommandRunner",
    "PTYOptions",
    "PTYResult",
    "get_pty_runner",
]
