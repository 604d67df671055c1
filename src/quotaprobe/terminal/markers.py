"""Completion predicates that let a PTY session stop before its deadline.

The interactive CLIs never signal "done"; they redraw a panel and wait.
The heuristic here is to stop once the echoed slash command and one of
the panel's landmark strings have both been seen. It is tied to the
current wording of each CLI and breaks silently (falling back to the
full timeout) when that wording changes.
"""

from __future__ import annotations

import re
from collections.abc import Callable
from collections.abc import Iterable

CompletionPredicate = Callable[[str], bool]

# CSI and OSC sequences plus bare two-byte escapes
ANSI_PATTERN = re.compile(
    r"\x1b\[[0-?]*[ -/]*[@-~]"
    r"|\x1b\][^\x07\x1b]*(?:\x07|\x1b\\)"
    r"|\x1b[()][0-9A-Za-z]"
    r"|\x1b[@-Z\\-_]"
)
# TUIs move the cursor instead of printing spaces and newlines
CURSOR_FORWARD = re.compile(r"\x1b\[(\d*)C")
CURSOR_POSITION = re.compile(r"\x1b\[\d*(?:;\d*)?[Hf]")

CLAUDE_USAGE_MARKERS = ("Current session", "% left", "% used")
CODEX_STATUS_MARKERS = ("Credits", "% left")


def echoed_command_with_markers(
    command: str, markers: Iterable[str]
) -> CompletionPredicate:
    """Build a predicate: ``command`` was echoed and any marker followed."""
    command = command.strip()
    markers = tuple(markers)

    def predicate(text: str) -> bool:
        text = strip_ansi(text)
        index = text.find(command)
        if index < 0:
            return False
        tail = text[index + len(command) :]
        return any(marker in tail for marker in markers)

    return predicate


def strip_ansi(text: str) -> str:
    """Reduce raw PTY output to plain text."""
    text = CURSOR_FORWARD.sub(lambda m: " " * int(m.group(1) or 1), text)
    text = CURSOR_POSITION.sub("\n", text)
    return ANSI_PATTERN.sub("", text).replace("\r", "")


def claude_usage_complete() -> CompletionPredicate:
    return echoed_command_with_markers("/usage", CLAUDE_USAGE_MARKERS)


def codex_status_complete() -> CompletionPredicate:
    return echoed_command_with_markers("/status", CODEX_STATUS_MARKERS)
