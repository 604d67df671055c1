"""Local session-log strategy for Codex provider.

The codex CLI appends every backend event to
``$CODEX_HOME/sessions/YYYY/MM/DD/rollout-*.jsonl``; ``token_count``
events carry the rate limits it last saw. Reading them needs no network
and no credentials, which suits a long-lived app polling in the
background.
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path

from quotaprobe.errors.exceptions import NoCredential
from quotaprobe.errors.exceptions import ParseFailed
from quotaprobe.providers.codex.account import load_account
from quotaprobe.providers.codex.account import no_sessions_message
from quotaprobe.providers.codex.account import sessions_dir
from quotaprobe.providers.codex.parser import parse_session_lines
from quotaprobe.strategies.base import FetchContext
from quotaprobe.strategies.base import FetchKind
from quotaprobe.strategies.base import FetchResult
from quotaprobe.strategies.base import FetchStrategy

log = logging.getLogger(__name__)


def latest_session_file(root: Path) -> Path | None:
    """Most recently modified ``rollout-*`` file under ``root``."""
    if not root.is_dir():
        return None
    newest: tuple[float, Path] | None = None
    for path in root.rglob("rollout-*"):
        try:
            mtime = path.stat().st_mtime
        except OSError:
            continue
        if newest is None or mtime > newest[0]:
            newest = (mtime, path)
    return newest[1] if newest else None


class CodexSessionsStrategy(FetchStrategy):
    """Read Codex rate limits from the newest local session log."""

    id = "codex.sessions"
    kind = FetchKind.LOCAL_PROBE

    def _read(self, context: FetchContext) -> FetchResult:
        path = latest_session_file(sessions_dir(context.env))
        if path is None:
            raise NoCredential(no_sessions_message(context.env))

        log.debug("Reading Codex session log %s", path)
        with path.open("rb") as f:
            usage = parse_session_lines(f, identity=load_account(context.env))
        if usage is None:
            raise ParseFailed("Found Codex sessions, but no rate limit events yet.")
        return FetchResult(usage=usage)

    async def fetch(self, context: FetchContext) -> FetchResult:
        return await asyncio.to_thread(self._read, context)
