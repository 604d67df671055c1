"""Drive interactive CLIs inside a pseudo-terminal and capture their output.

The Claude and Codex CLIs only print usage from their interactive TUI, so
the CLI strategies start them in a pty, type a slash command, and scrape
whatever is drawn until a completion marker shows up or the deadline
passes. The child is always torn down, including every process it
spawned, on every exit path.
"""

from __future__ import annotations

import asyncio
import logging
import os
import shutil
import signal
from collections.abc import Mapping
from dataclasses import dataclass
from dataclasses import field
from pathlib import Path

import pexpect

from quotaprobe.errors.exceptions import BinaryNotFound
from quotaprobe.errors.exceptions import LaunchFailed
from quotaprobe.errors.exceptions import PTYTimeout
from quotaprobe.terminal.markers import CompletionPredicate
from quotaprobe.terminal.markers import strip_ansi

log = logging.getLogger(__name__)

READ_CHUNK = 8192
TERMINATE_GRACE = 0.3  # seconds between SIGTERM and SIGKILL

# Per-tool override variables checked before PATH
BINARY_ENV_OVERRIDES: dict[str, str] = {
    "claude": "CLAUDE_CLI_PATH",
    "codex": "CODEX_CLI_PATH",
}

# Install locations that GUI-launched or cron environments often miss
EXTRA_SEARCH_DIRS = (
    "~/.local/bin",
    "~/.claude/local",
    "~/.npm-global/bin",
    "~/.bun/bin",
    "/opt/homebrew/bin",
    "/usr/local/bin",
)


@dataclass(frozen=True)
class PTYOptions:
    """Settings for one PTY session."""

    rows: int = 50
    cols: int = 160
    timeout: float = 8.0  # seconds
    poll_interval: float = 0.12  # seconds
    extra_args: tuple[str, ...] = ()
    env: Mapping[str, str] | None = None  # None inherits os.environ
    completion: CompletionPredicate | None = None


@dataclass(frozen=True)
class PTYResult:
    """Text captured from a PTY session."""

    text: str
    timed_out: bool = False
    exited_early: bool = False
    binary: str = field(default="", compare=False)


def _is_executable(path: Path) -> bool:
    return path.is_file() and os.access(path, os.X_OK)


def _killpg(pgid: int, sig: signal.Signals) -> None:
    try:
        os.killpg(pgid, sig)
    except (ProcessLookupError, PermissionError):
        pass


class PTYCommandRunner:
    """Runs a binary in a pty, sends input once, and reads until done."""

    @staticmethod
    def which(binary: str, env: Mapping[str, str] | None = None) -> str | None:
        """Resolve ``binary`` to an executable path.

        Checks, in order: an explicit path, the tool's override variable
        (CLAUDE_CLI_PATH, CODEX_CLI_PATH), PATH from ``env``, then common
        install directories.
        """
        env = os.environ if env is None else env

        if os.sep in binary:
            path = Path(binary).expanduser()
            return str(path) if _is_executable(path) else None

        override_var = BINARY_ENV_OVERRIDES.get(binary)
        if override_var and (override := env.get(override_var)):
            path = Path(override).expanduser()
            if _is_executable(path):
                return str(path)
            log.warning("%s=%s is not an executable file", override_var, override)

        if found := shutil.which(binary, path=env.get("PATH", os.defpath)):
            return found

        extra = os.pathsep.join(str(Path(d).expanduser()) for d in EXTRA_SEARCH_DIRS)
        return shutil.which(binary, path=extra)

    async def run(
        self,
        binary: str,
        send: str = "",
        options: PTYOptions | None = None,
    ) -> PTYResult:
        """Run ``binary`` in a pty, write ``send``, and capture output.

        Returns when the completion predicate matches, the child exits, or
        the timeout passes with some output captured.

        Raises:
            BinaryNotFound: binary could not be resolved
            LaunchFailed: spawn failed, or the child exited without output
            PTYTimeout: the deadline passed with nothing captured beyond the
                echo of ``send``
        """
        options = options or PTYOptions()
        env = dict(os.environ if options.env is None else options.env)
        resolved = self.which(binary, env)
        if resolved is None:
            raise BinaryNotFound(binary)

        env.setdefault("TERM", "xterm-256color")
        log.debug("Spawning %s in %dx%d pty", resolved, options.rows, options.cols)
        try:
            child = pexpect.spawn(
                resolved,
                list(options.extra_args),
                env=env,
                dimensions=(options.rows, options.cols),
                encoding="utf-8",
                codec_errors="replace",
            )
        except (pexpect.ExceptionPexpect, OSError) as e:
            raise LaunchFailed(f"Failed to launch {resolved}: {e}") from e
        # send() would otherwise sleep on the event loop
        child.delaybeforesend = None

        loop = asyncio.get_running_loop()
        deadline = loop.time() + options.timeout
        parts: list[str] = []
        text = ""
        timed_out = False
        exited_early = False

        try:
            if send:
                child.send(send)

            while True:
                if loop.time() >= deadline:
                    timed_out = True
                    break
                try:
                    chunk = child.read_nonblocking(READ_CHUNK, timeout=0)
                except pexpect.TIMEOUT:
                    chunk = ""
                except pexpect.EOF:
                    break

                if chunk:
                    parts.append(chunk)
                    text = "".join(parts)
                    if options.completion is not None and options.completion(text):
                        exited_early = True
                        break
                    # More may already be buffered; yield without waiting
                    await asyncio.sleep(0)
                    continue

                await asyncio.sleep(options.poll_interval)
        except BaseException:
            # Cancelled or failed mid-read: nothing may be awaited now
            self._kill(child)
            raise

        await self._shutdown(child)

        if _only_echo(text, send):
            if timed_out:
                raise PTYTimeout(binary, options.timeout)
            raise LaunchFailed(f"{resolved} exited without output")

        log.debug(
            "Captured %d chars from %s (timed_out=%s, exited_early=%s)",
            len(text),
            binary,
            timed_out,
            exited_early,
        )
        return PTYResult(
            text=text, timed_out=timed_out, exited_early=exited_early, binary=resolved
        )

    async def _shutdown(self, child: pexpect.spawn) -> None:
        """Ask the child to exit, then kill its whole process group."""
        # pexpect makes the child a session leader: pid == pgid
        pgid = child.pid
        try:
            if child.isalive():
                child.send("/exit\n")
        except OSError:
            pass

        _killpg(pgid, signal.SIGTERM)
        loop = asyncio.get_running_loop()
        deadline = loop.time() + TERMINATE_GRACE
        try:
            while child.isalive() and loop.time() < deadline:
                await asyncio.sleep(0.02)
        except BaseException:
            self._kill(child)
            raise
        _killpg(pgid, signal.SIGKILL)

        # close() sleeps between its own checks; a cancel here still reaps
        await asyncio.to_thread(_reap, child)

    @staticmethod
    def _kill(child: pexpect.spawn) -> None:
        _killpg(child.pid, signal.SIGKILL)
        _reap(child)


def _only_echo(text: str, send: str) -> bool:
    """True when ``text`` holds nothing beyond the tty echo of ``send``."""
    plain = strip_ansi(text).strip()
    if not plain:
        return True
    # The line discipline echoes input back, possibly cut short
    script = send.strip()
    return bool(script) and script.startswith(plain)


def _reap(child: pexpect.spawn) -> None:
    if child.closed:
        return
    try:
        child.close(force=True)
    except pexpect.ExceptionPexpect as e:
        log.warning("Could not reap pty child %s: %s", child.pid, e)


_runner: PTYCommandRunner | None = None


def get_pty_runner() -> PTYCommandRunner:
    global _runner
    if _runner is None:
        _runner = PTYCommandRunner()
    return _runner
