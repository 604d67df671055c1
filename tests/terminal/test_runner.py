"""Tests for terminal/runner.py (PTY command runner).

These spawn real /bin/sh scripts inside a pty.
"""

from __future__ import annotations

import asyncio
import os
import stat
import sys
import time
from pathlib import Path

import pytest

from quotaprobe.errors.exceptions import BinaryNotFound
from quotaprobe.errors.exceptions import LaunchFailed
from quotaprobe.errors.exceptions import PTYTimeout
from quotaprobe.terminal.markers import echoed_command_with_markers
from quotaprobe.terminal.markers import strip_ansi
from quotaprobe.terminal.runner import PTYCommandRunner
from quotaprobe.terminal.runner import PTYOptions

pytestmark = pytest.mark.skipif(sys.platform == "win32", reason="needs a POSIX pty")


def write_script(directory: Path, name: str, body: str) -> Path:
    path = directory / name
    path.write_text("#!/bin/sh\n" + body)
    path.chmod(path.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    return path


def read_pids(path: Path) -> list[int]:
    return [int(line) for line in path.read_text().split()]


def is_alive(pid: int) -> bool:
    """True while ``pid`` exists and is not a zombie."""
    proc = Path(f"/proc/{pid}/stat")
    if Path("/proc").is_dir():
        try:
            fields = proc.read_text().rsplit(")", 1)[1].split()
        except (FileNotFoundError, IndexError):
            return False
        return fields[0] != "Z"
    try:
        os.kill(pid, 0)
    except ProcessLookupError:
        return False
    except PermissionError:
        return True
    return True


def wait_dead(pids: list[int], limit: float = 3.0) -> bool:
    deadline = time.monotonic() + limit
    while time.monotonic() < deadline:
        if not any(is_alive(pid) for pid in pids):
            return True
        time.sleep(0.05)
    return False


def options(**kwargs) -> PTYOptions:
    kwargs.setdefault("timeout", 5.0)
    kwargs.setdefault("poll_interval", 0.02)
    return PTYOptions(**kwargs)


class TestWhich:
    """Tests for PTYCommandRunner.which."""

    def test_explicit_path(self, tmp_path):
        script = write_script(tmp_path, "tool", "exit 0\n")
        assert PTYCommandRunner.which(str(script)) == str(script)

    def test_explicit_path_not_executable(self, tmp_path):
        path = tmp_path / "plain"
        path.write_text("data")
        assert PTYCommandRunner.which(str(path)) is None

    def test_env_override(self, tmp_path):
        script = write_script(tmp_path, "my-claude", "exit 0\n")
        env = {"CLAUDE_CLI_PATH": str(script), "PATH": ""}
        assert PTYCommandRunner.which("claude", env) == str(script)

    def test_path_lookup(self, tmp_path):
        script = write_script(tmp_path, "codex", "exit 0\n")
        assert PTYCommandRunner.which("codex", {"PATH": str(tmp_path)}) == str(script)

    def test_missing(self, tmp_path):
        assert PTYCommandRunner.which("quotaprobe-no-such-tool", {"PATH": str(tmp_path)}) is None


class TestRun:
    """Tests for PTYCommandRunner.run."""

    @pytest.mark.asyncio
    async def test_binary_not_found(self, tmp_path):
        runner = PTYCommandRunner()
        with pytest.raises(BinaryNotFound):
            await runner.run(
                "quotaprobe-no-such-tool", options=options(env={"PATH": str(tmp_path)})
            )

    @pytest.mark.asyncio
    async def test_captures_until_exit(self, tmp_path):
        """A child that exits ends the read loop without a timeout."""
        script = write_script(tmp_path, "hello", "echo hello from pty\n")
        result = await PTYCommandRunner().run(str(script), options=options())

        assert "hello from pty" in strip_ansi(result.text)
        assert result.timed_out is False
        assert result.exited_early is False
        assert result.binary == str(script)

    @pytest.mark.asyncio
    async def test_sends_input(self, tmp_path):
        script = write_script(tmp_path, "echoer", 'read line\necho "got:$line"\n')
        result = await PTYCommandRunner().run(str(script), "ping\n", options())
        assert "got:ping" in strip_ansi(result.text)

    @pytest.mark.asyncio
    async def test_early_exit_on_completion(self, tmp_path):
        """The completion predicate stops the loop long before the deadline."""
        pidfile = tmp_path / "pids"
        script = write_script(
            tmp_path,
            "panel",
            f'echo $$ > "{pidfile}"\nread line\necho "Current session 12% used"\nsleep 60\n',
        )
        completion = echoed_command_with_markers("/usage", ["% used"])

        start = time.monotonic()
        result = await PTYCommandRunner().run(
            str(script), "/usage\n", options(timeout=20.0, completion=completion)
        )

        assert result.exited_early is True
        assert result.timed_out is False
        assert time.monotonic() - start < 10
        assert wait_dead(read_pids(pidfile))

    @pytest.mark.asyncio
    async def test_timeout_kills_child_and_grandchild(self, tmp_path):
        """On timeout the whole process group is killed, output is kept."""
        pidfile = tmp_path / "pids"
        script = write_script(
            tmp_path,
            "hang",
            f'sleep 60 &\necho $! > "{pidfile}"\necho $$ >> "{pidfile}"\n'
            "echo partial output\nsleep 60\n",
        )

        result = await PTYCommandRunner().run(str(script), options=options(timeout=1.0))

        assert result.timed_out is True
        assert "partial output" in strip_ansi(result.text)
        pids = read_pids(pidfile)
        assert len(pids) == 2
        assert wait_dead(pids)

    @pytest.mark.asyncio
    async def test_no_output_raises_pty_timeout(self, tmp_path):
        script = write_script(tmp_path, "silent", "sleep 60\n")
        with pytest.raises(PTYTimeout):
            await PTYCommandRunner().run(str(script), options=options(timeout=0.5))

    @pytest.mark.asyncio
    async def test_silent_child_with_input_raises_pty_timeout(self, tmp_path):
        """The tty echo of the sent command does not count as output."""
        script = write_script(tmp_path, "hung", "exec sleep 60\n")
        with pytest.raises(PTYTimeout):
            await PTYCommandRunner().run(str(script), "/usage\n", options(timeout=0.5))

    @pytest.mark.asyncio
    async def test_exit_without_output_raises_launch_failed(self, tmp_path):
        script = write_script(tmp_path, "quiet", "exit 0\n")
        start = time.monotonic()
        with pytest.raises(LaunchFailed, match="exited without output"):
            await PTYCommandRunner().run(str(script), options=options(timeout=20.0))
        assert time.monotonic() - start < 10

    @pytest.mark.asyncio
    async def test_teardown_does_not_block_event_loop(self, tmp_path):
        """Other tasks keep running while a stubborn child is torn down."""
        script = write_script(
            tmp_path, "stubborn", "trap '' TERM\necho ready\nsleep 60\n"
        )
        gaps: list[float] = []
        done = asyncio.Event()

        async def ticker():
            loop = asyncio.get_running_loop()
            last = loop.time()
            while not done.is_set():
                await asyncio.sleep(0.01)
                now = loop.time()
                gaps.append(now - last)
                last = now

        task = asyncio.create_task(ticker())
        try:
            result = await PTYCommandRunner().run(str(script), options=options(timeout=0.5))
        finally:
            done.set()
            await task

        assert result.timed_out is True
        assert "ready" in strip_ansi(result.text)
        assert max(gaps) < 0.2

    @pytest.mark.asyncio
    async def test_cancellation_kills_child(self, tmp_path):
        """Cancelling the caller tears the session down too."""
        pidfile = tmp_path / "pids"
        script = write_script(
            tmp_path,
            "slow",
            f'sleep 60 &\necho $! > "{pidfile}"\necho $$ >> "{pidfile}"\nsleep 60\n',
        )

        with pytest.raises(TimeoutError):
            await asyncio.wait_for(
                PTYCommandRunner().run(str(script), options=options(timeout=30.0)),
                timeout=1.0,
            )

        assert wait_dead(read_pids(pidfile))

    @pytest.mark.asyncio
    async def test_extra_args_and_env(self, tmp_path):
        script = write_script(tmp_path, "args", 'echo "arg=$1 var=$PROBE_VAR"\n')
        env = dict(os.environ, PROBE_VAR="set")
        result = await PTYCommandRunner().run(
            str(script), options=options(extra_args=("first",), env=env)
        )
        assert "arg=first var=set" in strip_ansi(result.text)
