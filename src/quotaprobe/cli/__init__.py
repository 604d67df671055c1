"""CLI framework for quotaprobe."""
from __future__ import annotations

from quotaprobe.cli.app import ExitCode
from quotaprobe.cli.app import app
from quotaprobe.cli.app import run_app

__all__ = ["app", "run_app", "ExitCode"]
