"""Display utilities for quotaprobe.

This module provides rendering and output utilities for both terminal
(Rich-based) and JSON output modes.
"""

from __future__ import annotations

from quotaprobe.display.json import encode_json
from quotaprobe.display.json import outcome_to_dict
from quotaprobe.display.json import outcomes_to_dict
from quotaprobe.display.json import output_json
from quotaprobe.display.json import output_json_pretty
from quotaprobe.display.rich import format_bar_and_percentage
from quotaprobe.display.rich import format_credits
from quotaprobe.display.rich import format_reset
from quotaprobe.display.rich import format_window_line
from quotaprobe.display.rich import render_usage_bar

__all__ = [
    # Rich rendering
    "render_usage_bar",
    "format_bar_and_percentage",
    "format_reset",
    "format_window_line",
    "format_credits",
    # JSON output
    "outcome_to_dict",
    "outcomes_to_dict",
    "output_json",
    "output_json_pretty",
    "encode_json",
]
