"""Where quotaprobe keeps its config file and its state."""

from __future__ import annotations

import os
from pathlib import Path

from platformdirs import user_config_dir
from platformdirs import user_state_path

PACKAGE_NAME = "quotaprobe"

CONFIG_DIR_ENV = "QUOTAPROBE_CONFIG_DIR"
STATE_DIR_ENV = "QUOTAPROBE_STATE_DIR"


def _override(env_var: str) -> Path | None:
    value = os.environ.get(env_var, "").strip()
    return Path(value).expanduser() if value else None


def config_dir() -> Path:
    """User config directory (``$QUOTAPROBE_CONFIG_DIR`` wins)."""
    return _override(CONFIG_DIR_ENV) or Path(user_config_dir(PACKAGE_NAME))


def state_dir() -> Path:
    """State directory for preferences and the access gate.

    ``$QUOTAPROBE_STATE_DIR`` wins.
    """
    return _override(STATE_DIR_ENV) or user_state_path(PACKAGE_NAME)


def config_file() -> Path:
    return config_dir() / "config.toml"


def preferences_file() -> Path:
    """JSON key-value store (gate denials, last good cookie candidate)."""
    return state_dir() / "preferences.json"


def ensure_directories() -> None:
    config_dir().mkdir(parents=True, exist_ok=True)
    state_dir().mkdir(parents=True, exist_ok=True)
