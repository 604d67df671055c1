"""Provider CLI credential files reused by the OAuth strategies."""

from __future__ import annotations

import stat
from collections.abc import Mapping
from pathlib import Path

# Provider CLI credential locations, relative to the home directory
PROVIDER_CREDENTIAL_PATHS: dict[str, str] = {
    "claude": ".claude/.credentials.json",
    "codex": ".codex/auth.json",
}


def provider_credential_path(
    provider_id: str,
    env: Mapping[str, str] | None = None,
    home: Path | None = None,
) -> Path | None:
    """Get where a provider's own CLI keeps its credentials.

    Codex honors CODEX_HOME the same way the Codex CLI does.
    """
    relative = PROVIDER_CREDENTIAL_PATHS.get(provider_id)
    if relative is None:
        return None

    env = env or {}
    if provider_id == "codex" and env.get("CODEX_HOME"):
        return Path(env["CODEX_HOME"]).expanduser() / "auth.json"

    base = home or Path.home()
    return base / relative


def has_provider_credential(
    provider_id: str,
    env: Mapping[str, str] | None = None,
    home: Path | None = None,
) -> bool:
    """Check whether a provider CLI credential file exists."""
    path = provider_credential_path(provider_id, env, home)
    return path is not None and path.exists()


def read_credential(path: Path) -> bytes | None:
    """Read credential file if it exists and has secure permissions."""
    if not path.exists():
        return None

    mode = path.stat().st_mode
    if mode & (stat.S_IWGRP | stat.S_IWOTH):
        # Writable by group or others - unsafe
        return None

    return path.read_bytes()


def check_credential_permissions(path: Path) -> bool:
    """Verify credential file has secure permissions (0o600 or stricter)."""
    if not path.exists():
        return True  # No file is secure

    mode = path.stat().st_mode
    return not (mode & (stat.S_IRGRP | stat.S_IWGRP | stat.S_IROTH | stat.S_IWOTH))
