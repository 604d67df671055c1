"""Codex CLI home directory and signed-in account."""

from __future__ import annotations

import base64
import logging
from collections.abc import Mapping
from pathlib import Path

import msgspec

from quotaprobe.config.credentials import provider_credential_path
from quotaprobe.config.credentials import read_credential
from quotaprobe.models import ProviderIdentity

log = logging.getLogger(__name__)

AUTH_CLAIMS = "https://api.openai.com/auth"
PROFILE_CLAIMS = "https://api.openai.com/profile"


class CodexTokens(msgspec.Struct):
    id_token: str | None = None
    access_token: str | None = None


class CodexAuthFile(msgspec.Struct):
    tokens: CodexTokens | None = None


def codex_home(env: Mapping[str, str] | None = None) -> Path:
    raw = (env or {}).get("CODEX_HOME", "").strip()
    if raw:
        return Path(raw).expanduser()
    return Path.home() / ".codex"


def sessions_dir(env: Mapping[str, str] | None = None) -> Path:
    return codex_home(env) / "sessions"


def no_sessions_message(env: Mapping[str, str] | None = None) -> str:
    return f"No Codex sessions found in {sessions_dir(env)}."


def decode_jwt_claims(token: str) -> dict | None:
    """Decode a JWT payload without verifying it."""
    parts = token.split(".")
    if len(parts) < 2:
        return None
    payload = parts[1] + "=" * (-len(parts[1]) % 4)
    try:
        claims = msgspec.json.decode(base64.urlsafe_b64decode(payload))
    except (ValueError, msgspec.DecodeError):
        return None
    return claims if isinstance(claims, dict) else None


def load_account(env: Mapping[str, str] | None = None) -> ProviderIdentity | None:
    """Email and plan of the account the Codex CLI is signed in as."""
    path = provider_credential_path("codex", env)
    content = read_credential(path) if path else None
    if not content:
        return None

    try:
        auth = msgspec.json.decode(content, type=CodexAuthFile)
    except msgspec.DecodeError as e:
        log.debug("Unreadable Codex auth file %s: %s", path, e)
        return None
    if auth.tokens is None or not auth.tokens.id_token:
        return None

    claims = decode_jwt_claims(auth.tokens.id_token)
    if claims is None:
        return None

    auth_claims = claims.get(AUTH_CLAIMS) or {}
    profile_claims = claims.get(PROFILE_CLAIMS) or {}
    email = claims.get("email") or profile_claims.get("email")
    plan = auth_claims.get("chatgpt_plan_type") or claims.get("chatgpt_plan_type")
    if not email and not plan:
        return None
    return ProviderIdentity(email=email, login_method=plan)
