"""Tests for the config package (paths, settings, preferences, credentials)."""

from __future__ import annotations

import os
from pathlib import Path
from unittest.mock import patch

import keyring.errors
import msgspec
import pytest

from quotaprobe.config.credentials import check_credential_permissions
from quotaprobe.config.credentials import has_provider_credential
from quotaprobe.config.credentials import provider_credential_path
from quotaprobe.config.credentials import read_credential
from quotaprobe.config.keyring import KeyringCredentialStore
from quotaprobe.config.paths import config_file
from quotaprobe.config.paths import preferences_file
from quotaprobe.config.preferences import PreferencesStore
from quotaprobe.config.settings import Config
from quotaprobe.config.settings import ProviderConfig
from quotaprobe.config.settings import get_config
from quotaprobe.config.settings import load_config
from quotaprobe.config.settings import save_config
from quotaprobe.errors.exceptions import CredentialAccessDenied


class TestPaths:
    """Tests for config/paths.py."""

    def test_env_overrides(self, tmp_path):
        with patch.dict(
            os.environ,
            {
                "QUOTAPROBE_CONFIG_DIR": str(tmp_path / "cfg"),
                "QUOTAPROBE_STATE_DIR": str(tmp_path / "state"),
            },
        ):
            assert config_file() == tmp_path / "cfg" / "config.toml"
            assert preferences_file() == tmp_path / "state" / "preferences.json"


class TestConfig:
    """Tests for Config and its loaders."""

    def test_defaults(self):
        config = Config()
        assert config.fetch.timeout == 30.0
        assert config.fetch.max_concurrent == 5
        assert config.pty.rows == 50
        assert config.pty.cols == 160
        assert config.pty.timeout == 8.0
        assert config.pty.poll_interval == 0.12
        assert config.browser.access_cooldown_hours == 6.0
        assert config.browser.cookie_order[0] == "safari"

    def test_provider_enabled_rules(self):
        """Empty enabled list enables all; explicit disable always wins."""
        config = Config(providers={"zai": ProviderConfig(enabled=False)})
        assert config.is_provider_enabled("claude") is True
        assert config.is_provider_enabled("zai") is False

        config = Config(enabled_providers=["codex"])
        assert config.is_provider_enabled("codex") is True
        assert config.is_provider_enabled("claude") is False

    def test_global_source_overrides_provider(self):
        config = Config(
            source="cli", providers={"claude": ProviderConfig(source="web")}
        )
        assert config.get_provider_source("claude") == "cli"
        assert Config().get_provider_source("codex") == "auto"

    def test_load_missing_file(self, tmp_path):
        assert load_config(tmp_path / "absent.toml") == Config()

    def test_load_toml(self, tmp_path):
        path = tmp_path / "config.toml"
        path.write_text(
            "[fetch]\ntimeout = 12.5\n\n"
            "[pty]\ncols = 200\n\n"
            '[providers.claude]\nsource = "web"\n'
        )
        config = load_config(path)
        assert config.fetch.timeout == 12.5
        assert config.pty.cols == 200
        assert config.get_provider_source("claude") == "web"

    def test_load_rejects_bad_source(self, tmp_path):
        path = tmp_path / "config.toml"
        path.write_text('[providers.claude]\nsource = "telepathy"\n')
        with pytest.raises(msgspec.ValidationError):
            load_config(path)

    def test_save_round_trip_without_nulls(self, tmp_path):
        path = tmp_path / "config.toml"
        config = Config(providers={"zai": ProviderConfig(api_token=None, enabled=False)})
        save_config(config, path)

        assert "api_token" not in path.read_text()
        assert load_config(path).is_provider_enabled("zai") is False

    def test_env_enabled_providers(self, tmp_path):
        with patch.dict(os.environ, {"QUOTAPROBE_ENABLED_PROVIDERS": "claude, zai"}):
            config = load_config(tmp_path / "absent.toml")
        assert config.enabled_providers == ["claude", "zai"]

    def test_env_source(self, tmp_path):
        with patch.dict(os.environ, {"QUOTAPROBE_SOURCE": "WEB"}):
            config = load_config(tmp_path / "absent.toml")
        assert config.source == "web"

    def test_env_source_invalid(self, tmp_path):
        with patch.dict(os.environ, {"QUOTAPROBE_SOURCE": "fax"}):
            with pytest.raises(ValueError, match="QUOTAPROBE_SOURCE"):
                load_config(tmp_path / "absent.toml")

    def test_get_config_is_cached(self, temp_config_dir):
        assert get_config() is get_config()


class TestPreferencesStore:
    """Tests for PreferencesStore."""

    def test_get_default_when_missing(self, tmp_path):
        store = PreferencesStore(tmp_path / "prefs.json")
        assert store.get("anything", 5) == 5

    def test_set_persists_across_instances(self, tmp_path):
        path = tmp_path / "nested" / "prefs.json"
        PreferencesStore(path).set("lastCookieCandidate", {"claude": "Chrome"})

        assert PreferencesStore(path).get("lastCookieCandidate") == {"claude": "Chrome"}

    def test_remove(self, tmp_path):
        path = tmp_path / "prefs.json"
        store = PreferencesStore(path)
        store.set("a", 1)
        store.remove("a")
        assert PreferencesStore(path).get("a") is None

    def test_corrupt_file_is_ignored(self, tmp_path):
        path = tmp_path / "prefs.json"
        path.write_text("{not json")
        store = PreferencesStore(path)
        assert store.get("a") is None

        store.set("a", 2)
        assert msgspec.json.decode(path.read_bytes()) == {"a": 2}

    def test_no_temp_files_left_behind(self, tmp_path):
        store = PreferencesStore(tmp_path / "prefs.json")
        store.set("a", 1)
        store.set("b", 2)
        assert [p.name for p in tmp_path.iterdir()] == ["prefs.json"]

    def test_reload_rereads(self, tmp_path):
        path = tmp_path / "prefs.json"
        store = PreferencesStore(path)
        assert store.get("a") is None
        path.write_bytes(msgspec.json.encode({"a": 3}))

        assert store.get("a") is None
        store.reload()
        assert store.get("a") == 3


class TestCredentials:
    """Tests for provider credential file helpers."""

    def test_claude_path(self, tmp_path):
        path = provider_credential_path("claude", home=tmp_path)
        assert path == tmp_path / ".claude" / ".credentials.json"

    def test_codex_home_override(self, tmp_path):
        path = provider_credential_path("codex", {"CODEX_HOME": str(tmp_path)})
        assert path == tmp_path / "auth.json"

    def test_unknown_provider(self):
        assert provider_credential_path("zai") is None
        assert has_provider_credential("zai") is False

    def test_has_provider_credential(self, tmp_path):
        assert has_provider_credential("claude", home=tmp_path) is False
        path = tmp_path / ".claude" / ".credentials.json"
        path.parent.mkdir()
        path.write_text("{}")
        assert has_provider_credential("claude", home=tmp_path) is True

    def test_read_credential_refuses_group_writable(self, tmp_path):
        path = tmp_path / "creds.json"
        path.write_text("{}")
        path.chmod(0o620)
        assert read_credential(path) is None

        path.chmod(0o600)
        assert read_credential(path) == b"{}"
        assert check_credential_permissions(path) is True

    def test_read_missing(self, tmp_path):
        assert read_credential(Path(tmp_path / "none")) is None


class TestKeyringCredentialStore:
    """Tests for KeyringCredentialStore."""

    def test_read_returns_bytes(self):
        with patch("quotaprobe.config.keyring.keyring.get_password", return_value="pw"):
            assert KeyringCredentialStore().read("svc", "acct") == b"pw"

    def test_read_missing(self):
        with patch("quotaprobe.config.keyring.keyring.get_password", return_value=None):
            assert KeyringCredentialStore().read("svc", "acct") is None

    def test_read_denied(self):
        with patch(
            "quotaprobe.config.keyring.keyring.get_password",
            side_effect=keyring.errors.KeyringError("User canceled"),
        ):
            with pytest.raises(CredentialAccessDenied, match="svc"):
                KeyringCredentialStore().read("svc", "acct")

    def test_delete_missing_is_quiet(self):
        with patch(
            "quotaprobe.config.keyring.keyring.delete_password",
            side_effect=keyring.errors.PasswordDeleteError("absent"),
        ):
            KeyringCredentialStore().delete("svc", "acct")

    def test_write_denied(self):
        with patch(
            "quotaprobe.config.keyring.keyring.set_password",
            side_effect=keyring.errors.KeyringError("locked"),
        ):
            with pytest.raises(CredentialAccessDenied, match="svc"):
                KeyringCredentialStore().write("svc", "acct", b"pw")


class TestPackageExports:
    """The config package re-exports only names that exist."""

    def test_all_names_resolve(self):
        import quotaprobe.config as config_package

        missing = [n for n in config_package.__all__ if not hasattr(config_package, n)]
        assert missing == []

    def test_keyring_exports(self):
        import quotaprobe.config as config_package

        keyring_names = {"CredentialStore", "KeyringCredentialStore"}
        assert keyring_names <= set(config_package.__all__)
        assert "keyring_available" not in config_package.__all__
