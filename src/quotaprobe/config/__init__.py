"""Configuration management for quotaprobe."""

from quotaprobe.config.credentials import check_credential_permissions
from quotaprobe.config.credentials import has_provider_credential
from quotaprobe.config.credentials import provider_credential_path
from quotaprobe.config.credentials import read_credential
from quotaprobe.config.keyring import CredentialStore
from quotaprobe.config.keyring import KeyringCredentialStore
from quotaprobe.config.paths import config_dir
from quotaprobe.config.paths import config_file
from quotaprobe.config.paths import ensure_directories
from quotaprobe.config.paths import preferences_file
from quotaprobe.config.paths import state_dir
from quotaprobe.config.preferences import PreferencesStore
from quotaprobe.config.preferences import get_preferences
from quotaprobe.config.settings import BrowserConfig
from quotaprobe.config.settings import Config
from quotaprobe.config.settings import FetchConfig
from quotaprobe.config.settings import ProviderConfig
from quotaprobe.config.settings import PTYConfig
from quotaprobe.config.settings import get_config
from quotaprobe.config.settings import load_config
from quotaprobe.config.settings import reload_config
from quotaprobe.config.settings import save_config

__all__ = [
    # paths
    "config_dir",
    "state_dir",
    "config_file",
    "preferences_file",
    "ensure_directories",
    # settings
    "Config",
    "FetchConfig",
    "PTYConfig",
    "BrowserConfig",
    "ProviderConfig",
    "get_config",
    "load_config",
    "reload_config",
    "save_config",
    # preferences
    "PreferencesStore",
    "get_preferences",
    # credentials
    "provider_credential_path",
    "has_provider_credential",
    "read_credential",
    "check_credential_permissions",
    # keyring
    "CredentialStore",
    "KeyringCredentialStore",
]
