"""Configuration structures and loading for quotaprobe."""

import os
import tomllib
from pathlib import Path
from typing import Literal

import msgspec
import tomli_w

# Default values
DEFAULT_TIMEOUT = 30.0
DEFAULT_WEB_TIMEOUT = 60.0
DEFAULT_MAX_CONCURRENT = 5
DEFAULT_ACCESS_COOLDOWN_HOURS = 6.0
DEFAULT_PRESENCE_TTL_MINUTES = 10.0

SourceSetting = Literal["auto", "cli", "web", "oauth", "api_token"]

DEFAULT_COOKIE_ORDER = [
    "safari",
    "chrome",
    "arc",
    "brave",
    "edge",
    "chromium",
    "vivaldi",
    "opera",
    "firefox",
    "zen",
]


# Fetch configuration
class FetchConfig(msgspec.Struct, omit_defaults=True):
    """Fetch behavior settings."""

    timeout: float = DEFAULT_TIMEOUT  # Hard deadline per strategy
    max_concurrent: int = DEFAULT_MAX_CONCURRENT
    web_timeout: float = DEFAULT_WEB_TIMEOUT  # HTTP deadline inside web strategies


# PTY configuration
class PTYConfig(msgspec.Struct, omit_defaults=True):
    """Interactive CLI session settings."""

    rows: int = 50
    cols: int = 160
    timeout: float = 8.0
    poll_interval: float = 0.12


# Browser configuration
class BrowserConfig(msgspec.Struct, omit_defaults=True):
    """Cookie import settings."""

    cookie_order: list[str] = msgspec.field(
        default_factory=lambda: list(DEFAULT_COOKIE_ORDER)
    )
    access_cooldown_hours: float = DEFAULT_ACCESS_COOLDOWN_HOURS
    presence_ttl_minutes: float = DEFAULT_PRESENCE_TTL_MINUTES


# Per-provider configuration
class ProviderConfig(msgspec.Struct, omit_defaults=True):
    """Configuration for a specific provider."""

    source: SourceSetting = "auto"
    enabled: bool = True
    api_token: str | None = None
    prefer_oauth: bool = True


# Main configuration
class Config(msgspec.Struct, omit_defaults=True):
    """Main configuration structure."""

    enabled_providers: list[str] = []
    source: SourceSetting | None = None  # Overrides every provider's source
    fetch: FetchConfig = msgspec.field(default_factory=FetchConfig)
    pty: PTYConfig = msgspec.field(default_factory=PTYConfig)
    browser: BrowserConfig = msgspec.field(default_factory=BrowserConfig)
    providers: dict[str, ProviderConfig] = msgspec.field(default_factory=dict)

    def get_provider_config(self, provider_id: str) -> ProviderConfig:
        """Get config for a provider, with defaults."""
        return self.providers.get(provider_id, ProviderConfig())

    def get_provider_source(self, provider_id: str) -> SourceSetting:
        """Effective source mode for a provider, honoring the global override."""
        if self.source is not None:
            return self.source
        return self.get_provider_config(provider_id).source

    def is_provider_enabled(self, provider_id: str) -> bool:
        """Check if a provider is enabled.

        A provider is enabled if:
        1. It's not explicitly disabled in providers config
        2. It's either in enabled_providers list OR enabled_providers is empty (all enabled)
        """
        provider_cfg = self.get_provider_config(provider_id)
        if not provider_cfg.enabled:
            return False
        if not self.enabled_providers:
            return True
        return provider_id in self.enabled_providers


def _load_from_toml(path: Path) -> dict:
    """Load configuration from TOML file."""
    if not path.exists():
        return {}

    with path.open("rb") as f:
        return tomllib.load(f)


def _save_to_toml(data: dict, path: Path) -> None:
    """Save configuration to TOML file."""
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("wb") as f:
        tomli_w.dump(data, f)


def convert_config(data: dict) -> Config:
    """Convert raw dict to Config struct."""
    return msgspec.convert(data, type=Config)


def _apply_env_overrides(config: Config) -> Config:
    """Apply environment variable overrides to config.

    QUOTAPROBE_ENABLED_PROVIDERS: Comma-separated list of providers
    QUOTAPROBE_SOURCE: Source mode applied to every provider
    """
    if "QUOTAPROBE_ENABLED_PROVIDERS" in os.environ:
        providers_str = os.environ["QUOTAPROBE_ENABLED_PROVIDERS"]
        enabled = [p.strip() for p in providers_str.split(",") if p.strip()]
        config = msgspec.structs.replace(config, enabled_providers=enabled)

    if source := os.environ.get("QUOTAPROBE_SOURCE"):
        source = source.strip().lower()
        if source not in ("auto", "cli", "web", "oauth", "api_token"):
            raise ValueError(f"Invalid QUOTAPROBE_SOURCE: {source!r}")
        config = msgspec.structs.replace(config, source=source)

    return config


# Config state storage
_config: Config | None = None


def get_config() -> Config:
    """Get the current configuration (singleton)."""
    global _config
    if _config is None:
        _config = load_config()
    return _config


def reload_config() -> Config:
    """Reload configuration from disk."""
    global _config
    _config = load_config()
    return _config


def load_config(path: Path | None = None) -> Config:
    """Load configuration from file with defaults."""
    from .paths import config_file

    config_path = path or config_file()

    raw_data = _load_from_toml(config_path)
    if not raw_data:
        config = Config()
    else:
        config = convert_config(raw_data)

    return _apply_env_overrides(config)


def save_config(config: Config, path: Path | None = None) -> None:
    """Save configuration to file."""
    from .paths import config_file

    config_path = path or config_file()

    # Convert to dict for TOML serialization
    data = msgspec.to_builtins(config)

    # TOML has no null
    def clean_none(d: dict) -> dict:
        return {
            k: clean_none(v) if isinstance(v, dict) else v
            for k, v in d.items()
            if v is not None
        }

    data = clean_none(data)

    _save_to_toml(data, config_path)

    global _config
    _config = config
