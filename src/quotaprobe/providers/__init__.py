"""Explicit provider registry.

Providers are registered once, at import of this package, in the order
the CLI displays them.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from quotaprobe.providers.base import Provider

_PROVIDERS: dict[str, type[Provider]] = {}


def register_provider(cls: type[Provider]) -> type[Provider]:
    """Add ``cls`` under its ``metadata.id``.

    Raises:
        ValueError: no metadata, or the id is taken by another class
    """
    metadata = getattr(cls, "metadata", None)
    if metadata is None:
        raise ValueError(f"Provider {cls.__name__} must define metadata ClassVar")

    existing = _PROVIDERS.get(metadata.id)
    if existing is not None and existing is not cls:
        raise ValueError(
            f"Provider id {metadata.id!r} already registered by {existing.__name__}"
        )
    _PROVIDERS[metadata.id] = cls
    return cls


def get_provider(provider_id: str) -> type[Provider] | None:
    return _PROVIDERS.get(provider_id)


def get_all_providers() -> dict[str, type[Provider]]:
    """Copy of the registry, in display order."""
    return dict(_PROVIDERS)


def list_provider_ids() -> list[str]:
    return list(_PROVIDERS)


def create_provider(provider_id: str) -> Provider:
    """Instantiate a registered provider.

    Raises:
        ValueError: unknown ``provider_id``
    """
    provider_cls = _PROVIDERS.get(provider_id)
    if provider_cls is None:
        raise ValueError(f"Unknown provider: {provider_id}")
    return provider_cls()


from quotaprobe.providers.base import Provider  # noqa: E402
from quotaprobe.providers.base import ProviderMetadata  # noqa: E402
from quotaprobe.providers.claude import ClaudeProvider  # noqa: E402
from quotaprobe.providers.codex import CodexProvider  # noqa: E402
from quotaprobe.providers.zai import ZaiProvider  # noqa: E402

for _cls in (ClaudeProvider, CodexProvider, ZaiProvider):
    register_provider(_cls)
del _cls

__all__ = [
    "Provider",
    "ProviderMetadata",
    "register_provider",
    "get_provider",
    "get_all_providers",
    "list_provider_ids",
    "create_provider",
]
