"""Fetch strategies for quotaprobe."""

from __future__ import annotations

from quotaprobe.strategies.base import FetchAttempt
from quotaprobe.strategies.base import FetchContext
from quotaprobe.strategies.base import FetchKind
from quotaprobe.strategies.base import FetchOutcome
from quotaprobe.strategies.base import FetchResult
from quotaprobe.strategies.base import FetchStrategy
from quotaprobe.strategies.base import ProviderSettingsSnapshot
from quotaprobe.strategies.base import RuntimeKind
from quotaprobe.strategies.base import SourceMode
from quotaprobe.strategies.base import default_should_fallback

__all__ = [
    "FetchStrategy",
    "FetchKind",
    "FetchContext",
    "FetchResult",
    "FetchAttempt",
    "FetchOutcome",
    "ProviderSettingsSnapshot",
    "RuntimeKind",
    "SourceMode",
    "default_should_fallback",
]
