"""z.ai provider for quotaprobe."""

from __future__ import annotations

from quotaprobe.providers.base import Provider
from quotaprobe.providers.base import ProviderMetadata
from quotaprobe.providers.zai.api import ZaiAPIStrategy
from quotaprobe.strategies.base import FetchContext
from quotaprobe.strategies.base import FetchStrategy


class ZaiProvider(Provider):
    """Provider for z.ai (GLM coding plan) quota."""

    metadata = ProviderMetadata(
        id="zai",
        name="z.ai",
        description="Zhipu's GLM coding plan",
        homepage="https://z.ai",
        dashboard_url="https://z.ai/manage-apikey/subscription",
        window_labels=("Tokens", "MCP", "Model"),
    )

    def resolve_strategies(self, context: FetchContext) -> list[FetchStrategy]:
        return [ZaiAPIStrategy()]


__all__ = ["ZaiProvider"]
