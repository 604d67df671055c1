"""Provider base class and display metadata."""

from abc import ABC
from abc import abstractmethod
from typing import ClassVar

from msgspec import Struct

from quotaprobe.core.pipeline import FetchPipeline
from quotaprobe.strategies.base import FetchContext
from quotaprobe.strategies.base import FetchStrategy


class ProviderMetadata(Struct, frozen=True):
    id: str
    name: str
    description: str
    homepage: str
    dashboard_url: str | None = None
    # Names for the primary, secondary and tertiary windows
    window_labels: tuple[str, str, str] = ("Session", "Weekly", "Model")


class Provider(ABC):
    """One usage source (Claude, Codex, z.ai).

    A provider only decides *which* strategies to try for a context; the
    pipeline runs them and applies the fallback rules.
    """

    metadata: ClassVar[ProviderMetadata]

    @property
    def id(self) -> str:
        return self.metadata.id

    @property
    def name(self) -> str:
        return self.metadata.name

    @abstractmethod
    def resolve_strategies(self, context: FetchContext) -> list[FetchStrategy]:
        """Ordered strategies for ``context``.

        Must not do I/O: the same context always yields the same order.
        """

    @property
    def pipeline(self) -> FetchPipeline:
        return FetchPipeline(self.resolve_strategies)

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.id}>"
