"""Core interfaces for adapters."""

from abc import ABC, abstractmethod
from typing import Any, Optional

from signal_publisher.core.entities import (
    ContextResult,
    HealthReport,
    HealthStatus,
    ImageHit,
    PostContent,
    PublishReceipt,
    Signal,
    SignalKind,
)


class ActivityFeed(ABC):
    """Upstream activity source queried per signal kind."""

    @abstractmethod
    async def fetch_recent(self, kind: SignalKind, limit: int) -> list[dict[str, Any]]:
        """Fetch raw events of the given kind, newest first.

        Raises:
            TransportError: When the upstream cannot be reached.
        """
        pass

    async def health_check(self) -> HealthReport:
        return HealthReport(HealthStatus.HEALTHY)


class SignalSource(ABC):
    """Interface for producing candidate signals."""

    @abstractmethod
    async def detect_signals(self) -> list[Signal]:
        """Detect signals not yet recorded in the ledger."""
        pass

    async def health_check(self) -> HealthReport:
        return HealthReport(HealthStatus.HEALTHY)


class ContextLookup(ABC):
    """Interface for fetching descriptive context for a keyword."""

    @abstractmethod
    async def lookup(self, keyword: str) -> Optional[ContextResult]:
        """Return context for keyword, or None when nothing is known about it."""
        pass

    async def health_check(self) -> HealthReport:
        return HealthReport(HealthStatus.HEALTHY)


class TextGenerator(ABC):
    """Interface for generative text providers."""

    # Key into the prompt builder's provider format registry.
    prompt_format: str = "openai"
    model: str = "unknown"

    @abstractmethod
    async def complete(self, formatted_prompt: Any, params: dict[str, Any]) -> str:
        """Generate text for an already formatted prompt.

        Raises:
            RateLimited, UnavailableError, TransportError, AuthError
        """
        pass

    async def health_check(self) -> HealthReport:
        return HealthReport(HealthStatus.HEALTHY)


class ImageSearch(ABC):
    """Interface for stock image search providers."""

    name: str = "image"

    @abstractmethod
    async def search(self, query: str) -> Optional[ImageHit]:
        """Return the best image for query, or None."""
        pass


class PublishTarget(ABC):
    """Interface for the publishing destination."""

    @property
    @abstractmethod
    def has_credentials(self) -> bool:
        """Whether publishing can be attempted at all."""
        pass

    @abstractmethod
    async def post(self, content: PostContent) -> PublishReceipt:
        """Publish content.

        Raises:
            AuthError, ForbiddenError, TransportError
        """
        pass

    async def health_check(self) -> HealthReport:
        return HealthReport(HealthStatus.HEALTHY)
