"""Error taxonomy shared by the pipeline and its adapters."""

from typing import Optional


class PipelineError(Exception):
    """Base class for all expected pipeline errors."""


class TransportError(PipelineError):
    """Network failure or timeout talking to an external capability."""


class UnavailableError(TransportError):
    """Capability reachable but temporarily unable to serve (e.g. model loading)."""


class RateLimited(TransportError):
    """Capability asked us to back off."""

    def __init__(self, message: str, retry_after: Optional[float] = None) -> None:
        super().__init__(message)
        self.retry_after = retry_after


class AuthError(PipelineError):
    """Credential missing, invalid or expired."""


class ForbiddenError(AuthError):
    """Credential valid but lacks the required permission scope."""


class ValidationError(PipelineError):
    """Malformed internal record."""


class NotFoundError(PipelineError):
    """Queue item or ledger entry absent."""


class QueueStateError(NotFoundError):
    """Queue item exists but no longer allows the requested action."""
