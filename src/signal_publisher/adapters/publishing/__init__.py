"""Publishing adapters."""

from signal_publisher.adapters.publishing.linkedin_client import LinkedInClient

__all__ = ["LinkedInClient"]
