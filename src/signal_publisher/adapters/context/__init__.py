"""Context lookup adapters."""

from signal_publisher.adapters.context.wikipedia_lookup import WikipediaLookup

__all__ = ["WikipediaLookup"]
