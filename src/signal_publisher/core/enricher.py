"""Attach external context to classified signals."""

import asyncio
import logging
import re
from typing import Optional

from signal_publisher.core import policy
from signal_publisher.core.entities import (
    ClassifiedSignal,
    ContextResult,
    EnrichedRecord,
    HealthReport,
    HealthStatus,
)
from signal_publisher.core.errors import PipelineError
from signal_publisher.core.interfaces import ContextLookup

logger = logging.getLogger(__name__)

STOP_WORDS = frozenset({
    "the", "a", "an", "and", "or", "but", "in", "on", "at", "to", "for",
    "of", "with", "by", "from", "up", "about", "into", "through", "during",
    "is", "are", "was", "were", "been", "be", "have", "has", "had",
    "add", "update", "fix", "implement", "change", "remove", "create",
})

NO_CONTEXT = "No contextual information available"
LOOKUP_FAILED = "Context enrichment failed"


def extract_keywords(text: str, limit: int = 3) -> list[str]:
    """Extract up to limit salient keywords, unique, in first-seen order."""
    words = re.sub(r"[^a-z0-9\s]", " ", text.lower()).split()
    keywords: list[str] = []
    for word in words:
        if len(word) <= 3 or word in STOP_WORDS or word in keywords:
            continue
        keywords.append(word)
        if len(keywords) >= limit:
            break
    return keywords


class SignalEnricher:
    """Enrich signals with context from a lookup capability."""

    def __init__(
        self,
        lookup: Optional[ContextLookup] = None,
        max_keywords: int = 3,
        max_context_length: int = 500,
        request_delay: float = 0.1,
    ) -> None:
        self.lookup = lookup
        self.max_keywords = max_keywords
        self.max_context_length = max_context_length
        self.request_delay = request_delay
        self._last_lookup_time: Optional[float] = None

    async def enrich_signal(self, signal: ClassifiedSignal) -> EnrichedRecord:
        """Enrich a signal. Lookup failures degrade the record, they never raise."""
        keywords = extract_keywords(signal.signal.primary_text, self.max_keywords)

        if not keywords:
            logger.warning("No keywords extracted from signal %s", signal.id)
            return self._record(signal, topic="Unknown", context=NO_CONTEXT)

        logger.debug("Keywords for %s: %s", signal.id, keywords)
        result, failures = await self._fetch_context(keywords)

        if result is not None:
            logger.info("Signal %s enriched from %s:%s", signal.id, result.source, result.topic)
            return self._record(
                signal,
                topic=result.topic,
                context=result.content[: self.max_context_length],
                sources=[f"{result.source}:{result.topic}"],
                has_context=True,
            )

        if self.lookup is not None and failures == len(keywords):
            logger.warning("All context lookups failed for signal %s", signal.id)
            return self._record(
                signal,
                topic=keywords[0],
                context=LOOKUP_FAILED,
                confidence=policy.clamp(signal.confidence - policy.ENRICHMENT_FAILURE_PENALTY),
            )

        logger.warning("No external context found for keywords %s", keywords)
        return self._record(
            signal,
            topic=keywords[0],
            context=f"Technical topic: {', '.join(keywords)}",
        )

    async def _fetch_context(self, keywords: list[str]) -> tuple[Optional[ContextResult], int]:
        """Look keywords up in order, stopping at the first hit.

        Returns:
            Tuple of (first result or None, number of failed lookups)
        """
        if self.lookup is None:
            return None, 0

        failures = 0
        for keyword in keywords:
            await self._rate_limit_delay()
            try:
                result = await self.lookup.lookup(keyword)
            except PipelineError as e:
                failures += 1
                logger.warning("Context lookup for %r failed: %s", keyword, e)
                continue
            if result is not None and result.content:
                return result, failures
        return None, failures

    async def _rate_limit_delay(self) -> None:
        loop = asyncio.get_running_loop()
        if self._last_lookup_time is not None:
            elapsed = loop.time() - self._last_lookup_time
            if elapsed < self.request_delay:
                await asyncio.sleep(self.request_delay - elapsed)
        self._last_lookup_time = loop.time()

    def _record(
        self,
        signal: ClassifiedSignal,
        topic: str,
        context: str,
        sources: Optional[list[str]] = None,
        confidence: Optional[float] = None,
        has_context: bool = False,
    ) -> EnrichedRecord:
        return EnrichedRecord(
            signal_id=signal.id,
            signal_type=signal.kind,
            category=signal.category,
            confidence=signal.confidence if confidence is None else confidence,
            topic=topic,
            context=context,
            sources=sources or [],
            payload=dict(signal.payload),
            has_context=has_context,
        )

    async def health_check(self) -> HealthReport:
        if self.lookup is None:
            return HealthReport(HealthStatus.DEGRADED, "Context enrichment disabled")
        return await self.lookup.health_check()
