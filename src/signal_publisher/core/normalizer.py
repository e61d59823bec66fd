"""Canonicalize enriched records before prompt construction."""

import logging
import re
from typing import Any, Optional

from signal_publisher.core import policy
from signal_publisher.core.entities import (
    Category,
    EnrichedRecord,
    NormalizedRecord,
    SourceData,
    utc_now_iso,
)

logger = logging.getLogger(__name__)

MAX_TOPIC_LENGTH = 100
MAX_CONTEXT_LENGTH = 500
ELLIPSIS = "..."

REQUIRED_FIELDS = (
    "topic",
    "category",
    "signal_type",
    "context",
    "confidence",
    "sources",
    "timestamp",
    "signal_id",
)

_WHITESPACE = re.compile(r"\s+")


def sanitize_text(text: Optional[str], max_length: int) -> str:
    """Collapse whitespace, trim, and truncate to max_length with an ellipsis."""
    if not text:
        return ""
    cleaned = _WHITESPACE.sub(" ", text).strip()
    if len(cleaned) > max_length:
        return cleaned[: max_length - len(ELLIPSIS)] + ELLIPSIS
    return cleaned


class DataNormalizer:
    """Turn enriched records into validated canonical records."""

    def __init__(
        self,
        max_topic_length: int = MAX_TOPIC_LENGTH,
        max_context_length: int = MAX_CONTEXT_LENGTH,
    ) -> None:
        self.max_topic_length = max_topic_length
        self.max_context_length = max_context_length

    def normalize(self, enriched: EnrichedRecord) -> NormalizedRecord:
        """Normalize a record, returning a placeholder if anything goes wrong."""
        try:
            record = NormalizedRecord(
                topic=sanitize_text(enriched.topic, self.max_topic_length),
                context=sanitize_text(enriched.context, self.max_context_length),
                category=Category(enriched.category or Category.UNKNOWN),
                signal_type=enriched.signal_type.value,
                confidence=policy.clamp(round(float(enriched.confidence), 2), 0.0, 1.0),
                sources=list(enriched.sources) if isinstance(enriched.sources, list) else [],
                signal_id=enriched.signal_id or "unknown",
                timestamp=utc_now_iso(),
                source_data=self._source_data(enriched.payload),
            )
        except Exception:
            logger.exception("Normalization failed for signal %s", getattr(enriched, "signal_id", "?"))
            return self._placeholder(enriched)

        logger.debug("Signal %s normalized (context %d chars)", record.signal_id, len(record.context))
        return record

    def normalize_batch(self, records: list[EnrichedRecord]) -> list[NormalizedRecord]:
        return [self.normalize(record) for record in records]

    def merge_context(self, contexts: list[str]) -> str:
        """Join non-empty contexts with a delimiter within the context cap."""
        merged = " | ".join(ctx for ctx in contexts if ctx and ctx.strip())
        return sanitize_text(merged, self.max_context_length)

    def validate(self, record: NormalizedRecord) -> bool:
        """Check mandatory fields, confidence bounds and sources type."""
        for name in REQUIRED_FIELDS:
            if getattr(record, name, None) is None:
                logger.warning("Missing required field in normalized record: %s", name)
                return False

        confidence = record.confidence
        if isinstance(confidence, bool) or not isinstance(confidence, (int, float)) or not 0 <= confidence <= 1:
            logger.warning("Invalid confidence value: %r", confidence)
            return False

        if not isinstance(record.sources, list):
            logger.warning("Sources must be a list")
            return False

        return True

    def summarize(self, records: list[NormalizedRecord]) -> dict[str, Any]:
        """Aggregate categories, signal types and confidence over records."""
        summary: dict[str, Any] = {
            "total": len(records),
            "categories": {},
            "signal_types": {},
            "avg_confidence": 0.0,
            "total_sources": 0,
        }
        if not records:
            return summary

        for record in records:
            category = Category(record.category).value
            summary["categories"][category] = summary["categories"].get(category, 0) + 1
            summary["signal_types"][record.signal_type] = summary["signal_types"].get(record.signal_type, 0) + 1
            summary["total_sources"] += len(record.sources)

        summary["avg_confidence"] = round(sum(r.confidence for r in records) / len(records), 2)
        return summary

    def _source_data(self, payload: dict[str, Any]) -> Optional[SourceData]:
        if not payload:
            return None
        return SourceData(
            author=payload.get("author"),
            date=payload.get("date") or payload.get("created_at"),
            url=payload.get("url"),
        )

    def _placeholder(self, enriched: Any) -> NormalizedRecord:
        signal_type = getattr(enriched, "signal_type", None)
        return NormalizedRecord(
            topic="Normalization Failed",
            context="Failed to normalize enriched data",
            category=Category.UNKNOWN,
            signal_type=getattr(signal_type, "value", None) or "unknown",
            confidence=0.3,
            sources=[],
            signal_id=getattr(enriched, "signal_id", None) or "error",
            timestamp=utc_now_iso(),
        )
