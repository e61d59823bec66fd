"""Deterministic signal classification."""

import logging
from typing import Callable

from signal_publisher.core import policy
from signal_publisher.core.entities import Category, ClassifiedSignal, Signal, SignalKind

logger = logging.getLogger(__name__)


class SignalClassifier:
    """Assign a category and adjusted confidence to each signal."""

    def __init__(self) -> None:
        self._handlers: dict[SignalKind, Callable[[Signal], tuple[Category, float, str]]] = {
            SignalKind.COMMIT: self._classify_commit,
            SignalKind.DOCUMENT_UPDATE: self._classify_document_update,
            SignalKind.ISSUE: self._classify_issue,
        }

    def classify(self, signal: Signal) -> ClassifiedSignal:
        handler = self._handlers.get(signal.kind)
        if handler is None:
            logger.warning("No classification heuristic for signal kind %r (%s)", signal.kind.value, signal.id)
            category, adjustment, method = Category.UNKNOWN, 0.0, "unhandled_type"
        else:
            category, adjustment, method = handler(signal)

        classified = ClassifiedSignal(
            signal=signal,
            category=category,
            confidence=policy.clamp(signal.confidence + adjustment),
            classification_method=method,
            original_confidence=signal.confidence,
        )
        logger.debug(
            "Signal %s classified as %s (%.2f -> %.2f)",
            signal.id, category.value, signal.confidence, classified.confidence,
        )
        return classified

    def classify_batch(self, signals: list[Signal]) -> list[ClassifiedSignal]:
        logger.info("Classifying %d signals", len(signals))
        return [self.classify(signal) for signal in signals]

    @staticmethod
    def filter_by_confidence(
        signals: list[ClassifiedSignal],
        threshold: float = policy.DEFAULT_CONFIDENCE_THRESHOLD,
    ) -> list[ClassifiedSignal]:
        """Keep signals whose confidence reaches threshold."""
        filtered = [s for s in signals if s.confidence >= threshold]
        logger.info(
            "Confidence filter kept %d of %d signals (threshold %.2f)",
            len(filtered), len(signals), threshold,
        )
        return filtered

    def _classify_commit(self, signal: Signal) -> tuple[Category, float, str]:
        message = signal.primary_text
        for pattern, category, adjustment in policy.COMMIT_MESSAGE_RULES:
            if pattern.search(message):
                return category, adjustment, "commit_message_heuristic"
        return Category.UNKNOWN, 0.0, "commit_message_heuristic"

    def _classify_document_update(self, signal: Signal) -> tuple[Category, float, str]:
        return Category.DOCS, policy.DOCUMENT_UPDATE_ADJUSTMENT, "readme_direct"

    def _classify_issue(self, signal: Signal) -> tuple[Category, float, str]:
        labels = {str(label).lower() for label in signal.payload.get("labels") or []}
        for label_set, category, adjustment in policy.ISSUE_LABEL_RULES:
            if labels & label_set:
                return category, adjustment, "issue_labels_title"

        title = signal.primary_text
        for pattern, category, adjustment in policy.ISSUE_TITLE_RULES:
            if pattern.search(title):
                return category, adjustment, "issue_labels_title"
        return Category.UNKNOWN, 0.0, "issue_labels_title"
