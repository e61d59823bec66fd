"""Business logic use cases."""

import asyncio
import logging
from typing import Any, Optional

from signal_publisher.core import (
    ClassifiedSignal,
    ContentGenerator,
    DataNormalizer,
    HealthReport,
    HealthStatus,
    IdempotencyLedger,
    ImageSelector,
    PipelineReport,
    PostContent,
    PromptBuilder,
    Provider,
    Publisher,
    PublishStatus,
    SignalClassifier,
    SignalEnricher,
    SignalOutcome,
    SignalResult,
    SignalSource,
)
from signal_publisher.core.entities import utc_now_iso
from signal_publisher.core.errors import ValidationError
from signal_publisher.core.policy import DEFAULT_CONFIDENCE_THRESHOLD

logger = logging.getLogger(__name__)

_OUTCOMES = {
    PublishStatus.PUBLISHED: SignalOutcome.PUBLISHED,
    PublishStatus.QUEUED: SignalOutcome.QUEUED,
    # Publisher errors still leave the content in the review queue
    PublishStatus.ERROR: SignalOutcome.QUEUED,
}


class PipelineService:
    """Run detect, classify, enrich, normalize, prompt, generate, image and publish.

    Runs are serialized: a second ``run()`` started while one is in flight
    waits for it, so the ledger check in detection and the mark at the end
    of processing never interleave across runs of the same service.
    """

    def __init__(
        self,
        source: SignalSource,
        classifier: SignalClassifier,
        enricher: SignalEnricher,
        normalizer: DataNormalizer,
        prompt_builder: PromptBuilder,
        content_generator: ContentGenerator,
        publisher: Publisher,
        ledger: IdempotencyLedger,
        image_selector: Optional[ImageSelector] = None,
        confidence_threshold: float = DEFAULT_CONFIDENCE_THRESHOLD,
        workflow_name: str = "signal-pipeline",
    ) -> None:
        self.source = source
        self.classifier = classifier
        self.enricher = enricher
        self.normalizer = normalizer
        self.prompt_builder = prompt_builder
        self.content_generator = content_generator
        self.publisher = publisher
        self.ledger = ledger
        self.image_selector = image_selector
        self.confidence_threshold = confidence_threshold
        self.workflow_name = workflow_name
        self._run_lock = asyncio.Lock()

    async def run(self) -> PipelineReport:
        """Process every new signal once and record the execution."""
        async with self._run_lock:
            return await self._run()

    async def _run(self) -> PipelineReport:
        report = PipelineReport()
        logger.info("Pipeline run started: %s", self.workflow_name)

        try:
            signals = await self.source.detect_signals()
        except Exception as e:
            logger.exception("Signal detection failed")
            self.ledger.record_execution(self.workflow_name, "error", {"error": str(e)})
            raise

        classified = self.classifier.classify_batch(signals)
        eligible = self.classifier.filter_by_confidence(classified, self.confidence_threshold)
        eligible_ids = {signal.id for signal in eligible}

        for signal in classified:
            if signal.id in eligible_ids:
                continue
            self.ledger.mark_processed(
                signal.id,
                {
                    "kind": signal.kind.value,
                    "category": signal.category.value,
                    "confidence": signal.confidence,
                    "status": SignalOutcome.SKIPPED.value,
                },
            )
            report.results.append(SignalResult(signal_id=signal.id, status=SignalOutcome.SKIPPED))

        for signal in eligible:
            try:
                result = await self._process_signal(signal)
            except Exception as e:
                logger.exception("Failed to process signal %s", signal.id)
                result = SignalResult(signal_id=signal.id, status=SignalOutcome.ERROR, error=str(e))
            report.results.append(result)

        report.finished_at = utc_now_iso()
        counts = report.counts
        self.ledger.record_execution(
            self.workflow_name,
            "success",
            {"signals_detected": len(signals), **counts},
        )
        logger.info("Pipeline run finished: %s", counts)
        return report

    async def _process_signal(self, signal: ClassifiedSignal) -> SignalResult:
        logger.info("Processing signal %s (%s, %.2f)", signal.id, signal.category.value, signal.confidence)

        enriched = await self.enricher.enrich_signal(signal)
        record = self.normalizer.normalize(enriched)
        if not self.normalizer.validate(record):
            raise ValidationError(f"Normalized record for {signal.id} failed validation")

        prompt = self.prompt_builder.build_prompt(record)
        generated = await self.content_generator.generate(prompt)
        if generated.text is None:
            raise ValidationError(
                f"Generation produced no text for {signal.id}: {generated.metadata.get('error', 'unknown')}"
            )

        image = None
        if self.image_selector is not None:
            image = await self.image_selector.generate(
                record, {"topic": record.topic, "signal_type": record.signal_type}
            )

        content = PostContent(
            text=generated.text,
            topic=record.topic,
            signal_id=signal.id,
            signal_type=record.signal_type,
            provider=generated.provider.value,
            image=image,
        )
        published = await self.publisher.publish(content)
        outcome = _OUTCOMES[published.status]

        metadata: dict[str, Any] = {
            "kind": signal.kind.value,
            "category": signal.category.value,
            "confidence": record.confidence,
            "status": outcome.value,
            "provider": generated.provider.value,
        }
        if published.queue_id:
            metadata["queue_id"] = published.queue_id
        if published.post_id:
            metadata["post_id"] = published.post_id
        self.ledger.mark_processed(signal.id, metadata)

        if generated.provider is Provider.FALLBACK:
            logger.warning("Signal %s used fallback content, review before publishing", signal.id)

        return SignalResult(
            signal_id=signal.id,
            status=outcome,
            queue_id=published.queue_id,
            post_id=published.post_id,
            provider=generated.provider.value,
            error=published.error,
        )


class HealthService:
    """Aggregate health reports from named components."""

    def __init__(self, components: dict[str, Any]) -> None:
        self.components = components

    async def check(self) -> dict[str, HealthReport]:
        reports: dict[str, HealthReport] = {}
        for name, component in self.components.items():
            try:
                reports[name] = await component.health_check()
            except Exception as e:
                logger.warning("Health check for %s raised: %s", name, e)
                reports[name] = HealthReport(HealthStatus.UNHEALTHY, str(e))
        return reports

    @staticmethod
    def overall(reports: dict[str, HealthReport]) -> HealthStatus:
        statuses = {report.status for report in reports.values()}
        if HealthStatus.UNHEALTHY in statuses:
            return HealthStatus.UNHEALTHY
        if HealthStatus.DEGRADED in statuses:
            return HealthStatus.DEGRADED
        return HealthStatus.HEALTHY
