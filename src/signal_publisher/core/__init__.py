"""Core domain layer."""

from signal_publisher.core.classifier import SignalClassifier
from signal_publisher.core.content_generator import ContentGenerator
from signal_publisher.core.enricher import SignalEnricher
from signal_publisher.core.entities import (
    Category,
    ClassifiedSignal,
    ContextResult,
    EnrichedRecord,
    GeneratedContent,
    GenerationRequest,
    HealthReport,
    HealthStatus,
    ImageHit,
    ImageResult,
    ImageType,
    NormalizedRecord,
    PipelineReport,
    PostContent,
    Provider,
    PublishReceipt,
    PublishResult,
    PublishStatus,
    QueueItem,
    QueueStatus,
    Signal,
    SignalKind,
    SignalOutcome,
    SignalResult,
    SourceData,
)
from signal_publisher.core.image_selector import ImageSelector
from signal_publisher.core.interfaces import (
    ActivityFeed,
    ContextLookup,
    ImageSearch,
    PublishTarget,
    SignalSource,
    TextGenerator,
)
from signal_publisher.core.ledger import IdempotencyLedger, JsonFileStore, LedgerStore, MemoryStore
from signal_publisher.core.normalizer import DataNormalizer, sanitize_text
from signal_publisher.core.prompt_builder import PromptBuilder, register_provider_format
from signal_publisher.core.publisher import Publisher

__all__ = [
    "Signal",
    "SignalKind",
    "Category",
    "ClassifiedSignal",
    "ContextResult",
    "EnrichedRecord",
    "NormalizedRecord",
    "SourceData",
    "GenerationRequest",
    "GeneratedContent",
    "Provider",
    "ImageHit",
    "ImageResult",
    "ImageType",
    "PostContent",
    "PublishReceipt",
    "PublishResult",
    "PublishStatus",
    "QueueItem",
    "QueueStatus",
    "HealthReport",
    "HealthStatus",
    "SignalOutcome",
    "SignalResult",
    "PipelineReport",
    "ActivityFeed",
    "SignalSource",
    "ContextLookup",
    "TextGenerator",
    "ImageSearch",
    "PublishTarget",
    "LedgerStore",
    "JsonFileStore",
    "MemoryStore",
    "IdempotencyLedger",
    "SignalClassifier",
    "SignalEnricher",
    "DataNormalizer",
    "sanitize_text",
    "PromptBuilder",
    "register_provider_format",
    "ContentGenerator",
    "ImageSelector",
    "Publisher",
]
