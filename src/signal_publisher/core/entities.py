"""Core domain entities."""

from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional


def utc_now_iso() -> str:
    """Current UTC time as an ISO-8601 string."""
    return datetime.now(timezone.utc).isoformat()


class SignalKind(str, Enum):
    """Kind of detected activity."""

    COMMIT = "commit"
    DOCUMENT_UPDATE = "document_update"
    ISSUE = "issue"
    OTHER = "other"


class Category(str, Enum):
    """Category assigned by the classifier."""

    CODE = "code"
    DOCS = "docs"
    CONFIG = "config"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class Signal:
    """Candidate unit of activity produced by a signal source."""

    id: str
    kind: SignalKind
    payload: dict[str, Any]
    confidence: float

    def __post_init__(self) -> None:
        if not self.id:
            raise ValueError("Signal id cannot be empty")
        if not 0.0 <= self.confidence <= 1.0:
            raise ValueError(f"Confidence must be within [0, 1], got {self.confidence}")

    @property
    def primary_text(self) -> str:
        """Free text the heuristics and keyword extraction work on."""
        if self.kind is SignalKind.COMMIT:
            return str(self.payload.get("message") or "")
        if self.kind is SignalKind.DOCUMENT_UPDATE:
            return str(self.payload.get("name") or "")
        if self.kind is SignalKind.ISSUE:
            return str(self.payload.get("title") or "")
        return str(self.payload.get("text") or "")


@dataclass(frozen=True)
class ClassifiedSignal:
    """Signal with a category and adjusted confidence."""

    signal: Signal
    category: Category
    confidence: float
    classification_method: str
    original_confidence: float

    @property
    def id(self) -> str:
        return self.signal.id

    @property
    def kind(self) -> SignalKind:
        return self.signal.kind

    @property
    def payload(self) -> dict[str, Any]:
        return self.signal.payload


@dataclass(frozen=True)
class ContextResult:
    """Descriptive text returned by a context lookup."""

    topic: str
    content: str
    url: Optional[str] = None
    source: str = "wikipedia"


@dataclass
class EnrichedRecord:
    """Classified signal with external context attached."""

    signal_id: str
    signal_type: SignalKind
    category: Category
    confidence: float
    topic: str
    context: str
    sources: list[str] = field(default_factory=list)
    payload: dict[str, Any] = field(default_factory=dict)
    has_context: bool = False


@dataclass(frozen=True)
class SourceData:
    """Attribution for the originating activity."""

    author: Optional[str] = None
    date: Optional[str] = None
    url: Optional[str] = None


@dataclass
class NormalizedRecord:
    """Canonical record handed to prompt construction."""

    topic: str
    context: str
    category: Category
    signal_type: str
    confidence: float
    sources: list[str]
    signal_id: str
    timestamp: str
    source_data: Optional[SourceData] = None

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class PromptMetadata:
    signal_id: str
    timestamp: str
    category: Category
    confidence: float


@dataclass(frozen=True)
class SystemInstructions:
    role: str
    guidelines: tuple[str, ...]


@dataclass(frozen=True)
class Instructions:
    topic: str
    context: str
    signal_type: str
    category: Category
    sources: tuple[str, ...]
    confidence: float


@dataclass(frozen=True)
class LengthConstraint:
    min: int
    max: int
    unit: str


@dataclass(frozen=True)
class StructureConstraint:
    include: tuple[str, ...]
    avoid: tuple[str, ...]


@dataclass(frozen=True)
class FormattingConstraint:
    hashtags: int
    tone: str
    paragraphs: str


@dataclass(frozen=True)
class Constraints:
    format: str
    length: LengthConstraint
    structure: StructureConstraint
    formatting: FormattingConstraint


@dataclass(frozen=True)
class GenerationRequest:
    """Structured instruction set handed to a text generator."""

    metadata: PromptMetadata
    system: SystemInstructions
    instructions: Instructions
    constraints: Constraints
    attribution: Optional[SourceData] = None


class Provider(str, Enum):
    """Origin of generated content."""

    PRIMARY = "primary"
    FALLBACK = "fallback"
    ERROR = "error"


@dataclass
class GeneratedContent:
    """Output of the content generator."""

    text: Optional[str]
    provider: Provider
    model: str
    metadata: dict[str, Any] = field(default_factory=dict)

    @property
    def is_placeholder(self) -> bool:
        return self.provider is not Provider.PRIMARY


class ImageType(str, Enum):
    """Kind of image attached to a post."""

    STOCK_IMAGE = "stock_image"
    AI_PROMPT = "ai_prompt"
    NONE = "none"


@dataclass(frozen=True)
class ImageHit:
    """Single result from an image search provider."""

    url: str
    provider: str
    alt: str = ""
    attribution: dict[str, Any] = field(default_factory=dict)
    width: Optional[int] = None
    height: Optional[int] = None


@dataclass
class ImageResult:
    """Outcome of the image stage."""

    type: ImageType
    url: Optional[str] = None
    alt: Optional[str] = None
    provider: Optional[str] = None
    prompt: Optional[str] = None
    keywords: list[str] = field(default_factory=list)
    attribution: dict[str, Any] = field(default_factory=dict)
    message: Optional[str] = None
    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["type"] = self.type.value
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ImageResult":
        return cls(**{**data, "type": ImageType(data["type"])})


@dataclass
class PostContent:
    """Content submitted to the publisher."""

    text: Optional[str]
    topic: str = ""
    signal_id: str = ""
    signal_type: str = ""
    provider: str = Provider.PRIMARY.value
    image: Optional[ImageResult] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "text": self.text,
            "topic": self.topic,
            "signal_id": self.signal_id,
            "signal_type": self.signal_type,
            "provider": self.provider,
            "image": self.image.to_dict() if self.image else None,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "PostContent":
        image = data.get("image")
        return cls(
            text=data.get("text"),
            topic=data.get("topic", ""),
            signal_id=data.get("signal_id", ""),
            signal_type=data.get("signal_type", ""),
            provider=data.get("provider", Provider.PRIMARY.value),
            image=ImageResult.from_dict(image) if image else None,
        )


class QueueStatus(str, Enum):
    """Lifecycle state of a queue item."""

    PENDING = "pending"
    PUBLISHED = "published"
    REJECTED = "rejected"


@dataclass
class QueueItem:
    """Generated content awaiting manual approval."""

    id: str
    content: PostContent
    status: QueueStatus = QueueStatus.PENDING
    created_at: str = field(default_factory=utc_now_iso)
    published_at: Optional[str] = None
    post_id: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "content": self.content.to_dict(),
            "status": self.status.value,
            "created_at": self.created_at,
            "published_at": self.published_at,
            "post_id": self.post_id,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "QueueItem":
        return cls(
            id=data["id"],
            content=PostContent.from_dict(data["content"]),
            status=QueueStatus(data.get("status", QueueStatus.PENDING.value)),
            created_at=data.get("created_at") or utc_now_iso(),
            published_at=data.get("published_at"),
            post_id=data.get("post_id"),
        )


@dataclass(frozen=True)
class PublishReceipt:
    """Acknowledgement from the publish capability."""

    post_id: str
    url: Optional[str] = None


class PublishStatus(str, Enum):
    QUEUED = "queued"
    PUBLISHED = "published"
    ERROR = "error"


@dataclass
class PublishResult:
    """Result of a publish request."""

    status: PublishStatus
    queue_id: Optional[str] = None
    post_id: Optional[str] = None
    url: Optional[str] = None
    published_at: Optional[str] = None
    error: Optional[str] = None
    error_kind: Optional[str] = None


class HealthStatus(str, Enum):
    HEALTHY = "healthy"
    DEGRADED = "degraded"
    UNHEALTHY = "unhealthy"


@dataclass
class HealthReport:
    """Health of a single capability."""

    status: HealthStatus
    message: str = ""
    details: dict[str, Any] = field(default_factory=dict)


class SignalOutcome(str, Enum):
    """Per-signal result of a pipeline run."""

    PUBLISHED = "published"
    QUEUED = "queued"
    SKIPPED = "skipped"
    ERROR = "error"


@dataclass
class SignalResult:
    """Entry in a pipeline run report."""

    signal_id: str
    status: SignalOutcome
    queue_id: Optional[str] = None
    post_id: Optional[str] = None
    provider: Optional[str] = None
    error: Optional[str] = None


@dataclass
class PipelineReport:
    """Summary of one pipeline run."""

    results: list[SignalResult] = field(default_factory=list)
    started_at: str = field(default_factory=utc_now_iso)
    finished_at: Optional[str] = None

    @property
    def counts(self) -> dict[str, int]:
        counts = {outcome.value: 0 for outcome in SignalOutcome}
        for result in self.results:
            counts[result.status.value] += 1
        return counts
