"""Shared test doubles and factories."""

from typing import Any, Optional

import pytest

from signal_publisher.core import (
    ActivityFeed,
    Category,
    ClassifiedSignal,
    ContextLookup,
    ContextResult,
    IdempotencyLedger,
    ImageHit,
    ImageSearch,
    MemoryStore,
    NormalizedRecord,
    PostContent,
    PublishReceipt,
    PublishTarget,
    Signal,
    SignalKind,
    TextGenerator,
)


class FakeFeed(ActivityFeed):
    """Activity feed returning canned events, or raising per kind."""

    def __init__(
        self,
        events: Optional[dict[SignalKind, list[dict[str, Any]]]] = None,
        errors: Optional[dict[SignalKind, Exception]] = None,
    ) -> None:
        self.events = events or {}
        self.errors = errors or {}
        self.calls: list[tuple[SignalKind, int]] = []

    async def fetch_recent(self, kind: SignalKind, limit: int) -> list[dict[str, Any]]:
        self.calls.append((kind, limit))
        if kind in self.errors:
            raise self.errors[kind]
        return list(self.events.get(kind, []))[:limit]


class FakeLookup(ContextLookup):
    """Context lookup backed by a dict; keywords in ``errors`` raise."""

    def __init__(
        self,
        pages: Optional[dict[str, str]] = None,
        errors: Optional[dict[str, Exception]] = None,
    ) -> None:
        self.pages = pages or {}
        self.errors = errors or {}
        self.calls: list[str] = []

    async def lookup(self, keyword: str) -> Optional[ContextResult]:
        self.calls.append(keyword)
        if keyword in self.errors:
            raise self.errors[keyword]
        if keyword in self.pages:
            return ContextResult(topic=keyword, content=self.pages[keyword], url=f"https://wiki/{keyword}")
        return None


class FakeTextGenerator(TextGenerator):
    prompt_format = "openai"
    model = "fake-model"

    def __init__(self, text: str = "Generated post #Test", error: Optional[Exception] = None) -> None:
        self.text = text
        self.error = error
        self.calls: list[Any] = []

    async def complete(self, formatted_prompt: Any, params: dict[str, Any]) -> str:
        self.calls.append(formatted_prompt)
        if self.error is not None:
            raise self.error
        return self.text


class FakeImageSearch(ImageSearch):
    def __init__(self, name: str, hit: Optional[ImageHit] = None, error: Optional[Exception] = None) -> None:
        self.name = name
        self.hit = hit
        self.error = error
        self.queries: list[str] = []

    async def search(self, query: str) -> Optional[ImageHit]:
        self.queries.append(query)
        if self.error is not None:
            raise self.error
        return self.hit


class FakePublishTarget(PublishTarget):
    def __init__(self, credentials: bool = True, error: Optional[Exception] = None) -> None:
        self.credentials = credentials
        self.error = error
        self.posts: list[PostContent] = []

    @property
    def has_credentials(self) -> bool:
        return self.credentials

    async def post(self, content: PostContent) -> PublishReceipt:
        if self.error is not None:
            raise self.error
        self.posts.append(content)
        post_id = f"urn:li:share:{len(self.posts)}"
        return PublishReceipt(post_id=post_id, url=f"https://www.linkedin.com/feed/update/{post_id}/")


def make_signal(
    signal_id: str = "commit:abc",
    kind: SignalKind = SignalKind.COMMIT,
    payload: Optional[dict[str, Any]] = None,
    confidence: float = 0.7,
) -> Signal:
    if payload is None:
        payload = {"message": "feat: add streaming parser", "author": "dev", "date": "2025-01-01T00:00:00Z"}
    return Signal(id=signal_id, kind=kind, payload=payload, confidence=confidence)


def make_classified(
    signal: Optional[Signal] = None,
    category: Category = Category.CODE,
    confidence: Optional[float] = None,
) -> ClassifiedSignal:
    signal = signal or make_signal()
    return ClassifiedSignal(
        signal=signal,
        category=category,
        confidence=signal.confidence if confidence is None else confidence,
        classification_method="test",
        original_confidence=signal.confidence,
    )


def make_record(
    topic: str = "parser",
    context: str = "A parser is a software component that analyses text.",
    signal_type: str = "commit",
    signal_id: str = "commit:abc",
) -> NormalizedRecord:
    return NormalizedRecord(
        topic=topic,
        context=context,
        category=Category.CODE,
        signal_type=signal_type,
        confidence=0.8,
        sources=["wikipedia:parser"],
        signal_id=signal_id,
        timestamp="2025-01-01T00:00:00+00:00",
    )


@pytest.fixture
def ledger() -> IdempotencyLedger:
    """In-memory ledger."""
    return IdempotencyLedger(MemoryStore())
