"""Tests for core entities."""

import pytest

from signal_publisher.core import (
    ImageResult,
    ImageType,
    PipelineReport,
    PostContent,
    QueueItem,
    QueueStatus,
    Signal,
    SignalKind,
    SignalOutcome,
    SignalResult,
)


def test_signal_creation() -> None:
    """Test creating a valid signal."""
    signal = Signal(
        id="commit:abc",
        kind=SignalKind.COMMIT,
        payload={"message": "feat: add parser"},
        confidence=0.7,
    )

    assert signal.id == "commit:abc"
    assert signal.kind == SignalKind.COMMIT
    assert signal.primary_text == "feat: add parser"


def test_signal_validation() -> None:
    """Test signal validation."""
    with pytest.raises(ValueError, match="id cannot be empty"):
        Signal(id="", kind=SignalKind.COMMIT, payload={}, confidence=0.5)

    with pytest.raises(ValueError, match="Confidence"):
        Signal(id="commit:abc", kind=SignalKind.COMMIT, payload={}, confidence=1.5)


def test_primary_text_per_kind() -> None:
    """Test the text heuristics read for each kind."""
    readme = Signal(id="readme:1", kind=SignalKind.DOCUMENT_UPDATE, payload={"name": "README.md"}, confidence=0.8)
    issue = Signal(id="issue:7", kind=SignalKind.ISSUE, payload={"title": "Crash on start"}, confidence=0.6)
    other = Signal(id="other:1", kind=SignalKind.OTHER, payload={}, confidence=0.5)

    assert readme.primary_text == "README.md"
    assert issue.primary_text == "Crash on start"
    assert other.primary_text == ""


def test_queue_item_serialization_keeps_image() -> None:
    """Test queue items survive the ledger's JSON representation."""
    item = QueueItem(
        id="queue_1_abc",
        content=PostContent(
            text="Hello",
            topic="parser",
            signal_id="commit:abc",
            signal_type="commit",
            image=ImageResult(type=ImageType.STOCK_IMAGE, url="https://img/1.jpg", provider="unsplash"),
        ),
    )

    restored = QueueItem.from_dict(item.to_dict())

    assert restored.status is QueueStatus.PENDING
    assert restored.content.image is not None
    assert restored.content.image.type is ImageType.STOCK_IMAGE
    assert restored.content.image.url == "https://img/1.jpg"
    assert restored.created_at == item.created_at


def test_pipeline_report_counts() -> None:
    """Test report counts include every outcome."""
    report = PipelineReport(
        results=[
            SignalResult(signal_id="a", status=SignalOutcome.QUEUED),
            SignalResult(signal_id="b", status=SignalOutcome.QUEUED),
            SignalResult(signal_id="c", status=SignalOutcome.ERROR),
        ]
    )

    assert report.counts == {"published": 0, "queued": 2, "skipped": 0, "error": 1}
