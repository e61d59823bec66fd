"""Tests for context enrichment."""

import pytest

from conftest import FakeLookup, make_classified, make_signal
from signal_publisher.core import SignalEnricher, SignalKind
from signal_publisher.core.enricher import LOOKUP_FAILED, NO_CONTEXT, extract_keywords
from signal_publisher.core.errors import TransportError


def test_extract_keywords_skips_stop_words() -> None:
    """Test keyword extraction drops short and stop words."""
    assert extract_keywords("Add support for the streaming parser API") == ["support", "streaming", "parser"]
    assert extract_keywords("fix: update the docs") == ["docs"]
    assert extract_keywords("parser parser parser") == ["parser"]


@pytest.mark.asyncio
async def test_enrich_with_context() -> None:
    """Test the first hit becomes topic, context and source."""
    lookup = FakeLookup(pages={"parser": "A parser analyses text. " * 40})
    enricher = SignalEnricher(lookup=lookup, request_delay=0)
    signal = make_classified(make_signal(payload={"message": "streaming parser"}))

    record = await enricher.enrich_signal(signal)

    assert record.topic == "parser"
    assert record.sources == ["wikipedia:parser"]
    assert record.has_context is True
    assert len(record.context) == 500
    assert record.signal_id == "commit:abc"
    assert record.signal_type is SignalKind.COMMIT
    # Stops at the first hit
    assert lookup.calls == ["streaming", "parser"]


@pytest.mark.asyncio
async def test_enrich_without_keywords() -> None:
    """Test signals with no usable words get an explicit no-context record."""
    enricher = SignalEnricher(lookup=FakeLookup(), request_delay=0)
    signal = make_classified(make_signal(payload={"message": "fix: a bug"}))

    record = await enricher.enrich_signal(signal)

    assert record.topic == "Unknown"
    assert record.context == NO_CONTEXT
    assert record.sources == []


@pytest.mark.asyncio
async def test_enrich_no_results_uses_keywords() -> None:
    """Test missing pages fall back to a keyword summary."""
    enricher = SignalEnricher(lookup=FakeLookup(), request_delay=0)
    signal = make_classified(make_signal(payload={"message": "streaming tokenizer rewrite"}))

    record = await enricher.enrich_signal(signal)

    assert record.topic == "streaming"
    assert record.context == "Technical topic: streaming, tokenizer, rewrite"
    assert record.has_context is False
    assert record.confidence == signal.confidence


@pytest.mark.asyncio
async def test_enrich_all_lookups_failed_lowers_confidence() -> None:
    """Test transport failures degrade the record instead of raising."""
    lookup = FakeLookup(errors={
        "streaming": TransportError("timeout"),
        "tokenizer": TransportError("timeout"),
    })
    enricher = SignalEnricher(lookup=lookup, max_keywords=2, request_delay=0)
    signal = make_classified(make_signal(payload={"message": "streaming tokenizer"}), confidence=0.8)

    record = await enricher.enrich_signal(signal)

    assert record.context == LOOKUP_FAILED
    assert record.confidence == pytest.approx(0.6)


@pytest.mark.asyncio
async def test_enrich_without_lookup() -> None:
    """Test enrichment works with lookups disabled."""
    enricher = SignalEnricher(lookup=None)
    signal = make_classified(make_signal(payload={"message": "streaming tokenizer"}))

    record = await enricher.enrich_signal(signal)

    assert record.context.startswith("Technical topic:")
    assert record.payload == signal.payload


@pytest.mark.asyncio
async def test_unexpected_lookup_error_propagates() -> None:
    """Test errors outside the pipeline taxonomy are not masked."""
    enricher = SignalEnricher(lookup=FakeLookup(errors={"streaming": RuntimeError("boom")}), request_delay=0)
    signal = make_classified(make_signal(payload={"message": "streaming tokenizer"}))

    with pytest.raises(RuntimeError, match="boom"):
        await enricher.enrich_signal(signal)
