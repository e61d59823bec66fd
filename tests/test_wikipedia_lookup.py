"""Tests for the Wikipedia context lookup."""

from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest

from conftest import make_classified
from signal_publisher.adapters.context import WikipediaLookup
from signal_publisher.core import SignalEnricher
from signal_publisher.core.errors import TransportError


def make_response(status_code: int, data=None) -> MagicMock:
    response = MagicMock()
    response.status_code = status_code
    response.headers = {}
    response.json.return_value = data
    return response


@pytest.mark.asyncio
async def test_lookup_success() -> None:
    """Test the extract and page url are returned."""
    lookup = WikipediaLookup()
    data = {
        "extract": "A parser is a software component.",
        "content_urls": {"desktop": {"page": "https://en.wikipedia.org/wiki/Parsing"}},
    }

    with patch("httpx.AsyncClient") as mock_client_class:
        mock_get = AsyncMock(return_value=make_response(200, data))
        mock_client_class.return_value.__aenter__.return_value.get = mock_get

        result = await lookup.lookup("machine learning")

        assert result is not None
        assert result.topic == "machine learning"
        assert result.content == "A parser is a software component."
        assert result.url == "https://en.wikipedia.org/wiki/Parsing"
        assert result.source == "wikipedia"
        assert mock_get.call_args.args[0].endswith("/page/summary/machine%20learning")


@pytest.mark.asyncio
async def test_lookup_not_found() -> None:
    """Test missing pages are not errors."""
    with patch("httpx.AsyncClient") as mock_client_class:
        mock_client_class.return_value.__aenter__.return_value.get = AsyncMock(return_value=make_response(404))

        assert await WikipediaLookup().lookup("qwertyuiop") is None


@pytest.mark.asyncio
async def test_lookup_without_extract() -> None:
    """Test pages without an extract yield nothing."""
    with patch("httpx.AsyncClient") as mock_client_class:
        mock_client_class.return_value.__aenter__.return_value.get = AsyncMock(
            return_value=make_response(200, {"title": "Disambiguation"})
        )

        assert await WikipediaLookup().lookup("parser") is None


@pytest.mark.asyncio
async def test_lookup_timeout() -> None:
    """Test network failures are transport errors."""
    with patch("httpx.AsyncClient") as mock_client_class:
        mock_client_class.return_value.__aenter__.return_value.get = AsyncMock(
            side_effect=httpx.ReadTimeout("timed out")
        )

        with pytest.raises(TransportError):
            await WikipediaLookup().lookup("parser")


@pytest.mark.asyncio
async def test_lookup_invalid_json() -> None:
    """Test a garbled reply is a transport error."""
    response = make_response(200)
    response.json.side_effect = ValueError("Expecting value: line 1 column 1 (char 0)")

    with patch("httpx.AsyncClient") as mock_client_class:
        mock_client_class.return_value.__aenter__.return_value.get = AsyncMock(return_value=response)

        with pytest.raises(TransportError, match="invalid JSON"):
            await WikipediaLookup().lookup("parser")


@pytest.mark.asyncio
async def test_enricher_degrades_on_garbled_reply() -> None:
    """Test the enricher takes the degraded path when Wikipedia returns garbage."""
    response = make_response(200)
    response.json.side_effect = ValueError("Expecting value: line 1 column 1 (char 0)")
    enricher = SignalEnricher(lookup=WikipediaLookup(), request_delay=0)

    with patch("httpx.AsyncClient") as mock_client_class:
        mock_client_class.return_value.__aenter__.return_value.get = AsyncMock(return_value=response)

        record = await enricher.enrich_signal(make_classified())

    assert record.context == "Context enrichment failed"
    assert record.confidence == pytest.approx(0.5)
