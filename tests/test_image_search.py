"""Tests for stock image search adapters."""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from signal_publisher.adapters.images import PexelsSearch, UnsplashSearch
from signal_publisher.core.errors import AuthError, RateLimited, TransportError


def make_response(status_code: int, data=None) -> MagicMock:
    response = MagicMock()
    response.status_code = status_code
    response.headers = {}
    response.json.return_value = data
    return response


@pytest.mark.asyncio
async def test_unsplash_search() -> None:
    """Test the first landscape photo and its attribution."""
    data = {
        "results": [{
            "urls": {"regular": "https://images.unsplash.com/photo-1"},
            "alt_description": "laptop on desk",
            "width": 1600,
            "height": 900,
            "user": {"name": "Ann", "links": {"html": "https://unsplash.com/@ann"}},
            "links": {"download_location": "https://api.unsplash.com/photos/1/download"},
        }]
    }
    with patch("httpx.AsyncClient") as mock_client_class:
        mock_get = AsyncMock(return_value=make_response(200, data))
        mock_client_class.return_value.__aenter__.return_value.get = mock_get

        hit = await UnsplashSearch("key").search("coding technology")

        assert hit is not None
        assert hit.url == "https://images.unsplash.com/photo-1"
        assert hit.provider == "unsplash"
        assert hit.alt == "laptop on desk"
        assert hit.attribution["photographer"] == "Ann"
        call_args = mock_get.call_args
        assert call_args.kwargs["headers"]["Authorization"] == "Client-ID key"
        assert call_args.kwargs["params"] == {"query": "coding technology", "per_page": 1, "orientation": "landscape"}


@pytest.mark.asyncio
async def test_unsplash_no_results() -> None:
    """Test empty results give no hit."""
    with patch("httpx.AsyncClient") as mock_client_class:
        mock_client_class.return_value.__aenter__.return_value.get = AsyncMock(
            return_value=make_response(200, {"results": []})
        )

        assert await UnsplashSearch("key").search("nothing") is None


@pytest.mark.asyncio
async def test_pexels_search() -> None:
    """Test Pexels photo mapping."""
    data = {
        "photos": [{
            "src": {"large": "https://images.pexels.com/1.jpg"},
            "photographer": "Bo",
            "photographer_url": "https://pexels.com/@bo",
        }]
    }
    with patch("httpx.AsyncClient") as mock_client_class:
        mock_get = AsyncMock(return_value=make_response(200, data))
        mock_client_class.return_value.__aenter__.return_value.get = mock_get

        hit = await PexelsSearch("key").search("software")

        assert hit is not None
        assert hit.url == "https://images.pexels.com/1.jpg"
        assert hit.alt == "software"
        assert hit.attribution == {"photographer": "Bo", "photographer_url": "https://pexels.com/@bo"}
        assert mock_get.call_args.kwargs["headers"]["Authorization"] == "key"


@pytest.mark.asyncio
@pytest.mark.parametrize("status_code,error", [(401, AuthError), (429, RateLimited)])
async def test_search_errors(status_code: int, error: type) -> None:
    """Test HTTP failures map onto the error taxonomy."""
    with patch("httpx.AsyncClient") as mock_client_class:
        mock_client_class.return_value.__aenter__.return_value.get = AsyncMock(
            return_value=make_response(status_code)
        )

        with pytest.raises(error):
            await PexelsSearch("key").search("software")


@pytest.mark.asyncio
@pytest.mark.parametrize("search", [UnsplashSearch("key"), PexelsSearch("key")])
async def test_search_invalid_json(search) -> None:
    """Test a non-JSON body is a transport error the selector can skip."""
    response = make_response(200)
    response.json.side_effect = ValueError("Expecting value: line 1 column 1 (char 0)")

    with patch("httpx.AsyncClient") as mock_client_class:
        mock_client_class.return_value.__aenter__.return_value.get = AsyncMock(return_value=response)

        with pytest.raises(TransportError, match="invalid JSON"):
            await search.search("software")
