"""Tests for the LinkedIn publishing client."""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from signal_publisher.adapters.publishing import LinkedInClient
from signal_publisher.core import HealthStatus, ImageResult, ImageType, PostContent
from signal_publisher.core.errors import AuthError, ForbiddenError, TransportError


def make_response(status_code: int, data=None, headers=None) -> MagicMock:
    response = MagicMock()
    response.status_code = status_code
    response.headers = headers or {}
    response.json.return_value = data if data is not None else {}
    return response


@pytest.fixture
def client() -> LinkedInClient:
    return LinkedInClient(access_token="token", person_urn="urn:li:person:abc")


@pytest.fixture
def content() -> PostContent:
    return PostContent(text="Hello LinkedIn", topic="parser", signal_id="commit:abc", signal_type="commit")


@pytest.mark.asyncio
async def test_post_success(client: LinkedInClient, content: PostContent) -> None:
    """Test successful publish returns the post id and feed url."""
    with patch("httpx.AsyncClient") as mock_client_class:
        mock_post = AsyncMock(return_value=make_response(201, {"id": "urn:li:share:1"}))
        mock_client_class.return_value.__aenter__.return_value.post = mock_post

        receipt = await client.post(content)

        assert receipt.post_id == "urn:li:share:1"
        assert receipt.url == "https://www.linkedin.com/feed/update/urn:li:share:1/"
        call_args = mock_post.call_args
        assert call_args.args[0] == "https://api.linkedin.com/v2/ugcPosts"
        assert call_args.kwargs["headers"]["X-Restli-Protocol-Version"] == "2.0.0"
        payload = call_args.kwargs["json"]
        assert payload["author"] == "urn:li:person:abc"
        share = payload["specificContent"]["com.linkedin.ugc.ShareContent"]
        assert share["shareCommentary"]["text"] == "Hello LinkedIn"
        assert share["shareMediaCategory"] == "NONE"
        assert "media" not in share


@pytest.mark.asyncio
async def test_post_id_from_header(client: LinkedInClient, content: PostContent) -> None:
    """Test the restli header is used when the body has no id."""
    with patch("httpx.AsyncClient") as mock_client_class:
        mock_post = AsyncMock(return_value=make_response(201, headers={"x-restli-id": "urn:li:share:2"}))
        mock_client_class.return_value.__aenter__.return_value.post = mock_post

        receipt = await client.post(content)

        assert receipt.post_id == "urn:li:share:2"


def test_payload_with_image(client: LinkedInClient, content: PostContent) -> None:
    """Test selected stock images are attached as media."""
    content.image = ImageResult(type=ImageType.STOCK_IMAGE, url="https://img/1.jpg", alt="desk")

    share = client.build_payload(content)["specificContent"]["com.linkedin.ugc.ShareContent"]

    assert share["shareMediaCategory"] == "IMAGE"
    assert share["media"][0]["media"] == "https://img/1.jpg"
    assert share["media"][0]["description"]["text"] == "desk"
    assert share["media"][0]["title"]["text"] == "parser"


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "status_code,error",
    [(401, AuthError), (403, ForbiddenError), (500, TransportError)],
)
async def test_post_errors(client: LinkedInClient, content: PostContent, status_code: int, error: type) -> None:
    """Test auth and permission failures are distinct."""
    with patch("httpx.AsyncClient") as mock_client_class:
        mock_client_class.return_value.__aenter__.return_value.post = AsyncMock(
            return_value=make_response(status_code)
        )

        with pytest.raises(error):
            await client.post(content)


@pytest.mark.asyncio
async def test_post_without_credentials(content: PostContent) -> None:
    """Test no request is made without credentials."""
    client = LinkedInClient(access_token=None, person_urn="urn:li:person:abc")

    assert not client.has_credentials
    with pytest.raises(AuthError):
        await client.post(content)


@pytest.mark.asyncio
async def test_health_check(client: LinkedInClient) -> None:
    """Test health check against the profile endpoint."""
    with patch("httpx.AsyncClient") as mock_client_class:
        mock_client_class.return_value.__aenter__.return_value.get = AsyncMock(return_value=make_response(401))

        report = await client.health_check()

        assert report.status is HealthStatus.UNHEALTHY
        assert "expired" in report.message
