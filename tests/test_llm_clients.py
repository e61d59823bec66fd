"""Tests for text generation clients."""

from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest

from signal_publisher.adapters.llm import AnthropicClient, HuggingFaceClient
from signal_publisher.core import HealthStatus
from signal_publisher.core.errors import AuthError, RateLimited, TransportError, UnavailableError


def make_response(status_code: int, data=None, headers=None) -> MagicMock:
    response = MagicMock()
    response.status_code = status_code
    response.headers = headers or {}
    response.json.return_value = data
    return response


def mock_http(mock_client_class: MagicMock, *responses) -> AsyncMock:
    mock_client = AsyncMock()
    mock_client.__aenter__.return_value = mock_client
    mock_client.post.side_effect = list(responses)
    mock_client_class.return_value = mock_client
    return mock_client


@pytest.fixture
def hf_client() -> HuggingFaceClient:
    return HuggingFaceClient(token="hf-test", max_retries=3, initial_retry_delay=0.01)


@pytest.fixture
def claude_client() -> AnthropicClient:
    return AnthropicClient(api_key="test-key", max_retries=3, initial_retry_delay=0.01)


@pytest.mark.asyncio
async def test_huggingface_complete(hf_client: HuggingFaceClient) -> None:
    """Test successful text generation."""
    with patch("httpx.AsyncClient") as mock_client_class:
        mock_client = mock_http(mock_client_class, make_response(200, [{"generated_text": "A post"}]))

        text = await hf_client.complete("<s>[INST] hi [/INST]", {"temperature": 0.2})

        assert text == "A post"
        call_args = mock_client.post.call_args
        assert call_args.args[0].endswith("/models/mistralai/Mistral-7B-Instruct-v0.2")
        assert call_args.kwargs["headers"]["Authorization"] == "Bearer hf-test"
        payload = call_args.kwargs["json"]
        assert payload["inputs"] == "<s>[INST] hi [/INST]"
        assert payload["parameters"]["temperature"] == 0.2
        assert payload["parameters"]["max_new_tokens"] == 500
        assert payload["parameters"]["return_full_text"] is False


@pytest.mark.asyncio
async def test_huggingface_retry_on_503(hf_client: HuggingFaceClient) -> None:
    """Test model loading responses are retried."""
    with patch("httpx.AsyncClient") as mock_client_class:
        mock_client = mock_http(
            mock_client_class,
            make_response(503),
            make_response(200, [{"generated_text": "Recovered"}]),
        )

        assert await hf_client.complete("prompt", {}) == "Recovered"
        assert mock_client.post.call_count == 2


@pytest.mark.asyncio
async def test_huggingface_exhausted_retries(hf_client: HuggingFaceClient) -> None:
    """Test the last error surfaces after all retries."""
    with patch("httpx.AsyncClient") as mock_client_class:
        mock_client = mock_http(mock_client_class, *[make_response(503) for _ in range(3)])

        with pytest.raises(UnavailableError):
            await hf_client.complete("prompt", {})
        assert mock_client.post.call_count == 3


@pytest.mark.asyncio
async def test_huggingface_auth_error_not_retried(hf_client: HuggingFaceClient) -> None:
    """Test 401 raises immediately."""
    with patch("httpx.AsyncClient") as mock_client_class:
        mock_client = mock_http(mock_client_class, make_response(401))

        with pytest.raises(AuthError):
            await hf_client.complete("prompt", {})
        assert mock_client.post.call_count == 1


@pytest.mark.asyncio
async def test_huggingface_unexpected_shape(hf_client: HuggingFaceClient) -> None:
    """Test malformed payloads are transport errors."""
    with patch("httpx.AsyncClient") as mock_client_class:
        mock_http(mock_client_class, make_response(200, {"error": "?"}))

        with pytest.raises(TransportError):
            await hf_client.complete("prompt", {})


@pytest.mark.asyncio
async def test_huggingface_health_without_token() -> None:
    """Test missing token is reported without a request."""
    report = await HuggingFaceClient(token=None).health_check()

    assert report.status is HealthStatus.UNHEALTHY


@pytest.mark.asyncio
async def test_anthropic_complete(claude_client: AnthropicClient) -> None:
    """Test system and messages are passed through."""
    formatted = {
        "system": "You write posts.",
        "messages": [{"role": "user", "content": "Write one"}],
        "metadata": object(),
    }
    with patch("httpx.AsyncClient") as mock_client_class:
        mock_client = mock_http(mock_client_class, make_response(200, {"content": [{"text": "Claude post"}]}))

        text = await claude_client.complete(formatted, {})

        assert text == "Claude post"
        call_args = mock_client.post.call_args
        assert call_args.args[0] == "https://api.anthropic.com/v1/messages"
        assert call_args.kwargs["headers"]["x-api-key"] == "test-key"
        payload = call_args.kwargs["json"]
        assert payload["system"] == "You write posts."
        assert payload["messages"] == formatted["messages"]
        assert "metadata" not in payload


@pytest.mark.asyncio
async def test_anthropic_retry_on_429(claude_client: AnthropicClient) -> None:
    """Test retry logic on 429 error."""
    with patch("httpx.AsyncClient") as mock_client_class:
        mock_client = mock_http(
            mock_client_class,
            make_response(429, headers={"retry-after": "0.01"}),
            make_response(200, {"content": [{"text": "Success"}]}),
        )

        text = await claude_client.complete({"messages": []}, {})

        assert text == "Success"
        assert mock_client.post.call_count == 2


@pytest.mark.asyncio
async def test_anthropic_rate_limit_exhausted() -> None:
    """Test the rate limit error carries the server hint."""
    client = AnthropicClient(api_key="test-key", max_retries=1)
    with patch("httpx.AsyncClient") as mock_client_class:
        mock_http(mock_client_class, make_response(429, headers={"retry-after": "7"}))

        with pytest.raises(RateLimited) as exc_info:
            await client.complete({"messages": []}, {})
        assert exc_info.value.retry_after == 7.0


@pytest.mark.asyncio
async def test_network_error_is_transport_error(claude_client: AnthropicClient) -> None:
    """Test httpx failures are mapped after retries."""
    with patch("httpx.AsyncClient") as mock_client_class:
        mock_http(mock_client_class, *[httpx.ConnectError("refused") for _ in range(3)])

        with pytest.raises(TransportError, match="refused"):
            await claude_client.complete({"messages": []}, {})


@pytest.mark.asyncio
async def test_anthropic_rejects_string_prompt(claude_client: AnthropicClient) -> None:
    """Test the client requires the messages format."""
    with pytest.raises(TypeError):
        await claude_client.complete("plain text", {})
