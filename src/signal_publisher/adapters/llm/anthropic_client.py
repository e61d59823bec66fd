"""Claude API text generation client."""

from typing import Any, Optional

from signal_publisher.adapters.llm.base import RetryingHTTPClient
from signal_publisher.core import HealthReport, HealthStatus, TextGenerator
from signal_publisher.core.errors import TransportError


class AnthropicClient(RetryingHTTPClient, TextGenerator):
    """Claude API client implementation."""

    prompt_format = "anthropic"

    def __init__(
        self,
        api_key: Optional[str],
        model: str = "claude-sonnet-4-20250514",
        max_tokens: int = 500,
        temperature: float = 0.7,
        timeout: float = 60.0,
        max_retries: int = 2,
        initial_retry_delay: float = 2.0,
        base_url: str = "https://api.anthropic.com/v1",
    ) -> None:
        super().__init__(max_retries=max_retries, initial_retry_delay=initial_retry_delay, timeout=timeout)
        self.api_key = api_key
        self.model = model
        self.max_tokens = max_tokens
        self.temperature = temperature
        self.base_url = base_url

    async def complete(self, formatted_prompt: Any, params: dict[str, Any]) -> str:
        if not isinstance(formatted_prompt, dict) or "messages" not in formatted_prompt:
            raise TypeError("AnthropicClient expects a system/messages mapping")

        payload: dict[str, Any] = {
            "model": self.model,
            "max_tokens": params.get("max_tokens", self.max_tokens),
            "temperature": params.get("temperature", self.temperature),
            "messages": formatted_prompt["messages"],
        }
        if formatted_prompt.get("system"):
            payload["system"] = formatted_prompt["system"]

        data = await self._post_json(
            f"{self.base_url}/messages",
            {
                "x-api-key": self.api_key or "",
                "anthropic-version": "2023-06-01",
                "content-type": "application/json",
            },
            payload,
            f"Claude {self.model}",
        )
        try:
            return data["content"][0]["text"]
        except (KeyError, IndexError, TypeError) as e:
            raise TransportError(f"Claude {self.model}: unexpected response shape") from e

    async def health_check(self) -> HealthReport:
        if not self.api_key:
            return HealthReport(HealthStatus.UNHEALTHY, "ANTHROPIC_API_KEY not set")
        return HealthReport(HealthStatus.HEALTHY, f"Claude configured, model {self.model}")
