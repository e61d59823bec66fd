"""Hugging Face Inference API text generation client."""

import logging
from typing import Any, Optional

from signal_publisher.adapters.llm.base import RetryingHTTPClient
from signal_publisher.core import HealthReport, HealthStatus, TextGenerator
from signal_publisher.core.errors import PipelineError, TransportError

logger = logging.getLogger(__name__)


class HuggingFaceClient(RetryingHTTPClient, TextGenerator):
    """Text generation through a hosted instruction-tuned model."""

    prompt_format = "mistral"

    def __init__(
        self,
        token: Optional[str],
        model: str = "mistralai/Mistral-7B-Instruct-v0.2",
        health_model: str = "gpt2",
        max_tokens: int = 500,
        temperature: float = 0.7,
        top_p: float = 0.9,
        timeout: float = 30.0,
        max_retries: int = 2,
        initial_retry_delay: float = 2.0,
        base_url: str = "https://api-inference.huggingface.co/models",
    ) -> None:
        super().__init__(max_retries=max_retries, initial_retry_delay=initial_retry_delay, timeout=timeout)
        self.token = token
        self.model = model
        self.health_model = health_model
        self.max_tokens = max_tokens
        self.temperature = temperature
        self.top_p = top_p
        self.base_url = base_url

    async def complete(self, formatted_prompt: Any, params: dict[str, Any]) -> str:
        if not isinstance(formatted_prompt, str):
            raise TypeError("HuggingFaceClient expects a single instruction string")

        payload = {
            "inputs": formatted_prompt,
            "parameters": {
                "max_new_tokens": params.get("max_tokens", self.max_tokens),
                "temperature": params.get("temperature", self.temperature),
                "top_p": params.get("top_p", self.top_p),
                "return_full_text": False,
            },
        }
        data = await self._post_json(
            f"{self.base_url}/{self.model}",
            self._get_headers(),
            payload,
            f"Hugging Face {self.model}",
        )
        return self._extract_text(data)

    def _extract_text(self, data: Any) -> str:
        # The API answers with a list of candidates, or a bare object for some models
        if isinstance(data, list) and data:
            data = data[0]
        if isinstance(data, dict) and isinstance(data.get("generated_text"), str):
            return data["generated_text"]
        raise TransportError(f"Hugging Face {self.model}: unexpected response shape")

    def _get_headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    async def health_check(self) -> HealthReport:
        if not self.token:
            return HealthReport(HealthStatus.UNHEALTHY, "HUGGINGFACE_TOKEN not set")
        try:
            await self._post_json(
                f"{self.base_url}/{self.health_model}",
                self._get_headers(),
                {"inputs": "test", "parameters": {"max_new_tokens": 1}},
                f"Hugging Face {self.health_model}",
            )
        except PipelineError as e:
            logger.warning("Hugging Face health check failed: %s", e)
            return HealthReport(HealthStatus.UNHEALTHY, str(e))
        return HealthReport(HealthStatus.HEALTHY, f"Hugging Face reachable, model {self.model}")
