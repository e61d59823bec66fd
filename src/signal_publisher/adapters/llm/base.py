"""Shared HTTP retry logic for text generation clients."""

import asyncio
import logging
from typing import Any, Optional

import httpx

from signal_publisher.adapters.http_errors import check_response, json_body, retry_after
from signal_publisher.core.errors import TransportError

logger = logging.getLogger(__name__)


class RetryingHTTPClient:
    """POST with bounded retries and exponential backoff for 429 and 5xx."""

    def __init__(self, max_retries: int = 2, initial_retry_delay: float = 2.0, timeout: float = 30.0) -> None:
        self.max_retries = max(1, max_retries)
        self.initial_retry_delay = initial_retry_delay
        self.timeout = timeout

    async def _post_json(self, url: str, headers: dict[str, str], payload: dict[str, Any], what: str) -> Any:
        """POST payload and return decoded JSON, raising pipeline errors on failure."""
        last_error: Exception = TransportError(f"{what}: no attempt made")

        for attempt in range(self.max_retries):
            try:
                async with httpx.AsyncClient(timeout=self.timeout) as client:
                    response = await client.post(url, headers=headers, json=payload)
            except httpx.HTTPError as e:
                last_error = TransportError(f"{what}: {e}")
                if attempt < self.max_retries - 1:
                    delay = self._get_retry_delay(attempt)
                    logger.warning("%s network error, retrying after %.1fs", what, delay)
                    await asyncio.sleep(delay)
                    continue
                raise last_error from e

            # Rate limit and server errors - retry with backoff
            if response.status_code == 429 or response.status_code >= 500:
                try:
                    check_response(response, what)
                except TransportError as e:
                    last_error = e
                if attempt < self.max_retries - 1:
                    delay = self._get_retry_delay(attempt, retry_after(response))
                    logger.warning(
                        "%s HTTP %d, retrying after %.1fs (attempt %d/%d)",
                        what, response.status_code, delay, attempt + 1, self.max_retries,
                    )
                    await asyncio.sleep(delay)
                    continue
                raise last_error

            # Other errors - raise immediately
            check_response(response, what)
            return json_body(response, what)

        raise last_error

    def _get_retry_delay(self, attempt: int, server_hint: Optional[float] = None) -> float:
        """Use the server's Retry-After hint or exponential backoff."""
        if server_hint is not None:
            return float(server_hint)
        return self.initial_retry_delay * (2 ** attempt)

