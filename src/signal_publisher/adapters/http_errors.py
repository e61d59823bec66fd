"""Map HTTP responses onto the pipeline error taxonomy."""

from typing import Any, Optional

import httpx

from signal_publisher.core.errors import (
    AuthError,
    ForbiddenError,
    NotFoundError,
    RateLimited,
    TransportError,
    UnavailableError,
)


def retry_after(response: httpx.Response) -> Optional[float]:
    """Read the Retry-After header in seconds, if present and numeric."""
    value = response.headers.get("retry-after")
    if value is None:
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def check_response(response: httpx.Response, what: str) -> None:
    """Raise the matching pipeline error for a non-2xx response."""
    status = response.status_code
    if 200 <= status < 300:
        return
    if status == 401:
        raise AuthError(f"{what}: authentication failed (HTTP 401)")
    if status == 403:
        raise ForbiddenError(f"{what}: insufficient permissions (HTTP 403)")
    if status == 404:
        raise NotFoundError(f"{what}: not found (HTTP 404)")
    if status == 429:
        raise RateLimited(f"{what}: rate limited (HTTP 429)", retry_after(response))
    if status == 503:
        raise UnavailableError(f"{what}: service unavailable (HTTP 503)")
    raise TransportError(f"{what}: HTTP {status}")


def json_body(response: httpx.Response, what: str) -> Any:
    """Decode a JSON body, raising TransportError on a malformed reply."""
    try:
        return response.json()
    except ValueError as e:
        raise TransportError(f"{what}: invalid JSON in response") from e
