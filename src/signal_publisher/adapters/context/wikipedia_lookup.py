"""Wikipedia page summary lookup."""

import logging
from typing import Optional
from urllib.parse import quote

import httpx

from signal_publisher.adapters.http_errors import check_response, json_body
from signal_publisher.core import ContextLookup, ContextResult, HealthReport, HealthStatus
from signal_publisher.core.errors import NotFoundError, PipelineError, TransportError

logger = logging.getLogger(__name__)

USER_AGENT = "signal-publisher/0.1"


class WikipediaLookup(ContextLookup):
    """Fetch the lead extract of a Wikipedia article for a keyword."""

    def __init__(self, timeout: float = 5.0, base_url: str = "https://en.wikipedia.org/api/rest_v1") -> None:
        self.timeout = timeout
        self.base_url = base_url

    async def lookup(self, keyword: str) -> Optional[ContextResult]:
        url = f"{self.base_url}/page/summary/{quote(keyword, safe='')}"
        try:
            async with httpx.AsyncClient(timeout=self.timeout, follow_redirects=True) as client:
                response = await client.get(url, headers={"Accept": "application/json", "User-Agent": USER_AGENT})
        except httpx.HTTPError as e:
            raise TransportError(f"Wikipedia summary for {keyword!r}: {e}") from e

        try:
            check_response(response, f"Wikipedia summary for {keyword!r}")
        except NotFoundError:
            logger.debug("Wikipedia page not found: %s", keyword)
            return None

        data = json_body(response, f"Wikipedia summary for {keyword!r}")
        extract = data.get("extract") if isinstance(data, dict) else None
        if not extract:
            logger.info("No Wikipedia extract for %s", keyword)
            return None

        page_url = ((data.get("content_urls") or {}).get("desktop") or {}).get("page")
        return ContextResult(topic=keyword, content=extract, url=page_url, source="wikipedia")

    async def health_check(self) -> HealthReport:
        try:
            result = await self.lookup("Software")
        except PipelineError as e:
            return HealthReport(HealthStatus.UNHEALTHY, str(e))
        if result is None:
            return HealthReport(HealthStatus.DEGRADED, "Wikipedia reachable but returned no extract")
        return HealthReport(HealthStatus.HEALTHY, "Wikipedia reachable")
