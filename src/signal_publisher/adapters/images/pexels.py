"""Pexels stock photo search."""

import logging
from typing import Optional

import httpx

from signal_publisher.adapters.http_errors import check_response, json_body
from signal_publisher.core import ImageHit, ImageSearch
from signal_publisher.core.errors import TransportError

logger = logging.getLogger(__name__)


class PexelsSearch(ImageSearch):
    name = "pexels"

    def __init__(self, api_key: str, timeout: float = 10.0, base_url: str = "https://api.pexels.com/v1") -> None:
        self.api_key = api_key
        self.timeout = timeout
        self.base_url = base_url

    async def search(self, query: str) -> Optional[ImageHit]:
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.get(
                    f"{self.base_url}/search",
                    headers={"Authorization": self.api_key},
                    params={"query": query, "per_page": 1, "orientation": "landscape"},
                )
        except httpx.HTTPError as e:
            raise TransportError(f"Pexels search: {e}") from e

        check_response(response, "Pexels search")
        data = json_body(response, "Pexels search")
        photos = (data.get("photos") if isinstance(data, dict) else None) or []
        if not photos:
            logger.debug("Pexels returned no photos for %r", query)
            return None

        photo = photos[0]
        return ImageHit(
            url=photo["src"]["large"],
            provider=self.name,
            alt=photo.get("alt") or query,
            attribution={
                "photographer": photo.get("photographer"),
                "photographer_url": photo.get("photographer_url"),
            },
            width=photo.get("width"),
            height=photo.get("height"),
        )
