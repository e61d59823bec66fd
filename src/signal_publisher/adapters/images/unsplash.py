"""Unsplash stock photo search."""

import logging
from typing import Optional

import httpx

from signal_publisher.adapters.http_errors import check_response, json_body
from signal_publisher.core import ImageHit, ImageSearch
from signal_publisher.core.errors import TransportError

logger = logging.getLogger(__name__)


class UnsplashSearch(ImageSearch):
    """Search Unsplash for a single landscape photo."""

    name = "unsplash"

    def __init__(self, access_key: str, timeout: float = 10.0, base_url: str = "https://api.unsplash.com") -> None:
        self.access_key = access_key
        self.timeout = timeout
        self.base_url = base_url

    async def search(self, query: str) -> Optional[ImageHit]:
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.get(
                    f"{self.base_url}/search/photos",
                    headers={"Authorization": f"Client-ID {self.access_key}"},
                    params={"query": query, "per_page": 1, "orientation": "landscape"},
                )
        except httpx.HTTPError as e:
            raise TransportError(f"Unsplash search: {e}") from e

        check_response(response, "Unsplash search")
        data = json_body(response, "Unsplash search")
        results = (data.get("results") if isinstance(data, dict) else None) or []
        if not results:
            logger.debug("Unsplash returned no photos for %r", query)
            return None

        photo = results[0]
        user = photo.get("user") or {}
        return ImageHit(
            url=photo["urls"]["regular"],
            provider=self.name,
            alt=photo.get("alt_description") or query,
            attribution={
                "photographer": user.get("name"),
                "photographer_url": (user.get("links") or {}).get("html"),
                "download_location": (photo.get("links") or {}).get("download_location"),
            },
            width=photo.get("width"),
            height=photo.get("height"),
        )
