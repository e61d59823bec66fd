"""Pick a stock image for a post, or describe one for a human to generate."""

import asyncio
import logging
import re
from typing import Any, Optional

from signal_publisher.core.entities import (
    HealthReport,
    HealthStatus,
    ImageResult,
    ImageType,
    NormalizedRecord,
    SignalKind,
    utc_now_iso,
)
from signal_publisher.core.errors import PipelineError
from signal_publisher.core.interfaces import ImageSearch

logger = logging.getLogger(__name__)

MAX_IMAGE_KEYWORDS = 5

_GITHUB_KINDS = {kind.value for kind in SignalKind if kind is not SignalKind.OTHER}


class ImageSelector:
    """Try image search providers in priority order, first hit wins."""

    def __init__(self, searches: Optional[list[ImageSearch]] = None, request_delay: float = 1.0) -> None:
        self.searches = searches or []
        self.request_delay = request_delay
        self._last_request_time: Optional[float] = None

    async def generate(self, record: NormalizedRecord, post_metadata: Optional[dict[str, Any]] = None) -> ImageResult:
        """Return a stock image, an AI image prompt, or an explicit no-image result."""
        post_metadata = post_metadata or {}
        try:
            keywords = self.extract_keywords(record, post_metadata)
            stock = await self._fetch_stock_image(keywords)
            if stock is not None:
                logger.info("Stock image found via %s", stock.provider)
                return stock
            return self._generate_ai_prompt(record, post_metadata, keywords)
        except Exception as e:
            logger.error("Image selection failed: %s", e)
            return ImageResult(
                type=ImageType.NONE,
                message="Image generation unavailable",
                metadata={"error": str(e), "timestamp": utc_now_iso()},
            )

    def extract_keywords(self, record: NormalizedRecord, post_metadata: dict[str, Any]) -> list[str]:
        keywords: list[str] = []

        topic = post_metadata.get("topic") or record.topic
        if topic:
            keywords.append(re.sub(r"[^a-zA-Z0-9 ]", "", topic).lower().strip())

        signal_type = post_metadata.get("signal_type") or record.signal_type
        if signal_type in _GITHUB_KINDS:
            keywords.extend(["coding", "technology", "software"])
        else:
            keywords.extend(["professional", "business"])

        keywords.extend(re.findall(r"\b[a-z]{4,}\b", record.context.lower())[:2])

        unique: list[str] = []
        for keyword in keywords:
            if keyword and keyword not in unique:
                unique.append(keyword)
        return unique[:MAX_IMAGE_KEYWORDS]

    async def _fetch_stock_image(self, keywords: list[str]) -> Optional[ImageResult]:
        if not self.searches:
            return None

        query = " ".join(keywords)
        for search in self.searches:
            await self._enforce_rate_limit()
            try:
                hit = await search.search(query)
            except PipelineError as e:
                logger.warning("Image search via %s failed: %s", search.name, e)
                continue
            if hit is not None and hit.url:
                return ImageResult(
                    type=ImageType.STOCK_IMAGE,
                    url=hit.url,
                    alt=hit.alt or query,
                    provider=hit.provider,
                    keywords=keywords,
                    attribution=dict(hit.attribution),
                    metadata={"width": hit.width, "height": hit.height, "timestamp": utc_now_iso()},
                )
        return None

    def _generate_ai_prompt(
        self, record: NormalizedRecord, post_metadata: dict[str, Any], keywords: list[str]
    ) -> ImageResult:
        topic = post_metadata.get("topic") or record.topic
        signal_type = post_metadata.get("signal_type") or record.signal_type
        theme = (
            "Software development, coding, open source"
            if signal_type in _GITHUB_KINDS
            else "Professional business"
        )
        prompt = (
            f"Professional, modern illustration representing {topic}.\n"
            "Style: Clean, minimalist, technology-focused.\n"
            f"Theme: {theme}.\n"
            f"Keywords: {', '.join(keywords)}.\n"
            "Color palette: Blue, white, grey tones.\n"
            "Composition: Centered, balanced, suitable for LinkedIn post.\n"
            "Quality: High resolution, 16:9 aspect ratio."
        )
        logger.info("No stock image, emitted AI image prompt (%d chars)", len(prompt))
        return ImageResult(
            type=ImageType.AI_PROMPT,
            prompt=prompt,
            keywords=keywords,
            metadata={
                "topic": topic,
                "signal_type": signal_type,
                "usage": "Copy this prompt to Stable Diffusion, Craiyon, or a similar image generator",
                "timestamp": utc_now_iso(),
            },
        )

    async def _enforce_rate_limit(self) -> None:
        loop = asyncio.get_running_loop()
        if self._last_request_time is not None:
            elapsed = loop.time() - self._last_request_time
            if elapsed < self.request_delay:
                await asyncio.sleep(self.request_delay - elapsed)
        self._last_request_time = loop.time()

    async def health_check(self) -> HealthReport:
        providers = {search.name: "configured" for search in self.searches}
        if not providers:
            return HealthReport(
                HealthStatus.DEGRADED,
                "No stock image APIs configured, will generate AI prompts only",
            )
        return HealthReport(HealthStatus.HEALTHY, "At least one image provider available", {"providers": providers})
