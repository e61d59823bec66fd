"""Generate post text with a deterministic fallback."""

import asyncio
import logging
import re
from typing import Any, Optional

from signal_publisher.core.entities import (
    GeneratedContent,
    GenerationRequest,
    HealthReport,
    HealthStatus,
    Provider,
    utc_now_iso,
)
from signal_publisher.core.interfaces import TextGenerator
from signal_publisher.core.policy import MAX_POST_LENGTH
from signal_publisher.core.prompt_builder import PromptBuilder

logger = logging.getLogger(__name__)

_CONTROL_MARKUP = re.compile(r"\[INST\]|\[/INST\]|<s>|</s>")
_EXCESS_BLANK_LINES = re.compile(r"\n{3,}")


def clean_generated_text(text: str, max_length: int = MAX_POST_LENGTH) -> str:
    """Strip instruction markup, collapse blank lines and cap the length."""
    text = _CONTROL_MARKUP.sub("", text)
    text = _EXCESS_BLANK_LINES.sub("\n\n", text).strip()
    return text[:max_length]


class ContentGenerator:
    """Call a text generator, falling back to a marked placeholder on failure."""

    def __init__(
        self,
        text_generator: Optional[TextGenerator] = None,
        prompt_builder: Optional[PromptBuilder] = None,
        request_delay: float = 2.0,
        timeout: float = 30.0,
        max_length: int = MAX_POST_LENGTH,
        params: Optional[dict[str, Any]] = None,
    ) -> None:
        self.text_generator = text_generator
        self.prompt_builder = prompt_builder or PromptBuilder()
        self.request_delay = request_delay
        self.timeout = timeout
        self.max_length = max_length
        self.params = params or {}
        self._last_request_time: Optional[float] = None

    async def generate(self, prompt: GenerationRequest) -> GeneratedContent:
        """Generate content for prompt. Never raises."""
        if not self.prompt_builder.validate_prompt(prompt):
            logger.error("Refusing to generate from an invalid prompt")
            return GeneratedContent(
                text=None,
                provider=Provider.ERROR,
                model="unknown",
                metadata={"error": "Invalid prompt structure", "timestamp": utc_now_iso()},
            )

        await self._enforce_rate_limit()

        if self.text_generator is None:
            logger.warning("No text generator configured, using fallback template")
            return self._generate_fallback(prompt, reason="no text generator configured")

        try:
            formatted = self.prompt_builder.to_provider_format(prompt, self.text_generator.prompt_format)
            raw = await asyncio.wait_for(
                self.text_generator.complete(formatted, self.params), timeout=self.timeout
            )
        except asyncio.TimeoutError:
            logger.warning("Text generation timed out after %.0fs, using fallback", self.timeout)
            return self._generate_fallback(prompt, reason="timeout")
        except Exception as e:
            logger.warning("Text generation failed (%s: %s), using fallback", type(e).__name__, e)
            return self._generate_fallback(prompt, reason=f"{type(e).__name__}: {e}")

        text = clean_generated_text(raw or "", self.max_length)
        if not text:
            logger.warning("Text generator returned empty output, using fallback")
            return self._generate_fallback(prompt, reason="empty output")

        logger.info("Generated %d characters for signal %s", len(text), prompt.metadata.signal_id)
        return GeneratedContent(
            text=text,
            provider=Provider.PRIMARY,
            model=self.text_generator.model,
            metadata={
                "signal_id": prompt.metadata.signal_id,
                "characters": len(text),
                "timestamp": utc_now_iso(),
            },
        )

    def _generate_fallback(self, prompt: GenerationRequest, reason: str) -> GeneratedContent:
        topic = prompt.instructions.topic
        hashtag = re.sub(r"[^A-Za-z0-9]", "", topic.title()) or "Update"
        text = (
            f"[PLACEHOLDER: LinkedIn post about {topic}]\n\n"
            "[Hook: Opening statement]\n\n"
            f"[Context: {prompt.instructions.context[:50]}...]\n\n"
            "[Call-to-action]\n\n"
            f"#{hashtag} #Automation"
        )
        return GeneratedContent(
            text=text[: self.max_length],
            provider=Provider.FALLBACK,
            model="template",
            metadata={
                "placeholder": True,
                "warning": "Fallback template used - requires manual editing",
                "reason": reason,
                "signal_id": prompt.metadata.signal_id,
                "timestamp": utc_now_iso(),
            },
        )

    async def _enforce_rate_limit(self) -> None:
        loop = asyncio.get_running_loop()
        if self._last_request_time is not None:
            elapsed = loop.time() - self._last_request_time
            if elapsed < self.request_delay:
                wait = self.request_delay - elapsed
                logger.debug("Generation rate limit wait %.2fs", wait)
                await asyncio.sleep(wait)
        self._last_request_time = loop.time()

    async def health_check(self) -> HealthReport:
        if self.text_generator is None:
            return HealthReport(
                HealthStatus.DEGRADED,
                "No text generator configured, fallback template only",
            )
        return await self.text_generator.health_check()
