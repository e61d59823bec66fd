"""Build structured generation requests from normalized records."""

import logging
from typing import Any, Callable

from signal_publisher.core.entities import (
    Constraints,
    FormattingConstraint,
    GenerationRequest,
    Instructions,
    LengthConstraint,
    NormalizedRecord,
    PromptMetadata,
    StructureConstraint,
    SystemInstructions,
    utc_now_iso,
)

logger = logging.getLogger(__name__)

MIN_WORDS = 200
MAX_WORDS = 300
RECOMMENDED_HASHTAGS = 3

SYSTEM_ROLE = "You are a professional LinkedIn content creator specializing in technical topics."

GUIDELINES = (
    "Create engaging content based on the provided topic and context",
    "Use factual information from the context provided",
    "Write in a professional yet approachable tone",
    "Include relevant hashtags for discoverability",
    "End with a call-to-action or thought-provoking question",
    "Do not fabricate information beyond the provided context",
    "Maintain authenticity and credibility",
)

STRUCTURE_INCLUDE = (
    "Opening hook or question",
    "Main content with context",
    "Key takeaway or insight",
    "Call-to-action or discussion prompt",
)

STRUCTURE_AVOID = (
    "Overly promotional language",
    "Clickbait phrases",
    "Excessive emojis",
    "Unsubstantiated claims",
)

ProviderFormatter = Callable[[GenerationRequest], Any]


def format_system_message(prompt: GenerationRequest) -> str:
    guidelines = "\n".join(f"- {g}" for g in prompt.system.guidelines)
    return f"{prompt.system.role}\n\nGuidelines:\n{guidelines}"


def format_user_message(prompt: GenerationRequest) -> str:
    instructions = prompt.instructions
    constraints = prompt.constraints

    lines = [
        f"Create a LinkedIn post about: {instructions.topic}",
        "",
        f"Context: {instructions.context}",
        "",
        f"Signal Type: {instructions.signal_type}",
        f"Category: {instructions.category.value}",
        "",
    ]
    if instructions.sources:
        lines.extend([f"Information Sources: {', '.join(instructions.sources)}", ""])

    lines.extend([
        "Requirements:",
        f"- Length: {constraints.length.min}-{constraints.length.max} {constraints.length.unit}",
        f"- Include: {', '.join(constraints.structure.include)}",
        f"- Avoid: {', '.join(constraints.structure.avoid)}",
        f"- Tone: {constraints.formatting.tone}",
        f"- Add {constraints.formatting.hashtags} relevant hashtags",
        "",
        "Generate a professional LinkedIn post following these requirements.",
    ])
    return "\n".join(lines)


def _chat_messages(prompt: GenerationRequest) -> dict[str, Any]:
    return {
        "messages": [
            {"role": "system", "content": format_system_message(prompt)},
            {"role": "user", "content": format_user_message(prompt)},
        ],
        "metadata": prompt.metadata,
    }


def _anthropic_messages(prompt: GenerationRequest) -> dict[str, Any]:
    return {
        "system": format_system_message(prompt),
        "messages": [{"role": "user", "content": format_user_message(prompt)}],
        "metadata": prompt.metadata,
    }


def _mistral_instruction(prompt: GenerationRequest) -> str:
    return f"<s>[INST] {format_system_message(prompt)}\n\n{format_user_message(prompt)} [/INST]"


def _plain_split(prompt: GenerationRequest) -> dict[str, Any]:
    return {
        "system": format_system_message(prompt),
        "user": format_user_message(prompt),
        "metadata": prompt.metadata,
    }


_PROVIDER_FORMATS: dict[str, ProviderFormatter] = {
    "openai": _chat_messages,
    "huggingface": _chat_messages,
    "anthropic": _anthropic_messages,
    "mistral": _mistral_instruction,
}


def register_provider_format(name: str, formatter: ProviderFormatter) -> None:
    """Register a message shape for a new provider."""
    _PROVIDER_FORMATS[name.lower()] = formatter


class PromptBuilder:
    """Assemble generation requests from fixed policy constants."""

    def __init__(
        self,
        min_words: int = MIN_WORDS,
        max_words: int = MAX_WORDS,
        hashtags: int = RECOMMENDED_HASHTAGS,
        tone: str = "Professional yet conversational",
    ) -> None:
        self.min_words = min_words
        self.max_words = max_words
        self.hashtags = hashtags
        self.tone = tone

    def build_prompt(self, record: NormalizedRecord) -> GenerationRequest:
        prompt = GenerationRequest(
            metadata=PromptMetadata(
                signal_id=record.signal_id,
                timestamp=utc_now_iso(),
                category=record.category,
                confidence=record.confidence,
            ),
            system=SystemInstructions(role=SYSTEM_ROLE, guidelines=GUIDELINES),
            instructions=Instructions(
                topic=record.topic,
                context=record.context,
                signal_type=record.signal_type,
                category=record.category,
                sources=tuple(record.sources),
                confidence=record.confidence,
            ),
            constraints=self.build_constraints(),
            attribution=record.source_data,
        )
        logger.debug("Prompt built for signal %s", record.signal_id)
        return prompt

    def build_constraints(self) -> Constraints:
        return Constraints(
            format="LinkedIn professional post",
            length=LengthConstraint(min=self.min_words, max=self.max_words, unit="words"),
            structure=StructureConstraint(include=STRUCTURE_INCLUDE, avoid=STRUCTURE_AVOID),
            formatting=FormattingConstraint(
                hashtags=self.hashtags,
                tone=self.tone,
                paragraphs="Use line breaks for readability",
            ),
        )

    def build_batch(
        self, records: list[NormalizedRecord]
    ) -> tuple[list[GenerationRequest], list[dict[str, str]]]:
        """Build prompts for many records.

        Returns:
            Tuple of (prompts, errors) where each error names the signal id
        """
        prompts: list[GenerationRequest] = []
        errors: list[dict[str, str]] = []
        for record in records:
            try:
                prompts.append(self.build_prompt(record))
            except Exception as e:
                logger.error("Failed to build prompt for signal %s: %s", record.signal_id, e)
                errors.append({"signal_id": record.signal_id, "error": str(e)})
        return prompts, errors

    def to_provider_format(self, prompt: GenerationRequest, provider: str = "openai") -> Any:
        """Render the prompt in the message shape a provider expects."""
        formatter = _PROVIDER_FORMATS.get(provider.lower())
        if formatter is None:
            logger.warning("Unknown provider format %r, using plain system/user split", provider)
            formatter = _plain_split
        return formatter(prompt)

    def validate_prompt(self, prompt: Any) -> bool:
        """Check required blocks are present and populated."""
        for name in ("metadata", "system", "instructions", "constraints"):
            if getattr(prompt, name, None) is None:
                logger.warning("Missing required field in prompt: %s", name)
                return False

        if not prompt.metadata.signal_id or not prompt.metadata.timestamp:
            logger.warning("Incomplete prompt metadata")
            return False

        if not prompt.instructions.topic or not prompt.instructions.context:
            logger.warning("Incomplete prompt instructions")
            return False

        return True

