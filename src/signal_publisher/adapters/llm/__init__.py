"""Text generation adapters."""

from signal_publisher.adapters.llm.anthropic_client import AnthropicClient
from signal_publisher.adapters.llm.huggingface_client import HuggingFaceClient

__all__ = ["AnthropicClient", "HuggingFaceClient"]
