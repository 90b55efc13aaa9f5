"""Completion clients for rewrite providers."""

from .anthropic import AnthropicClient
from .base import CompletionClient
from .factory import CLIENT_REGISTRY, create_client
from .gemini import GeminiClient
from .openai_compatible import DeepSeekClient, OpenAICompatibleClient

__all__ = [
    "AnthropicClient",
    "CompletionClient",
    "DeepSeekClient",
    "GeminiClient",
    "OpenAICompatibleClient",
    "CLIENT_REGISTRY",
    "create_client",
]
