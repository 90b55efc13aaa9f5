"""Provider client factory keyed by provider key."""

from __future__ import annotations

import httpx

from ...config import LLMConfig
from .anthropic import AnthropicClient
from .base import CompletionClient
from .gemini import GeminiClient
from .openai_compatible import DeepSeekClient, OpenAICompatibleClient


ClientBuilder = type[CompletionClient]

CLIENT_REGISTRY: dict[str, ClientBuilder] = {
    "claude": AnthropicClient,
    "openai": OpenAICompatibleClient,
    "gemini": GeminiClient,
    "deepseek": DeepSeekClient,
}


def create_client(
    provider_key: str,
    api_key: str,
    cfg: LLMConfig,
    builders: dict[str, ClientBuilder] | None = None,
    transport: httpx.BaseTransport | None = None,
) -> CompletionClient:
    """Build a completion client for a provider key."""
    registry = CLIENT_REGISTRY if builders is None else builders
    builder = registry.get(provider_key)
    if builder is None:
        supported = ", ".join(sorted(registry))
        raise ValueError(f"No client for provider: {provider_key}. Supported: {supported}")
    return builder(
        api_key,
        base_url=cfg.base_urls.get(provider_key),
        timeout=cfg.timeout_seconds,
        trust_env=cfg.trust_env,
        transport=transport,
    )
