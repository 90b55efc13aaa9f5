"""Anthropic Messages API provider."""

from __future__ import annotations

from typing import Any

from .base import CompletionClient


class AnthropicClient(CompletionClient):
    key = "claude"
    default_base_url = "https://api.anthropic.com"
    api_version = "2023-06-01"

    def endpoint(self, model: str) -> str:
        return f"{self.base_url}/v1/messages"

    def headers(self) -> dict[str, str]:
        return {"x-api-key": self.api_key, "anthropic-version": self.api_version}

    def build_payload(self, prompt: str, model: str, max_tokens: int) -> dict[str, Any]:
        return {
            "model": model,
            "max_tokens": max_tokens,
            "messages": [{"role": "user", "content": prompt}],
        }

    def extract_text(self, data: dict[str, Any]) -> str:
        blocks = data["content"]
        return "".join(block.get("text", "") for block in blocks if block.get("type") == "text")
