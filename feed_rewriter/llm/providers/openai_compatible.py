"""OpenAI Chat Completions provider, also used for compatible APIs."""

from __future__ import annotations

from typing import Any

from .base import CompletionClient


class OpenAICompatibleClient(CompletionClient):
    key = "openai"
    default_base_url = "https://api.openai.com/v1"

    def endpoint(self, model: str) -> str:
        return f"{self.base_url}/chat/completions"

    def headers(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self.api_key}"}

    def build_payload(self, prompt: str, model: str, max_tokens: int) -> dict[str, Any]:
        return {
            "model": model,
            "max_tokens": max_tokens,
            "messages": [{"role": "user", "content": prompt}],
        }

    def extract_text(self, data: dict[str, Any]) -> str:
        return data["choices"][0]["message"]["content"] or ""


class DeepSeekClient(OpenAICompatibleClient):
    key = "deepseek"
    default_base_url = "https://api.deepseek.com"
