"""Google Gemini generateContent provider."""

from __future__ import annotations

from typing import Any

from .base import CompletionClient


class GeminiClient(CompletionClient):
    key = "gemini"
    default_base_url = "https://generativelanguage.googleapis.com"

    def endpoint(self, model: str) -> str:
        return f"{self.base_url}/v1beta/models/{model}:generateContent"

    def params(self) -> dict[str, str]:
        return {"key": self.api_key}

    def build_payload(self, prompt: str, model: str, max_tokens: int) -> dict[str, Any]:
        return {
            "contents": [{"role": "user", "parts": [{"text": prompt}]}],
            "generationConfig": {"maxOutputTokens": max_tokens},
        }

    def extract_text(self, data: dict[str, Any]) -> str:
        return _extract_text(data)


def _extract_text(data: dict[str, Any]) -> str:
    parts = data["candidates"][0]["content"]["parts"]
    if not isinstance(parts, list):
        return ""

    non_thought_chunks: list[str] = []
    all_chunks: list[str] = []
    for part in parts:
        if not isinstance(part, dict):
            continue
        text = part.get("text")
        if not text:
            continue
        chunk = str(text)
        all_chunks.append(chunk)
        if not bool(part.get("thought")):
            non_thought_chunks.append(chunk)

    if non_thought_chunks:
        return "".join(non_thought_chunks)
    return "".join(all_chunks)
