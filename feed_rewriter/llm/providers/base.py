"""Abstract interface for text-completion providers."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

import httpx

from ...errors import ProviderError


class CompletionClient(ABC):
    """One text-completion capability per provider.

    Subclasses build the provider-specific request and extract the text of
    the reply. Transport failures and malformed replies become ProviderError.
    """

    key: str = ""
    default_base_url: str = ""

    def __init__(
        self,
        api_key: str,
        base_url: str | None = None,
        timeout: float = 120.0,
        trust_env: bool = True,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        if not api_key:
            raise ValueError(f"Missing API key for {self.key}")
        self.api_key = api_key
        self.base_url = (base_url or self.default_base_url).rstrip("/")
        self.timeout = timeout
        self.trust_env = trust_env
        self._transport = transport

    def complete(self, prompt: str, model: str, max_tokens: int) -> str:
        """Send a single-turn prompt and return the reply text, stripped."""
        payload = self.build_payload(prompt, model, max_tokens)
        data = self._post(self.endpoint(model), payload)
        try:
            text = self.extract_text(data)
        except (KeyError, IndexError, TypeError) as exc:
            raise ProviderError(self.key, f"Unexpected response shape: {exc!r}") from exc
        if not text or not text.strip():
            raise ProviderError(self.key, "Empty completion")
        return text.strip()

    @abstractmethod
    def endpoint(self, model: str) -> str:
        raise NotImplementedError

    @abstractmethod
    def build_payload(self, prompt: str, model: str, max_tokens: int) -> dict[str, Any]:
        raise NotImplementedError

    @abstractmethod
    def extract_text(self, data: dict[str, Any]) -> str:
        raise NotImplementedError

    def headers(self) -> dict[str, str]:
        return {}

    def params(self) -> dict[str, str]:
        return {}

    def _post(self, url: str, payload: dict[str, Any]) -> dict[str, Any]:
        try:
            with httpx.Client(
                timeout=self.timeout,
                trust_env=self.trust_env,
                transport=self._transport,
            ) as client:
                resp = client.post(url, params=self.params(), headers=self.headers(), json=payload)
                resp.raise_for_status()
                return resp.json()
        except httpx.HTTPStatusError as exc:
            raise ProviderError(
                self.key, f"HTTP {exc.response.status_code}: {exc.response.text[:300]}"
            ) from exc
        except httpx.HTTPError as exc:
            raise ProviderError(self.key, f"{type(exc).__name__}: {exc}") from exc
        except ValueError as exc:
            raise ProviderError(self.key, f"Invalid JSON body: {exc}") from exc
