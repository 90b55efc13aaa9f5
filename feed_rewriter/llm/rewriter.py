"""Rewrite of source items through the active provider."""

from __future__ import annotations

import logging
from typing import Any

from ..config import LLMConfig, LoggingConfig
from ..core.types import RewriteResult, SourceItem
from ..errors import ProviderError, RewriteParseError
from ..utils.logging import log_event, redact_text, redact_value, truncate_text
from .json_parser import parse_response
from .prompts import build_rewrite_prompt
from .registry import ProviderRegistry


class RewriteEngine:
    """Build prompts, call the active provider and decode its answer.

    The provider is resolved again for every item, so a provider switch
    takes effect from the next rewrite on. There is no retry: a failed item
    is retried by the next scheduled run.
    """

    def __init__(
        self,
        registry: ProviderRegistry,
        cfg: LLMConfig,
        log_cfg: LoggingConfig | None = None,
        llm_logger: logging.Logger | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self.registry = registry
        self.cfg = cfg
        self.log_cfg = log_cfg or LoggingConfig()
        self.llm_logger = llm_logger
        self.logger = logger or logging.getLogger(__name__)

    def build_prompt(self, item: SourceItem) -> str:
        return build_rewrite_prompt(item, self.cfg.max_prompt_chars)

    def rewrite(self, item: SourceItem) -> RewriteResult:
        """Rewrite one item with exactly one completion request.

        Raises:
            ConfigError: If no usable provider is selected
            ProviderError: If the completion request fails
            RewriteParseError: If the answer is not a usable JSON object
        """
        active = self.registry.resolve_active()
        log_event(
            self.logger,
            f"[{active.config.display_name}] Rewriting: {item.source_title}",
            event="rewrite_start",
            provider=active.key,
            model=active.model,
            source_url=item.source_url,
        )
        prompt = self.build_prompt(item)

        try:
            raw_text = active.client.complete(prompt, active.model, self.cfg.max_output_tokens)
        except ProviderError as exc:
            self._log_llm_response(item, active.key, active.model, "provider_error", str(exc))
            raise

        try:
            data = parse_response(raw_text)
            result = to_rewrite_result(data, raw_text)
        except RewriteParseError as exc:
            self._log_llm_response(item, active.key, active.model, "parse_error", raw_text)
            log_event(
                self.logger,
                f"Invalid JSON from {active.config.display_name}",
                level=logging.ERROR,
                event="rewrite_parse_error",
                provider=active.key,
                model=active.model,
                source_url=item.source_url,
                raw_excerpt=exc.raw_excerpt,
            )
            raise

        self._log_llm_response(item, active.key, active.model, "ok", raw_text)
        result.llm_provider = active.key
        result.llm_model = active.model
        return result

    def _log_llm_response(
        self,
        item: SourceItem,
        provider: str,
        model: str,
        status: str,
        content: str,
    ) -> None:
        if self.llm_logger is None:
            return
        redaction = self.log_cfg.llm_log_redaction
        log_event(
            self.llm_logger,
            "LLM response",
            event="llm_rewrite_response",
            status=status,
            provider=provider,
            model=model,
            source_title=item.source_title,
            source_url=redact_value(item.source_url, redaction),
            raw_response=truncate_text(redact_text(content, redaction)),
        )


def to_rewrite_result(data: Any, raw_text: str | None = None) -> RewriteResult:
    """Validate a decoded response and normalize its fields.

    Raises:
        RewriteParseError: If data is not an object or titleFr is empty
    """
    if not isinstance(data, dict):
        raise RewriteParseError("Response is not a JSON object", raw_text)
    title = data.get("titleFr")
    if not isinstance(title, str) or not title.strip():
        raise RewriteParseError("Response has no titleFr", raw_text)

    return RewriteResult(
        title_fr=title.strip(),
        summary_fr=_text_field(data.get("summaryFr")),
        content_fr=_text_field(data.get("contentFr")),
        meta_desc_fr=_text_field(data.get("metaDescFr")),
        tags=normalize_tags(data.get("tags")),
    )


def normalize_tags(value: Any) -> list[str]:
    """Return tags as a list of non-empty strings; anything else is []."""
    if not isinstance(value, list):
        return []
    tags: list[str] = []
    for tag in value:
        if isinstance(tag, (str, int, float)) and not isinstance(tag, bool):
            text = str(tag).strip()
            if text:
                tags.append(text)
    return tags


def _text_field(value: Any) -> str:
    if value is None:
        return ""
    return value.strip() if isinstance(value, str) else str(value)
