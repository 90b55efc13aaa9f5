"""Tests for provider resolution, switching and catalog reporting."""

from __future__ import annotations

import pytest

from feed_rewriter.config import LLMConfig
from feed_rewriter.errors import ConfigError
from feed_rewriter.llm.providers.anthropic import AnthropicClient
from feed_rewriter.llm.providers.gemini import GeminiClient
from feed_rewriter.llm.registry import (
    ActiveSelection,
    ProviderRegistry,
    SelectionState,
)


ALL_KEYS = {
    "ANTHROPIC_API_KEY": "sk-ant",
    "OPENAI_API_KEY": "sk-oa",
    "GEMINI_API_KEY": "g-key",
    "DEEPSEEK_API_KEY": "sk-ds",
}


class _RecordingSelectionStore:
    def __init__(self, error: Exception | None = None):
        self.saved = []
        self.error = error

    def save(self, provider_key, model_key):
        if self.error is not None:
            raise self.error
        self.saved.append((provider_key, model_key))


def _registry(selection=None, environ=None, selection_store=None):
    return ProviderRegistry(
        LLMConfig(),
        state=SelectionState(selection or ActiveSelection()),
        environ=ALL_KEYS if environ is None else environ,
        selection_store=selection_store,
    )


def test_resolve_defaults_to_claude_when_nothing_selected():
    active = _registry().resolve_active()

    assert active.key == "claude"
    assert active.model == "claude-sonnet-4-5"
    assert isinstance(active.client, AnthropicClient)
    assert active.client.api_key == "sk-ant"


def test_resolve_uses_model_override():
    active = _registry(ActiveSelection("gemini", "gemini-1.5-pro")).resolve_active()

    assert active.key == "gemini"
    assert active.model == "gemini-1.5-pro"
    assert isinstance(active.client, GeminiClient)


def test_resolve_normalizes_provider_key():
    assert _registry(ActiveSelection(" OpenAI ")).resolve_active().key == "openai"


def test_unknown_provider_lists_valid_keys():
    with pytest.raises(ConfigError) as exc_info:
        _registry(ActiveSelection("mistral")).resolve_active()

    message = str(exc_info.value)
    assert '"mistral"' in message
    for key in ("claude", "openai", "gemini", "deepseek"):
        assert key in message


def test_missing_credential_names_variable():
    with pytest.raises(ConfigError, match="ANTHROPIC_API_KEY"):
        _registry(environ={}).resolve_active()


def test_registry_reads_credentials_at_resolve_time():
    environ: dict[str, str] = {}
    registry = _registry(ActiveSelection("openai"), environ=environ)
    with pytest.raises(ConfigError):
        registry.resolve_active()

    environ["OPENAI_API_KEY"] = "late-key"

    assert registry.resolve_active().client.api_key == "late-key"


def test_switch_updates_selection_and_persists():
    store = _RecordingSelectionStore()
    registry = _registry(selection_store=store)

    active = registry.switch_active("deepseek", "deepseek-reasoner")

    assert active.key == "deepseek"
    assert active.model == "deepseek-reasoner"
    assert registry.state.get() == ActiveSelection("deepseek", "deepseek-reasoner")
    assert registry.resolve_active().key == "deepseek"
    assert store.saved == [("deepseek", "deepseek-reasoner")]


def test_switch_without_model_uses_provider_default():
    store = _RecordingSelectionStore()
    registry = _registry(ActiveSelection("claude", "claude-opus-4-1"), selection_store=store)

    active = registry.switch_active("openai")

    assert active.model == "gpt-4o"
    assert store.saved == [("openai", None)]


def test_switch_to_invalid_provider_keeps_previous_selection():
    store = _RecordingSelectionStore()
    registry = _registry(ActiveSelection("gemini"), selection_store=store)

    with pytest.raises(ConfigError):
        registry.switch_active("nope")
    with pytest.raises(ConfigError):
        _registry(ActiveSelection("gemini"), environ={"GEMINI_API_KEY": "g"}).switch_active("openai")

    assert registry.state.get() == ActiveSelection("gemini")
    assert store.saved == []


def test_switch_succeeds_when_persistence_fails():
    registry = _registry(selection_store=_RecordingSelectionStore(error=PermissionError("read-only")))

    active = registry.switch_active("gemini")

    assert active.key == "gemini"
    assert registry.resolve_active().key == "gemini"


def test_providers_info_describes_catalog():
    info = _registry(environ={"OPENAI_API_KEY": "sk"}, selection=ActiveSelection("openai")).providers_info()

    assert info["active"] == {"provider": "openai", "model": "gpt-4o", "name": "OpenAI (ChatGPT)"}
    by_key = {p["key"]: p for p in info["providers"]}
    assert list(by_key) == ["claude", "openai", "gemini", "deepseek"]
    assert by_key["openai"]["hasApiKey"] is True
    assert by_key["claude"]["hasApiKey"] is False
    defaults = [m["key"] for m in by_key["claude"]["models"] if m["isDefault"]]
    assert defaults == ["claude-sonnet-4-5"]


def test_providers_info_active_is_none_without_credential():
    info = _registry(environ={}).providers_info()

    assert info["active"] is None
    assert len(info["providers"]) == 4
