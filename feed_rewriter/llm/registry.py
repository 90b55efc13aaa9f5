"""
Provider catalog and active provider selection.

The catalog is static. The active selection is held by a SelectionState,
an injectable service with atomic read and swap, and is re-resolved every
time a rewrite needs a provider: a switch issued mid-run is seen by the next
item of that run.
"""

from __future__ import annotations

from dataclasses import dataclass, field
import logging
import os
from threading import Lock
from typing import Any, Mapping, Protocol

from ..config import LLMConfig
from ..errors import ConfigError
from ..utils.logging import log_event
from .providers.base import CompletionClient
from .providers.factory import ClientBuilder, create_client


@dataclass(frozen=True)
class ProviderConfig:
    """Catalog entry for one rewrite provider.

    Attributes:
        key: Provider key used in configuration and selection
        display_name: Human readable name
        models: Model key -> label
        default_model: Model key used when no override is selected
        credential_env_key: Environment variable holding the API key
    """
    key: str
    display_name: str
    models: Mapping[str, str]
    default_model: str
    credential_env_key: str


PROVIDERS: dict[str, ProviderConfig] = {
    "claude": ProviderConfig(
        key="claude",
        display_name="Claude (Anthropic)",
        models={
            "claude-sonnet-4-5": "Claude Sonnet 4.5 (recommandé)",
            "claude-opus-4-1": "Claude Opus 4.1 (le plus puissant)",
            "claude-haiku-4-5": "Claude Haiku 4.5 (le plus rapide)",
        },
        default_model="claude-sonnet-4-5",
        credential_env_key="ANTHROPIC_API_KEY",
    ),
    "openai": ProviderConfig(
        key="openai",
        display_name="OpenAI (ChatGPT)",
        models={
            "gpt-4o": "GPT-4o (recommandé)",
            "gpt-4o-mini": "GPT-4o Mini (rapide)",
            "gpt-4-turbo": "GPT-4 Turbo",
        },
        default_model="gpt-4o",
        credential_env_key="OPENAI_API_KEY",
    ),
    "gemini": ProviderConfig(
        key="gemini",
        display_name="Gemini (Google)",
        models={
            "gemini-2.0-flash": "Gemini 2.0 Flash (recommandé)",
            "gemini-1.5-pro": "Gemini 1.5 Pro",
            "gemini-1.5-flash": "Gemini 1.5 Flash (rapide)",
        },
        default_model="gemini-2.0-flash",
        credential_env_key="GEMINI_API_KEY",
    ),
    "deepseek": ProviderConfig(
        key="deepseek",
        display_name="DeepSeek",
        models={
            "deepseek-chat": "DeepSeek Chat V3 (recommandé)",
            "deepseek-reasoner": "DeepSeek Reasoner R1",
        },
        default_model="deepseek-chat",
        credential_env_key="DEEPSEEK_API_KEY",
    ),
}

DEFAULT_PROVIDER = "claude"


@dataclass(frozen=True)
class ActiveSelection:
    """Provider key and optional model override currently in effect."""
    provider_key: str | None = None
    model_key: str | None = None


@dataclass
class ActiveProvider:
    """A resolved selection, ready to issue completion requests."""
    key: str
    model: str
    config: ProviderConfig
    client: CompletionClient = field(repr=False)


class SelectionState:
    """Process-wide active selection with atomic read and swap."""

    def __init__(self, initial: ActiveSelection | None = None) -> None:
        self._lock = Lock()
        self._selection = initial or ActiveSelection()

    def get(self) -> ActiveSelection:
        with self._lock:
            return self._selection

    def swap(self, selection: ActiveSelection) -> ActiveSelection:
        """Replace the selection and return the previous one."""
        with self._lock:
            previous, self._selection = self._selection, selection
            return previous


class SelectionStore(Protocol):
    """Durable storage for the active selection."""

    def save(self, provider_key: str, model_key: str | None) -> None: ...


class ProviderRegistry:
    """Resolve and switch the active rewrite provider.

    Args:
        cfg: LLM configuration (base URLs, timeouts)
        state: Shared selection state
        environ: Mapping where credentials are looked up (defaults to os.environ)
        selection_store: Optional durable store written on switch
        builders: Provider key -> client class, defaults to the built-in clients
        catalog: Provider catalog, defaults to PROVIDERS
        logger: Logger for switch events
    """

    def __init__(
        self,
        cfg: LLMConfig,
        state: SelectionState | None = None,
        environ: Mapping[str, str] | None = None,
        selection_store: SelectionStore | None = None,
        builders: dict[str, ClientBuilder] | None = None,
        catalog: Mapping[str, ProviderConfig] | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self.cfg = cfg
        self.state = state or SelectionState(ActiveSelection(cfg.provider, cfg.model))
        self._environ = os.environ if environ is None else environ
        self.selection_store = selection_store
        self._builders = builders
        self.catalog = PROVIDERS if catalog is None else catalog
        self.logger = logger or logging.getLogger(__name__)

    def resolve_active(self) -> ActiveProvider:
        """Resolve the current selection into a ready provider.

        Raises:
            ConfigError: If the provider key is unknown or its credential
                is not set
        """
        return self._resolve(self.state.get())

    def switch_active(self, provider_key: str, model_key: str | None = None) -> ActiveProvider:
        """Validate and apply a new selection, then persist it best-effort.

        The in-memory selection takes effect even if durable persistence
        fails; the failure is logged and the switch still succeeds.
        """
        selection = ActiveSelection(_normalize_key(provider_key), model_key or None)
        resolved = self._resolve(selection)
        previous = self.state.swap(selection)
        log_event(
            self.logger,
            f"LLM switched -> {resolved.config.display_name} ({resolved.model})",
            event="provider_switched",
            provider=resolved.key,
            model=resolved.model,
            previous_provider=previous.provider_key,
            previous_model=previous.model_key,
        )
        if self.selection_store is not None:
            try:
                self.selection_store.save(resolved.key, selection.model_key)
            except OSError as exc:
                log_event(
                    self.logger,
                    "Provider selection not persisted",
                    level=logging.WARNING,
                    event="provider_persist_failed",
                    provider=resolved.key,
                    error=f"{type(exc).__name__}: {exc}",
                )
        return resolved

    def providers_info(self) -> dict[str, Any]:
        """Describe the active selection and the whole catalog."""
        try:
            active = self.resolve_active()
            active_info: dict[str, Any] | None = {
                "provider": active.key,
                "model": active.model,
                "name": active.config.display_name,
            }
        except ConfigError:
            active_info = None

        providers = []
        for key, provider in self.catalog.items():
            providers.append(
                {
                    "key": key,
                    "name": provider.display_name,
                    "hasApiKey": bool(self._environ.get(provider.credential_env_key)),
                    "defaultModel": provider.default_model,
                    "models": [
                        {
                            "key": model_key,
                            "name": label,
                            "isDefault": model_key == provider.default_model,
                        }
                        for model_key, label in provider.models.items()
                    ],
                }
            )
        return {"active": active_info, "providers": providers}

    def _resolve(self, selection: ActiveSelection) -> ActiveProvider:
        key = _normalize_key(selection.provider_key or DEFAULT_PROVIDER)
        provider = self.catalog.get(key)
        if provider is None:
            valid = ", ".join(self.catalog)
            raise ConfigError(f'Unknown provider "{key}". Valid values: {valid}')

        model = selection.model_key or provider.default_model
        api_key = self._environ.get(provider.credential_env_key)
        if not api_key:
            raise ConfigError(
                f"Missing API key for {provider.display_name}: "
                f"set {provider.credential_env_key} in the environment"
            )
        client = create_client(key, api_key, self.cfg, builders=self._builders)
        return ActiveProvider(key=key, model=model, config=provider, client=client)


def _normalize_key(key: str) -> str:
    return key.strip().lower()
