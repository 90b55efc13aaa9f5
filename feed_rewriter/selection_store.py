"""Durable provider selection stored in a .env key-value file."""

from __future__ import annotations

import logging
from pathlib import Path

from dotenv import dotenv_values, set_key, unset_key

from .llm.registry import ActiveSelection

logger = logging.getLogger(__name__)

PROVIDER_KEY = "LLM_PROVIDER"
MODEL_KEY = "LLM_MODEL"


class EnvFileSelectionStore:
    """Read and write LLM_PROVIDER / LLM_MODEL in a .env file.

    Each save is a read-modify-write of the whole file. Nothing is written
    when the file does not exist; the in-memory switch still applies.
    """

    def __init__(self, path: Path | str) -> None:
        self.path = Path(path)

    def load(self) -> ActiveSelection:
        if not self.path.exists():
            return ActiveSelection()
        values = dotenv_values(self.path)
        return ActiveSelection(
            provider_key=values.get(PROVIDER_KEY) or None,
            model_key=values.get(MODEL_KEY) or None,
        )

    def save(self, provider_key: str, model_key: str | None) -> None:
        if not self.path.exists():
            logger.warning("Selection file %s not found; selection kept in memory only", self.path)
            return
        set_key(self.path, PROVIDER_KEY, provider_key, quote_mode="never")
        if model_key:
            set_key(self.path, MODEL_KEY, model_key, quote_mode="never")
        elif MODEL_KEY in dotenv_values(self.path):
            unset_key(self.path, MODEL_KEY, quote_mode="never")
