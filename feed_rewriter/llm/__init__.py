"""Rewrite providers, prompt rendering and response decoding."""

from .json_parser import extract_first_object, parse_response
from .prompts import build_rewrite_prompt
from .registry import (
    PROVIDERS,
    ActiveProvider,
    ActiveSelection,
    ProviderConfig,
    ProviderRegistry,
    SelectionState,
)
from .rewriter import RewriteEngine, normalize_tags, to_rewrite_result

__all__ = [
    "PROVIDERS",
    "ActiveProvider",
    "ActiveSelection",
    "ProviderConfig",
    "ProviderRegistry",
    "SelectionState",
    "RewriteEngine",
    "build_rewrite_prompt",
    "extract_first_object",
    "parse_response",
    "normalize_tags",
    "to_rewrite_result",
]
