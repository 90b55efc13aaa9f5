"""Prompt loading and rendering helpers for rewrite providers."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from ..core.types import SourceItem


_PROMPT_DIR = Path(__file__).resolve().parent.parent / "prompts"

DEFAULT_MAX_CHARS = 4000


@lru_cache(maxsize=None)
def _load_template(name: str) -> str:
    path = _PROMPT_DIR / f"{name}.md"
    return path.read_text(encoding="utf-8").strip()


def _render_template(name: str, **values: str) -> str:
    template = _load_template(name)
    return template.format(**values)


def build_rewrite_prompt(item: SourceItem, max_chars: int = DEFAULT_MAX_CHARS) -> str:
    """Render the rewrite prompt for one source item.

    Only the first max_chars characters of the raw content are embedded.
    """
    return _render_template(
        "rewrite",
        title=item.source_title,
        url=item.source_url,
        content=(item.raw_content or "")[:max_chars],
    )
