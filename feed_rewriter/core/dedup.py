"""
Feed item deduplication.

Two filters are applied before any item is rewritten:
1. dedup_items: drops repeats of the same source URL inside a single fetch
2. filter_new_items: drops items whose source URL already has an Article

Both key on source_url only, so every distinct URL eventually becomes an
Article.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Iterable

from .types import SourceItem

if TYPE_CHECKING:
    from ..store.base import ArticleStore


def filter_new_items(items: Iterable[SourceItem], store: ArticleStore) -> list[SourceItem]:
    """Return the items whose source_url has no matching stored Article.

    Each item is checked independently against the store; the check is not
    transactional, so two overlapping runs may both keep the same item.

    Args:
        items: Items from the current fetch, in feed order
        store: Article store to consult

    Returns:
        Subsequence of items not yet persisted, preserving order
    """
    return [item for item in items if store.find_by_source_url(item.source_url) is None]


def dedup_items(items: Iterable[SourceItem]) -> list[SourceItem]:
    """Keep the first item for each source URL, preserving feed order."""
    seen_urls: set[str] = set()
    kept: list[SourceItem] = []
    for item in items:
        if item.source_url in seen_urls:
            continue
        seen_urls.add(item.source_url)
        kept.append(item)
    return kept
