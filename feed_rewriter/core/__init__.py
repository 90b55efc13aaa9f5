"""
Core domain models and business logic.

This package contains data types and business logic that is
independent of any specific pipeline stage.
"""

from .types import Article, ArticlePage, RewriteResult, SourceItem
from .slug import SlugAllocator, slugify
from .dedup import dedup_items, filter_new_items

__all__ = [
    "Article",
    "ArticlePage",
    "RewriteResult",
    "SourceItem",
    "SlugAllocator",
    "slugify",
    "dedup_items",
    "filter_new_items",
]
