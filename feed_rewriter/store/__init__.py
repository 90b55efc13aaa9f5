"""Article persistence backends."""

from .base import ArticleStore
from .sqlite import SQLiteArticleStore, decode_tags

__all__ = ["ArticleStore", "SQLiteArticleStore", "decode_tags"]
