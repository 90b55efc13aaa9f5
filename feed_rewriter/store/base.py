"""Abstract interface for article persistence."""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime

from ..core.types import Article, ArticlePage


class ArticleStore(ABC):
    """Lookup, creation and status updates of persisted articles.

    Implementations must enforce uniqueness of both slug and source_url and
    report a violation from create() as PersistenceConflict.
    """

    @abstractmethod
    def find_by_source_url(self, url: str) -> Article | None:
        raise NotImplementedError

    @abstractmethod
    def find_by_slug(self, slug: str) -> Article | None:
        raise NotImplementedError

    @abstractmethod
    def create(self, article: Article) -> Article:
        """Persist a new article and return it with id and created_at set."""
        raise NotImplementedError

    @abstractmethod
    def update_status(
        self,
        article_id: int,
        status: str,
        published_at: datetime | None = None,
    ) -> Article:
        """Move an article from draft to published."""
        raise NotImplementedError

    @abstractmethod
    def list_published(self, page: int = 1, limit: int = 10, tag: str | None = None) -> ArticlePage:
        """Return published articles ordered by published_at, newest first."""
        raise NotImplementedError
