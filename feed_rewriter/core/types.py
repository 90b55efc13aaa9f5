"""
Core data types for the rewrite pipeline.

- SourceItem: normalized feed item, produced per fetch and never persisted
- RewriteResult: structured output of one successful provider rewrite
- Article: persisted, published (or draft) rewritten article
- ArticlePage: one page of published articles for read-only consumers
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any


STATUS_DRAFT = "draft"
STATUS_PUBLISHED = "published"
ARTICLE_STATUSES = (STATUS_DRAFT, STATUS_PUBLISHED)


@dataclass
class SourceItem:
    """A feed item normalized for rewriting.

    Attributes:
        source_url: Link of the item, used as the dedup key
        source_title: Original headline
        source_published: Publish timestamp from the feed, if parsable
        raw_content: Encoded content, falling back to the plain summary
        image_url: Resolved illustration URL, if any
    """
    source_url: str
    source_title: str
    source_published: datetime | None = None
    raw_content: str = ""
    image_url: str | None = None


@dataclass
class RewriteResult:
    """Localized rewrite of a SourceItem returned by a provider.

    Attributes:
        title_fr: Rewritten headline (never empty)
        summary_fr: Two or three sentence teaser
        content_fr: Article body as simple HTML, not yet sanitized
        meta_desc_fr: SEO description
        tags: Ordered list of tag strings
        llm_provider: Provider key that produced the rewrite
        llm_model: Model key that produced the rewrite
    """
    title_fr: str
    summary_fr: str = ""
    content_fr: str = ""
    meta_desc_fr: str = ""
    tags: list[str] = field(default_factory=list)
    llm_provider: str = ""
    llm_model: str = ""


@dataclass
class Article:
    """A persisted rewritten article.

    Created exactly once per distinct source_url. Only status and
    published_at ever change, and only from draft to published.
    """
    slug: str
    source_url: str
    source_title: str
    title_fr: str
    summary_fr: str
    content_fr: str
    meta_desc_fr: str
    tags: list[str] = field(default_factory=list)
    source_published: datetime | None = None
    image_url: str | None = None
    status: str = STATUS_DRAFT
    published_at: datetime | None = None
    created_at: datetime | None = None
    id: int | None = None

    def to_dict(self) -> dict[str, Any]:
        """Return the shape served to read-only consumers."""
        return {
            "id": self.id,
            "slug": self.slug,
            "sourceUrl": self.source_url,
            "sourceTitle": self.source_title,
            "sourcePublished": _isoformat(self.source_published),
            "titleFr": self.title_fr,
            "summaryFr": self.summary_fr,
            "contentFr": self.content_fr,
            "metaDescFr": self.meta_desc_fr,
            "tags": list(self.tags),
            "imageUrl": self.image_url,
            "status": self.status,
            "publishedAt": _isoformat(self.published_at),
            "createdAt": _isoformat(self.created_at),
        }


@dataclass
class ArticlePage:
    """One page of published articles, newest first."""
    articles: list[Article]
    total: int
    page: int
    limit: int

    @property
    def total_pages(self) -> int:
        if self.limit <= 0:
            return 0
        return -(-self.total // self.limit)

    def to_dict(self) -> dict[str, Any]:
        return {
            "articles": [a.to_dict() for a in self.articles],
            "pagination": {
                "total": self.total,
                "page": self.page,
                "limit": self.limit,
                "totalPages": self.total_pages,
            },
        }


def _isoformat(value: datetime | None) -> str | None:
    return value.isoformat() if value is not None else None
