"""SQLite-backed article store."""

from __future__ import annotations

from contextlib import contextmanager
import json
import logging
import sqlite3
from datetime import datetime, timezone
from pathlib import Path
from threading import Lock
from typing import Any, Iterator

from ..core.types import (
    ARTICLE_STATUSES,
    STATUS_DRAFT,
    STATUS_PUBLISHED,
    Article,
    ArticlePage,
)
from ..errors import ArticleNotFound, PersistenceConflict, StatusTransitionError, StoreError
from .base import ArticleStore

logger = logging.getLogger(__name__)

_COLUMNS = (
    "id, slug, source_url, source_title, source_published, title_fr, summary_fr, "
    "content_fr, meta_desc_fr, tags, image_url, status, published_at, created_at"
)


class SQLiteArticleStore(ArticleStore):
    """Persist articles in a single SQLite table.

    One connection is shared across threads and guarded by a lock, so the
    scheduler thread and a manual trigger can use the same store. Database
    failures surface as StoreError, uniqueness violations as
    PersistenceConflict.
    """

    def __init__(self, path: Path | str) -> None:
        self.path = str(path)
        if self.path != ":memory:":
            Path(self.path).parent.mkdir(parents=True, exist_ok=True)
        self._lock = Lock()
        self.conn = sqlite3.connect(self.path, check_same_thread=False)
        self.conn.row_factory = sqlite3.Row
        self._ensure_schema()

    def _ensure_schema(self) -> None:
        with self._lock:
            self.conn.execute(
                """
                CREATE TABLE IF NOT EXISTS articles (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    slug TEXT NOT NULL UNIQUE,
                    source_url TEXT NOT NULL UNIQUE,
                    source_title TEXT NOT NULL,
                    source_published TEXT,
                    title_fr TEXT NOT NULL,
                    summary_fr TEXT NOT NULL DEFAULT '',
                    content_fr TEXT NOT NULL DEFAULT '',
                    meta_desc_fr TEXT NOT NULL DEFAULT '',
                    tags TEXT NOT NULL DEFAULT '[]',
                    image_url TEXT,
                    status TEXT NOT NULL DEFAULT 'draft',
                    published_at TEXT,
                    created_at TEXT NOT NULL
                )
                """
            )
            self.conn.execute(
                "CREATE INDEX IF NOT EXISTS idx_articles_published "
                "ON articles(status, published_at)"
            )
            self.conn.commit()

    def find_by_source_url(self, url: str) -> Article | None:
        return self._fetch_one("source_url = ?", (url,))

    def find_by_slug(self, slug: str) -> Article | None:
        return self._fetch_one("slug = ?", (slug,))

    def get(self, article_id: int) -> Article | None:
        return self._fetch_one("id = ?", (article_id,))

    def create(self, article: Article) -> Article:
        if article.status not in ARTICLE_STATUSES:
            raise StatusTransitionError(f"Unknown status: {article.status}")
        created_at = article.created_at or _now()
        params = (
            article.slug,
            article.source_url,
            article.source_title,
            _to_text(article.source_published),
            article.title_fr,
            article.summary_fr,
            article.content_fr,
            article.meta_desc_fr,
            json.dumps([str(t) for t in article.tags], ensure_ascii=False),
            article.image_url,
            article.status,
            _to_text(article.published_at),
            _to_text(created_at),
        )
        with self._lock, _storage_errors("insert"):
            try:
                cur = self.conn.execute(
                    """
                    INSERT INTO articles(
                        slug, source_url, source_title, source_published, title_fr,
                        summary_fr, content_fr, meta_desc_fr, tags, image_url,
                        status, published_at, created_at
                    ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                    """,
                    params,
                )
                self.conn.commit()
            except sqlite3.IntegrityError as exc:
                self.conn.rollback()
                raise PersistenceConflict(
                    f"Article already exists (slug={article.slug!r}, source_url={article.source_url!r}): {exc}"
                ) from exc
            except sqlite3.Error:
                self.conn.rollback()
                raise
            article_id = cur.lastrowid
        stored = self.get(article_id)
        if stored is None:
            raise ArticleNotFound(f"Article {article_id} vanished after insert")
        return stored

    def update_status(
        self,
        article_id: int,
        status: str,
        published_at: datetime | None = None,
    ) -> Article:
        current = self.get(article_id)
        if current is None:
            raise ArticleNotFound(f"No article with id {article_id}")
        if status == current.status:
            return current
        if not (current.status == STATUS_DRAFT and status == STATUS_PUBLISHED):
            raise StatusTransitionError(
                f"Cannot move article {article_id} from {current.status} to {status}"
            )
        with self._lock, _storage_errors("update"):
            self.conn.execute(
                "UPDATE articles SET status = ?, published_at = ? WHERE id = ?",
                (status, _to_text(published_at or _now()), article_id),
            )
            self.conn.commit()
        updated = self.get(article_id)
        if updated is None:
            raise ArticleNotFound(f"No article with id {article_id}")
        return updated

    def list_published(self, page: int = 1, limit: int = 10, tag: str | None = None) -> ArticlePage:
        page = max(page, 1)
        limit = max(limit, 1)
        where = "status = ?"
        params: list[Any] = [STATUS_PUBLISHED]
        if tag:
            where += " AND EXISTS (SELECT 1 FROM json_each(articles.tags) WHERE json_each.value = ?)"
            params.append(tag)
        with self._lock, _storage_errors("query"):
            total = self.conn.execute(
                f"SELECT COUNT(*) FROM articles WHERE {where}", params
            ).fetchone()[0]
            rows = self.conn.execute(
                f"SELECT {_COLUMNS} FROM articles WHERE {where} "
                "ORDER BY published_at DESC, id DESC LIMIT ? OFFSET ?",
                [*params, limit, (page - 1) * limit],
            ).fetchall()
        return ArticlePage(
            articles=[_row_to_article(row) for row in rows],
            total=total,
            page=page,
            limit=limit,
        )

    def close(self) -> None:
        with self._lock:
            self.conn.close()

    def _fetch_one(self, where: str, params: tuple[Any, ...]) -> Article | None:
        with self._lock, _storage_errors("query"):
            row = self.conn.execute(
                f"SELECT {_COLUMNS} FROM articles WHERE {where}", params
            ).fetchone()
        return _row_to_article(row) if row is not None else None


@contextmanager
def _storage_errors(action: str) -> Iterator[None]:
    try:
        yield
    except sqlite3.Error as exc:
        raise StoreError(f"SQLite {action} failed: {type(exc).__name__}: {exc}") from exc


def decode_tags(raw: Any) -> list[str]:
    """Decode stored tags; anything malformed becomes an empty list."""
    if isinstance(raw, list):
        value = raw
    else:
        try:
            value = json.loads(raw or "[]")
        except (TypeError, ValueError):
            logger.warning("Malformed tags value ignored: %r", raw)
            return []
    if not isinstance(value, list):
        return []
    return [
        str(t).strip()
        for t in value
        if isinstance(t, (str, int, float)) and not isinstance(t, bool) and str(t).strip()
    ]


def _row_to_article(row: sqlite3.Row) -> Article:
    return Article(
        id=row["id"],
        slug=row["slug"],
        source_url=row["source_url"],
        source_title=row["source_title"],
        source_published=_from_text(row["source_published"]),
        title_fr=row["title_fr"],
        summary_fr=row["summary_fr"],
        content_fr=row["content_fr"],
        meta_desc_fr=row["meta_desc_fr"],
        tags=decode_tags(row["tags"]),
        image_url=row["image_url"],
        status=row["status"],
        published_at=_from_text(row["published_at"]),
        created_at=_from_text(row["created_at"]),
    )


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _to_text(value: datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


def _from_text(value: str | None) -> datetime | None:
    if not value:
        return None
    try:
        return datetime.fromisoformat(value)
    except ValueError:
        return None
