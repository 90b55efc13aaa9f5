"""Tests for the SQLite article store."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from conftest import make_article
from feed_rewriter.errors import ArticleNotFound, PersistenceConflict, StatusTransitionError, StoreError
from feed_rewriter.store.sqlite import SQLiteArticleStore, decode_tags


BASE_TIME = datetime(2025, 1, 6, 12, 0, tzinfo=timezone.utc)


def test_create_and_find(store):
    saved = store.create(make_article("retour-a380", "https://news.example.com/a380", tags=["a380", "airbus"]))

    assert saved.id is not None
    assert saved.created_at is not None
    assert store.find_by_slug("retour-a380").source_url == "https://news.example.com/a380"
    assert store.find_by_source_url("https://news.example.com/a380").tags == ["a380", "airbus"]
    assert store.find_by_slug("missing") is None
    assert store.find_by_source_url("https://news.example.com/missing") is None


def test_create_round_trips_datetimes(store):
    published = datetime(2025, 1, 6, 10, 0, tzinfo=timezone.utc)
    saved = store.create(
        make_article("s", "https://news.example.com/s", source_published=published, published_at=BASE_TIME)
    )

    assert saved.source_published == published
    assert saved.published_at == BASE_TIME


def test_create_rejects_duplicate_slug(store):
    store.create(make_article("same", "https://news.example.com/1"))

    with pytest.raises(PersistenceConflict):
        store.create(make_article("same", "https://news.example.com/2"))


def test_create_rejects_duplicate_source_url(store):
    store.create(make_article("one", "https://news.example.com/1"))

    with pytest.raises(PersistenceConflict):
        store.create(make_article("two", "https://news.example.com/1"))

    assert store.find_by_slug("two") is None


def test_create_rejects_unknown_status(store):
    with pytest.raises(StatusTransitionError):
        store.create(make_article("x", "https://news.example.com/x", status="archived"))


def test_publish_draft_sets_published_at(store):
    draft = store.create(make_article("d", "https://news.example.com/d", status="draft", published_at=None))

    published = store.update_status(draft.id, "published")

    assert published.status == "published"
    assert published.published_at is not None
    assert store.list_published().total == 1


def test_publish_uses_given_timestamp(store):
    draft = store.create(make_article("d", "https://news.example.com/d", status="draft", published_at=None))

    published = store.update_status(draft.id, "published", published_at=BASE_TIME)

    assert published.published_at == BASE_TIME


def test_update_status_is_idempotent_for_same_status(store):
    article = store.create(make_article("p", "https://news.example.com/p"))

    assert store.update_status(article.id, "published").published_at == article.published_at


def test_update_status_rejects_unpublish(store):
    article = store.create(make_article("p", "https://news.example.com/p"))

    with pytest.raises(StatusTransitionError):
        store.update_status(article.id, "draft")


def test_update_status_unknown_id(store):
    with pytest.raises(ArticleNotFound):
        store.update_status(999, "published")


def test_list_published_orders_newest_first_and_paginates(store):
    for idx in range(5):
        store.create(
            make_article(
                f"a-{idx}",
                f"https://news.example.com/{idx}",
                published_at=BASE_TIME + timedelta(hours=idx),
            )
        )
    store.create(make_article("draft", "https://news.example.com/draft", status="draft", published_at=None))

    first = store.list_published(page=1, limit=2)
    last = store.list_published(page=3, limit=2)

    assert [a.slug for a in first.articles] == ["a-4", "a-3"]
    assert first.total == 5
    assert first.total_pages == 3
    assert [a.slug for a in last.articles] == ["a-0"]
    assert first.to_dict()["pagination"] == {"total": 5, "page": 1, "limit": 2, "totalPages": 3}


def test_list_published_filters_by_tag(store):
    store.create(make_article("a", "https://news.example.com/a", tags=["airbus", "a350"]))
    store.create(make_article("b", "https://news.example.com/b", tags=["boeing"]))

    page = store.list_published(tag="airbus")

    assert [a.slug for a in page.articles] == ["a"]
    assert page.total == 1


def test_malformed_stored_tags_decode_to_empty_list(store):
    article = store.create(make_article("t", "https://news.example.com/t"))
    store.conn.execute("UPDATE articles SET tags = ? WHERE id = ?", ("not json", article.id))
    store.conn.commit()

    assert store.get(article.id).tags == []


@pytest.mark.parametrize(
    "raw, expected",
    [
        ('["a", "b"]', ["a", "b"]),
        ('{"a": 1}', []),
        ("", []),
        (None, []),
        ('["a", 1, true, null, " "]', ["a", "1"]),
    ],
)
def test_decode_tags(raw, expected):
    assert decode_tags(raw) == expected


def test_in_memory_store():
    db = SQLiteArticleStore(":memory:")
    try:
        db.create(make_article("m", "https://news.example.com/m"))
        assert db.find_by_slug("m") is not None
    finally:
        db.close()


def test_article_to_dict_uses_camel_case(store):
    saved = store.create(make_article("c", "https://news.example.com/c", published_at=BASE_TIME))

    data = saved.to_dict()

    assert data["titleFr"] == "Titre"
    assert data["sourceUrl"] == "https://news.example.com/c"
    assert data["publishedAt"] == BASE_TIME.isoformat()


def test_database_errors_are_wrapped(tmp_path):
    db = SQLiteArticleStore(tmp_path / "closed.db")
    db.close()

    with pytest.raises(StoreError):
        db.find_by_slug("x")
    with pytest.raises(StoreError):
        db.create(make_article("x", "https://news.example.com/x"))


def test_persistence_conflict_is_a_store_error(store):
    store.create(make_article("a", "https://news.example.com/a"))

    with pytest.raises(StoreError):
        store.create(make_article("a", "https://news.example.com/other"))


def test_create_raises_when_row_cannot_be_read_back(tmp_path):
    class _ForgetfulStore(SQLiteArticleStore):
        def get(self, article_id):
            return None

    db = _ForgetfulStore(tmp_path / "forgetful.db")
    try:
        with pytest.raises(ArticleNotFound):
            db.create(make_article("f", "https://news.example.com/f"))
    finally:
        db.close()
