"""Shared fixtures: sample feed, fake completion clients and stores."""

from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import Any

import pytest

from feed_rewriter.config import AppConfig, LLMConfig
from feed_rewriter.core.types import Article, SourceItem
from feed_rewriter.llm.providers.base import CompletionClient
from feed_rewriter.llm.registry import ProviderRegistry, SelectionState, ActiveSelection
from feed_rewriter.llm.rewriter import RewriteEngine
from feed_rewriter.store.sqlite import SQLiteArticleStore


RSS_FEED = """<?xml version="1.0" encoding="UTF-8"?>
<rss version="2.0"
     xmlns:content="http://purl.org/rss/1.0/modules/content/"
     xmlns:media="http://search.yahoo.com/mrss/">
  <channel>
    <title>Sky Feed</title>
    <link>https://news.example.com</link>
    <description>Aviation news</description>
    <item>
      <title>A380 returns to service</title>
      <link>https://news.example.com/a380-returns</link>
      <pubDate>Mon, 06 Jan 2025 10:00:00 GMT</pubDate>
      <media:content url="https://img.example.com/a380.jpg" medium="image" />
      <content:encoded><![CDATA[<p>The A380 is back.</p><img src="https://img.example.com/inline-a380.jpg">]]></content:encoded>
    </item>
    <item>
      <title>New transatlantic route announced</title>
      <link>https://news.example.com/new-route</link>
      <pubDate>Tue, 07 Jan 2025 08:30:00 GMT</pubDate>
      <enclosure url="https://img.example.com/route.jpg" type="image/jpeg" length="1024" />
      <description>Short teaser about the route.</description>
    </item>
    <item>
      <title>Inside the cockpit</title>
      <link>https://news.example.com/cockpit</link>
      <content:encoded><![CDATA[<p>Text</p><p><img alt="cockpit" src="https://img.example.com/cockpit.jpg" /></p>]]></content:encoded>
    </item>
    <item>
      <title>Airport strike ends</title>
      <link>https://news.example.com/strike</link>
      <description>No picture here.</description>
    </item>
  </channel>
</rss>
"""


def rewrite_json(title: str = "Le retour de l'A380", **overrides: Any) -> str:
    """Return a provider answer encoding a valid rewrite."""
    payload = {
        "titleFr": title,
        "summaryFr": "Un résumé.",
        "contentFr": "<p>Contenu</p>",
        "metaDescFr": "Description SEO",
        "tags": ["aviation", "airbus"],
    }
    payload.update(overrides)
    return json.dumps(payload, ensure_ascii=False)


def make_fake_client(responses: list[Any], events: list[str] | None = None) -> type[CompletionClient]:
    """Build a CompletionClient class replaying responses in order.

    Exceptions in responses are raised instead of returned. Calls are
    recorded on the class as FakeClient.calls.
    """
    calls: list[dict[str, Any]] = []

    class FakeClient(CompletionClient):
        key = "fake"

        def endpoint(self, model):  # noqa: ANN001
            return "https://llm.invalid"

        def build_payload(self, prompt, model, max_tokens):  # noqa: ANN001
            return {}

        def extract_text(self, data):  # noqa: ANN001
            return ""

        def complete(self, prompt, model, max_tokens):  # noqa: ANN001
            calls.append(
                {"prompt": prompt, "model": model, "max_tokens": max_tokens, "api_key": self.api_key}
            )
            if events is not None:
                events.append("rewrite")
            value = responses.pop(0)
            if isinstance(value, Exception):
                raise value
            return value

    FakeClient.calls = calls
    return FakeClient


def make_item(slug: str, title: str | None = None, content: str = "Body") -> SourceItem:
    return SourceItem(
        source_url=f"https://news.example.com/{slug}",
        source_title=title or slug.replace("-", " ").title(),
        source_published=datetime(2025, 1, 6, 10, 0, tzinfo=timezone.utc),
        raw_content=content,
        image_url=None,
    )


def make_article(slug: str, source_url: str, **overrides: Any) -> Article:
    data: dict[str, Any] = {
        "slug": slug,
        "source_url": source_url,
        "source_title": "Source",
        "title_fr": "Titre",
        "summary_fr": "Résumé",
        "content_fr": "<p>Contenu</p>",
        "meta_desc_fr": "Meta",
        "tags": ["aviation"],
        "status": "published",
        "published_at": datetime(2025, 1, 6, 12, 0, tzinfo=timezone.utc),
    }
    data.update(overrides)
    return Article(**data)


class StubReader:
    """Feed reader returning a fixed list or raising an error."""

    def __init__(self, items: list[SourceItem] | None = None, error: Exception | None = None):
        self.items = items or []
        self.error = error
        self.calls = 0

    def fetch(self) -> list[SourceItem]:
        self.calls += 1
        if self.error is not None:
            raise self.error
        return list(self.items)


@pytest.fixture
def store(tmp_path):
    db = SQLiteArticleStore(tmp_path / "articles.db")
    yield db
    db.close()


@pytest.fixture
def app_config() -> AppConfig:
    cfg = AppConfig()
    cfg.logging.file = False
    cfg.logging.console = False
    return cfg


@pytest.fixture
def build_engine():
    """Factory for a RewriteEngine backed by fake clients."""

    def _build(
        builders: dict[str, type[CompletionClient]],
        environ: dict[str, str] | None = None,
        selection: ActiveSelection | None = None,
        cfg: LLMConfig | None = None,
    ) -> RewriteEngine:
        llm_cfg = cfg or LLMConfig()
        registry = ProviderRegistry(
            llm_cfg,
            state=SelectionState(selection or ActiveSelection("claude", None)),
            environ=environ if environ is not None else {"ANTHROPIC_API_KEY": "test-key"},
            builders=builders,
        )
        return RewriteEngine(registry, llm_cfg)

    return _build
