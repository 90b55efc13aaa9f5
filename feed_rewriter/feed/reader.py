"""
Source feed reading.

Fetches the configured RSS/Atom feed over HTTP, parses it with feedparser and
normalizes each entry into a SourceItem. Any failure to reach or parse the
feed raises FetchError; there is no retry here, the next scheduled run is the
retry.
"""

from __future__ import annotations

import calendar
from datetime import datetime, timezone
import logging
import re
from typing import Any

import feedparser
import httpx

from ..config import FeedConfig
from ..core.types import SourceItem
from ..errors import FetchError

logger = logging.getLogger(__name__)

_IMG_SRC_RE = re.compile(r"""<img[^>]+src\s*=\s*["']([^"']+)["']""", re.IGNORECASE)


class SourceFeedReader:
    """Read one fixed feed and return its items as SourceItem objects."""

    def __init__(self, cfg: FeedConfig, transport: httpx.BaseTransport | None = None) -> None:
        self.cfg = cfg
        self._transport = transport

    def fetch(self) -> list[SourceItem]:
        """Fetch and parse the feed.

        Returns:
            Items in feed order. Entries without a link or title are skipped.

        Raises:
            FetchError: If the feed is unreachable, returns a non-success
                status, or cannot be parsed as a feed
        """
        content = self._download()
        parsed = feedparser.parse(content)
        if parsed.get("bozo") and not parsed.entries:
            reason = parsed.get("bozo_exception")
            raise FetchError(f"Unparsable feed {self.cfg.url}: {reason}")
        if not parsed.entries and not parsed.get("feed"):
            raise FetchError(f"Unparsable feed {self.cfg.url}: no feed or entries found")

        items: list[SourceItem] = []
        for entry in parsed.entries:
            item = parse_entry(entry)
            if item is None:
                logger.warning("Skipping feed entry without link or title: %r", entry.get("id"))
                continue
            items.append(item)
        return items

    def _download(self) -> bytes:
        headers = {"User-Agent": self.cfg.user_agent}
        try:
            with httpx.Client(
                timeout=self.cfg.timeout_seconds,
                headers=headers,
                follow_redirects=True,
                trust_env=self.cfg.trust_env,
                transport=self._transport,
            ) as client:
                resp = client.get(self.cfg.url)
                resp.raise_for_status()
                return resp.content
        except httpx.HTTPError as exc:
            raise FetchError(f"Cannot fetch feed {self.cfg.url}: {type(exc).__name__}: {exc}") from exc


def parse_entry(entry: Any) -> SourceItem | None:
    """Normalize one feedparser entry, or return None if it is unusable."""
    url = (entry.get("link") or "").strip()
    title = (entry.get("title") or "").strip()
    if not url or not title:
        return None

    encoded = _encoded_content(entry)
    raw_content = encoded or entry.get("summary") or ""

    return SourceItem(
        source_url=url,
        source_title=title,
        source_published=_published_at(entry),
        raw_content=raw_content,
        image_url=extract_image(entry, encoded),
    )


def extract_image(entry: Any, encoded: str | None = None) -> str | None:
    """Resolve an illustration URL for an entry.

    Priority: media:content URL, then an enclosure URL, then the first
    <img src="..."> found in the encoded content.
    """
    for media in entry.get("media_content") or []:
        url = media.get("url")
        if url:
            return url

    for enclosure in entry.get("enclosures") or []:
        url = enclosure.get("href") or enclosure.get("url")
        if url:
            return url

    if encoded is None:
        encoded = _encoded_content(entry)
    if encoded:
        match = _IMG_SRC_RE.search(encoded)
        if match:
            return match.group(1)
    return None


def _encoded_content(entry: Any) -> str:
    # feedparser exposes content:encoded as entry.content[n].value
    for block in entry.get("content") or []:
        value = block.get("value")
        if value:
            return value
    return ""


def _published_at(entry: Any) -> datetime | None:
    parsed = entry.get("published_parsed") or entry.get("updated_parsed")
    if not parsed:
        return None
    return datetime.fromtimestamp(calendar.timegm(parsed), tz=timezone.utc)
