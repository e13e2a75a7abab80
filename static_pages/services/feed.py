from __future__ import annotations

import logging
from typing import Any

import feedparser
import httpx

from static_pages.config import Settings
from static_pages.schemas.content import FeedArticle
from static_pages.services.cache import TimedCache


logger = logging.getLogger(__name__)

FEED_CACHE_KEY = "feed-posts"


class FeedError(RuntimeError):
    """Raised when the blog feed cannot be parsed into an article."""
    pass


class FeedService:
    """Latest blog post from the company RSS feed, cached per process."""

    def __init__(self, settings: Settings, cache: TimedCache):
        self.settings = settings
        self.cache = cache

    def get_latest_article(self) -> FeedArticle:
        """Return the newest feed item, refreshing it at most once per TTL.

        Raises RefreshError if the feed has never been fetched successfully.
        """
        return self.cache.get(
            FEED_CACHE_KEY,
            self.settings.content_cache_ttl_seconds,
            self._fetch_latest_article,
        )

    # Internal HTTP helpers -------------------------------------------

    def _client(self) -> httpx.Client:
        headers = {"Accept": "application/rss+xml, application/xml;q=0.9, */*;q=0.8"}
        return httpx.Client(headers=headers, timeout=self.settings.http_timeout_seconds, follow_redirects=True)

    def _fetch_latest_article(self) -> FeedArticle:
        with self._client() as client:
            response = client.get(self.settings.feed_url)
            response.raise_for_status()
            body = response.content

        article = parse_latest_article(body)
        logger.info("Fetched feed article '%s' from %s", article.title, self.settings.feed_url)
        return article


def parse_latest_article(body: bytes | str) -> FeedArticle:
    """Parse an RSS/Atom document and return its first item."""
    parsed = feedparser.parse(body)
    if not parsed.entries:
        if parsed.bozo:
            raise FeedError(f"Feed contains no items, parser reported: {parsed.get('bozo_exception')}")
        raise FeedError("Feed contains no items")

    entry = parsed.entries[0]
    return FeedArticle(
        title=entry.get("title") or "",
        link=entry.get("link"),
        author=entry.get("author"),
        published=entry.get("published"),
        content_html=_entry_content(entry),
    )


def _entry_content(entry: Any) -> str:
    """Prefer the full content:encoded body, fall back to the summary."""
    for content in entry.get("content") or []:
        value = content.get("value")
        if value:
            return value
    return entry.get("summary", "") or ""
