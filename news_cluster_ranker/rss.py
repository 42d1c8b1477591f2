from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Optional

import feedparser
from bs4 import BeautifulSoup

from news_cluster_ranker.types import Article
from news_cluster_ranker.weights import parse_published_at

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RssEntry:
    source: str
    title: str
    url: str
    published_at: Optional[datetime]
    summary: Optional[str]
    content: Optional[str] = None


def html_to_text(html_fragment: str | None) -> str:
    """Convert an HTML snippet (e.g., RSS summary) to plain text."""

    if not html_fragment:
        return ""
    soup = BeautifulSoup(html_fragment, "lxml")
    return soup.get_text(" ", strip=True)


def _entry_content(e: Any) -> Optional[str]:
    parts = getattr(e, "content", None) or []
    texts = [html_to_text(p.get("value")) for p in parts if p.get("value")]
    text = " ".join(t for t in texts if t)
    return text or None


def fetch_rss_entries(source_id: str, rss_url: str, max_items: int) -> list[RssEntry]:
    feed = feedparser.parse(rss_url)
    if getattr(feed, "bozo", False) and not feed.entries:
        logger.warning("Feed %s (%s) could not be parsed: %s", source_id, rss_url, feed.get("bozo_exception"))
        return []

    entries: list[RssEntry] = []
    for e in (feed.entries or [])[:max_items]:
        title = html_to_text(getattr(e, "title", None))
        url = getattr(e, "link", None) or ""
        summary = html_to_text(getattr(e, "summary", None)) or None

        published_at = None
        if getattr(e, "published", None):
            published_at = parse_published_at(getattr(e, "published"))
        elif getattr(e, "updated", None):
            published_at = parse_published_at(getattr(e, "updated"))

        if title and url:
            entries.append(
                RssEntry(
                    source=source_id,
                    title=title,
                    url=url,
                    published_at=published_at,
                    summary=summary,
                    content=_entry_content(e),
                )
            )

    logger.debug("Feed %s: %d entries", source_id, len(entries))
    return entries


def rss_entry_to_article(e: RssEntry) -> Article:
    return Article(
        source=e.source,
        title=e.title,
        url=e.url,
        published_at=e.published_at,
        summary=e.summary,
        content=e.content,
    )
