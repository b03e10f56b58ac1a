"""Syndication feed source with a 48-hour freshness window."""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from html import unescape
from re import sub as re_sub

import feedparser
import httpx

from newsdesk.agent_config import RSSFeed
from newsdesk.models import SourceItem

logger = logging.getLogger(__name__)

FRESHNESS_WINDOW = timedelta(hours=48)
MAX_ITEMS_PER_FEED = 10
MAX_SNIPPET_CHARS = 500
_REQUEST_TIMEOUT = 10.0
_USER_AGENT = "NewsdeskBot/1.0 (+https://github.com/newsdesk/newsdesk)"


def _strip_html(text: str) -> str:
    """Remove HTML tags and unescape entities."""
    clean = re_sub(r"<[^>]+>", "", text)
    return re_sub(r"\s+", " ", unescape(clean)).strip()


def _parse_published(entry: dict) -> datetime | None:
    """Parse the published or updated date from a feedparser entry."""
    for key in ("published_parsed", "updated_parsed"):
        parsed = entry.get(key)
        if parsed:
            try:
                return datetime(*parsed[:6], tzinfo=timezone.utc)
            except (TypeError, ValueError):
                continue
    return None


def is_fresh(published: datetime | None, now: datetime | None = None) -> bool:
    """Items without a usable date are kept; dated items must be within 48h."""
    if published is None:
        return True
    now = now or datetime.now(timezone.utc)
    return now - published <= FRESHNESS_WINDOW


def fetch_feed_document(
    url: str,
    client: httpx.Client | None = None,
    timeout: float = _REQUEST_TIMEOUT,
    user_agent: str = _USER_AGENT,
) -> str | None:
    """GET the feed body. Returns None on any network or HTTP failure."""
    headers = {"User-Agent": user_agent, "Accept": "application/rss+xml, application/xml"}
    try:
        if client is not None:
            response = client.get(url, headers=headers, timeout=timeout)
            response.raise_for_status()
            return response.text
        with httpx.Client(follow_redirects=True, timeout=timeout) as own_client:
            response = own_client.get(url, headers=headers)
            response.raise_for_status()
            return response.text
    except httpx.HTTPError:
        logger.warning("Failed to fetch RSS feed: %s", url, exc_info=True)
        return None


def read_feed(
    feed: RSSFeed,
    client: httpx.Client | None = None,
    now: datetime | None = None,
    timeout: float = _REQUEST_TIMEOUT,
    user_agent: str = _USER_AGENT,
) -> list[SourceItem]:
    """Fetch one feed and return up to 10 fresh, normalized items. Never raises."""
    content = fetch_feed_document(feed.url, client=client, timeout=timeout, user_agent=user_agent)
    if content is None:
        return []

    try:
        parsed = feedparser.parse(content)
    except Exception:
        logger.warning("Failed to parse RSS feed: %s", feed.url, exc_info=True)
        return []

    if parsed.bozo and not parsed.entries:
        logger.warning("RSS parse error for %s: %s", feed.url, parsed.bozo_exception)
        return []

    now = now or datetime.now(timezone.utc)
    items: list[SourceItem] = []
    stale = 0
    for entry in parsed.entries:
        pub_date = _parse_published(entry)
        if not is_fresh(pub_date, now):
            stale += 1
            continue

        title = _strip_html(entry.get("title", ""))
        link = entry.get("link", "")
        snippet = _strip_html(entry.get("summary", entry.get("description", "")))

        if not title or not link:
            continue

        items.append(
            SourceItem(
                url=link,
                title=title,
                snippet=snippet[:MAX_SNIPPET_CHARS],
                source_name=feed.name or feed.url,
                publish_date=pub_date.isoformat() if pub_date else None,
            )
        )
        if len(items) >= MAX_ITEMS_PER_FEED:
            break

    logger.info("RSS %s: %d items (%d stale dropped)", feed.url, len(items), stale)
    return items
