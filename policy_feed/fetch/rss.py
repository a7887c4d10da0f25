"""
RSS/Atom feed polling.

Feeds are downloaded with httpx (so the request timeout is enforced) and
parsed with feedparser. Each item becomes a FetchedArticle with a
plain-text snippet; markup in the item body is stripped with BeautifulSoup.
"""

from __future__ import annotations

import calendar
from datetime import datetime, timezone
import logging
import re
from typing import Any

from bs4 import BeautifulSoup
import feedparser
import httpx

from ..core.types import FeedFetchResult, FetchedArticle
from .fetcher import fetch_url

logger = logging.getLogger(__name__)

DEFAULT_TITLE = "Untitled"
_SPACE_RE = re.compile(r"\s+")


def fetch_feed(
    url: str,
    name: str,
    timeout: float = 10.0,
    user_agent: str = "RoundtablePA/1.0 (News Aggregator)",
    max_items: int = 10,
    trust_env: bool = True,
    client: httpx.Client | None = None,
) -> FeedFetchResult:
    """Poll one feed and normalize its first ``max_items`` items.

    Never raises for network or parse failures; those come back as an
    empty result with ``error`` set so the caller can log them and move on
    to the next source.

    Args:
        url: Feed URL
        name: Display name stamped on every item as source_name
        timeout: Request timeout in seconds
        user_agent: User-Agent header string
        max_items: Maximum number of items taken, in feed order
        trust_env: Whether to respect system proxy settings
        client: Optional pre-built httpx client

    Returns:
        FeedFetchResult with normalized articles or an error message
    """
    result = fetch_url(url, timeout=timeout, user_agent=user_agent, trust_env=trust_env, client=client)
    if result.error:
        return FeedFetchResult(url=url, error=result.error)
    if not result.ok:
        return FeedFetchResult(url=url, error=f"HTTPStatusError: {result.status_code} for {url}")

    parsed = feedparser.parse(result.body or b"")
    entries = list(parsed.get("entries") or [])
    if parsed.get("bozo") and not entries:
        exc = parsed.get("bozo_exception")
        detail = f"{type(exc).__name__}: {exc}" if exc else "unparseable feed"
        return FeedFetchResult(url=url, error=f"FeedParseError: {detail}")

    return FeedFetchResult(url=url, articles=parse_entries(entries, name, max_items))


def parse_entries(entries: list[Any], name: str, max_items: int = 10) -> list[FetchedArticle]:
    """Normalize feedparser entries into FetchedArticle records.

    Items without a link are skipped silently; the item limit applies to
    the raw feed order before skipping.
    """
    articles: list[FetchedArticle] = []
    for entry in entries[:max_items]:
        link = (entry.get("link") or "").strip()
        if not link:
            continue
        title = clean_text(entry.get("title") or "") or DEFAULT_TITLE
        articles.append(
            FetchedArticle(
                source_url=link,
                source_name=name,
                source_title=title,
                source_content=clean_text(_entry_content(entry)),
                published_at=_entry_published(entry),
            )
        )
    return articles


def clean_text(value: str) -> str:
    """Strip markup (when present) and collapse whitespace."""
    if not value:
        return ""
    if "<" in value:
        value = BeautifulSoup(value, "html.parser").get_text(separator=" ")
    return _SPACE_RE.sub(" ", value).strip()


def _entry_content(entry: Any) -> str:
    """Return the best available body: full content, then summary, then description."""
    contents = entry.get("content") or []
    for item in contents:
        value = item.get("value") if isinstance(item, dict) else getattr(item, "value", None)
        if value and value.strip():
            return value
    for key in ("summary", "description"):
        value = entry.get(key)
        if value and value.strip():
            return value
    return ""


def _entry_published(entry: Any) -> datetime | None:
    for key in ("published_parsed", "updated_parsed"):
        parsed = entry.get(key)
        if parsed:
            try:
                return datetime.fromtimestamp(calendar.timegm(parsed), tz=timezone.utc)
            except (OverflowError, ValueError, TypeError):
                logger.debug("Unparseable %s on %s", key, entry.get("link"))
    return None
