"""
Feed polling and article page fetching.

This package handles HTTP fetching, RSS/Atom parsing and
full-content extraction for the ingestion pipeline.
"""

from .extractor import ContentFetchError, extract_content, fetch_article_content
from .fetcher import FetchResult, fetch_url
from .rss import fetch_feed, parse_entries

__all__ = [
    "ContentFetchError",
    "FetchResult",
    "extract_content",
    "fetch_article_content",
    "fetch_feed",
    "fetch_url",
    "parse_entries",
]
