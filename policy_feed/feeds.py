"""Feed registry: the configured set of Pennsylvania news sources."""

from __future__ import annotations

import logging
from pathlib import Path

import yaml

from .core.types import FeedSourceSpec

logger = logging.getLogger(__name__)

DEFAULT_FEEDS: tuple[FeedSourceSpec, ...] = (
    FeedSourceSpec(
        name="Philadelphia Inquirer",
        url="https://www.inquirer.com/arcio/rss/category/news/",
        region="Philadelphia",
    ),
    FeedSourceSpec(
        name="Pittsburgh Post-Gazette",
        url="https://www.post-gazette.com/rss/local",
        region="Pittsburgh",
    ),
    FeedSourceSpec(
        name="PennLive",
        url="https://www.pennlive.com/arc/outboundfeeds/rss/?outputType=xml",
        region="Statewide",
    ),
    FeedSourceSpec(name="WHYY", url="https://whyy.org/feed/", region="Philadelphia"),
    FeedSourceSpec(name="WESA Pittsburgh", url="https://www.wesa.fm/rss.xml", region="Pittsburgh"),
    FeedSourceSpec(name="Spotlight PA", url="https://www.spotlightpa.org/news/feed/", region="Statewide"),
)


def load_feed_specs(path: str | Path | None = None) -> list[FeedSourceSpec]:
    """Load feed definitions from a YAML file, or return the defaults.

    The file holds a ``feeds:`` list of mappings with ``name``, ``url`` and an
    optional ``region``.

    Raises:
        ValueError: If the file is malformed or an entry lacks name/url
    """
    if path is None:
        return list(DEFAULT_FEEDS)

    with Path(path).open("r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}

    entries = data.get("feeds") if isinstance(data, dict) else None
    if not isinstance(entries, list):
        raise ValueError(f"Feed file {path} must contain a 'feeds' list")

    specs: list[FeedSourceSpec] = []
    for index, entry in enumerate(entries):
        if not isinstance(entry, dict):
            raise ValueError(f"Feed entry #{index} in {path} is not a mapping")
        name = str(entry.get("name") or "").strip()
        url = str(entry.get("url") or "").strip()
        if not name or not url:
            raise ValueError(f"Feed entry #{index} in {path} needs both 'name' and 'url'")
        region = str(entry.get("region") or "Statewide").strip()
        specs.append(FeedSourceSpec(name=name, url=url, region=region))
    return specs


def initialize_feed_sources(store, feeds: list[FeedSourceSpec] | tuple[FeedSourceSpec, ...] | None = None) -> int:
    """Upsert every configured feed by URL. Returns the number of feeds seen.

    Safe to call on every run: existing rows only get name/region refreshed.
    """
    feeds = DEFAULT_FEEDS if feeds is None else feeds
    created = 0
    for spec in feeds:
        _, is_new = store.upsert_feed_source(spec)
        if is_new:
            created += 1
    logger.info("Initialized %d feed sources (%d new)", len(feeds), created)
    return len(feeds)
