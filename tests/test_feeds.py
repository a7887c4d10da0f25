"""Tests for the feed registry."""

from __future__ import annotations

import pytest

from policy_feed.feeds import DEFAULT_FEEDS, load_feed_specs


def test_default_feeds_cover_pennsylvania_outlets():
    names = {feed.name for feed in DEFAULT_FEEDS}
    assert {"Philadelphia Inquirer", "Spotlight PA", "WESA Pittsburgh"} <= names
    assert len({feed.url for feed in DEFAULT_FEEDS}) == len(DEFAULT_FEEDS)


def test_load_feed_specs_defaults_without_file():
    assert load_feed_specs(None) == list(DEFAULT_FEEDS)


def test_load_feed_specs_reads_yaml(tmp_path):
    path = tmp_path / "feeds.yaml"
    path.write_text(
        "feeds:\n"
        "  - name: Erie Times-News\n"
        "    url: https://www.goerie.com/rss\n"
        "    region: Erie\n"
        "  - name: Capital-Star\n"
        "    url: https://penncapital-star.com/feed/\n",
        encoding="utf-8",
    )
    feeds = load_feed_specs(path)
    assert [f.name for f in feeds] == ["Erie Times-News", "Capital-Star"]
    assert feeds[0].region == "Erie"
    assert feeds[1].region == "Statewide"


def test_load_feed_specs_rejects_entry_without_url(tmp_path):
    path = tmp_path / "feeds.yaml"
    path.write_text("feeds:\n  - name: Nowhere\n", encoding="utf-8")
    with pytest.raises(ValueError, match="name.*url"):
        load_feed_specs(path)


def test_load_feed_specs_requires_feeds_list(tmp_path):
    path = tmp_path / "feeds.yaml"
    path.write_text("sources: []\n", encoding="utf-8")
    with pytest.raises(ValueError, match="'feeds' list"):
        load_feed_specs(path)
