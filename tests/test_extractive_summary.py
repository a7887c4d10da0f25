"""Tests for the local extractive summarizer."""

from __future__ import annotations

from policy_feed.core.types import ArticleDraft, SummaryRequest
from policy_feed.summarize.extractive import (
    ExtractiveSummarizer,
    extractive_summary,
    shorten_title,
    split_sentences,
)

ARTICLE = (
    "The Philadelphia city council approved a new transit budget on Thursday afternoon. "
    "Council members debated the transit budget for nearly four hours before the vote. "
    "Short one. "
    "Residents who rely on SEPTA buses said the transit budget was long overdue for them. "
    "A local bakery also opened a second location in the neighborhood last week. "
    "The mayor said the transit budget will be signed into law by the end of the month. "
    "Weather was mild throughout the week with no rain expected in the forecast ahead."
)


def test_split_sentences_drops_fragments_outside_length_band():
    sentences = split_sentences(ARTICLE)
    assert "Short one." not in sentences
    assert all(40 <= len(s) <= 320 for s in sentences)


def test_summary_never_exceeds_requested_sentences():
    for n in range(0, 6):
        assert len(extractive_summary(ARTICLE, max_sentences=n)) <= n


def test_summary_preserves_document_order():
    sentences = split_sentences(ARTICLE)
    picked = extractive_summary(ARTICLE, max_sentences=3)
    positions = [sentences.index(s) for s in picked]
    assert positions == sorted(positions)


def test_summary_returns_all_sentences_when_text_is_short():
    text = "The council approved the measure after a long public hearing on Monday."
    assert extractive_summary(text, max_sentences=4) == [text]


def test_summary_of_empty_text_is_empty():
    assert extractive_summary("", max_sentences=4) == []


def test_summary_prefers_frequent_terms():
    picked = extractive_summary(ARTICLE, max_sentences=3)
    assert not any("bakery" in s for s in picked)


def test_shorten_title_truncates_with_ellipsis():
    long_title = "A" * 120
    short = shorten_title(long_title)
    assert len(short) == 80
    assert short.endswith("...")
    assert shorten_title("  ") == "Untitled"


def test_extractive_summarizer_builds_article_draft():
    summarizer = ExtractiveSummarizer(max_sentences=2)
    draft = summarizer.summarize(
        SummaryRequest(
            title="Philadelphia council passes transit budget",
            content=ARTICLE,
            source_name="WHYY",
            source_url="https://whyy.org/a",
        )
    )
    assert isinstance(draft, ArticleDraft)
    assert draft.region == "Philadelphia"
    assert draft.summary
    assert draft.who_should_care
    assert draft.impact
    assert summarizer.external is False


def test_extractive_summarizer_falls_back_to_content_prefix():
    draft = ExtractiveSummarizer().summarize(
        SummaryRequest(title="Brief", content="Tiny update.", source_name="s", source_url="u")
    )
    assert draft.summary == "Tiny update."
