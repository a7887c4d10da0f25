"""
Core data types for the ingestion pipeline.

These are plain dataclasses passed between pipeline stages; persistence
lives in ``policy_feed.store``.

- FeedSourceSpec: A configured RSS source
- FetchedArticle: A normalized feed item returned by the feed fetcher
- FeedFetchResult: Items from one feed poll plus an optional error
- ExtractedContent: Main readable text pulled from an article page
- SummaryRequest: Input handed to a summarizer
- ArticleDraft: Flat audience-facing article (extractive strategy)
- PolicySummary: Structured policy update (LLM strategy)
- RunResult: Per-run counters
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import datetime
from typing import Any

from .status import PolicyDomain, PolicyStatus


@dataclass(frozen=True)
class FeedSourceSpec:
    """A named RSS/Atom endpoint plus region tag."""

    name: str
    url: str
    region: str = "Statewide"


@dataclass
class FetchedArticle:
    """A feed item normalized by the feed fetcher.

    Attributes:
        source_url: Item link; identity key for deduplication
        source_name: Display name of the feed
        source_title: Item title, "Untitled" when missing
        source_content: Plain-text snippet with markup removed
        published_at: Item date in UTC, or None when absent/unparseable
    """

    source_url: str
    source_name: str
    source_title: str = "Untitled"
    source_content: str = ""
    published_at: datetime | None = None


@dataclass
class FeedFetchResult:
    """Result of polling one feed.

    On failure articles is empty and error holds a "Type: message" string.
    """

    url: str
    articles: list[FetchedArticle] = field(default_factory=list)
    error: str | None = None


@dataclass
class ExtractedContent:
    url: str
    title: str
    text: str
    method: str


@dataclass
class SummaryRequest:
    title: str
    content: str
    source_name: str
    source_url: str
    published_at: datetime | None = None


@dataclass
class ArticleDraft:
    """Flat, audience-facing article produced by the extractive summarizer."""

    title: str
    who_should_care: str
    summary: str
    impact: str
    category: str
    region: str


@dataclass
class PolicySummary:
    """Structured policy update produced by the LLM summarizer.

    Attributes:
        title: Policy name, not the article headline
        short_title: 5-7 word card title; the primary key for matching
        description: Neutral 1-2 sentence description of the policy
        domain: Policy area
        status: Lifecycle stage reported by this article
        change_summary: One line describing what just happened
        ai_summary: 2-3 sentence plain-language explanation
        next_milestone: What is expected next, when known
    """

    title: str
    short_title: str
    description: str
    domain: PolicyDomain
    status: PolicyStatus
    change_summary: str
    ai_summary: str
    next_milestone: str | None = None


@dataclass
class RunResult:
    """Counters collected over one ingestion run."""

    feeds_initialized: int = 0
    articles_fetched: int = 0
    articles_new: int = 0
    articles_approved: int = 0
    articles_rejected: int = 0
    articles_summarized: int = 0
    articles_errored: int = 0
    policies_created: int = 0
    events_added: int = 0
    errors: list[str] = field(default_factory=list)
    started_at: datetime | None = None
    duration_seconds: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["started_at"] = self.started_at.isoformat() if self.started_at else None
        return data
