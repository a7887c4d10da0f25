"""Core pipeline types, status vocabularies and pure scoring/matching logic."""

from .matching import normalize_title
from .scoring import calculate_relevance_score, is_relevant
from .status import ArticleStatus, InvalidTransitionError, PolicyDomain, PolicyStatus
from .types import (
    ArticleDraft,
    ExtractedContent,
    FeedFetchResult,
    FeedSourceSpec,
    FetchedArticle,
    PolicySummary,
    RunResult,
    SummaryRequest,
)

__all__ = [
    "ArticleDraft",
    "ArticleStatus",
    "ExtractedContent",
    "FeedFetchResult",
    "FeedSourceSpec",
    "FetchedArticle",
    "InvalidTransitionError",
    "PolicyDomain",
    "PolicyStatus",
    "PolicySummary",
    "RunResult",
    "SummaryRequest",
    "calculate_relevance_score",
    "is_relevant",
    "normalize_title",
]
