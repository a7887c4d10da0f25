"""
Local extractive summarization.

Sentences are scored by the corpus frequency of their non-stopword terms
plus a bonus for appearing early, and the best ones are returned in their
original order so the summary reads like the article rather than a ranked
list. No model or network access is involved.
"""

from __future__ import annotations

from collections import Counter
import re

from ..core.classify import describe_impact, detect_category, detect_region, who_should_care
from ..core.types import ArticleDraft, SummaryRequest
from .base import Summarizer

SENTENCE_SPLIT_RE = re.compile(r"(?<=[.!?])\s+")
WORD_RE = re.compile(r"[a-z']{2,}")
_SPACE_RE = re.compile(r"\s+")

STOPWORDS = frozenset(
    {
        "the", "a", "an", "and", "or", "to", "of", "in", "on", "for", "with",
        "that", "this", "is", "are", "was", "were", "be", "as", "by", "at",
        "from", "it", "its", "will", "would", "can", "could", "should",
    }
)

MIN_SENTENCE_CHARS = 40
MAX_SENTENCE_CHARS = 320
POSITION_BONUS = 12
MAX_TITLE_CHARS = 80
MAX_SUMMARY_CHARS = 1200
FALLBACK_SUMMARY_CHARS = 200


def split_sentences(
    text: str,
    min_chars: int = MIN_SENTENCE_CHARS,
    max_chars: int = MAX_SENTENCE_CHARS,
) -> list[str]:
    """Split on sentence punctuation and drop fragments outside the length band."""
    clean = _SPACE_RE.sub(" ", text or "").strip()
    if not clean:
        return []
    sentences = (s.strip() for s in SENTENCE_SPLIT_RE.split(clean))
    return [s for s in sentences if min_chars <= len(s) <= max_chars]


def extractive_summary(
    text: str,
    max_sentences: int = 4,
    min_chars: int = MIN_SENTENCE_CHARS,
    max_chars: int = MAX_SENTENCE_CHARS,
) -> list[str]:
    """Select up to ``max_sentences`` representative sentences in document order.

    Args:
        text: Cleaned article text
        max_sentences: Upper bound on returned sentences
        min_chars: Shortest sentence kept
        max_chars: Longest sentence kept

    Returns:
        Selected sentences, ordered as they appear in ``text``
    """
    if max_sentences <= 0:
        return []
    sentences = split_sentences(text, min_chars, max_chars)
    if len(sentences) <= max_sentences:
        return sentences

    freq: Counter[str] = Counter()
    tokenized = []
    for sentence in sentences:
        words = [w for w in WORD_RE.findall(sentence.lower()) if w not in STOPWORDS]
        tokenized.append(words)
        freq.update(words)

    scored = []
    for index, words in enumerate(tokenized):
        score = sum(freq[w] for w in words) + max(0, POSITION_BONUS - index)
        scored.append((score, index))

    # sorted() is stable, so equal scores keep the earlier sentence first
    top = sorted(scored, key=lambda item: item[0], reverse=True)[:max_sentences]
    return [sentences[index] for index in sorted(index for _, index in top)]


def shorten_title(title: str, max_chars: int = MAX_TITLE_CHARS) -> str:
    title = (title or "").strip() or "Untitled"
    if len(title) <= max_chars:
        return title
    return title[: max_chars - 3].rstrip() + "..."


class ExtractiveSummarizer(Summarizer):
    """Builds a flat ArticleDraft from article text without external calls."""

    name = "extractive"
    external = False

    def __init__(self, max_sentences: int = 4):
        self.max_sentences = max_sentences

    def summarize(self, request: SummaryRequest) -> ArticleDraft:
        content = request.content or ""
        region = detect_region(request.title, content)
        category = detect_category(request.title, content)

        sentences = extractive_summary(content, self.max_sentences)
        summary = " ".join(sentences) if sentences else _SPACE_RE.sub(" ", content).strip()[:FALLBACK_SUMMARY_CHARS]

        return ArticleDraft(
            title=shorten_title(request.title),
            who_should_care=who_should_care(region, category, content),
            summary=summary[:MAX_SUMMARY_CHARS],
            impact=describe_impact(category, content),
            category=category,
            region=region,
        )
