"""
Policy title normalization and matching.

Incoming policy summaries are folded into an existing Policy when their
normalized short title or title equals one already stored. An optional
fuzzy pass uses rapidfuzz, the same way feed items are deduplicated by
near-identical titles.
"""

from __future__ import annotations

import re
import unicodedata
from typing import Iterable, TypeVar

from rapidfuzz import fuzz

T = TypeVar("T")

_PUNCT_RE = re.compile(r"[^\w\s]", re.UNICODE)
_SPACE_RE = re.compile(r"\s+")


def normalize_title(title: str | None) -> str:
    """Normalize a title for matching.

    Examples:
        >>> normalize_title("  SEPTA Fare-Increase!! ")
        'septa fare increase'
    """
    if not title:
        return ""
    text = unicodedata.normalize("NFKC", title).casefold()
    text = _PUNCT_RE.sub(" ", text)
    text = text.replace("_", " ")
    return _SPACE_RE.sub(" ", text).strip()


def candidate_keys(short_title: str | None, title: str | None) -> list[str]:
    """Return the distinct non-empty normalized keys for a summary, short title first."""
    keys: list[str] = []
    for value in (short_title, title):
        key = normalize_title(value)
        if key and key not in keys:
            keys.append(key)
    return keys


def best_fuzzy_match(
    keys: list[str],
    candidates: Iterable[tuple[T, list[str]]],
    threshold: int,
) -> T | None:
    """Pick the candidate whose normalized titles are most similar to any key.

    Args:
        keys: Normalized keys of the incoming summary
        candidates: (item, normalized titles) pairs
        threshold: Minimum token_sort_ratio (0-100) to accept

    Returns:
        The best-scoring item at or above threshold, or None
    """
    best_item: T | None = None
    best_score = -1.0
    for item, titles in candidates:
        for key in keys:
            for existing in titles:
                if not existing:
                    continue
                score = fuzz.token_sort_ratio(key, existing)
                if score >= threshold and score > best_score:
                    best_item = item
                    best_score = score
    return best_item
