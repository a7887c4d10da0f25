"""
Keyword-based relevance scoring used as the admission filter.

The score is a weighted sum of two saturating keyword counts:
location relevance (places, institutions and agencies in Pennsylvania)
and policy relevance (civic and political vocabulary). Each distinct
keyword counts once no matter how often it appears, so adding text can
only keep or raise the score.
"""

from __future__ import annotations

import re

# Patterns are anchored at a word start. Entries without a trailing \b
# match as stems ("legislat" matches "legislature" and "legislative").
LOCATION_KEYWORDS: tuple[str, ...] = (
    "pennsylvania",
    r"pa\b",
    "philadelphia",
    "pittsburgh",
    "harrisburg",
    "allentown",
    r"erie\b",
    "scranton",
    r"reading\b",
    "bethlehem",
    "lancaster",
    "state college",
    "septa",
    "penndot",
    r"peco\b",
    "upmc",
    "penn state",
    r"temple\b",
    "drexel",
    "villanova",
    "allegheny",
    "lehigh",
    "wilkes-barre",
    "governor",
    "legislature",
    "commonwealth",
)

POLICY_KEYWORDS: tuple[str, ...] = (
    "election",
    r"vot(?:e|es|ed|er|ers|ing)\b",
    "ballot",
    "campaign",
    "democrat",
    "republican",
    "legislation",
    r"bills?\b",
    r"laws?\b",
    "polic",
    "senator",
    "representative",
    "congress",
    "mayor",
    "council",
    "budget",
    r"tax(?:es|ed|ing|payers?)?\b",
    "school",
    "education",
    "healthcare",
    "infrastructure",
    "environment",
    "crime",
    "housing",
    "transit",
    r"jobs?\b",
    "econom",
    "ordinance",
    "funding",
)

LOCATION_SATURATION = 3
POLICY_SATURATION = 5
LOCATION_WEIGHT = 0.6
POLICY_WEIGHT = 0.4
DEFAULT_THRESHOLD = 0.3

_LOCATION_RES = tuple(re.compile(r"\b" + pattern) for pattern in LOCATION_KEYWORDS)
_POLICY_RES = tuple(re.compile(r"\b" + pattern) for pattern in POLICY_KEYWORDS)


def count_matches(text: str, patterns: tuple[re.Pattern[str], ...]) -> int:
    """Count how many distinct keyword patterns occur in already lower-cased text."""
    return sum(1 for pattern in patterns if pattern.search(text))


def calculate_relevance_score(title: str, content: str) -> float:
    """Score an article for Pennsylvania policy relevance.

    Args:
        title: Article headline
        content: Article text (snippet or full content)

    Returns:
        A score in [0, 1] rounded to 2 decimal places

    Examples:
        >>> calculate_relevance_score("Weekend weather", "Sunny skies ahead.")
        0.0
    """
    text = f"{title or ''} {content or ''}".lower()

    location = min(count_matches(text, _LOCATION_RES) / LOCATION_SATURATION, 1.0)
    policy = min(count_matches(text, _POLICY_RES) / POLICY_SATURATION, 1.0)

    score = location * LOCATION_WEIGHT + policy * POLICY_WEIGHT
    return round(score, 2)


def is_relevant(score: float, threshold: float = DEFAULT_THRESHOLD) -> bool:
    return score >= threshold
