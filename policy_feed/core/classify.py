"""Rule-based region, category, audience and impact detection."""

from __future__ import annotations

import re

DEFAULT_REGION = "Statewide"
DEFAULT_CATEGORY = "Politics"

# Checked in order; the first region with any hit wins
REGION_KEYWORDS: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("Philadelphia", ("philadelphia", "septa")),
    ("Pittsburgh", ("pittsburgh", "allegheny")),
    ("Harrisburg", ("harrisburg", "capitol")),
    ("Lehigh Valley", ("allentown", "lehigh", "bethlehem")),
    ("Erie", ("erie",)),
    ("Northeast PA", ("scranton", "wilkes-barre")),
)

CATEGORY_KEYWORDS: dict[str, tuple[str, ...]] = {
    "Elections": ("election", "vote", "ballot", "campaign", "candidate", "poll"),
    "Education": ("school", "education", "student", "teacher", "university", "college"),
    "Healthcare": ("health", "hospital", "medical", "doctor", "patient", "insurance"),
    "Transportation": ("transit", "septa", "road", "highway", "traffic", "penndot"),
    "Environment": ("environment", "climate", "pollution", "energy", "water", "air"),
    "Economy": ("job", "employment", "business", "economy", "tax", "budget"),
    "Crime": ("crime", "police", "safety", "arrest", "violence", "shooting"),
    "Housing": ("housing", "rent", "apartment", "home", "affordable", "property"),
}

AUDIENCE_HINTS: tuple[tuple[tuple[str, ...], str], ...] = (
    (("parent", "student"), "parents and students"),
    (("commuter", "transit"), "commuters"),
    (("homeowner", "property"), "homeowners"),
    (("business", "employer"), "business owners"),
    (("senior", "elderly"), "seniors"),
)

CATEGORY_AUDIENCE: dict[str, str] = {
    "Elections": "voters",
    "Education": "families, educators",
    "Healthcare": "residents, patients",
    "Transportation": "commuters",
    "Environment": "residents",
    "Economy": "workers, businesses",
    "Crime": "residents",
    "Housing": "renters, homeowners",
    "Politics": "residents",
}

CATEGORY_IMPACT: dict[str, str] = {
    "Elections": "Could influence upcoming election outcomes.",
    "Education": "May affect local schools and students.",
    "Healthcare": "Could impact healthcare access and costs.",
    "Transportation": "May affect commute times and transit access.",
    "Environment": "Could impact local environmental quality.",
    "Economy": "May affect local jobs and economic growth.",
    "Crime": "Could impact community safety measures.",
    "Housing": "May affect housing availability and costs.",
    "Politics": "Could influence local policy decisions.",
}

_MONEY_RE = re.compile(r"\$[\d,]+(?:\.\d+)?(?:\s*(?:million|billion))?")
_PERCENT_RE = re.compile(r"\d+(?:\.\d+)?\s*%")


def _combined(title: str, content: str) -> str:
    return f"{title or ''} {content or ''}".lower()


def detect_region(title: str, content: str) -> str:
    text = _combined(title, content)
    for region, keywords in REGION_KEYWORDS:
        if any(keyword in text for keyword in keywords):
            return region
    return DEFAULT_REGION


def detect_category(title: str, content: str) -> str:
    """Return the category with the most keyword hits; ties keep the earlier category."""
    text = _combined(title, content)
    best_category = DEFAULT_CATEGORY
    best_score = 0
    for category, keywords in CATEGORY_KEYWORDS.items():
        score = sum(1 for keyword in keywords if keyword in text)
        if score > best_score:
            best_score = score
            best_category = category
    return best_category


def who_should_care(region: str, category: str, content: str) -> str:
    text = (content or "").lower()
    for keywords, audience in AUDIENCE_HINTS:
        if any(keyword in text for keyword in keywords):
            return f"{region} {audience}"
    return f"{region} {CATEGORY_AUDIENCE.get(category, 'residents')}"


def describe_impact(category: str, content: str) -> str:
    text = (content or "").lower()
    money = _MONEY_RE.search(text)
    if money:
        return f"May affect funding of {money.group(0)} in related programs."
    percent = _PERCENT_RE.search(text)
    if percent:
        return f"Could result in a {percent.group(0).replace(' ', '')} change in affected areas."
    return CATEGORY_IMPACT.get(category, "May affect local communities.")
