"""
Closed status vocabularies and the raw article state machine.

RawArticle lifecycle:

    PENDING -> (PROCESSING) -> {APPROVED, REJECTED} -> {SUMMARIZED | PROCESSED}
    any non-terminal state -> ERROR
    ERROR -> PENDING            (manual reprocess only)

REJECTED, SUMMARIZED and PROCESSED are terminal.
"""

from __future__ import annotations

from enum import Enum


class ArticleStatus(str, Enum):
    PENDING = "PENDING"
    PROCESSING = "PROCESSING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
    SUMMARIZED = "SUMMARIZED"
    PROCESSED = "PROCESSED"
    ERROR = "ERROR"


class PolicyStatus(str, Enum):
    INTRODUCED = "INTRODUCED"
    COMMITTEE = "COMMITTEE"
    HEARING_SCHEDULED = "HEARING_SCHEDULED"
    VOTE_SCHEDULED = "VOTE_SCHEDULED"
    PASSED = "PASSED"
    FAILED = "FAILED"
    SIGNED = "SIGNED"
    ENACTED = "ENACTED"
    IMPLEMENTED = "IMPLEMENTED"


class PolicyDomain(str, Enum):
    TRANSIT = "transit"
    EDUCATION = "education"
    HOUSING = "housing"
    BUDGET = "budget"
    ELECTIONS = "elections"
    HEALTH = "health"
    ENVIRONMENT = "environment"
    GENERAL = "general"


class InvalidTransitionError(ValueError):
    """Raised when a raw article status change is not in the transition table."""

    def __init__(self, current: ArticleStatus, target: ArticleStatus):
        super().__init__(f"Illegal status transition {current.value} -> {target.value}")
        self.current = current
        self.target = target


TRANSITIONS: dict[ArticleStatus, frozenset[ArticleStatus]] = {
    ArticleStatus.PENDING: frozenset(
        {ArticleStatus.PROCESSING, ArticleStatus.APPROVED, ArticleStatus.REJECTED, ArticleStatus.ERROR}
    ),
    ArticleStatus.PROCESSING: frozenset(
        {ArticleStatus.APPROVED, ArticleStatus.REJECTED, ArticleStatus.ERROR}
    ),
    ArticleStatus.APPROVED: frozenset(
        {
            ArticleStatus.SUMMARIZED,
            ArticleStatus.PROCESSED,
            ArticleStatus.REJECTED,
            ArticleStatus.ERROR,
        }
    ),
    ArticleStatus.ERROR: frozenset({ArticleStatus.PENDING}),
    ArticleStatus.REJECTED: frozenset(),
    ArticleStatus.SUMMARIZED: frozenset(),
    ArticleStatus.PROCESSED: frozenset(),
}

# States whose entry stamps processed_at
STAMPED_STATES = frozenset(
    {
        ArticleStatus.APPROVED,
        ArticleStatus.REJECTED,
        ArticleStatus.SUMMARIZED,
        ArticleStatus.PROCESSED,
        ArticleStatus.ERROR,
    }
)

_missing = set(ArticleStatus) - set(TRANSITIONS)
if _missing:
    raise RuntimeError(f"Transition table missing states: {sorted(s.value for s in _missing)}")


def is_terminal(status: ArticleStatus) -> bool:
    return not TRANSITIONS[status]


def can_transition(current: ArticleStatus, target: ArticleStatus) -> bool:
    return target in TRANSITIONS[current]


def check_transition(current: ArticleStatus | str, target: ArticleStatus | str) -> ArticleStatus:
    """Validate a status change and return the target as an ArticleStatus.

    Raises:
        InvalidTransitionError: If the table does not allow current -> target
        ValueError: If either value is not a known status
    """
    current = ArticleStatus(current)
    target = ArticleStatus(target)
    if not can_transition(current, target):
        raise InvalidTransitionError(current, target)
    return target
