"""Tests for the raw article state machine."""

from __future__ import annotations

import pytest

from policy_feed.core.status import (
    TRANSITIONS,
    ArticleStatus,
    InvalidTransitionError,
    can_transition,
    check_transition,
    is_terminal,
)


def test_every_status_has_a_table_row():
    assert set(TRANSITIONS) == set(ArticleStatus)


def test_terminal_states():
    assert is_terminal(ArticleStatus.REJECTED)
    assert is_terminal(ArticleStatus.SUMMARIZED)
    assert is_terminal(ArticleStatus.PROCESSED)
    assert not is_terminal(ArticleStatus.PENDING)
    assert not is_terminal(ArticleStatus.ERROR)


def test_error_only_returns_to_pending():
    assert TRANSITIONS[ArticleStatus.ERROR] == frozenset({ArticleStatus.PENDING})


def test_every_non_terminal_state_can_fail():
    for status in ArticleStatus:
        if not is_terminal(status) and status is not ArticleStatus.ERROR:
            assert can_transition(status, ArticleStatus.ERROR)


def test_check_transition_accepts_strings():
    assert check_transition("PENDING", "PROCESSING") is ArticleStatus.PROCESSING


def test_check_transition_rejects_leaving_terminal_state():
    with pytest.raises(InvalidTransitionError) as excinfo:
        check_transition(ArticleStatus.SUMMARIZED, ArticleStatus.PENDING)
    assert excinfo.value.current is ArticleStatus.SUMMARIZED
    assert excinfo.value.target is ArticleStatus.PENDING


def test_check_transition_rejects_unknown_status():
    with pytest.raises(ValueError):
        check_transition("PENDING", "ARCHIVED")
