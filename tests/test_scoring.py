"""Tests for keyword relevance scoring."""

from __future__ import annotations

from policy_feed.core.scoring import calculate_relevance_score, is_relevant


def test_score_is_zero_for_unrelated_text():
    assert calculate_relevance_score("Weekend weather", "Sunny skies and a light breeze.") == 0.0


def test_score_saturates_at_one():
    title = "Pennsylvania governor signs budget"
    content = (
        "Philadelphia and Pittsburgh lawmakers in Harrisburg passed the bill after a vote. "
        "The legislation covers school funding, housing, transit and tax policy."
    )
    assert calculate_relevance_score(title, content) == 1.0


def test_score_stays_in_unit_interval():
    samples = [
        ("", ""),
        ("SEPTA", ""),
        ("Vote", "budget budget budget"),
        ("Pittsburgh council", "The mayor proposed an ordinance on housing and crime."),
    ]
    for title, content in samples:
        score = calculate_relevance_score(title, content)
        assert 0.0 <= score <= 1.0


def test_adding_keyword_text_never_lowers_score():
    title = "City update"
    base = "Officials met on Tuesday."
    previous = calculate_relevance_score(title, base)
    for extra in ["Philadelphia", "SEPTA board", "council vote", "budget and taxes", "Harrisburg"]:
        base = f"{base} {extra}."
        score = calculate_relevance_score(title, base)
        assert score >= previous
        previous = score


def test_repeated_keywords_count_once():
    once = calculate_relevance_score("SEPTA", "budget")
    many = calculate_relevance_score("SEPTA SEPTA", "budget budget budget budget")
    assert once == many


def test_short_words_do_not_match_inside_other_words():
    # "pa" inside "paper", "vote" inside "devoted"
    assert calculate_relevance_score("Paper devoted", "Spare parts.") == 0.0


def test_location_and_policy_weights():
    # one location keyword (1/3 * 0.6) and one policy keyword (1/5 * 0.4)
    assert calculate_relevance_score("SEPTA board votes on fare hike", "") == 0.28


def test_is_relevant_uses_inclusive_threshold():
    assert is_relevant(0.3)
    assert not is_relevant(0.29)
    assert is_relevant(0.5, threshold=0.5)
