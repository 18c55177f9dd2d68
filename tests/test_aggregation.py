"""
Unit tests for the aggregation functions.
"""

import pytest

from thehub.domain import (
    Review,
    ReviewScope,
    Vote,
    VoteType,
    summarize_reviews,
    tally_votes,
)


def _vote(subject, voter, vote_type):
    return Vote(subject_id=subject, voter_id=voter, vote_type=vote_type, timestamp="t")


def _review(subject, voter, rating):
    return Review(scope=ReviewScope.PRODUCT, subject_id=subject, voter_id=voter,
                  rating=rating, text="", timestamp="t")


def test_tally_counts_likes_and_dislikes():
    votes = [
        _vote("B1", "a", VoteType.LIKE),
        _vote("B1", "b", VoteType.LIKE),
        _vote("B1", "c", VoteType.DISLIKE),
        _vote("B2", "a", VoteType.DISLIKE),
    ]
    tally = tally_votes("B1", votes)

    assert tally.likes == 2
    assert tally.dislikes == 1
    assert tally.voter_vote is None


def test_tally_of_no_votes_is_zero():
    tally = tally_votes("B1", [])
    assert (tally.likes, tally.dislikes) == (0, 0)


def test_summary_of_five_three_three():
    reviews = [_review("P1", "a", 5), _review("P1", "b", 3), _review("P1", "c", 3)]
    summary = summarize_reviews("P1", reviews)

    assert summary.total_reviews == 3
    assert summary.average_rating == pytest.approx(11 / 3)
    assert summary.rating_counts == [0, 0, 2, 0, 1]


def test_summary_of_no_reviews_averages_zero():
    summary = summarize_reviews("P1", [])

    assert summary.total_reviews == 0
    assert summary.average_rating == 0
    assert summary.rating_counts == [0, 0, 0, 0, 0]


def test_out_of_range_ratings_left_out_of_histogram():
    reviews = [_review("P1", "a", 4), _review("P1", "b", 9)]
    summary = summarize_reviews("P1", reviews)

    assert summary.total_reviews == 2
    assert sum(summary.rating_counts) == 1
    assert summary.rating_counts[3] == 1


def test_summary_ignores_other_subjects():
    reviews = [_review("P1", "a", 4), _review("P2", "a", 1)]
    summary = summarize_reviews("P1", reviews)

    assert summary.total_reviews == 1
    assert summary.average_rating == 4
