"""
Aggregation Service - Vote Tallies and Rating Summaries
=======================================================

Pure, stateless functions over a snapshot of ledger rows.

SCALING NOTE:
Every query recomputes from the subject's rows (O(n) per subject).
Data volumes are small, so no caching or incremental counters are kept.
"""

from typing import Iterable

from .models import MAX_RATING, MIN_RATING, Review, ReviewSummary, Vote, VoteTally, VoteType


def tally_votes(subject_id: str, votes: Iterable[Vote]) -> VoteTally:
    """Count like and dislike rows for a subject."""
    tally = VoteTally(subject_id=subject_id)
    for vote in votes:
        if vote.subject_id != subject_id:
            continue
        if vote.vote_type == VoteType.LIKE:
            tally.likes += 1
        elif vote.vote_type == VoteType.DISLIKE:
            tally.dislikes += 1
    return tally


def summarize_reviews(subject_id: str, reviews: Iterable[Review]) -> ReviewSummary:
    """
    Compute count, average and per-star histogram for a subject.

    The average covers every row; ratings outside [1, 5] are left out of
    the histogram only.
    """
    summary = ReviewSummary(subject_id=subject_id)
    total_rating = 0

    for review in reviews:
        if review.subject_id != subject_id:
            continue
        summary.total_reviews += 1
        total_rating += review.rating
        if MIN_RATING <= review.rating <= MAX_RATING:
            summary.rating_counts[review.rating - 1] += 1

    if summary.total_reviews > 0:
        summary.average_rating = total_rating / summary.total_reviews
    return summary
