"""
Ledgers - Vote, Review and Username Business Rules
==================================================

ARCHITECTURAL DECISION:
- Ledgers own the upsert/delete rules; stores only persist keyed rows
- At most one row per key is guaranteed by the keyed store, not by locks
- Concurrent writers to the same key race; the last write seen by the
  store wins and the loser is not notified

USAGE:
    ledger = VoteLedger(storage.votes)
    tally = ledger.cast_vote("B1", "alice", "like")
    print(tally.likes)  # 1
"""

import logging
from typing import Callable, List, Optional

from .aggregation import summarize_reviews, tally_votes
from .errors import ValidationError
from .models import (
    Review,
    ReviewScope,
    ReviewSummary,
    Vote,
    VoteTally,
    VoteType,
    parse_rating,
    parse_vote_type,
    utc_now,
)
from .stores import ReviewStore, UsernameStore, VoteStore

logger = logging.getLogger(__name__)

USERNAME_MIN_LENGTH = 3
USERNAME_MAX_LENGTH = 30


def normalize_username(name) -> str:
    """Trim a display name and enforce the 3-30 character rule."""
    cleaned = (name or "").strip()
    if len(cleaned) < USERNAME_MIN_LENGTH or len(cleaned) > USERNAME_MAX_LENGTH:
        raise ValidationError(
            f"Username must be between {USERNAME_MIN_LENGTH} and {USERNAME_MAX_LENGTH} characters"
        )
    return cleaned


class VoteLedger:
    """Like/dislike votes per business."""

    def __init__(self, store: VoteStore, clock: Callable[[], str] = utc_now):
        self._store = store
        self._clock = clock

    def get_votes(self, subject_id: str) -> VoteTally:
        return tally_votes(subject_id, self._store.list_by_subject(subject_id))

    def _find(self, subject_id: str, voter_id: str, username: str = "") -> Optional[Vote]:
        """The voter's row, keyed by voter id or, failing that, recorded under the username."""
        vote = self._store.get(subject_id, voter_id)
        if vote or not username:
            return vote
        for row in self._store.list_by_subject(subject_id):
            if row.voter_id == username or row.username == username:
                return row
        return None

    def get_vote_for_voter(self, subject_id: str, voter_id: str, username: str = "") -> Optional[VoteType]:
        vote = self._find(subject_id, voter_id, username)
        return vote.vote_type if vote else None

    def cast_vote(self, subject_id: str, voter_id: str, vote_type, username: str = "") -> VoteTally:
        """
        Apply a like, dislike or remove for one voter.

        - remove: delete the voter's row; no-op if there is none
        - like/dislike: overwrite the row in place, or append a new one

        Returns the recomputed tally with voter_vote set to the new vote
        (None after a remove).
        """
        vote_type = parse_vote_type(vote_type)

        # An existing row keeps its key, whichever identity it was found by
        existing = self._find(subject_id, voter_id, username)
        if existing:
            voter_id = existing.voter_id

        if vote_type == VoteType.REMOVE:
            removed = self._store.delete(subject_id, voter_id) if existing else False
            logger.debug(f"Vote remove {subject_id}/{voter_id}: {'deleted' if removed else 'no row'}")
        else:
            inserted = self._store.upsert(Vote(
                subject_id=subject_id,
                voter_id=voter_id,
                vote_type=vote_type,
                timestamp=self._clock(),
                username=username or "",
            ))
            logger.debug(f"Vote {vote_type.value} {subject_id}/{voter_id}: {'inserted' if inserted else 'updated'}")

        tally = self.get_votes(subject_id)
        tally.voter_vote = None if vote_type == VoteType.REMOVE else vote_type
        return tally


class ReviewLedger:
    """Star-rating reviews for one scope (products or businesses)."""

    def __init__(self, store: ReviewStore, scope: ReviewScope, clock: Callable[[], str] = utc_now):
        self._store = store
        self.scope = scope
        self._clock = clock

    def list_reviews(self, subject_id: str, newest_first: bool = False) -> List[Review]:
        """Reviews for a subject; storage order unless newest_first is set."""
        reviews = self._store.list_by_subject(self.scope, subject_id)
        if newest_first:
            reviews.sort(key=lambda review: review.timestamp, reverse=True)
        return reviews

    def get_review_for_voter(self, subject_id: str, voter_id: str, username: str = "") -> Optional[Review]:
        """The voter's review, keyed by voter id or, failing that, written under the username."""
        review = self._store.get(self.scope, subject_id, voter_id)
        if review or not username:
            return review
        for row in self._store.list_by_subject(self.scope, subject_id):
            if row.voter_id == username or row.username == username:
                return row
        return None

    def submit_review(self, subject_id: str, voter_id: str, rating, text: str = "",
                      username: str = "") -> Review:
        """Validate the rating, then insert or overwrite the voter's review."""
        rating = parse_rating(rating)
        existing = self.get_review_for_voter(subject_id, voter_id, username)
        if existing:
            voter_id = existing.voter_id

        review = Review(
            scope=self.scope,
            subject_id=subject_id,
            voter_id=voter_id,
            rating=rating,
            text=text or "",
            timestamp=self._clock(),
            username=username or "",
        )
        inserted = self._store.upsert(review)
        logger.info(
            f"{self.scope.value.capitalize()} review {subject_id}/{voter_id} "
            f"{'added' if inserted else 'updated'} ({review.rating} stars)"
        )
        return review

    def get_summary(self, subject_id: str) -> ReviewSummary:
        return summarize_reviews(subject_id, self._store.list_by_subject(self.scope, subject_id))


class UsernameRegistry:
    """
    Registered display names.

    KNOWN LIMITATION:
    create() is check-then-act. Two clients can both pass exists() before
    either adds, so uniqueness is best-effort, not linearizable.
    """

    def __init__(self, store: UsernameStore):
        self._store = store

    def exists(self, username: str) -> bool:
        return self._store.exists(username)

    def create(self, username: str) -> str:
        """Register a name. Raises ValidationError if invalid or taken."""
        name = normalize_username(username)
        if self._store.exists(name):
            raise ValidationError("Username already exists")
        self._store.add(name)
        logger.info(f"Username registered: {name}")
        return name
