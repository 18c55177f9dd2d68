"""
In-Memory Store - Keyed Maps
============================

Dict keyed by the composite key gives O(1) lookup and makes
"at most one row per key" structural. Insertion order is kept, so
list_by_subject() returns rows in the order they were first written.
Used for tests and for throwaway local servers.
"""

import logging
from dataclasses import replace
from typing import Dict, List, Optional, Tuple

from ...domain.models import Review, ReviewScope, Vote
from ...domain.stores import ReviewStore, Storage, UsernameStore, VoteStore

logger = logging.getLogger(__name__)


class MemoryVoteStore(VoteStore):

    def __init__(self):
        self._rows: Dict[Tuple[str, str], Vote] = {}

    def init(self) -> None:
        pass

    def get(self, subject_id: str, voter_id: str) -> Optional[Vote]:
        vote = self._rows.get((subject_id, voter_id))
        return replace(vote) if vote else None

    def upsert(self, vote: Vote) -> bool:
        inserted = vote.key not in self._rows
        self._rows[vote.key] = replace(vote)
        return inserted

    def delete(self, subject_id: str, voter_id: str) -> bool:
        return self._rows.pop((subject_id, voter_id), None) is not None

    def list_by_subject(self, subject_id: str) -> List[Vote]:
        return [replace(v) for v in self._rows.values() if v.subject_id == subject_id]

    def __len__(self):
        return len(self._rows)


class MemoryReviewStore(ReviewStore):

    def __init__(self):
        self._rows: Dict[Tuple[ReviewScope, str, str], Review] = {}

    def init(self) -> None:
        pass

    def get(self, scope: ReviewScope, subject_id: str, voter_id: str) -> Optional[Review]:
        review = self._rows.get((scope, subject_id, voter_id))
        return replace(review) if review else None

    def upsert(self, review: Review) -> bool:
        inserted = review.key not in self._rows
        self._rows[review.key] = replace(review)
        return inserted

    def list_by_subject(self, scope: ReviewScope, subject_id: str) -> List[Review]:
        return [
            replace(r) for r in self._rows.values()
            if r.scope == scope and r.subject_id == subject_id
        ]

    def __len__(self):
        return len(self._rows)


class MemoryUsernameStore(UsernameStore):

    def __init__(self):
        self._names = set()

    def init(self) -> None:
        pass

    def exists(self, username: str) -> bool:
        return username in self._names

    def add(self, username: str) -> None:
        self._names.add(username)


class MemoryStorage(Storage):
    """All three stores held in process memory."""

    name = "memory"

    def __init__(self):
        super().__init__(MemoryVoteStore(), MemoryReviewStore(), MemoryUsernameStore())
