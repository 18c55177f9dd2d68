"""
Store Interfaces - Keyed Row Storage for the Ledgers
====================================================

Provides a unified interface over the row stores backing the ledgers.
Implementations live in infrastructure/persistence (memory, SQLite,
spreadsheet workbook).

CONTRACT:
- init() ensures tables and header rows exist; idempotent, safe to call
  before every request
- get/upsert/delete address exactly one row by composite key
- list_by_subject() returns rows in storage order (no ordering guarantee)
"""

from abc import ABC, abstractmethod
from typing import List, Optional

from .models import Review, ReviewScope, Vote


class VoteStore(ABC):
    """Rows keyed by (subject_id, voter_id)."""

    @abstractmethod
    def init(self) -> None:
        ...

    @abstractmethod
    def get(self, subject_id: str, voter_id: str) -> Optional[Vote]:
        ...

    @abstractmethod
    def upsert(self, vote: Vote) -> bool:
        """Insert or overwrite the row for vote.key. Returns True if inserted."""
        ...

    @abstractmethod
    def delete(self, subject_id: str, voter_id: str) -> bool:
        """Delete the row if present. Returns True if a row was removed."""
        ...

    @abstractmethod
    def list_by_subject(self, subject_id: str) -> List[Vote]:
        ...


class ReviewStore(ABC):
    """Rows keyed by (scope, subject_id, voter_id)."""

    @abstractmethod
    def init(self) -> None:
        ...

    @abstractmethod
    def get(self, scope: ReviewScope, subject_id: str, voter_id: str) -> Optional[Review]:
        ...

    @abstractmethod
    def upsert(self, review: Review) -> bool:
        """Insert or overwrite the row for review.key. Returns True if inserted."""
        ...

    @abstractmethod
    def list_by_subject(self, scope: ReviewScope, subject_id: str) -> List[Review]:
        ...


class UsernameStore(ABC):
    """Registered display names (exact, case-sensitive match)."""

    @abstractmethod
    def init(self) -> None:
        ...

    @abstractmethod
    def exists(self, username: str) -> bool:
        ...

    @abstractmethod
    def add(self, username: str) -> None:
        ...


class Storage:
    """
    Bundle of the three stores of one backend.

    Usage:
        storage = MemoryStorage()
        storage.init()
        storage.votes.upsert(vote)
    """

    name = "abstract"

    def __init__(self, votes: VoteStore, reviews: ReviewStore, usernames: UsernameStore):
        self.votes = votes
        self.reviews = reviews
        self.usernames = usernames

    def init(self) -> None:
        """Ensure every table exists. Raises StorageError on failure."""
        self.votes.init()
        self.reviews.init()
        self.usernames.init()
