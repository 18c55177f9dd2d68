# Domain Layer
# ============
# Pure business rules for votes, reviews and usernames:
# - models.py:      Records and aggregate shapes
# - aggregation.py: Vote tallies and rating summaries
# - ledgers.py:     Upsert/delete semantics over an injected store
# - errors.py:      ValidationError / StorageError taxonomy

from .errors import HubError, ValidationError, StorageError
from .models import (
    VoteType,
    ReviewScope,
    Vote,
    Review,
    VoteTally,
    ReviewSummary,
    parse_rating,
    parse_vote_type,
    utc_now,
)
from .aggregation import tally_votes, summarize_reviews
from .stores import VoteStore, ReviewStore, UsernameStore, Storage
from .ledgers import VoteLedger, ReviewLedger, UsernameRegistry, normalize_username

__all__ = [
    "HubError",
    "ValidationError",
    "StorageError",
    "VoteType",
    "ReviewScope",
    "Vote",
    "Review",
    "VoteTally",
    "ReviewSummary",
    "parse_rating",
    "parse_vote_type",
    "utc_now",
    "tally_votes",
    "summarize_reviews",
    "VoteStore",
    "ReviewStore",
    "UsernameStore",
    "Storage",
    "VoteLedger",
    "ReviewLedger",
    "UsernameRegistry",
    "normalize_username",
]
