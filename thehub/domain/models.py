"""
Domain Models - Vote and Review Records
=======================================

ARCHITECTURAL DECISION:
- Records are plain dataclasses; stores persist them, ledgers mutate them
- Enums for vote type and review scope prevent typos in stored values
- Timestamps are ISO-8601 UTC strings so every backend stores them verbatim

KEYS:
- Vote:   (subject_id, voter_id)
- Review: (scope, subject_id, voter_id)
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional

from .errors import ValidationError

MIN_RATING = 1
MAX_RATING = 5

RATING_ERROR = "Rating must be between 1 and 5"
VOTE_TYPE_ERROR = "Invalid vote type"


class VoteType(Enum):
    """Vote actions accepted from clients. REMOVE is never stored."""
    LIKE = "like"
    DISLIKE = "dislike"
    REMOVE = "remove"


class ReviewScope(Enum):
    """Independent review ledgers."""
    PRODUCT = "product"
    BUSINESS = "business"


@dataclass
class Vote:
    """One like/dislike row."""
    subject_id: str
    voter_id: str
    vote_type: VoteType
    timestamp: str
    username: str = ""

    @property
    def key(self):
        return (self.subject_id, self.voter_id)


@dataclass
class Review:
    """One star-rating review row."""
    scope: ReviewScope
    subject_id: str
    voter_id: str
    rating: int
    text: str
    timestamp: str
    username: str = ""

    @property
    def key(self):
        return (self.scope, self.subject_id, self.voter_id)


@dataclass
class VoteTally:
    """Like/dislike counts for one subject, optionally with the caller's own vote."""
    subject_id: str
    likes: int = 0
    dislikes: int = 0
    voter_vote: Optional[VoteType] = None


@dataclass
class ReviewSummary:
    """
    Rating summary for one subject.

    rating_counts[0] is the number of 1-star reviews, rating_counts[4]
    the number of 5-star reviews.
    """
    subject_id: str
    total_reviews: int = 0
    average_rating: float = 0.0
    rating_counts: List[int] = field(default_factory=lambda: [0] * MAX_RATING)


def utc_now() -> str:
    """Current time as an ISO-8601 UTC string."""
    return datetime.now(timezone.utc).isoformat()


def parse_vote_type(value) -> VoteType:
    """Convert a wire value ('like', 'dislike', 'remove') to a VoteType."""
    if isinstance(value, VoteType):
        return value
    try:
        return VoteType(str(value).strip().lower())
    except ValueError:
        raise ValidationError(VOTE_TYPE_ERROR)


def parse_rating(value) -> int:
    """
    Convert a wire value to an integer rating in [1, 5].

    Accepts ints, integral floats and digit strings ("4"); anything else,
    including booleans and 4.5, raises ValidationError.
    """
    if isinstance(value, bool) or value is None:
        raise ValidationError(RATING_ERROR)

    if isinstance(value, int):
        rating = value
    elif isinstance(value, float) and value.is_integer():
        rating = int(value)
    elif isinstance(value, str) and value.strip().isascii():
        try:
            rating = int(value.strip())
        except ValueError:
            raise ValidationError(RATING_ERROR)
    else:
        raise ValidationError(RATING_ERROR)

    if rating < MIN_RATING or rating > MAX_RATING:
        raise ValidationError(RATING_ERROR)
    return rating
