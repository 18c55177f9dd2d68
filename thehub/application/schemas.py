"""Pydantic response schemas for the TheHub endpoint.

These are separate from the domain records: the wire contract uses the
camelCase field names the storefront client reads.
"""

from typing import List, Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from ..domain.models import Review, ReviewScope, ReviewSummary, VoteTally


class WireModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def dump(self) -> dict:
        return self.model_dump(by_alias=True)


class VotesOut(WireModel):
    business_id: str
    likes: int
    dislikes: int
    user_vote: Optional[str] = None

    @classmethod
    def from_tally(cls, tally: VoteTally) -> "VotesOut":
        return cls(
            business_id=tally.subject_id,
            likes=tally.likes,
            dislikes=tally.dislikes,
            user_vote=tally.voter_vote.value if tally.voter_vote else None,
        )


class ProductReviewOut(WireModel):
    product_id: str
    username: str
    rating: int
    review_text: str
    timestamp: str


class BusinessReviewOut(WireModel):
    business_id: str
    username: str
    rating: int
    review_text: str
    timestamp: str


class ProductReviewSummaryOut(WireModel):
    product_id: str
    average_rating: float
    total_reviews: int
    rating_counts: List[int]


class BusinessReviewSummaryOut(WireModel):
    business_id: str
    average_rating: float
    total_reviews: int
    rating_counts: List[int]


def review_out(review: Review) -> dict:
    """Wire shape of a review; the id field depends on the scope."""
    common = dict(
        username=review.username or review.voter_id,
        rating=review.rating,
        review_text=review.text,
        timestamp=review.timestamp,
    )
    if review.scope == ReviewScope.BUSINESS:
        return BusinessReviewOut(business_id=review.subject_id, **common).dump()
    return ProductReviewOut(product_id=review.subject_id, **common).dump()


def summary_out(scope: ReviewScope, summary: ReviewSummary) -> dict:
    common = dict(
        average_rating=summary.average_rating,
        total_reviews=summary.total_reviews,
        rating_counts=list(summary.rating_counts),
    )
    if scope == ReviewScope.BUSINESS:
        return BusinessReviewSummaryOut(business_id=summary.subject_id, **common).dump()
    return ProductReviewSummaryOut(product_id=summary.subject_id, **common).dump()
