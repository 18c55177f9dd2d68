"""
Request Router - Action Dispatch and Response Envelopes
=======================================================

Maps an inbound `action` to exactly one handler and wraps every outcome
in the same envelope:

    {"success": bool, "message": str, ...payload}

ARCHITECTURAL DECISION:
- Errors are signalled in the body, never through HTTP status codes
- ValidationError becomes {success: false, message}; StorageError
  becomes {success: false, message: "Storage error"}, details logged only
- Storage initialisation runs (idempotently) before every request
- Handlers are synchronous and run one at a time per request

READ-STYLE ACTIONS (query parameters):
    checkUsername, getVotes, getReviews, getReviewSummary,
    getBusinessReviews, getBusinessReviewSummary

WRITE-STYLE ACTIONS (JSON or form body):
    createUsername, vote, submitReview, submitBusinessReview
"""

import json
import logging
from typing import Any, Callable, Dict, Mapping, Optional, Union

from ..domain.errors import HubError, StorageError, ValidationError
from ..domain.ledgers import ReviewLedger, UsernameRegistry, VoteLedger
from ..domain.models import ReviewScope, utc_now
from ..domain.stores import Storage
from .schemas import VotesOut, review_out, summary_out

logger = logging.getLogger(__name__)

Handler = Callable[[Mapping[str, Any]], dict]


def envelope(success: bool, message: str, **data) -> dict:
    """Build the uniform response wrapper."""
    return {"success": success, "message": message, **data}


def parse_body(body: Union[str, bytes, Mapping[str, Any], None]) -> Mapping[str, Any]:
    """Decode a write-style request body. Raises ValidationError('Invalid JSON')."""
    if isinstance(body, Mapping):
        return body
    try:
        data = json.loads(body or b"")
    except (TypeError, ValueError):
        raise ValidationError("Invalid JSON")
    if not isinstance(data, dict):
        raise ValidationError("Invalid JSON")
    return data


def _optional(data: Mapping[str, Any], field: str) -> Optional[str]:
    value = data.get(field)
    if value is None:
        return None
    value = str(value).strip()
    return value or None


def _required(data: Mapping[str, Any], field: str, label: str) -> str:
    value = _optional(data, field)
    if value is None:
        raise ValidationError(f"{label} is required")
    return value


def _voter(data: Mapping[str, Any], username: Optional[str]) -> Optional[str]:
    """
    Voter key: the permanent userId when the client sends one, else the username.

    The ledgers also match a row recorded under the username, so a client
    that sends only the username still finds rows written with its userId.
    """
    return _optional(data, "userId") or username


class RequestRouter:
    """
    Dispatches read-style and write-style requests to the ledgers.

    Usage:
        router = RequestRouter(MemoryStorage())
        router.handle_post({"action": "vote", "businessId": "B1",
                            "username": "alice", "voteType": "like"})
        router.handle_get({"action": "getVotes", "businessId": "B1"})
    """

    def __init__(self, storage: Storage, clock: Callable[[], str] = utc_now):
        self.storage = storage
        self.votes = VoteLedger(storage.votes, clock)
        self.product_reviews = ReviewLedger(storage.reviews, ReviewScope.PRODUCT, clock)
        self.business_reviews = ReviewLedger(storage.reviews, ReviewScope.BUSINESS, clock)
        self.usernames = UsernameRegistry(storage.usernames)

        self._get_handlers: Dict[str, Handler] = {
            "checkUsername": self._check_username,
            "getVotes": self._get_votes,
            "getReviews": self._get_product_reviews,
            "getReviewSummary": self._get_product_summary,
            "getBusinessReviews": self._get_business_reviews,
            "getBusinessReviewSummary": self._get_business_summary,
        }
        self._post_handlers: Dict[str, Handler] = {
            "createUsername": self._create_username,
            "vote": self._vote,
            "submitReview": self._submit_product_review,
            "submitBusinessReview": self._submit_business_review,
        }

    # ── Entry points ───────────────────────────────────────────────

    def handle_get(self, params: Mapping[str, Any]) -> dict:
        failure = self._initialize()
        if failure:
            return failure
        return self._route(params, self._get_handlers)

    def handle_post(self, body: Union[str, bytes, Mapping[str, Any], None]) -> dict:
        failure = self._initialize()
        if failure:
            return failure
        try:
            data = parse_body(body)
        except ValidationError as e:
            return envelope(False, str(e))
        return self._route(data, self._post_handlers)

    def _initialize(self) -> Optional[dict]:
        try:
            self.storage.init()
        except StorageError as e:
            logger.error(f"Storage initialization failed: {e}")
            return envelope(False, "Failed to initialize")
        return None

    def _route(self, data: Mapping[str, Any], handlers: Dict[str, Handler]) -> dict:
        action = _optional(data, "action")
        if not action:
            return envelope(False, "No action specified")

        handler = handlers.get(action)
        if handler is None:
            logger.warning(f"Invalid action requested: {action}")
            return envelope(False, "Invalid action")

        try:
            return handler(data)
        except StorageError as e:
            # Details (file paths included) stay in the log
            logger.error(f"{action} storage failure: {e}")
            return envelope(False, "Storage error")
        except HubError as e:
            logger.info(f"{action} rejected: {e}")
            return envelope(False, str(e))
        except Exception as e:
            logger.exception(f"{action} failed: {e}")
            return envelope(False, "Server error")

    # ── Usernames ──────────────────────────────────────────────────

    def _check_username(self, data: Mapping[str, Any]) -> dict:
        username = _required(data, "username", "Username")
        exists = self.usernames.exists(username)
        return envelope(True, "Username exists" if exists else "Username does not exist", exists=exists)

    def _create_username(self, data: Mapping[str, Any]) -> dict:
        username = _required(data, "username", "Username")
        self.usernames.create(username)
        return envelope(True, "Username created successfully")

    # ── Votes ──────────────────────────────────────────────────────

    def _get_votes(self, data: Mapping[str, Any]) -> dict:
        business_id = _required(data, "businessId", "Business ID")
        tally = self.votes.get_votes(business_id)
        username = _optional(data, "username")
        voter = _voter(data, username)
        if voter:
            tally.voter_vote = self.votes.get_vote_for_voter(business_id, voter, username or "")
        return envelope(True, "Votes retrieved successfully", votes=VotesOut.from_tally(tally).dump())

    def _vote(self, data: Mapping[str, Any]) -> dict:
        business_id = _required(data, "businessId", "Business ID")
        username = _required(data, "username", "Username")
        vote_type = _optional(data, "voteType")
        if not vote_type:
            raise ValidationError("Invalid vote type")

        tally = self.votes.cast_vote(business_id, _voter(data, username), vote_type, username=username)
        return envelope(True, "Vote recorded successfully", votes=VotesOut.from_tally(tally).dump())

    # ── Reviews ────────────────────────────────────────────────────

    def _list_reviews(self, ledger: ReviewLedger, data: Mapping[str, Any], subject_id: str) -> dict:
        reviews = ledger.list_reviews(subject_id)
        username = _optional(data, "username")
        voter = _voter(data, username)

        user_review = None
        if voter:
            own = ledger.get_review_for_voter(subject_id, voter, username or "")
            user_review = review_out(own) if own else None

        return dict(reviews=[review_out(r) for r in reviews], userReview=user_review)

    def _submit(self, ledger: ReviewLedger, data: Mapping[str, Any], subject_id: str) -> dict:
        username = _required(data, "username", "Username")
        text = data.get("reviewText")
        if text is None:
            text = data.get("comment", "")
        review = ledger.submit_review(
            subject_id,
            _voter(data, username),
            data.get("rating"),
            str(text),
            username=username,
        )
        return dict(review=review_out(review))

    def _get_product_reviews(self, data: Mapping[str, Any]) -> dict:
        product_id = _required(data, "productId", "Product ID")
        payload = self._list_reviews(self.product_reviews, data, product_id)
        return envelope(True, "Reviews retrieved successfully", **payload)

    def _get_product_summary(self, data: Mapping[str, Any]) -> dict:
        product_id = _required(data, "productId", "Product ID")
        summary = self.product_reviews.get_summary(product_id)
        return envelope(True, "Review summary retrieved successfully",
                        summary=summary_out(ReviewScope.PRODUCT, summary))

    def _submit_product_review(self, data: Mapping[str, Any]) -> dict:
        product_id = _required(data, "productId", "Product ID")
        payload = self._submit(self.product_reviews, data, product_id)
        return envelope(True, "Review submitted successfully", **payload)

    def _get_business_reviews(self, data: Mapping[str, Any]) -> dict:
        business_id = _required(data, "businessId", "Business ID")
        payload = self._list_reviews(self.business_reviews, data, business_id)
        return envelope(True, "Business reviews retrieved successfully", **payload)

    def _get_business_summary(self, data: Mapping[str, Any]) -> dict:
        business_id = _required(data, "businessId", "Business ID")
        summary = self.business_reviews.get_summary(business_id)
        return envelope(True, "Business review summary retrieved successfully",
                        summary=summary_out(ReviewScope.BUSINESS, summary))

    def _submit_business_review(self, data: Mapping[str, Any]) -> dict:
        business_id = _required(data, "businessId", "Business ID")
        payload = self._submit(self.business_reviews, data, business_id)
        return envelope(True, "Business review submitted successfully", **payload)
