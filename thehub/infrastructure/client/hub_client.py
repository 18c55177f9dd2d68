"""
Hub Client - HTTP Client for the Reviews & Votes Endpoint
==========================================================

Thin I/O wrapper the storefront uses to read aggregates and submit votes,
reviews and usernames.

ARCHITECTURAL DECISION:
- Every call returns the server's envelope dict, never raises for I/O
- Transport failures (timeout, non-2xx, bad JSON) become
  {success: False, message} and are logged
- Every request carries a timeout; nothing is retried automatically.
  Votes and reviews are idempotent upserts, so a manual retry is safe.
  createUsername is not: a retry after a timeout may report
  "Username already exists" for the caller's own earlier request.

USAGE:
    client = HubClient(identity=IdentityStore())
    client.vote("B1", "like")
    print(client.get_votes("B1")["votes"])
"""

import logging
from typing import Optional

import requests

from ...domain.errors import ValidationError
from ...domain.ledgers import normalize_username
from ..config import get_settings
from ..identity import IdentityStore

logger = logging.getLogger(__name__)


class HubClientError(Exception):
    """Base exception for client-side failures."""
    pass


class HubClient:
    """Client for the TheHub endpoint."""

    def __init__(
        self,
        api_url: str = "",
        identity: Optional[IdentityStore] = None,
        timeout: Optional[float] = None,
        session: Optional[requests.Session] = None,
    ):
        settings = get_settings().client
        self._api_url = api_url or settings.api_url
        self._timeout = timeout if timeout is not None else settings.timeout_seconds
        self._session = session or requests.Session()
        self.identity = identity

    # ── Transport ──────────────────────────────────────────────────

    def _identity_params(self) -> dict:
        if not self.identity:
            return {}
        params = {"userId": self.identity.get_or_create_user_id()}
        username = self.identity.get_username()
        if username:
            params["username"] = username
        return params

    def _request(self, method: str, what: str, **kwargs) -> dict:
        try:
            response = self._session.request(method, self._api_url, timeout=self._timeout, **kwargs)
            response.raise_for_status()
            data = response.json()
            if not isinstance(data, dict):
                raise HubClientError("Unexpected response shape")

        except requests.Timeout:
            logger.warning(f"Timed out {what} after {self._timeout}s")
            return {"success": False, "message": f"Request timed out while {what}"}

        except (requests.exceptions.JSONDecodeError, HubClientError) as e:
            logger.warning(f"Invalid response {what}: {e}")
            return {"success": False, "message": "Invalid response from server"}

        except requests.RequestException as e:
            logger.warning(f"Error {what}: {e}")
            return {"success": False, "message": str(e)}

        except ValueError as e:
            logger.warning(f"Invalid response {what}: {e}")
            return {"success": False, "message": "Invalid response from server"}

        if not data.get("success"):
            logger.info(f"Server rejected {what}: {data.get('message')}")
        return data

    def _get(self, what: str, **params) -> dict:
        return self._request("GET", what, params=params)

    def _post(self, what: str, **payload) -> dict:
        return self._request(
            "POST", what, json=payload, headers={"Content-Type": "application/json"}
        )

    # ── Usernames ──────────────────────────────────────────────────

    def check_username(self, username: str) -> dict:
        return self._get("checking username", action="checkUsername", username=username)

    def create_username(self, username: str) -> dict:
        return self._post("creating username", action="createUsername", username=username)

    def register_username(self, username: str) -> dict:
        """
        Validate locally, check, create on the server, then store locally.

        Check-then-create is best-effort: a concurrent signup can still win.
        """
        try:
            name = normalize_username(username)
        except ValidationError as e:
            return {"success": False, "message": str(e)}

        check = self.check_username(name)
        if not check.get("success"):
            return check
        if check.get("exists"):
            return {"success": False, "message": "Username already exists"}

        created = self.create_username(name)
        if created.get("success") and self.identity:
            self.identity.set_username(name)
        return created

    # ── Votes ──────────────────────────────────────────────────────

    def get_votes(self, business_id: str) -> dict:
        return self._get("fetching votes", action="getVotes", businessId=business_id,
                         **self._identity_params())

    def vote(self, business_id: str, vote_type: str) -> dict:
        return self._post("submitting vote", action="vote", businessId=business_id,
                          voteType=vote_type, **self._identity_params())

    def remove_vote(self, business_id: str) -> dict:
        return self.vote(business_id, "remove")

    # ── Reviews ────────────────────────────────────────────────────

    def _newest_first(self, data: dict) -> dict:
        # The server returns storage order; the storefront shows newest first
        if data.get("success") and isinstance(data.get("reviews"), list):
            data["reviews"] = sorted(data["reviews"], key=lambda r: r.get("timestamp", ""), reverse=True)
        return data

    def get_reviews(self, product_id: str) -> dict:
        data = self._get("fetching product reviews", action="getReviews", productId=product_id,
                         **self._identity_params())
        return self._newest_first(data)

    def get_review_summary(self, product_id: str) -> dict:
        return self._get("fetching review summary", action="getReviewSummary", productId=product_id)

    def submit_review(self, product_id: str, rating: int, review_text: str = "") -> dict:
        return self._post("submitting product review", action="submitReview", productId=product_id,
                          rating=rating, reviewText=review_text, **self._identity_params())

    def get_business_reviews(self, business_id: str) -> dict:
        data = self._get("fetching business reviews", action="getBusinessReviews",
                         businessId=business_id, **self._identity_params())
        return self._newest_first(data)

    def get_business_review_summary(self, business_id: str) -> dict:
        return self._get("fetching business review summary", action="getBusinessReviewSummary",
                         businessId=business_id)

    def submit_business_review(self, business_id: str, rating: int, review_text: str = "") -> dict:
        return self._post("submitting business review", action="submitBusinessReview",
                          businessId=business_id, rating=rating, reviewText=review_text,
                          **self._identity_params())

    def close(self) -> None:
        self._session.close()
