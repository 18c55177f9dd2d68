"""
Request router tests: dispatch, envelopes and the end-to-end scenarios.
"""

import json

import pytest

from thehub.application import RequestRouter, envelope
from thehub.domain import StorageError
from thehub.infrastructure.persistence import MemoryStorage


def _vote(router, voter, vote_type, business="B1"):
    return router.handle_post({"action": "vote", "businessId": business,
                               "username": voter, "voteType": vote_type})


def _votes_for(router, voter, business="B1"):
    return router.handle_get({"action": "getVotes", "businessId": business, "username": voter})["votes"]


def test_envelope_shape():
    assert envelope(True, "ok", exists=False) == {"success": True, "message": "ok", "exists": False}


# ── Votes ──────────────────────────────────────────────────────────

def test_like_dislike_remove_scenario(router):
    _vote(router, "A", "like")
    assert _votes_for(router, "A") == {"businessId": "B1", "likes": 1, "dislikes": 0, "userVote": "like"}

    _vote(router, "A", "dislike")
    assert _votes_for(router, "A") == {"businessId": "B1", "likes": 0, "dislikes": 1, "userVote": "dislike"}

    _vote(router, "A", "remove")
    assert _votes_for(router, "A") == {"businessId": "B1", "likes": 0, "dislikes": 0, "userVote": None}


def test_vote_response_carries_recomputed_tally(router):
    _vote(router, "B", "like")

    result = _vote(router, "A", "dislike")

    assert result["success"] is True
    assert result["message"] == "Vote recorded successfully"
    assert result["votes"] == {"businessId": "B1", "likes": 1, "dislikes": 1, "userVote": "dislike"}


def test_get_votes_without_username_has_no_user_vote(router):
    _vote(router, "A", "like")

    votes = router.handle_get({"action": "getVotes", "businessId": "B1"})["votes"]

    assert votes["likes"] == 1
    assert votes["userVote"] is None


def test_user_id_is_the_voter_key_when_sent(router):
    router.handle_post({"action": "vote", "businessId": "B1", "username": "alice",
                        "userId": "device-1", "voteType": "like"})
    router.handle_post({"action": "vote", "businessId": "B1", "username": "alice-renamed",
                        "userId": "device-1", "voteType": "dislike"})

    votes = router.handle_get({"action": "getVotes", "businessId": "B1", "userId": "device-1"})["votes"]

    assert (votes["likes"], votes["dislikes"], votes["userVote"]) == (0, 1, "dislike")


@pytest.mark.parametrize("data, message", [
    ({"action": "vote", "username": "A", "voteType": "like"}, "Business ID is required"),
    ({"action": "vote", "businessId": "B1", "voteType": "like"}, "Username is required"),
    ({"action": "vote", "businessId": "B1", "username": "A"}, "Invalid vote type"),
    ({"action": "vote", "businessId": "B1", "username": "A", "voteType": "meh"}, "Invalid vote type"),
])
def test_vote_validation_messages(router, data, message):
    assert router.handle_post(data) == {"success": False, "message": message}


# ── Reviews ────────────────────────────────────────────────────────

def test_review_summary_scenario(router):
    for voter, rating in [("a", 5), ("b", 3), ("c", 3)]:
        router.handle_post({"action": "submitReview", "productId": "P1", "username": voter,
                            "rating": rating, "reviewText": "text"})

    summary = router.handle_get({"action": "getReviewSummary", "productId": "P1"})["summary"]

    assert summary["productId"] == "P1"
    assert summary["totalReviews"] == 3
    assert summary["averageRating"] == pytest.approx(11 / 3)
    assert summary["ratingCounts"] == [0, 0, 2, 0, 1]


def test_submit_review_returns_stored_review(router):
    result = router.handle_post({"action": "submitReview", "productId": "P1", "username": "alice",
                                 "rating": "4", "reviewText": "Lovely roses"})

    assert result["success"] is True
    assert result["message"] == "Review submitted successfully"
    assert result["review"]["productId"] == "P1"
    assert result["review"]["username"] == "alice"
    assert result["review"]["rating"] == 4
    assert result["review"]["reviewText"] == "Lovely roses"


@pytest.mark.parametrize("rating", [0, 6])
def test_bad_rating_rejected_and_nothing_stored(router, rating):
    result = router.handle_post({"action": "submitReview", "productId": "P1", "username": "alice",
                                 "rating": rating, "reviewText": "x"})

    assert result == {"success": False, "message": "Rating must be between 1 and 5"}
    reviews = router.handle_get({"action": "getReviews", "productId": "P1"})
    assert reviews["reviews"] == []


def test_get_reviews_includes_user_review(router):
    router.handle_post({"action": "submitReview", "productId": "P1", "username": "alice",
                        "rating": 5, "reviewText": "mine"})
    router.handle_post({"action": "submitReview", "productId": "P1", "username": "bob",
                        "rating": 2, "reviewText": "his"})

    result = router.handle_get({"action": "getReviews", "productId": "P1", "username": "alice"})

    assert result["success"] is True
    assert len(result["reviews"]) == 2
    assert result["userReview"]["reviewText"] == "mine"


def test_get_reviews_without_username_has_null_user_review(router):
    result = router.handle_get({"action": "getReviews", "productId": "P1"})

    assert result == {"success": True, "message": "Reviews retrieved successfully",
                      "reviews": [], "userReview": None}


def test_business_reviews_are_separate_from_product_reviews(router):
    router.handle_post({"action": "submitBusinessReview", "businessId": "X1", "username": "alice",
                        "rating": 2, "comment": "slow delivery"})
    router.handle_post({"action": "submitReview", "productId": "X1", "username": "alice",
                        "rating": 5, "reviewText": "great product"})

    business = router.handle_get({"action": "getBusinessReviewSummary", "businessId": "X1"})["summary"]
    product = router.handle_get({"action": "getReviewSummary", "productId": "X1"})["summary"]
    listed = router.handle_get({"action": "getBusinessReviews", "businessId": "X1", "username": "alice"})

    assert business == {"businessId": "X1", "averageRating": 2.0, "totalReviews": 1,
                        "ratingCounts": [0, 1, 0, 0, 0]}
    assert product["averageRating"] == 5.0
    assert listed["userReview"]["reviewText"] == "slow delivery"
    assert listed["reviews"][0]["businessId"] == "X1"


def test_empty_summary(router):
    summary = router.handle_get({"action": "getReviewSummary", "productId": "P9"})["summary"]

    assert summary == {"productId": "P9", "averageRating": 0.0, "totalReviews": 0,
                       "ratingCounts": [0, 0, 0, 0, 0]}


# ── Usernames ──────────────────────────────────────────────────────

def test_create_username_twice_fails(router):
    first = router.handle_post({"action": "createUsername", "username": "alice"})
    second = router.handle_post({"action": "createUsername", "username": "alice"})

    assert first == {"success": True, "message": "Username created successfully"}
    assert second == {"success": False, "message": "Username already exists"}


def test_check_username(router):
    assert router.handle_get({"action": "checkUsername", "username": "alice"})["exists"] is False

    router.handle_post({"action": "createUsername", "username": "alice"})
    result = router.handle_get({"action": "checkUsername", "username": "alice"})

    assert result == {"success": True, "message": "Username exists", "exists": True}


def test_check_username_requires_username(router):
    assert router.handle_get({"action": "checkUsername"}) == {
        "success": False, "message": "Username is required"}


# ── Dispatch ───────────────────────────────────────────────────────

def test_missing_action(router):
    assert router.handle_get({}) == {"success": False, "message": "No action specified"}
    assert router.handle_post({}) == {"success": False, "message": "No action specified"}


def test_unknown_action(router):
    assert router.handle_get({"action": "dropTables"}) == {"success": False, "message": "Invalid action"}


def test_write_actions_not_available_as_reads(router):
    result = router.handle_get({"action": "vote", "businessId": "B1", "username": "A", "voteType": "like"})

    assert result == {"success": False, "message": "Invalid action"}


def test_post_accepts_raw_json(router):
    body = json.dumps({"action": "createUsername", "username": "alice"})

    assert router.handle_post(body)["success"] is True
    assert router.handle_post(body.encode())["message"] == "Username already exists"


@pytest.mark.parametrize("body", ["{not json", "[1, 2]", b"", None])
def test_malformed_json(router, body):
    assert router.handle_post(body) == {"success": False, "message": "Invalid JSON"}


def test_init_failure_short_circuits():
    class BrokenStorage(MemoryStorage):
        def init(self):
            raise StorageError("disk full")

    router = RequestRouter(BrokenStorage())

    assert router.handle_get({"action": "getVotes", "businessId": "B1"}) == {
        "success": False, "message": "Failed to initialize"}
    assert router.handle_post("{not json") == {"success": False, "message": "Failed to initialize"}


def test_unexpected_error_becomes_server_error(memory_storage, monkeypatch):
    router = RequestRouter(memory_storage)

    def explode(subject_id):
        raise RuntimeError("boom")

    monkeypatch.setattr(memory_storage.votes, "list_by_subject", explode)

    assert router.handle_get({"action": "getVotes", "businessId": "B1"}) == {
        "success": False, "message": "Server error"}


def test_storage_failure_message_hides_details(memory_storage, monkeypatch):
    router = RequestRouter(memory_storage)

    def fail(vote):
        raise StorageError("Cannot write workbook /srv/hub/thehub.xlsx: disk full")

    monkeypatch.setattr(memory_storage.votes, "upsert", fail)

    result = _vote(router, "A", "like")

    assert result == {"success": False, "message": "Storage error"}


def test_non_ascii_digit_rating_is_a_validation_error(router):
    result = router.handle_post({"action": "submitReview", "productId": "P1", "username": "alice",
                                 "rating": "²", "reviewText": "x"})

    assert result == {"success": False, "message": "Rating must be between 1 and 5"}


# ── Voter matching ─────────────────────────────────────────────────

def test_username_only_read_finds_vote_written_with_user_id(router):
    router.handle_post({"action": "vote", "businessId": "B1", "username": "alice",
                        "userId": "U-1", "voteType": "like"})

    votes = _votes_for(router, "alice")

    assert votes == {"businessId": "B1", "likes": 1, "dislikes": 0, "userVote": "like"}


def test_username_only_vote_updates_user_id_row(router):
    router.handle_post({"action": "vote", "businessId": "B1", "username": "alice",
                        "userId": "U-1", "voteType": "like"})

    _vote(router, "alice", "dislike")
    removed = _vote(router, "alice", "remove")

    assert removed["votes"] == {"businessId": "B1", "likes": 0, "dislikes": 0, "userVote": None}


def test_user_id_vote_updates_username_keyed_row(router, memory_storage):
    _vote(router, "alice", "like")

    router.handle_post({"action": "vote", "businessId": "B1", "username": "alice",
                        "userId": "U-1", "voteType": "dislike"})

    rows = memory_storage.votes.list_by_subject("B1")
    assert [(v.voter_id, v.vote_type.value) for v in rows] == [("alice", "dislike")]


def test_username_only_read_finds_review_written_with_user_id(router):
    router.handle_post({"action": "submitReview", "productId": "P1", "username": "alice",
                        "userId": "U-1", "rating": 4, "reviewText": "from the app"})

    result = router.handle_get({"action": "getReviews", "productId": "P1", "username": "alice"})
    router.handle_post({"action": "submitReview", "productId": "P1", "username": "alice",
                        "rating": 2, "reviewText": "changed"})
    summary = router.handle_get({"action": "getReviewSummary", "productId": "P1"})["summary"]

    assert result["userReview"]["reviewText"] == "from the app"
    assert summary["totalReviews"] == 1
    assert summary["averageRating"] == 2.0
