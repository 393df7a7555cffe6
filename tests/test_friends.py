"""
Friendship state machine: none -> PENDING -> ACCEPTED | DECLINED.
"""

from unittest.mock import patch

import pytest
from sqlalchemy import false
from sqlalchemy.exc import IntegrityError

from core.errors import ConflictError, NotFoundError
from core.friendships import FriendshipGraph
from models import Friendship, FriendshipStatus


@pytest.fixture
def pair(make_user):
    return make_user("alice"), make_user("bob")


def send(client, sender, receiver_id):
    return client.post("/api/friends/request", json={"receiverId": receiver_id}, headers=sender["headers"])


def remove(client, user, friend_id):
    return client.request("DELETE", "/api/friends/remove", json={"friendId": friend_id}, headers=user["headers"])


def test_request_creates_pending_row(client, pair):
    alice, bob = pair

    res = send(client, alice, bob["id"])

    assert res.status_code == 201
    assert res.json()["friendship"] == {
        "id": res.json()["friendship"]["id"],
        "requesterId": alice["id"],
        "receiverId": bob["id"],
        "status": "PENDING",
    }
    incoming = client.get("/api/friends/requests", headers=bob["headers"]).json()["requests"]
    assert [r["requester"] for r in incoming] == [{"id": alice["id"], "username": "alice"}]


def test_reverse_request_while_pending_rejected(client, pair):
    alice, bob = pair
    send(client, alice, bob["id"])

    res = send(client, bob, alice["id"])

    assert res.status_code == 400
    assert res.json() == {"error": "Friendship or friend request already exists"}


def test_self_request_rejected(client, pair):
    alice, _ = pair

    assert send(client, alice, alice["id"]).status_code == 400


def test_request_to_unknown_user(client, pair):
    alice, _ = pair

    assert send(client, alice, 9999).status_code == 404


def test_accept_makes_friends_on_both_sides(client, pair):
    alice, bob = pair
    send(client, alice, bob["id"])

    res = client.post("/api/friends/accept", json={"requesterId": alice["id"]}, headers=bob["headers"])

    assert res.status_code == 200
    assert res.json()["friendship"]["status"] == "ACCEPTED"
    assert client.get("/api/friends/list", headers=alice["headers"]).json() == {
        "friends": [{"id": bob["id"], "username": "bob"}]
    }
    assert client.get("/api/friends/list", headers=bob["headers"]).json() == {
        "friends": [{"id": alice["id"], "username": "alice"}]
    }
    assert client.get("/api/friends/requests", headers=bob["headers"]).json() == {"requests": []}


def test_only_receiver_can_accept(client, pair):
    alice, bob = pair
    send(client, alice, bob["id"])

    res = client.post("/api/friends/accept", json={"requesterId": bob["id"]}, headers=alice["headers"])

    assert res.status_code == 404


def test_accept_remove_then_request_again(client, pair, db):
    alice, bob = pair
    send(client, alice, bob["id"])
    client.post("/api/friends/accept", json={"requesterId": alice["id"]}, headers=bob["headers"])

    res = remove(client, bob, alice["id"])

    assert res.status_code == 200
    assert db.query(Friendship).count() == 0
    assert send(client, bob, alice["id"]).status_code == 201


def test_remove_requires_accepted_friendship(client, pair):
    alice, bob = pair
    send(client, alice, bob["id"])

    assert remove(client, alice, bob["id"]).status_code == 404


def test_decline_blocks_new_requests(client, pair):
    alice, bob = pair
    send(client, alice, bob["id"])

    res = client.post("/api/friends/decline", json={"requesterId": alice["id"]}, headers=bob["headers"])

    assert res.json()["friendship"]["status"] == "DECLINED"
    assert send(client, alice, bob["id"]).status_code == 400
    assert send(client, bob, alice["id"]).status_code == 400
    assert client.get("/api/friends/list", headers=alice["headers"]).json() == {"friends": []}


def test_missing_ids_rejected(client, pair):
    alice, _ = pair

    assert client.post("/api/friends/request", json={}, headers=alice["headers"]).status_code == 400
    assert client.post("/api/friends/accept", json={}, headers=alice["headers"]).status_code == 400
    assert client.request("DELETE", "/api/friends/remove", json={}, headers=alice["headers"]).status_code == 400


def test_request_from_missing_requester_writes_nothing(db, pair):
    _, bob = pair

    with pytest.raises(NotFoundError):
        FriendshipGraph(db).request(9999, bob["id"])

    assert db.query(Friendship).count() == 0


def test_pair_constraints_hold_at_the_table(db, pair):
    alice, bob = pair
    db.add(Friendship(requester_id=alice["id"], receiver_id=bob["id"], status=FriendshipStatus.PENDING))
    db.commit()

    db.add(Friendship(requester_id=alice["id"], receiver_id=bob["id"], status=FriendshipStatus.PENDING))
    with pytest.raises(IntegrityError):
        db.commit()
    db.rollback()

    db.add(Friendship(requester_id=alice["id"], receiver_id=alice["id"], status=FriendshipStatus.PENDING))
    with pytest.raises(IntegrityError):
        db.commit()
    db.rollback()


def test_concurrent_duplicate_request_is_a_conflict(client, db, pair):
    alice, bob = pair
    send(client, alice, bob["id"])

    # Another request slipped past the existence check.
    with patch("core.friendships._between", return_value=false()):
        with pytest.raises(ConflictError):
            FriendshipGraph(db).request(alice["id"], bob["id"])

    assert db.query(Friendship).count() == 1
