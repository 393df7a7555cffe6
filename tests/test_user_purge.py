"""
Deleting a user removes every row that points at them, atomically.
"""

from unittest.mock import patch

import pytest

from core.errors import NotFoundError
from core.users import UserStore
from models import Calendar, Friendship, Query, QueryUser, User


@pytest.fixture
def populated(client, make_user, upload_calendar):
    """
    alice: 1 calendar, 2 queries, 1 accepted friendship with bob,
    and is the target of one of bob's queries.
    """
    alice = make_user("alice")
    bob = make_user("bob")
    upload_calendar(alice)
    upload_calendar(bob)

    for _ in range(2):
        body = {"userId": [bob["id"]], "content": "When?", "typeId": 1}
        assert client.post("/api/queries", json=body, headers=alice["headers"]).status_code == 201
    body = {"userId": [alice["id"]], "content": "And you?", "typeId": 1}
    assert client.post("/api/queries", json=body, headers=bob["headers"]).status_code == 201

    client.post("/api/friends/request", json={"receiverId": bob["id"]}, headers=alice["headers"])
    client.post("/api/friends/accept", json={"requesterId": alice["id"]}, headers=bob["headers"])
    return alice, bob


def counts(db):
    db.expire_all()
    return {
        "users": db.query(User).count(),
        "calendars": db.query(Calendar).count(),
        "queries": db.query(Query).count(),
        "query_users": db.query(QueryUser).count(),
        "friendships": db.query(Friendship).count(),
    }


def test_admin_delete_cascades(client, make_user, populated, db):
    alice, bob = populated
    admin = make_user("admin", admin=True)

    res = client.delete(f"/api/users/{alice['id']}", headers=admin["headers"])

    assert res.status_code == 200
    assert counts(db) == {
        "users": 2,
        "calendars": 1,
        "queries": 1,
        "query_users": 0,
        "friendships": 0,
    }
    remaining = db.query(Query).one()
    assert remaining.user_id == bob["id"]
    assert db.get(User, alice["id"]) is None


def test_failure_mid_purge_rolls_everything_back(populated, db):
    alice, _ = populated
    before = counts(db)

    store = UserStore(db)
    with patch.object(UserStore, "_delete_calendar", side_effect=RuntimeError("disk full")):
        with pytest.raises(RuntimeError):
            store.delete(alice["id"])

    assert counts(db) == before
    assert db.get(User, alice["id"]) is not None


def test_delete_unknown_user(db):
    with pytest.raises(NotFoundError):
        UserStore(db).delete(4242)
