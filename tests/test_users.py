"""
Registration, login and user management.
"""

from models import User


class TestRegistration:

    def test_register_returns_public_profile(self, client):
        res = client.post("/api/users/register", json={"username": "alice", "password": "secret123"})

        assert res.status_code == 201
        body = res.json()
        assert set(body) == {"id", "username"}
        assert body["username"] == "alice"

    def test_password_is_stored_hashed(self, client, db):
        client.post("/api/users/register", json={"username": "alice", "password": "secret123"})

        user = db.query(User).filter(User.username == "alice").one()
        assert user.hashed_password != "secret123"
        assert user.role.name == "USER"

    def test_short_username_rejected(self, client):
        res = client.post("/api/users/register", json={"username": "al", "password": "secret123"})

        assert res.status_code == 400
        assert "Username" in res.json()["error"]

    def test_short_password_rejected(self, client):
        res = client.post("/api/users/register", json={"username": "alice", "password": "12345"})

        assert res.status_code == 400
        assert "Password" in res.json()["error"]

    def test_missing_fields_rejected(self, client):
        res = client.post("/api/users/register", json={})

        assert res.status_code == 400
        assert "error" in res.json()

    def test_duplicate_username_rejected_and_original_kept(self, client, db):
        first = client.post("/api/users/register", json={"username": "alice", "password": "secret123"})
        original_hash = db.query(User).filter(User.username == "alice").one().hashed_password

        second = client.post("/api/users/register", json={"username": "alice", "password": "other-pass"})

        assert second.status_code == 400
        assert second.json() == {"error": "Username already exists"}
        db.expire_all()
        users = db.query(User).filter(User.username == "alice").all()
        assert len(users) == 1
        assert users[0].id == first.json()["id"]
        assert users[0].hashed_password == original_hash


class TestLogin:

    def test_login_returns_token_and_identity(self, client):
        client.post("/api/users/register", json={"username": "alice", "password": "secret123"})

        res = client.post("/api/users/login", json={"username": "alice", "password": "secret123"})

        assert res.status_code == 200
        body = res.json()
        assert body["token"]
        assert body["user"]["username"] == "alice"
        assert body["user"]["role"] == "USER"

    def test_wrong_password_and_unknown_user_look_the_same(self, client):
        client.post("/api/users/register", json={"username": "alice", "password": "secret123"})

        wrong_password = client.post("/api/users/login", json={"username": "alice", "password": "nope-nope"})
        unknown_user = client.post("/api/users/login", json={"username": "nobody", "password": "secret123"})

        assert wrong_password.status_code == 401
        assert unknown_user.status_code == 401
        assert wrong_password.json() == unknown_user.json() == {"error": "Invalid username or password"}


class TestUserManagement:

    def test_list_and_get_users(self, client, make_user):
        alice = make_user("alice")
        bob = make_user("bob")

        listed = client.get("/api/users", headers=alice["headers"]).json()
        assert [u["username"] for u in listed] == ["alice", "bob"]
        assert listed[0]["role"]["name"] == "USER"

        res = client.get(f"/api/users/{bob['id']}", headers=alice["headers"])
        assert res.json()["username"] == "bob"

    def test_me(self, client, make_user):
        alice = make_user("alice")

        res = client.get("/api/users/me", headers=alice["headers"])

        assert res.json()["id"] == alice["id"]

    def test_get_unknown_user(self, client, make_user):
        alice = make_user("alice")

        res = client.get("/api/users/9999", headers=alice["headers"])

        assert res.status_code == 404
        assert res.json() == {"error": "User not found"}

    def test_update_requires_a_field(self, client, make_user):
        alice = make_user("alice")

        res = client.put(f"/api/users/{alice['id']}", json={}, headers=alice["headers"])

        assert res.status_code == 400
        assert res.json() == {"error": "No fields to update"}

    def test_update_own_password_rehashes(self, client, make_user):
        alice = make_user("alice")

        res = client.patch(f"/api/users/{alice['id']}", json={"password": "new-secret"}, headers=alice["headers"])
        assert res.status_code == 200

        old = client.post("/api/users/login", json={"username": "alice", "password": "secret123"})
        new = client.post("/api/users/login", json={"username": "alice", "password": "new-secret"})
        assert old.status_code == 401
        assert new.status_code == 200

    def test_rename_to_taken_username_conflicts(self, client, make_user):
        alice = make_user("alice")
        make_user("bob")

        res = client.put(f"/api/users/{alice['id']}", json={"username": "bob"}, headers=alice["headers"])

        assert res.status_code == 400
        assert res.json() == {"error": "Username already exists"}

    def test_cannot_update_someone_else(self, client, make_user):
        alice = make_user("alice")
        bob = make_user("bob")

        res = client.put(f"/api/users/{bob['id']}", json={"username": "robert"}, headers=alice["headers"])

        assert res.status_code == 403

    def test_user_cannot_grant_themselves_a_role(self, client, make_user):
        alice = make_user("alice")

        res = client.put(f"/api/users/{alice['id']}", json={"roleId": 1}, headers=alice["headers"])

        assert res.status_code == 403


class TestRoleChange:

    def test_admin_changes_role(self, client, make_user):
        admin = make_user("admin", admin=True)
        alice = make_user("alice")

        res = client.patch(f"/api/users/{alice['id']}/role", json={"roleId": 1}, headers=admin["headers"])

        assert res.status_code == 200
        assert res.json()["role"] == {"id": 1, "name": "ADMIN"}

    def test_role_change_requires_admin(self, client, make_user):
        alice = make_user("alice")
        bob = make_user("bob")

        res = client.patch(f"/api/users/{bob['id']}/role", json={"roleId": 1}, headers=alice["headers"])

        assert res.status_code == 403
        assert res.json() == {"error": "Admin privileges required"}

    def test_role_change_requires_role_id(self, client, make_user):
        admin = make_user("admin", admin=True)
        alice = make_user("alice")

        missing = client.patch(f"/api/users/{alice['id']}/role", json={}, headers=admin["headers"])
        invalid = client.patch(f"/api/users/{alice['id']}/role", json={"roleId": 99}, headers=admin["headers"])

        assert missing.status_code == 400
        assert invalid.status_code == 400
        assert invalid.json() == {"error": "Invalid roleId"}
