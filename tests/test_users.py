"""
Tests for the user account endpoints.

Tests cover:
- Signup, including validation and duplicate usernames
- Login success and the generic failure message
- Lookup and deletion by username
- Password reset
- Password storage as a hash
"""

import asyncio

import pytest

from chatboard import user_service
from chatboard.models import User
from chatboard.schemas import ServiceError
from chatboard.security import verify_password
from chatboard.storage import SessionLocal


SIGNUP_URL = "/user/signup"
LOGIN_URL = "/user/login"
RESET_URL = "/user/resetPassword"


def signup(client, username: str = "alice", password: str = "secret"):
    return client.post(SIGNUP_URL, json={"username": username, "password": password})


INVALID_BODIES = [
    {},
    {"username": "alice"},
    {"password": "secret"},
    {"username": "", "password": "secret"},
    {"username": "alice", "password": ""},
]


class TestSignup:
    """Test POST /user/signup."""

    def test_signup_success(self, client):
        """Test a new user is returned without its password."""
        response = signup(client)

        assert response.status_code == 200
        data = response.json()
        assert data["username"] == "alice"
        assert data["_id"]
        assert data["dateJoined"].endswith("Z")
        assert "password" not in data

    @pytest.mark.parametrize("body", INVALID_BODIES)
    def test_signup_invalid_body(self, client, body):
        """Test missing or empty credentials are rejected."""
        response = client.post(SIGNUP_URL, json=body)

        assert response.status_code == 400
        assert response.text == "Invalid user body"

    def test_signup_no_body(self, client):
        """Test request with no body is rejected."""
        response = client.post(SIGNUP_URL)

        assert response.status_code == 400
        assert response.text == "Invalid user body"

    def test_signup_duplicate_username(self, client):
        """Test signing up twice with one username fails."""
        signup(client)

        response = signup(client, password="other")

        assert response.status_code == 500
        assert response.text.startswith("Error occured while creating user: ")
        assert "alice" in response.text

    def test_password_is_hashed(self, client):
        """Test the stored password is a hash of the submitted one."""
        signup(client)

        with SessionLocal() as session:
            record = session.query(User).filter(User.username == "alice").one()

        assert record.password != "secret"
        assert verify_password("secret", record.password)


class TestLogin:
    """Test POST /user/login."""

    def test_login_success(self, client):
        """Test correct credentials return the user."""
        created = signup(client).json()

        response = client.post(LOGIN_URL, json={"username": "alice", "password": "secret"})

        assert response.status_code == 200
        assert response.json() == created

    def test_login_wrong_password(self, client):
        """Test a wrong password is a generic failure."""
        signup(client)

        response = client.post(LOGIN_URL, json={"username": "alice", "password": "nope"})

        assert response.status_code == 500
        assert response.text == "Login failed"

    def test_login_unknown_user(self, client):
        """Test an unknown user gets the same generic failure."""
        response = client.post(LOGIN_URL, json={"username": "ghost", "password": "secret"})

        assert response.status_code == 500
        assert response.text == "Login failed"

    def test_unknown_user_runs_hash_check(self, client, monkeypatch):
        """Test an unknown user still goes through a password hash check."""
        calls = []
        monkeypatch.setattr(user_service, "dummy_verify", lambda: calls.append("dummy"))

        response = client.post(LOGIN_URL, json={"username": "ghost", "password": "secret"})

        assert response.status_code == 500
        assert response.text == "Login failed"
        assert calls == ["dummy"]

    def test_wrong_password_skips_dummy_check(self, client, monkeypatch):
        """Test a known user is checked against the real hash only."""
        signup(client)
        calls = []
        monkeypatch.setattr(user_service, "dummy_verify", lambda: calls.append("dummy"))

        response = client.post(LOGIN_URL, json={"username": "alice", "password": "nope"})

        assert response.status_code == 500
        assert calls == []

    def test_login_runs_off_event_loop(self, client, monkeypatch):
        """Test password checks run in a worker thread, not on the event loop."""
        seen = []

        def record_thread(db, credentials):
            try:
                asyncio.get_running_loop()
                seen.append("event-loop")
            except RuntimeError:
                seen.append("worker")
            return ServiceError(error="nope")

        monkeypatch.setattr(user_service, "login_user", record_thread)

        client.post(LOGIN_URL, json={"username": "alice", "password": "secret"})

        assert seen == ["worker"]

    def test_login_service_exception(self, client, monkeypatch):
        """Test an exception from the service is still a generic failure."""
        def explode(db, credentials):
            raise RuntimeError("boom")

        monkeypatch.setattr(user_service, "login_user", explode)

        response = client.post(LOGIN_URL, json={"username": "alice", "password": "secret"})

        assert response.status_code == 500
        assert response.text == "Login failed"

    @pytest.mark.parametrize("body", INVALID_BODIES)
    def test_login_invalid_body(self, client, body):
        """Test missing or empty credentials are rejected."""
        response = client.post(LOGIN_URL, json=body)

        assert response.status_code == 400
        assert response.text == "Invalid user body"


class TestGetUser:
    """Test GET /user/getUser/{username}."""

    def test_get_user(self, client):
        """Test an existing user is returned."""
        created = signup(client).json()

        response = client.get("/user/getUser/alice")

        assert response.status_code == 200
        assert response.json() == created

    def test_get_missing_user(self, client):
        """Test an unknown user is a 500 with an error."""
        response = client.get("/user/getUser/ghost")

        assert response.status_code == 500
        assert response.json() == {
            "error": "Error occured when getting user by username: User not found"
        }


class TestDeleteUser:
    """Test DELETE /user/deleteUser/{username}."""

    def test_delete_user(self, client):
        """Test deleting returns the removed user and it is gone afterwards."""
        created = signup(client).json()

        response = client.delete("/user/deleteUser/alice")

        assert response.status_code == 200
        assert response.json() == created
        assert client.get("/user/getUser/alice").status_code == 500

    def test_delete_missing_user(self, client):
        """Test deleting an unknown user is a 500 with an error."""
        response = client.delete("/user/deleteUser/ghost")

        assert response.status_code == 500
        assert response.json() == {
            "error": "Error occured when deleting user by username: User not found"
        }


class TestResetPassword:
    """Test PATCH /user/resetPassword."""

    def test_reset_password(self, client):
        """Test the new password works and the old one no longer does."""
        created = signup(client).json()

        response = client.patch(RESET_URL, json={"username": "alice", "password": "fresh"})

        assert response.status_code == 200
        assert response.json() == created
        assert client.post(LOGIN_URL, json={"username": "alice", "password": "fresh"}).status_code == 200
        assert client.post(LOGIN_URL, json={"username": "alice", "password": "secret"}).status_code == 500

    def test_reset_missing_user(self, client):
        """Test resetting an unknown user is a 500 with an error."""
        response = client.patch(RESET_URL, json={"username": "ghost", "password": "fresh"})

        assert response.status_code == 500
        assert response.json() == {"error": "Error when updating user password: User not found"}

    @pytest.mark.parametrize("body", INVALID_BODIES)
    def test_reset_invalid_body(self, client, body):
        """Test missing or empty credentials are rejected."""
        response = client.patch(RESET_URL, json=body)

        assert response.status_code == 400
        assert response.text == "Invalid user body"
