"""Tests for account endpoints."""

from vibeflow.domain.auth import SESSION_COOKIE


def test_signup_logs_in(client, signup):
    user = signup()

    assert user["email"] == "alice@example.com"
    assert user["displayName"] == "Alice"
    assert "password" not in user
    assert client.cookies.get(SESSION_COOKIE)
    assert client.get("/api/auth/me").json()["user"]["id"] == user["id"]


def test_signup_requires_all_fields(client):
    response = client.post("/api/auth/signup", json={"email": "a@b.c", "password": "x"})
    assert response.status_code == 400
    assert response.json()["detail"] == "All fields are required"


def test_duplicate_email(client, user):
    response = client.post(
        "/api/auth/signup",
        json={"email": "ALICE@example.com", "password": "other", "displayName": "A2"},
    )
    assert response.status_code == 400
    assert response.json()["detail"] == "Email already registered"


def test_login(client, user):
    client.post("/api/auth/logout")
    client.cookies.clear()

    response = client.post(
        "/api/auth/login", json={"email": "alice@example.com", "password": "secret"}
    )

    assert response.status_code == 200
    assert response.json()["user"]["id"] == user["id"]
    assert client.get("/api/songs").status_code == 200


def test_login_rejects_wrong_password(client, user):
    client.cookies.clear()
    response = client.post(
        "/api/auth/login", json={"email": "alice@example.com", "password": "nope"}
    )
    assert response.status_code == 401
    assert response.json()["detail"] == "Invalid credentials"


def test_logout_revokes_session(client, user):
    token = client.cookies.get(SESSION_COOKIE)

    assert client.post("/api/auth/logout").json()["success"] is True

    client.cookies.set(SESSION_COOKIE, token)
    assert client.get("/api/songs").status_code == 401


def test_me_without_session(client):
    response = client.get("/api/auth/me")
    assert response.status_code == 200
    assert response.json() == {"user": None}
