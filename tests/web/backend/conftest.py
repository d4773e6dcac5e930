"""Fixtures for API tests: an app bound to a throwaway data directory."""

import pytest
from fastapi.testclient import TestClient


@pytest.fixture
def client(vibeflow_env):
    from web.backend.main import app

    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def signup(client):
    """Create an account; the client carries its session cookie afterwards."""

    def create(email: str = "alice@example.com", name: str = "Alice") -> dict:
        response = client.post(
            "/api/auth/signup",
            json={"email": email, "password": "secret", "displayName": name},
        )
        assert response.status_code == 200, response.text
        return response.json()["user"]

    return create


@pytest.fixture
def user(signup) -> dict:
    return signup()
