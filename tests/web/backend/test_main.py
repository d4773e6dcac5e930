"""Tests for the FastAPI application shell."""


def test_health_endpoint(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "healthy"}


def test_cors_headers(client):
    response = client.options(
        "/health",
        headers={
            "Origin": "http://localhost:5173",
            "Access-Control-Request-Method": "GET",
        },
    )
    assert response.status_code == 200
    assert response.headers["access-control-allow-origin"] == "http://localhost:5173"
    assert response.headers["access-control-allow-credentials"] == "true"


def test_startup_creates_audio_dir(client, vibeflow_env):
    assert (vibeflow_env / "data" / "uploads" / "audio").is_dir()
    assert (vibeflow_env / "data" / "vibeflow.db").exists()
