"""Pytest configuration and shared fixtures."""

import os
import uuid

import pytest
from fastapi.testclient import TestClient

# Keep test runs quiet and offline
os.environ.setdefault("OTEL_ENABLE_TRACES", "false")
os.environ.setdefault("OTEL_ENABLE_METRICS", "false")
os.environ.setdefault("LOG_LEVEL", "WARNING")


@pytest.fixture
def data_dir(tmp_path, monkeypatch):
    """Isolated storage directory."""
    path = tmp_path / "data"
    monkeypatch.setenv("DATA_DIR", str(path))
    return path


@pytest.fixture
def api_client(data_dir, monkeypatch):
    """FastAPI test client fixture with lifespan context and no AI credentials."""
    from api import config
    from api.app import app

    monkeypatch.setattr(config, "AI_API_KEY", "")
    with TestClient(app) as client:
        yield client


@pytest.fixture
def sample_user_data():
    """Sign-up form with a unique email per test."""
    return {
        "email": f"test-{uuid.uuid4().hex[:8]}@example.com",
        "password": "correct-horse",
        "full_name": "Test User",
        "confirm_password": "correct-horse",
    }


@pytest.fixture
def auth_headers(api_client, sample_user_data):
    """Bearer headers for a freshly registered user."""
    response = api_client.post("/auth/register", json=sample_user_data)
    token = response.json()["access_token"]
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def sample_note_data():
    """Sample note data for testing."""
    return {
        "title": "Project meeting",
        "content": "Discussed the important launch plan with the team.",
    }
