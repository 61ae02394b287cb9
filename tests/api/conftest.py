"""Fixtures for API tests over the in-memory store"""
import pytest
from fastapi.testclient import TestClient

from src import config
from src.api.middleware import limiter
from src.api.server import create_api_application
from src.db.memory_store import InMemoryStore
from src.services.container import ServiceContainer


@pytest.fixture
def api_store():
    """Store shared by the app under test"""
    return InMemoryStore()


@pytest.fixture
def client(api_store, test_api_key, monkeypatch):
    """TestClient for an app backed by api_store"""
    monkeypatch.setattr(config, "API_KEYS", [test_api_key])
    monkeypatch.setattr(limiter, "enabled", False)

    app = create_api_application(ServiceContainer(store=api_store))
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def registered_user(client, auth_headers):
    """User created through the API"""
    response = client.post("/api/v1/users", json={"username": "quester"}, headers=auth_headers)
    assert response.status_code == 201
    return response.json()


@pytest.fixture
def created_habit(client, auth_headers, registered_user):
    """Daily habit created through the API"""
    response = client.post(
        f"/api/v1/users/{registered_user['user_id']}/habits",
        json={"name": "Read 20 pages", "frequency": "daily"},
        headers=auth_headers
    )
    assert response.status_code == 201
    return response.json()["habit"]
