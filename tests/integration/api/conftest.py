"""Fixtures for API integration tests: the full app over an in-memory database."""

from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient

from remindly.api import create_app
from remindly.auth import FederatedProfile
from remindly.config import Settings


@pytest.fixture
def identity_provider() -> MagicMock:
    provider = MagicMock()
    provider.resolve.return_value = FederatedProfile(
        subject="g-42", email="fed@school.test", name="Fed Student", avatar=None
    )
    return provider


@pytest.fixture
def client(identity_provider: MagicMock):
    """Create a test client with the full lifespan (store, inbox, routes)."""
    settings = Settings(jwt_secret="test-secret", bcrypt_rounds=4, cors_origins=["*"])
    app = create_app(db_path=":memory:", settings=settings, identity_provider=identity_provider)
    with TestClient(app, raise_server_exceptions=False) as client:
        yield client


def _register(client: TestClient, name: str, email: str, password: str = "pw-123456") -> dict:
    """Register a user and return {"token", "user", "headers"}."""
    response = client.post(
        "/api/v1/auth/register", json={"name": name, "email": email, "password": password}
    )
    assert response.status_code == 201, response.text
    data = response.json()["data"]
    data["headers"] = {"Authorization": f"Bearer {data['token']}"}
    return data


@pytest.fixture
def admin(client: TestClient) -> dict:
    return _register(client, "Ada Admin", "ada@school.test")


@pytest.fixture
def student(client: TestClient, admin: dict) -> dict:
    return _register(client, "Sam Student", "sam@school.test")


@pytest.fixture
def other_student(client: TestClient, student: dict) -> dict:
    return _register(client, "Olu Other", "olu@school.test")


@pytest.fixture
def signup(client: TestClient):
    """Register additional users from inside a test."""

    def _signup(name: str, email: str, password: str = "pw-123456") -> dict:
        return _register(client, name, email, password)

    return _signup
