"""Shared pytest fixtures and configuration."""

import pytest

from remindly.notifications import EventManager
from remindly.policy import AccessPolicy
from remindly.state_store import StateStore, User


# Register custom markers
def pytest_configure(config: pytest.Config) -> None:
    """Register custom markers for test categorization."""
    config.addinivalue_line("markers", "unit: fast tests with no external dependencies")
    config.addinivalue_line("markers", "integration: full app against an in-memory database")


# Shared fixtures


@pytest.fixture
def store():
    """Create an in-memory StateStore."""
    s = StateStore(":memory:")
    yield s
    s.close()


@pytest.fixture
def admin(store: StateStore) -> User:
    """The first registered user, who is therefore the admin."""
    return store.create_user(name="Ada Admin", email="ada@school.test", password_hash="x")


@pytest.fixture
def student(store: StateStore, admin: User) -> User:
    return store.create_user(name="Sam Student", email="sam@school.test", password_hash="x")


@pytest.fixture
def other_student(store: StateStore, student: User) -> User:
    return store.create_user(name="Olu Other", email="olu@school.test", password_hash="x")


@pytest.fixture
def policy() -> AccessPolicy:
    return AccessPolicy()


@pytest.fixture
def events() -> EventManager:
    return EventManager()
