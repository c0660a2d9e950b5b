"""Shared fixtures for the store locator test suite."""

import pytest

from store_locator.logging.context import clear_log_context
from store_locator.persistence.database import Database
from tests.helpers import FakeGeocodeProvider


@pytest.fixture(autouse=True)
def clean_log_context():
    """Clear logging context before and after each test."""
    clear_log_context()
    yield
    clear_log_context()


@pytest.fixture
def database():
    """Open in-memory database, shared across threads."""
    db = Database("sqlite:///:memory:").open()
    yield db
    db.close()


@pytest.fixture
def fake_provider():
    return FakeGeocodeProvider()


@pytest.fixture
def mock_env_vars(monkeypatch):
    """Set the environment variables the loader reads."""
    monkeypatch.setenv("GEOCODE_API_KEY", "test-api-key")
    monkeypatch.setenv("DATABASE_URL", "sqlite:///:memory:")
    monkeypatch.delenv("LOG_LEVEL", raising=False)
