"""
pytest configuration and fixtures.
"""

import logging
import os

os.environ.setdefault("ENVIRONMENT", "test")

import pytest
from fastapi.testclient import TestClient

from userapi.config import Settings
from userapi.database import Database
from userapi.main import create_app
from userapi.utils.logger import logger

TEST_API_KEY = "test-api-key"


@pytest.fixture
def settings() -> Settings:
    """Settings pointing at an in-memory SQLite database."""
    return Settings(database_url="sqlite://", api_key=TEST_API_KEY, environment="test")


@pytest.fixture
def database(settings):
    """Fresh schema for every test."""
    db = Database(settings.sqlalchemy_database_uri)
    db.create_all()
    yield db
    db.dispose()


@pytest.fixture
def session(database):
    """ORM session on the test database."""
    db = database.session()
    yield db
    db.close()


@pytest.fixture
def client(settings, database):
    """Test client for an application wired to the test database."""
    app = create_app(settings=settings, database=database)
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def create_user(client):
    """Create a user through the API and return its data."""
    def _create(name: str = "Ali", email: str = "ali@example.com", **extra) -> dict:
        response = client.post("/users", json={"name": name, "email": email, **extra})
        assert response.status_code == 201, response.text
        return response.json()["data"]
    return _create


@pytest.fixture
def log_records(caplog):
    """Capture records from the application logger, which does not propagate."""
    logger.addHandler(caplog.handler)
    caplog.set_level(logging.DEBUG)
    yield caplog
    logger.removeHandler(caplog.handler)
