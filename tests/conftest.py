"""Shared test configuration and fixtures for Dynamic Forms tests"""

import logging
import os

# Configuration is read once at import time, so set it before importing the app
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["ENVIRONMENT"] = "test"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

from dynamic_forms.main import app
from dynamic_forms.models.database import get_db
from dynamic_forms.services.form_submission_service import FormSubmissionService

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


@pytest.fixture
def engine():
    """In-memory SQLite database shared by every session of one test"""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)

    yield engine

    engine.dispose()


@pytest.fixture
def _db_session(engine):
    """Private DB session for fixtures only.

    Do not use this fixture directly in tests. Prefer the
    `form_submission_service` fixture to avoid coupling tests to the
    session internals.
    """
    session = Session(engine)

    yield session

    session.close()


@pytest.fixture
def form_submission_service(_db_session):
    """Create a FormSubmissionService instance for testing"""
    return FormSubmissionService(_db_session)


@pytest.fixture
def client(engine):
    """Test client whose requests use the test database"""

    # Store original overrides to restore them later
    original_overrides = app.dependency_overrides.copy()

    def get_test_db():
        with Session(engine) as session:
            yield session

    app.dependency_overrides.clear()
    app.dependency_overrides[get_db] = get_test_db

    yield TestClient(app)

    # Completely restore original state
    app.dependency_overrides.clear()
    app.dependency_overrides.update(original_overrides)


@pytest.fixture
def create_submission(client):
    """Create a submission through the API and return its document"""

    def _create(**fields):
        response = client.post("/forms", json=fields)
        assert response.status_code == 201, response.text
        return response.json()["data"]

    return _create
