"""Pytest configuration and fixtures."""

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import models  # noqa: F401
from api.helpers import get_nordigen_client, get_registry
from database import Base, get_db
from main import app
from services.record_store import SQLRecordStore
# Pytest fixtures - imported to make them available to tests
from tests.fixtures import (  # noqa: F401
    aggregator_config,
    bank_connection,
    expiring_config,
)
from tests.fixtures.mocks import MockNordigenClient, MockProviderRegistry


@pytest.fixture(name="db")
def db_fixture():
    """Create an in-memory SQLite database for testing."""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)

    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestingSessionLocal()

    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture(name="store")
def store_fixture(db):
    """Record store over the test database."""
    return SQLRecordStore(db)


@pytest.fixture(name="mock_nordigen")
def mock_nordigen_fixture():
    """A Nordigen client that succeeds on every call."""
    return MockNordigenClient()


@pytest.fixture(name="client")
def client_fixture(db, mock_nordigen):
    """Create a test client with the test database and a mocked Nordigen API."""

    def override_get_db():
        try:
            yield db
        finally:
            pass

    def override_get_nordigen_client():
        return mock_nordigen

    def override_get_registry():
        return MockProviderRegistry(mock_nordigen)

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_nordigen_client] = override_get_nordigen_client
    app.dependency_overrides[get_registry] = override_get_registry
    client = TestClient(app)
    yield client
    app.dependency_overrides.clear()
