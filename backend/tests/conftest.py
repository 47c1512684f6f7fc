"""Pytest configuration and fixtures."""

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from api.dependencies import get_alert_client, get_registry, get_worker_dispatcher
from config import settings
from database import Base, get_db
from main import app
from services.job_processor import JobProcessor
from services.worker_dispatcher import WorkerDispatcher
# Pytest fixtures - imported to make them available to tests
from tests.fixtures import integration, integration_key  # noqa: F401
from tests.fixtures.mocks import (
    SAMPLE_METRICS,
    MockAdProviderClient,
    MockProviderRegistry,
    RecordingAlertClient,
)

CRON_SECRET = "test-cron-secret"


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


@pytest.fixture(autouse=True)
def cron_secret(monkeypatch):
    """Configure the automation credential for every test."""
    monkeypatch.setattr(settings, "INTEGRATIONS_CRON_SECRET", CRON_SECRET)
    return CRON_SECRET


@pytest.fixture(name="auth_headers")
def auth_headers_fixture(cron_secret):
    return {"X-Cron-Key": cron_secret}


@pytest.fixture(name="mock_registry")
def mock_registry_fixture():
    """Registry with a working Google client and a failing Facebook client."""
    return MockProviderRegistry(
        {
            "google": MockAdProviderClient("google", metrics=SAMPLE_METRICS),
            "facebook": MockAdProviderClient(
                "facebook",
                should_fail=True,
                failure_message="Token expired",
                failure_type="auth",
            ),
        }
    )


@pytest.fixture(name="alert_client")
def alert_client_fixture():
    return RecordingAlertClient()


@pytest.fixture(name="client")
def client_fixture(db, mock_registry, alert_client):
    """Create a test client with the test database and mock collaborators."""

    def override_get_db():
        try:
            yield db
        finally:
            pass

    def override_get_worker_dispatcher():
        return WorkerDispatcher(JobProcessor(mock_registry), job_delay_seconds=0)

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_registry] = lambda: mock_registry
    app.dependency_overrides[get_alert_client] = lambda: alert_client
    app.dependency_overrides[get_worker_dispatcher] = override_get_worker_dispatcher
    client = TestClient(app)
    yield client
    app.dependency_overrides.clear()
