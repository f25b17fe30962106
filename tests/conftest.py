"""
Pytest configuration and fixtures.
"""
import uuid

import pytest
from fastapi.testclient import TestClient

from cor_engine.core.database import Base, build_engine, build_session_factory, get_db
from cor_engine.main import app

# Import all models to ensure they register with Base.metadata
from cor_engine.models import (  # noqa: F401
    ActivityLog,
    Audit,
    AuditNumberSequence,
    Auditor,
    Certificate,
    Deficiency,
)

# Use file-based SQLite for testing (more reliable than in-memory)
TEST_DATABASE_URL = "sqlite:///./test_cor_engine.db"

test_engine = build_engine(TEST_DATABASE_URL)

TestingSessionLocal = build_session_factory(test_engine)


@pytest.fixture(scope="session", autouse=True)
def setup_test_database():
    """Create all tables once per session and drop them afterwards."""
    Base.metadata.drop_all(bind=test_engine)
    Base.metadata.create_all(bind=test_engine)
    yield
    Base.metadata.drop_all(bind=test_engine)


@pytest.fixture(scope="function")
def organization_id():
    """
    A fresh organization per test.

    Every query is partitioned by organization, so this isolates tests
    sharing the session-wide database.
    """
    return f"org-{uuid.uuid4()}"


@pytest.fixture(scope="function")
def client():
    """
    Test client with get_db overridden to the test database.

    A new session is created for each request (as FastAPI expects).
    """
    def override_get_db():
        db = TestingSessionLocal()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db

    yield TestClient(app)

    app.dependency_overrides.clear()


@pytest.fixture(scope="function")
def db_session():
    """Database session for tests that call services directly."""
    db = TestingSessionLocal()
    try:
        yield db
        db.rollback()
    finally:
        db.close()
