"""Pytest configuration for trading academy tests

WHAT: Shared fixtures for store, service, view and HTTP endpoint tests
WHY: Every test gets an isolated in-memory SQLite database with the full
     schema, foreign keys enforced and the catalog optionally seeded
REFERENCES:
    - trading_academy/main.py: FastAPI application
    - trading_academy/database.py: get_db dependency overridden here
    - trading_academy/constraints.py: SQLite foreign key pragma
"""

import os
import uuid
from datetime import datetime, timedelta, timezone
from typing import Generator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

# Set test environment before the package builds its engine and settings
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")
os.environ.setdefault("JWT_SECRET", "test-jwt-secret")
os.environ.setdefault("ENVIRONMENT", "test")


# ============================================================================
# Database Fixtures
# ============================================================================

@pytest.fixture
def test_db_engine():
    """Create in-memory test database engine."""
    # StaticPool keeps one connection so every session sees the same database
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    from trading_academy.database import Base
    Base.metadata.create_all(bind=engine)

    yield engine

    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def test_db_session(test_db_engine) -> Generator[Session, None, None]:
    """Create test database session with rollback."""
    SessionLocal = sessionmaker(
        autocommit=False,
        autoflush=False,
        bind=test_db_engine
    )

    session = SessionLocal()
    yield session
    session.rollback()
    session.close()


# ============================================================================
# Application & Client Fixtures
# ============================================================================

@pytest.fixture
def app(test_db_session):
    """Create FastAPI test application."""
    from trading_academy.main import create_app
    from trading_academy.database import get_db

    test_app = create_app()

    def override_get_db():
        yield test_db_session

    test_app.dependency_overrides[get_db] = override_get_db
    return test_app


@pytest.fixture
def api(app) -> TestClient:
    """TestClient for HTTP testing (named `api` to keep `client` for client rows)."""
    return TestClient(app)


# ============================================================================
# Authentication Fixtures
# ============================================================================

@pytest.fixture
def make_token():
    """Build a bearer token whose subject is the given client id."""
    from jose import jwt

    def _make(subject, expires_in: timedelta = timedelta(hours=1), secret: str = None) -> str:
        data = {
            "sub": str(subject),
            "exp": datetime.now(timezone.utc) + expires_in,
        }
        return jwt.encode(data, secret or os.environ["JWT_SECRET"], algorithm="HS256")

    return _make


@pytest.fixture
def auth_headers(make_token):
    """Authorization headers for a client id."""
    def _headers(client_id) -> dict:
        return {"Authorization": f"Bearer {make_token(client_id)}"}

    return _headers


# ============================================================================
# Model Fixtures
# ============================================================================

@pytest.fixture
def make_client(test_db_session):
    """Factory for committed client rows with unique emails."""
    from trading_academy.models import Client

    def _make(**overrides) -> Client:
        suffix = uuid.uuid4().hex[:8]
        values = {
            "name": f"Client {suffix}",
            "email": f"client-{suffix}@example.com",
            "phone": "+44 7700 900000",
        }
        values.update(overrides)
        client = Client(**values)
        test_db_session.add(client)
        test_db_session.commit()
        test_db_session.refresh(client)
        return client

    return _make


@pytest.fixture
def client_a(make_client):
    return make_client(name="Alice Trader", email="alice@example.com")


@pytest.fixture
def client_b(make_client):
    return make_client(name="Bob Trader", email="bob@example.com")


@pytest.fixture
def seeded_catalog(test_db_session):
    """Seed the launch catalog and return the committed session."""
    from trading_academy.seed import seed_catalog

    seed_catalog(test_db_session)
    return test_db_session


@pytest.fixture
def course(seeded_catalog):
    from trading_academy.models import Course
    from trading_academy.seed import catalog_id

    return seeded_catalog.get(Course, catalog_id("course", "Beginner Package"))


@pytest.fixture
def program(seeded_catalog):
    from trading_academy.models import MentorshipProgram
    from trading_academy.seed import catalog_id

    return seeded_catalog.get(MentorshipProgram, catalog_id("mentorship", "Monthly Mentorship"))
