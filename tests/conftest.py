"""
Pytest configuration and fixtures.
"""

import os

# Settings are read at import time; configure the test environment first
os.environ.setdefault("SQLITE_DB", ":memory:")
os.environ["DB_TYPE"] = "sqlite"
os.environ["CACHE_ENABLED"] = "false"
os.environ["JWT_SECRET"] = "test-secret"
os.environ["DEFAULT_ADMIN_EMAIL"] = ""
os.environ["DEFAULT_ADMIN_PASSWORD"] = ""

from typing import Callable, Dict, Generator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool

from georegistry import app
from georegistry.core.database import Base, get_db
from georegistry.models.user import User
from georegistry.schemas.location import LocationCreate
from georegistry.schemas.user import AdminUserCreate, UserIdentity
from georegistry.services import location as location_service
from georegistry.services import user as user_service
from georegistry.services.user import to_identity

DEFAULT_PASSWORD = "secret123"


@pytest.fixture(scope="function")
def db_engine():
    """
    Create a fresh in-memory database for each test.

    StaticPool keeps a single connection so every session, including the ones
    used from the TestClient worker threads, sees the same database.
    """
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},  # Required for SQLite
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture(scope="function")
def db_session(db_engine) -> Generator[Session, None, None]:
    """Create a database session bound to the per-test database."""
    TestingSessionLocal = sessionmaker(
        autocommit=False,
        autoflush=False,
        bind=db_engine,
        expire_on_commit=False,
    )
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture(scope="function")
def client(db_session) -> Generator[TestClient, None, None]:
    """
    Create test client with database session override.
    """
    def override_get_db():
        try:
            yield db_session
        finally:
            db_session.expire_all()

    app.dependency_overrides[get_db] = override_get_db
    try:
        with TestClient(app) as test_client:
            yield test_client
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def make_user(db_session) -> Callable[..., User]:
    """Factory creating users through the user service."""
    counter = {"n": 0}

    def _make_user(
        email: str = None,
        password: str = DEFAULT_PASSWORD,
        name: str = "Test User",
        role: str = "user",
    ) -> User:
        counter["n"] += 1
        email = email or f"user{counter['n']}@example.com"
        return user_service.create_user(
            db_session, AdminUserCreate(email=email, password=password, name=name, role=role)
        )

    return _make_user


@pytest.fixture
def alice(make_user) -> UserIdentity:
    return to_identity(make_user(email="alice@example.com", name="Alice"))


@pytest.fixture
def bob(make_user) -> UserIdentity:
    return to_identity(make_user(email="bob@example.com", name="Bob"))


@pytest.fixture
def admin(make_user) -> UserIdentity:
    return to_identity(make_user(email="admin@example.com", name="Admin", role="admin"))


def location_payload(**overrides) -> Dict:
    payload = {
        "name": "Central Bakery",
        "description": "Fresh bread every morning",
        "category": "food",
        "coordinates": {"type": "Point", "coordinates": [-3.7038, 40.4168]},
        "address": {
            "street": "Calle Mayor 1",
            "city": "Madrid",
            "state": "Madrid",
            "country": "Spain",
            "postal_code": "28013",
        },
        "contact": {"phone": "+34 600 000 000", "email": "hello@bakery-example.com", "website": "https://bakery-example.com"},
    }
    payload.update(overrides)
    return payload


@pytest.fixture
def make_location(db_session) -> Callable:
    """Factory creating locations owned by the given identity."""
    def _make_location(owner: UserIdentity, **overrides):
        return location_service.create_location(db_session, owner, LocationCreate(**location_payload(**overrides)))

    return _make_location


def login_headers(client: TestClient, email: str, password: str = DEFAULT_PASSWORD) -> Dict[str, str]:
    response = client.post("/api/v1/auth/login", json={"email": email, "password": password})
    assert response.status_code == 200, response.text
    return {"Authorization": f"Bearer {response.json()['token']}"}
