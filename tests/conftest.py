"""
tests/conftest.py -- Shared fixtures for the session auth tests.

Environment variables must be set before any sessionauth import: the
settings object, the engine and the module-level AuthService are all built
at import time. The database is a single in-memory SQLite connection
(StaticPool) that both the TestClient worker threads and the test body
share; the schema is recreated for every test.
"""

from __future__ import annotations

import os
from collections.abc import Generator

os.environ["APP_ENV"] = "testing"
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["JWT_SECRET"] = "test-access-secret"
os.environ["JWT_REFRESH_SECRET"] = "test-refresh-secret"
os.environ["JWT_EXPIRES_IN"] = "15m"
os.environ["JWT_REFRESH_EXPIRES_IN"] = "7d"
# Cheap argon2 parameters keep the suite fast
os.environ["ARGON2_TIME_COST"] = "1"
os.environ["ARGON2_MEMORY_COST"] = "1024"
os.environ["ARGON2_PARALLELISM"] = "1"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

import sessionauth.models  # noqa: F401
from sessionauth.database import Base, SessionLocal, engine
from sessionauth.main import app
from sessionauth.services.auth_service import AuthService, auth_service

STRONG_PASSWORD = "Abc123!"


@pytest.fixture(autouse=True)
def _schema() -> Generator[None, None, None]:
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db() -> Generator[Session, None, None]:
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def service() -> AuthService:
    return auth_service


@pytest.fixture
def client() -> Generator[TestClient, None, None]:
    """A fresh client per test so cookies never leak between tests."""
    with TestClient(app) as c:
        yield c


@pytest.fixture
def alice(service: AuthService, db: Session) -> dict:
    """A registered, unlocked user."""
    return service.register(db, "a@x.com", "alice", STRONG_PASSWORD)


@pytest.fixture
def login_user(service: AuthService, db: Session):
    """Log a user in through the service and return the login result."""

    def _login(email: str = "a@x.com", password: str = STRONG_PASSWORD) -> dict:
        return service.login(db, email, password, "pytest-agent", "127.0.0.1")

    return _login
