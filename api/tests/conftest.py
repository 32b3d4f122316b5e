from __future__ import annotations

import itertools
import os
import tempfile
from typing import Callable, Generator

# Point the app at a throwaway SQLite database before anything imports it
_DB_DIR = tempfile.mkdtemp(prefix="blogapi-tests-")
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_DB_DIR, 'test.db')}"
os.environ["APP_ENV"] = "test"
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key-0123456789-abcdefghijklmnop")
os.environ.setdefault("LOG_LEVEL", "WARNING")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from blogapi import models
from blogapi.auth import Identity, create_access_token
from blogapi.db import Base, SessionLocal, engine
from blogapi.main import app, run_startup_tasks
from blogapi.services.credentials import create_user


@pytest.fixture(scope="session", autouse=True)
def bootstrap() -> None:
    run_startup_tasks()


@pytest.fixture(autouse=True)
def clean_tables() -> Generator[None, None, None]:
    yield
    with engine.begin() as connection:
        for table in reversed(Base.metadata.sorted_tables):
            connection.execute(table.delete())


@pytest.fixture()
def client() -> Generator[TestClient, None, None]:
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture()
def db() -> Generator[Session, None, None]:
    """Create a database session for testing."""
    session = SessionLocal()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


@pytest.fixture()
def make_user(db: Session) -> Callable[..., models.User]:
    """Factory creating users with hashed passwords."""
    counter = itertools.count(1)

    def _make(username: str | None = None, password: str = "secret123") -> models.User:
        username = username or f"user{next(counter)}"
        return create_user(db, username=username, email=f"{username}@example.com", password=password)

    return _make


@pytest.fixture()
def alice(make_user) -> models.User:
    return make_user("alice")


@pytest.fixture()
def bob(make_user) -> models.User:
    return make_user("bob")


def _auth_headers(user: models.User) -> dict[str, str]:
    token = create_access_token(user.id, user.username)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture()
def headers_for() -> Callable[[models.User], dict[str, str]]:
    """Bearer headers for a user."""
    return _auth_headers


@pytest.fixture()
def identity_for() -> Callable[[models.User], Identity]:
    return lambda user: Identity(user_id=user.id, username=user.username)
