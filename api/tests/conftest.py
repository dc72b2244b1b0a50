from __future__ import annotations

import os
import tempfile
from typing import Callable, Generator

# Configure the app before anything imports it
_DB_DIR = tempfile.mkdtemp(prefix="ncit-hub-tests-")
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_DB_DIR, 'test.db')}"
os.environ["JWT_SECRET_KEY"] = "test-secret-key-for-ncit-hub-please-change-0123456789"
os.environ["RUN_MIGRATIONS"] = "false"
os.environ["REDIS_URL"] = ""
os.environ["ADMIN_EMAIL"] = ""
os.environ["ADMIN_PASSWORD"] = ""

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from ncit_hub.auth import create_access_token
from ncit_hub.db import Base, SessionLocal, engine
from ncit_hub.main import app
from ncit_hub.models import User
from ncit_hub.seed import ensure_seed_data
from ncit_hub.services.users import register_user

TEST_PASSWORD = "correct-horse-battery"


@pytest.fixture(autouse=True)
def fresh_database() -> Generator[None, None, None]:
    """Every test starts from an empty, freshly seeded schema."""
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    ensure_seed_data()
    yield


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
def make_user(db: Session) -> Callable[..., User]:
    counter = {"n": 0}

    def _make_user(role: str = "user", full_name: str | None = None, email: str | None = None) -> User:
        counter["n"] += 1
        email = email or f"{role}{counter['n']}@ncit.edu.np"
        return register_user(
            db,
            email,
            TEST_PASSWORD,
            full_name=full_name or f"{role.title()} {counter['n']}",
            role=role,
        )

    return _make_user


@pytest.fixture()
def user(make_user) -> User:
    return make_user(full_name="Sita Sharma")


@pytest.fixture()
def other_user(make_user) -> User:
    return make_user(full_name="Ram Thapa")


@pytest.fixture()
def admin(make_user) -> User:
    return make_user(role="admin", full_name="Portal Admin")


def auth_headers(user: User) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(user.id)}"}


@pytest.fixture()
def headers() -> Callable[[User], dict[str, str]]:
    return auth_headers
