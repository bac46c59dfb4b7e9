"""Pytest fixtures for service and API tests."""

import os
from collections.abc import Generator

os.environ.setdefault("SECRET_KEY", "test-secret-key")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from app.api.deps import get_db
from app.core.security import hash_password, issue_account_token
from app.db.base import Base
from app.db.models import DailyProgress, StudySession, User, UserCardProgress
from app.main import create_app
from app.utils.cache import cache_backend

TABLES = [
    User.__table__,
    StudySession.__table__,
    DailyProgress.__table__,
    UserCardProgress.__table__,
]


@pytest.fixture(scope="session")
def db_engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine, tables=TABLES)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine, tables=list(reversed(TABLES)))


@pytest.fixture()
def db_session(db_engine) -> Generator[Session, None, None]:
    TestingSessionLocal = sessionmaker(
        autocommit=False, autoflush=False, bind=db_engine, expire_on_commit=False
    )
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.rollback()
        for table in reversed(TABLES):
            db.execute(table.delete())
        db.commit()
        db.close()


@pytest.fixture(autouse=True)
def clear_cache() -> Generator[None, None, None]:
    cache_backend.clear()
    try:
        yield
    finally:
        cache_backend.clear()


@pytest.fixture()
def client(db_session: Session) -> Generator[TestClient, None, None]:
    app = create_app()

    def override_get_db() -> Generator[Session, None, None]:
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture()
def make_user(db_session: Session):
    """Create accounts directly, bypassing the registration endpoint."""

    counter = {"n": 0}

    def _make_user(**overrides) -> User:
        counter["n"] += 1
        values = {
            "email": f"learner{counter['n']}@example.com",
            "hashed_password": hash_password("supersecure"),
            "is_active": True,
            "total_xp": 0,
            "current_xp": 0,
            "next_level_xp": 100,
            "level": 1,
            "streak": 0,
            "longest_streak": 0,
            "total_time_spent": 0,
            "total_cards_learned": 0,
            "total_decks_completed": 0,
            "total_correct_answers": 0,
            "total_answers": 0,
        }
        values.update(overrides)
        user = User(**values)
        db_session.add(user)
        db_session.commit()
        return user

    return _make_user


@pytest.fixture()
def user(make_user) -> User:
    return make_user()


@pytest.fixture()
def auth_headers(user: User) -> dict[str, str]:
    return {"Authorization": f"Bearer {issue_account_token(user.id)}"}
