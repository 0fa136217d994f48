# backend/tests/conftest.py
"""
Pytest configuration for the FocusPair backend.

Every test gets a fresh in-memory SQLite database (single shared connection
via StaticPool) with savepoint support, so services can commit freely.
"""

import os

# Set testing mode BEFORE any app imports
os.environ["is_testing"] = "true"
os.environ.setdefault("EMAIL_PROVIDER", "console")

from datetime import datetime
from typing import Any, Callable, Iterator, Optional
from unittest.mock import MagicMock

from fastapi.testclient import TestClient
import pytest
from sqlalchemy.orm import Session, sessionmaker

from focuspair import models  # noqa: F401  # populate metadata
from focuspair.api.dependencies.database import get_db
from focuspair.api.dependencies.services import get_notification_dispatcher
from focuspair.auth import create_access_token
from focuspair.core.ulid_helper import generate_ulid
from focuspair.database import Base, build_engine
from focuspair.models.profile import ParticipantProfile, SubscriptionStatus
from focuspair.models.session import FocusSession, SessionStatus
from focuspair.services.notification_service import NotificationDispatcher

TEST_DATABASE_URL = "sqlite+pysqlite:///:memory:"


@pytest.fixture
def db_engine() -> Iterator[Any]:
    engine = build_engine(TEST_DATABASE_URL)
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def db(db_engine: Any) -> Iterator[Session]:
    TestSessionLocal = sessionmaker(bind=db_engine, autocommit=False, autoflush=False, future=True)
    session = TestSessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def make_profile(db: Session) -> Callable[..., ParticipantProfile]:
    def _make(
        user_id: Optional[str] = None,
        *,
        first_name: str = "Alex",
        language: str = "en",
        tz: str = "Europe/Amsterdam",
        subscription_status: str = SubscriptionStatus.ACTIVE.value,
        trial_ends_at: Optional[datetime] = None,
        is_banned: bool = False,
    ) -> ParticipantProfile:
        uid = user_id or f"user_{generate_ulid().lower()}"
        profile = ParticipantProfile(
            id=uid,
            email=f"{uid}@example.com",
            first_name=first_name,
            language=language,
            timezone=tz,
            subscription_status=subscription_status,
            trial_ends_at=trial_ends_at,
            is_banned=is_banned,
        )
        db.add(profile)
        db.commit()
        return profile

    return _make


@pytest.fixture
def make_session(db: Session) -> Callable[..., FocusSession]:
    def _make(
        user1_id: str,
        start_time: datetime,
        *,
        duration: int = 50,
        status: str = SessionStatus.WAITING.value,
        user2_id: Optional[str] = None,
        user1_joined: bool = False,
        user2_joined: bool = False,
        created_at: Optional[datetime] = None,
    ) -> FocusSession:
        session = FocusSession(
            user1_id=user1_id,
            user2_id=user2_id,
            start_time=start_time,
            duration=duration,
            status=status,
            user1_joined=user1_joined,
            user2_joined=user2_joined,
        )
        if created_at is not None:
            session.created_at = created_at
        db.add(session)
        db.commit()
        return session

    return _make


@pytest.fixture
def dispatcher() -> MagicMock:
    mock = MagicMock(spec=NotificationDispatcher)
    mock.dispatch.return_value = 0
    return mock


@pytest.fixture
def client(db: Session, dispatcher: MagicMock) -> Iterator[TestClient]:
    from focuspair.main import app

    def _override_get_db() -> Iterator[Session]:
        yield db

    app.dependency_overrides[get_db] = _override_get_db
    app.dependency_overrides[get_notification_dispatcher] = lambda: dispatcher
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def auth_headers_for() -> Callable[[str], dict]:
    def _headers(user_id: str) -> dict:
        return {"Authorization": f"Bearer {create_access_token({'sub': user_id})}"}

    return _headers
