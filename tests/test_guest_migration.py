"""Tests for guest activity migration into accounts."""
from __future__ import annotations

from datetime import datetime, timezone
from unittest.mock import patch

import pytest
from sqlalchemy import select

from app.core.leveling import LevelCurve
from app.db.models import DailyProgress, StudySession, User
from app.schemas import UserCreate
from app.services.auth import AuthService
from app.services.daily_progress import DailyProgressService
from app.services.guest_migration import GuestMigrationService
from app.utils.exceptions import ValidationError

TOKEN = "guest-7f3a"


def _guest_session(token: str = TOKEN, **values) -> StudySession:
    defaults = {
        "user_id": None,
        "is_guest": True,
        "guest_token": token,
        "status": "completed",
        "started_at": datetime(2024, 5, 1, 9, 0, tzinfo=timezone.utc),
        "duration_seconds": 300,
        "correct_count": 10,
        "incorrect_count": 2,
        "session_xp": 50,
    }
    defaults.update(values)
    return StudySession(**defaults)


@pytest.fixture()
def service(db_session) -> GuestMigrationService:
    return GuestMigrationService(
        db_session,
        curve=LevelCurve(100, 1.2),
        daily_progress=DailyProgressService(db_session, timezone_name="UTC"),
    )


def test_migration_reassigns_sessions_and_adds_totals(db_session, service, user) -> None:
    db_session.add_all(
        [
            _guest_session(session_xp=70, duration_seconds=600),
            _guest_session(status="in_progress", session_xp=40, duration_seconds=300),
            _guest_session(token="someone-else", session_xp=999),
        ]
    )
    db_session.commit()

    result = service.migrate_guest_activity(user.id, TOKEN)

    assert result.migrated_count == 2
    account = result.account
    assert account.total_xp == 110
    assert (account.level, account.current_xp, account.next_level_xp) == (2, 10, 120)
    assert account.total_time_spent == 15
    assert account.total_decks_completed == 1

    owned = db_session.scalars(select(StudySession).where(StudySession.user_id == user.id)).all()
    assert len(owned) == 2
    assert all(session.is_guest is False for session in owned)
    other = db_session.scalars(
        select(StudySession).where(StudySession.guest_token == "someone-else")
    ).one()
    assert other.user_id is None
    assert other.is_guest is True


def test_migrated_xp_increases_totals_by_exact_sum(db_session, service, make_user) -> None:
    account = make_user(total_xp=30, current_xp=30)
    db_session.add_all([_guest_session(session_xp=xp) for xp in (5, 15, 25)])
    db_session.commit()

    result = service.migrate_guest_activity(account.id, TOKEN)

    assert result.account.total_xp == 30 + 45
    assert result.account.current_xp == 75


def test_second_migration_is_a_noop(db_session, service, user) -> None:
    db_session.add_all([_guest_session(), _guest_session(session_xp=30)])
    db_session.commit()

    first = service.migrate_guest_activity(user.id, TOKEN)
    totals_after_first = (
        first.account.total_xp,
        first.account.total_time_spent,
        first.account.total_decks_completed,
    )
    second = service.migrate_guest_activity(user.id, TOKEN)

    assert first.migrated_count == 2
    assert second.migrated_count == 0
    db_session.refresh(user)
    assert (user.total_xp, user.total_time_spent, user.total_decks_completed) == totals_after_first


def test_migration_folds_sessions_into_daily_rows(db_session, service, user) -> None:
    db_session.add_all([_guest_session(correct_count=8), _guest_session(correct_count=5)])
    db_session.commit()

    service.migrate_guest_activity(user.id, TOKEN)

    rows = db_session.scalars(select(DailyProgress).where(DailyProgress.user_id == user.id)).all()
    assert len(rows) == 1
    assert rows[0].cards_studied == 13
    assert rows[0].sessions_completed == 2
    assert rows[0].xp_earned == 100


def test_token_without_sessions_leaves_account_untouched(db_session, service, make_user) -> None:
    account = make_user(total_xp=42, current_xp=42)

    result = service.migrate_guest_activity(account.id, "unknown-token")

    assert result.migrated_count == 0
    assert result.account.total_xp == 42


@pytest.mark.parametrize("token", [None, "", "   "])
def test_missing_token_is_rejected(service, user, token) -> None:
    with pytest.raises(ValidationError):
        service.migrate_guest_activity(user.id, token)


def _guest_rows(db_session) -> list[StudySession]:
    return db_session.scalars(
        select(StudySession)
        .where(StudySession.guest_token == TOKEN)
        .execution_options(populate_existing=True)
    ).all()


def test_failed_migration_rolls_back_reassignment_and_totals(db_session, service, make_user) -> None:
    account = make_user(total_xp=30, current_xp=30, total_time_spent=4)
    db_session.add_all([_guest_session(), _guest_session(session_xp=20)])
    db_session.commit()

    with patch.object(
        DailyProgressService, "fold_sessions", side_effect=RuntimeError("daily rows unavailable")
    ):
        with pytest.raises(RuntimeError):
            service.migrate_guest_activity(account.id, TOKEN)

    rows = _guest_rows(db_session)
    assert len(rows) == 2
    assert all(row.user_id is None and row.is_guest is True for row in rows)
    db_session.refresh(account)
    assert (account.total_xp, account.current_xp, account.total_time_spent) == (30, 30, 4)
    assert account.total_decks_completed == 0
    assert db_session.scalars(select(DailyProgress)).first() is None

    retried = service.migrate_guest_activity(account.id, TOKEN)
    assert retried.migrated_count == 2


def test_failed_registration_leaves_no_account_behind(db_session) -> None:
    db_session.add(_guest_session())
    db_session.commit()
    auth = AuthService(db_session)

    with patch.object(
        DailyProgressService, "fold_sessions", side_effect=RuntimeError("daily rows unavailable")
    ):
        with pytest.raises(RuntimeError):
            auth.register_user(
                UserCreate(email="newcomer@example.com", password="supersecure", guest_token=TOKEN)
            )

    newcomer = db_session.scalars(select(User).where(User.email == "newcomer@example.com")).first()
    assert newcomer is None
    rows = _guest_rows(db_session)
    assert len(rows) == 1
    assert rows[0].user_id is None
    assert rows[0].is_guest is True
