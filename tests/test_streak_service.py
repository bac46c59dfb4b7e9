"""Tests for the login streak checkpoint."""
from __future__ import annotations

from datetime import date, datetime, timezone
from unittest.mock import patch

import pytest

from app.core.streak import StreakRule
from app.db.models import StudySession
from app.services.streak import StreakService
from app.utils.exceptions import StorageError

TODAY = date(2024, 5, 10)
YESTERDAY = date(2024, 5, 9)


def _session(user_id, *, day: date, seconds: int = 0, correct: int = 0) -> StudySession:
    return StudySession(
        user_id=user_id,
        status="completed",
        started_at=datetime(day.year, day.month, day.day, 12, 0, tzinfo=timezone.utc),
        duration_seconds=seconds,
        correct_count=correct,
    )


@pytest.fixture()
def service(db_session) -> StreakService:
    return StreakService(db_session, rule=StreakRule(10, 20), timezone_name="UTC")


def test_first_login_starts_streak(db_session, service, user) -> None:
    result = service.record_login(user.id, today=TODAY)

    db_session.refresh(user)
    assert (result.streak, result.longest_streak) == (1, 1)
    assert user.last_active_date == TODAY
    assert user.last_login_at is not None


def test_yesterday_minutes_extend_streak(db_session, service, make_user) -> None:
    account = make_user(streak=3, longest_streak=3, last_active_date=YESTERDAY)
    db_session.add(_session(account.id, day=YESTERDAY, seconds=12 * 60))
    db_session.commit()

    result = service.record_login(account.id, today=TODAY)

    assert result.streak == 4
    assert result.longest_streak == 4


def test_yesterday_activity_sums_across_sessions(db_session, service, make_user) -> None:
    account = make_user(streak=2, longest_streak=5, last_active_date=YESTERDAY)
    db_session.add_all(
        [
            _session(account.id, day=YESTERDAY, correct=12),
            _session(account.id, day=YESTERDAY, correct=13),
            _session(account.id, day=TODAY, seconds=3600),
        ]
    )
    db_session.commit()

    activity = service.day_activity(account.id, YESTERDAY)
    result = service.record_login(account.id, today=TODAY)

    assert activity.correct_answers == 25
    assert activity.minutes == 0
    assert result.streak == 3
    assert result.longest_streak == 5


def test_insufficient_yesterday_resets(db_session, service, make_user) -> None:
    account = make_user(streak=6, longest_streak=6, last_active_date=YESTERDAY)
    db_session.add(_session(account.id, day=YESTERDAY, seconds=5 * 60, correct=10))
    db_session.commit()

    result = service.record_login(account.id, today=TODAY)

    assert (result.streak, result.longest_streak) == (1, 6)


def test_long_gap_resets_without_looking_up_history(db_session, service, make_user) -> None:
    account = make_user(streak=40, longest_streak=40, last_active_date=date(2024, 5, 5))

    with patch.object(StreakService, "day_activity") as day_activity:
        result = service.record_login(account.id, today=TODAY)

    day_activity.assert_not_called()
    assert (result.streak, result.longest_streak) == (1, 40)


def test_second_login_same_day_is_stable(db_session, service, make_user) -> None:
    account = make_user(streak=4, longest_streak=4, last_active_date=TODAY)

    first = service.record_login(account.id, today=TODAY)
    second = service.record_login(account.id, today=TODAY)

    assert first == second
    assert second.streak == 4


def test_failed_lookup_leaves_account_untouched(db_session, service, make_user) -> None:
    account = make_user(streak=3, longest_streak=3, last_active_date=YESTERDAY)

    with patch.object(StreakService, "day_activity", side_effect=StorageError("boom")):
        with pytest.raises(StorageError):
            service.record_login(account.id, today=TODAY)

    db_session.refresh(account)
    assert account.streak == 3
    assert account.last_active_date == YESTERDAY
