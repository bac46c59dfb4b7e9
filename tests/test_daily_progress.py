"""Tests for the daily progress aggregator."""
from __future__ import annotations

from datetime import date, datetime, timezone

import pytest
from sqlalchemy import func, select

from app.db.models import DailyProgress, StudySession
from app.services.daily_progress import DailyDelta, DailyProgressService
from app.utils.exceptions import ValidationError

DAY = date(2024, 5, 1)


def _row_count(db_session, user_id) -> int:
    return db_session.scalar(
        select(func.count()).select_from(DailyProgress).where(DailyProgress.user_id == user_id)
    )


@pytest.mark.parametrize("order", [(8, 5), (5, 8)])
def test_same_day_deltas_sum_into_one_row(db_session, user, order) -> None:
    service = DailyProgressService(db_session, timezone_name="UTC")

    for correct in order:
        service.apply_delta(user.id, DAY, DailyDelta(cards_studied=correct, sessions_completed=1))
        db_session.commit()

    row = service.get_day(user.id, DAY)
    assert row.cards_studied == 13
    assert row.sessions_completed == 2
    assert _row_count(db_session, user.id) == 1


def test_deltas_accumulate_and_never_overwrite(db_session, user) -> None:
    service = DailyProgressService(db_session, timezone_name="UTC")

    service.apply_delta(user.id, DAY, DailyDelta(time_spent_seconds=300, xp_earned=20))
    service.apply_delta(user.id, DAY, DailyDelta(time_spent_seconds=330, cards_learned=2))
    db_session.commit()

    row = service.get_day(user.id, DAY)
    assert row.time_spent_seconds == 630
    assert row.time_spent_minutes == 10
    assert row.xp_earned == 20
    assert row.cards_learned == 2


def test_empty_delta_creates_no_row(db_session, user) -> None:
    service = DailyProgressService(db_session, timezone_name="UTC")

    service.apply_delta(user.id, DAY, DailyDelta())

    assert service.get_day(user.id, DAY) is None


def test_negative_delta_rejected() -> None:
    with pytest.raises(ValidationError):
        DailyDelta(cards_studied=-1)


def test_fold_sessions_buckets_by_start_day_in_activity_zone(db_session, user) -> None:
    sessions = [
        StudySession(
            user_id=user.id,
            status="completed",
            started_at=datetime(2024, 5, 1, 23, 30, tzinfo=timezone.utc),
            duration_seconds=600,
            correct_count=8,
            session_xp=40,
        ),
        StudySession(
            user_id=user.id,
            status="abandoned",
            started_at=datetime(2024, 5, 1, 8, 0, tzinfo=timezone.utc),
            duration_seconds=120,
            correct_count=3,
            session_xp=5,
        ),
    ]
    db_session.add_all(sessions)
    db_session.flush()

    # 23:30 UTC on May 1st is already May 2nd in Berlin.
    service = DailyProgressService(db_session, timezone_name="Europe/Berlin")
    per_day = service.fold_sessions(user.id, sessions)
    db_session.commit()

    assert set(per_day) == {date(2024, 5, 1), date(2024, 5, 2)}
    may_second = service.get_day(user.id, date(2024, 5, 2))
    assert may_second.cards_studied == 8
    assert may_second.sessions_completed == 1
    may_first = service.get_day(user.id, date(2024, 5, 1))
    assert may_first.cards_studied == 3
    assert may_first.sessions_completed == 0


def test_list_range_returns_window_in_order(db_session, user) -> None:
    service = DailyProgressService(db_session, timezone_name="UTC")
    for day in (date(2024, 4, 28), date(2024, 5, 1), date(2024, 4, 30)):
        service.apply_delta(user.id, day, DailyDelta(cards_studied=1))
    db_session.commit()

    rows = service.list_range(user.id, days=3, end=date(2024, 5, 1))

    assert [row.date for row in rows] == [date(2024, 4, 30), date(2024, 5, 1)]


def test_rebuild_day_tops_up_missing_contributions(db_session, user) -> None:
    db_session.add(
        StudySession(
            user_id=user.id,
            status="completed",
            started_at=datetime(2024, 5, 1, 10, 0, tzinfo=timezone.utc),
            duration_seconds=900,
            correct_count=12,
            session_xp=60,
        )
    )
    db_session.commit()
    service = DailyProgressService(db_session, timezone_name="UTC")
    service.apply_delta(user.id, DAY, DailyDelta(cards_studied=5, cards_learned=3))
    db_session.commit()

    row = service.rebuild_day(user.id, DAY)
    db_session.commit()

    assert row.cards_studied == 12
    assert row.time_spent_seconds == 900
    assert row.xp_earned == 60
    assert row.sessions_completed == 1
    assert row.cards_learned == 3


def test_rebuild_day_never_lowers_values(db_session, user) -> None:
    service = DailyProgressService(db_session, timezone_name="UTC")
    service.apply_delta(user.id, DAY, DailyDelta(cards_studied=50, xp_earned=100))
    db_session.commit()

    row = service.rebuild_day(user.id, DAY)

    assert row.cards_studied == 50
    assert row.xp_earned == 100
