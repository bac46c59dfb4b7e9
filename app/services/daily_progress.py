"""Daily progress aggregation."""
from __future__ import annotations

import uuid
from collections import defaultdict
from dataclasses import asdict, dataclass, fields
from datetime import date, timedelta
from typing import Iterable

from loguru import logger
from sqlalchemy import case, func, select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.orm import Session

from app.config import settings
from app.core.dates import day_bounds, local_day, today_in
from app.db.models.progress import DailyProgress
from app.db.models.study_session import StudySession
from app.utils.exceptions import StorageError, ValidationError


@dataclass(slots=True)
class DailyDelta:
    """Non-negative increments folded into one daily row."""

    cards_studied: int = 0
    cards_learned: int = 0
    time_spent_seconds: int = 0
    xp_earned: int = 0
    sessions_completed: int = 0

    def __post_init__(self) -> None:
        negative = {name: value for name, value in asdict(self).items() if value < 0}
        if negative:
            raise ValidationError("Daily progress deltas must be non-negative", negative)

    def is_empty(self) -> bool:
        return not any(asdict(self).values())

    def __add__(self, other: "DailyDelta") -> "DailyDelta":
        return DailyDelta(
            **{f.name: getattr(self, f.name) + getattr(other, f.name) for f in fields(self)}
        )

    @classmethod
    def from_session(cls, session: StudySession) -> "DailyDelta":
        return cls(
            cards_studied=session.correct_count or 0,
            time_spent_seconds=session.duration_seconds or 0,
            xp_earned=session.session_xp or 0,
            sessions_completed=1 if session.status == "completed" else 0,
        )


class DailyProgressService:
    """Maintain one additive aggregate row per (user, calendar day)."""

    _UPSERT_BUILDERS = {"postgresql": pg_insert, "sqlite": sqlite_insert}

    def __init__(self, db: Session, *, timezone_name: str | None = None) -> None:
        self.db = db
        self.timezone_name = timezone_name or settings.ACTIVITY_TIMEZONE

    def today(self) -> date:
        return today_in(self.timezone_name)

    def session_day(self, session: StudySession) -> date:
        """Day a session's activity is credited to: the day it started on."""

        if session.started_at is None:
            return self.today()
        return local_day(session.started_at, self.timezone_name)

    def _insert_builder(self):
        dialect = self.db.get_bind().dialect.name
        try:
            return self._UPSERT_BUILDERS[dialect]
        except KeyError as exc:
            raise StorageError(
                "Daily progress upserts are not supported on this database",
                {"dialect": dialect},
            ) from exc

    def apply_delta(self, user_id: uuid.UUID, day: date, delta: DailyDelta) -> None:
        """Add ``delta`` to the (user, day) row, creating it on first use.

        Runs as a single ``INSERT ... ON CONFLICT DO UPDATE`` so concurrent
        writers for the same day merge inside the database instead of racing
        on values read into memory.
        """

        if delta.is_empty():
            return

        values = asdict(delta)
        insert = self._insert_builder()
        stmt = insert(DailyProgress).values(id=uuid.uuid4(), user_id=user_id, date=day, **values)
        stmt = stmt.on_conflict_do_update(
            index_elements=["user_id", "date"],
            set_={
                name: getattr(DailyProgress, name) + getattr(stmt.excluded, name)
                for name in values
            },
        )
        self.db.execute(stmt)

    def fold_sessions(self, user_id: uuid.UUID, sessions: Iterable[StudySession]) -> dict[date, DailyDelta]:
        """Fold whole sessions into the rows of the days they started on."""

        per_day: dict[date, DailyDelta] = defaultdict(DailyDelta)
        for session in sessions:
            if session.started_at is None:
                continue
            day = self.session_day(session)
            per_day[day] = per_day[day] + DailyDelta.from_session(session)

        for day, delta in sorted(per_day.items()):
            self.apply_delta(user_id, day, delta)
        return dict(per_day)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------
    def get_day(self, user_id: uuid.UUID, day: date) -> DailyProgress | None:
        stmt = (
            select(DailyProgress)
            .where(DailyProgress.user_id == user_id, DailyProgress.date == day)
            .execution_options(populate_existing=True)
        )
        return self.db.scalars(stmt).first()

    def list_range(self, user_id: uuid.UUID, *, days: int, end: date | None = None) -> list[DailyProgress]:
        """Return existing rows for the ``days`` calendar days ending at ``end``."""

        end = end or self.today()
        start = end - timedelta(days=days - 1)
        stmt = (
            select(DailyProgress)
            .where(
                DailyProgress.user_id == user_id,
                DailyProgress.date >= start,
                DailyProgress.date <= end,
            )
            .order_by(DailyProgress.date)
            .execution_options(populate_existing=True)
        )
        return list(self.db.scalars(stmt))

    # ------------------------------------------------------------------
    # Repair
    # ------------------------------------------------------------------
    def session_totals(self, user_id: uuid.UUID, day: date) -> DailyDelta:
        """Aggregate the user's sessions that started on ``day``."""

        start, end = day_bounds(day, self.timezone_name)
        row = self.db.execute(
            select(
                func.coalesce(func.sum(StudySession.correct_count), 0),
                func.coalesce(func.sum(StudySession.duration_seconds), 0),
                func.coalesce(func.sum(StudySession.session_xp), 0),
                func.coalesce(
                    func.sum(case((StudySession.status == "completed", 1), else_=0)), 0
                ),
            ).where(
                StudySession.user_id == user_id,
                StudySession.started_at >= start,
                StudySession.started_at < end,
            )
        ).one()
        return DailyDelta(
            cards_studied=int(row[0]),
            time_spent_seconds=int(row[1]),
            xp_earned=int(row[2]),
            sessions_completed=int(row[3]),
        )

    def rebuild_day(self, user_id: uuid.UUID, day: date) -> DailyProgress | None:
        """Raise a daily row to at least what session history accounts for.

        Values are only topped up, never lowered; ``cards_learned`` has no
        session-level source and is left as recorded.
        """

        totals = self.session_totals(user_id, day)
        current = self.get_day(user_id, day)
        recorded = DailyDelta(
            **{
                name: (getattr(current, name) or 0) if current is not None else 0
                for name in asdict(totals)
            }
        )
        missing = DailyDelta(
            **{
                name: max(0, getattr(totals, name) - getattr(recorded, name))
                for name in asdict(totals)
            }
        )
        if not missing.is_empty():
            logger.info(
                "Daily progress topped up from session history",
                user_id=str(user_id),
                day=day.isoformat(),
                **{name: value for name, value in asdict(missing).items() if value},
            )
            self.apply_delta(user_id, day, missing)
        return self.get_day(user_id, day)


__all__ = ["DailyDelta", "DailyProgressService"]
