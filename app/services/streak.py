"""Streak maintenance at login checkpoints."""
from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import date, timedelta

from loguru import logger
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from app.config import settings
from app.core.dates import day_bounds, today_in, utcnow
from app.core.streak import DayActivity, StreakRule, evaluate_streak, needs_previous_day
from app.db.models.study_session import StudySession
from app.db.session import transaction
from app.services.users import UserService
from app.utils.cache import invalidate_user_views


@dataclass(slots=True)
class StreakResult:
    streak: int
    longest_streak: int


class StreakService:
    """Evaluate and persist a user's daily streak when they check in."""

    def __init__(
        self,
        db: Session,
        *,
        rule: StreakRule | None = None,
        timezone_name: str | None = None,
    ) -> None:
        self.db = db
        self.rule = rule or StreakRule.from_settings(settings)
        self.timezone_name = timezone_name or settings.ACTIVITY_TIMEZONE
        self.users = UserService(db)

    def day_activity(self, user_id: uuid.UUID, day: date) -> DayActivity:
        """Sum the account's study sessions that started on ``day``.

        Reads session history directly rather than ``daily_progress`` so a
        lagging aggregate cannot break a streak.
        """

        start, end = day_bounds(day, self.timezone_name)
        correct, seconds = self.db.execute(
            select(
                func.coalesce(func.sum(StudySession.correct_count), 0),
                func.coalesce(func.sum(StudySession.duration_seconds), 0),
            ).where(
                StudySession.user_id == user_id,
                StudySession.started_at >= start,
                StudySession.started_at < end,
            )
        ).one()
        return DayActivity(minutes=int(seconds) // 60, correct_answers=int(correct))

    def record_login(self, user_id: uuid.UUID, *, today: date | None = None) -> StreakResult:
        """Evaluate the streak for ``today`` and persist it with ``last_active_date``.

        The account row is locked for the whole evaluation; if anything fails
        (the activity lookup included) nothing is written.
        """

        today = today or today_in(self.timezone_name)
        with transaction(self.db):
            user = self.users.lock(user_id)
            yesterday = None
            if needs_previous_day(user.last_active_date, today):
                yesterday = self.day_activity(user.id, today - timedelta(days=1))

            outcome = evaluate_streak(
                last_active_date=user.last_active_date,
                streak=user.streak,
                longest_streak=user.longest_streak,
                today=today,
                rule=self.rule,
                yesterday=yesterday,
            )
            user.streak = outcome.streak
            user.longest_streak = outcome.longest_streak
            if user.last_active_date is None or user.last_active_date < today:
                user.last_active_date = today
            user.last_login_at = utcnow()

        invalidate_user_views(user_id)
        logger.info(
            "Streak evaluated",
            user_id=str(user_id),
            today=today.isoformat(),
            days_since_last_activity=outcome.days_since_last_activity,
            streak=outcome.streak,
            longest_streak=outcome.longest_streak,
        )
        return StreakResult(streak=outcome.streak, longest_streak=outcome.longest_streak)


__all__ = ["StreakResult", "StreakService"]
