"""Daily study streak rules."""
from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import TYPE_CHECKING

from app.utils.exceptions import InvariantViolation

if TYPE_CHECKING:
    from app.config import Settings


@dataclass(frozen=True, slots=True)
class DayActivity:
    """Aggregate study activity for one calendar day."""

    minutes: int = 0
    correct_answers: int = 0


@dataclass(frozen=True, slots=True)
class StreakRule:
    """Minimum activity on the previous day that keeps a streak alive.

    Either threshold alone is sufficient.
    """

    min_minutes: int = 10
    min_correct_answers: int = 20

    @classmethod
    def from_settings(cls, settings: "Settings") -> "StreakRule":
        return cls(
            min_minutes=settings.STREAK_MIN_MINUTES,
            min_correct_answers=settings.STREAK_MIN_CORRECT_ANSWERS,
        )

    def is_met(self, activity: DayActivity) -> bool:
        return (
            activity.minutes >= self.min_minutes
            or activity.correct_answers >= self.min_correct_answers
        )


@dataclass(frozen=True, slots=True)
class StreakOutcome:
    streak: int
    longest_streak: int
    days_since_last_activity: int | None


def days_since(last_active_date: date | None, today: date) -> int | None:
    if last_active_date is None:
        return None
    return (today - last_active_date).days


def needs_previous_day(last_active_date: date | None, today: date) -> bool:
    """Only a one-day gap depends on yesterday's activity."""

    return days_since(last_active_date, today) == 1


def evaluate_streak(
    *,
    last_active_date: date | None,
    streak: int,
    longest_streak: int,
    today: date,
    rule: StreakRule,
    yesterday: DayActivity | None = None,
) -> StreakOutcome:
    """Compute the streak for ``today`` from the stored state.

    - first activity ever starts the streak at 1
    - same-day (or earlier, from clock skew) activity leaves it unchanged
    - a gap of two or more days resets it to 1
    - a one-day gap extends it when ``yesterday`` met ``rule``, else resets it
    """

    diff = days_since(last_active_date, today)
    current = streak or 0

    if diff is None:
        new_streak = 1
    elif diff <= 0:
        new_streak = current
    elif diff > 1:
        new_streak = 1
    else:
        if yesterday is None:
            raise InvariantViolation(
                "Yesterday's activity is required for a one-day gap",
                {"last_active_date": last_active_date.isoformat(), "today": today.isoformat()},
            )
        new_streak = current + 1 if rule.is_met(yesterday) else 1

    return StreakOutcome(
        streak=new_streak,
        longest_streak=max(longest_streak or 0, new_streak),
        days_since_last_activity=diff,
    )


__all__ = [
    "DayActivity",
    "StreakOutcome",
    "StreakRule",
    "days_since",
    "evaluate_streak",
    "needs_previous_day",
]
