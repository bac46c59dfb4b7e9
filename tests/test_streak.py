"""Tests for the pure streak evaluation rules."""
from __future__ import annotations

from datetime import date, timedelta

import pytest

from app.core.streak import DayActivity, StreakRule, evaluate_streak, needs_previous_day
from app.utils.exceptions import InvariantViolation

TODAY = date(2024, 5, 10)
RULE = StreakRule(min_minutes=10, min_correct_answers=20)


def _evaluate(days_ago: int | None, streak: int, longest: int, yesterday: DayActivity | None = None):
    last = TODAY - timedelta(days=days_ago) if days_ago is not None else None
    return evaluate_streak(
        last_active_date=last,
        streak=streak,
        longest_streak=longest,
        today=TODAY,
        rule=RULE,
        yesterday=yesterday,
    )


def test_first_activity_starts_streak() -> None:
    outcome = _evaluate(None, 0, 0)

    assert outcome.streak == 1
    assert outcome.longest_streak == 1
    assert outcome.days_since_last_activity is None


def test_same_day_leaves_streak_unchanged() -> None:
    outcome = _evaluate(0, 7, 9)

    assert outcome.streak == 7
    assert outcome.longest_streak == 9


def test_long_gap_resets_regardless_of_history() -> None:
    outcome = _evaluate(5, 40, 40)

    assert outcome.streak == 1
    assert outcome.longest_streak == 40


@pytest.mark.parametrize(
    ("minutes", "correct"),
    [(12, 0), (0, 25), (10, 0), (0, 20)],
)
def test_one_day_gap_extends_when_either_threshold_met(minutes: int, correct: int) -> None:
    outcome = _evaluate(1, 3, 3, DayActivity(minutes=minutes, correct_answers=correct))

    assert outcome.streak == 4
    assert outcome.longest_streak == 4


def test_one_day_gap_resets_when_neither_threshold_met() -> None:
    outcome = _evaluate(1, 3, 8, DayActivity(minutes=5, correct_answers=10))

    assert outcome.streak == 1
    assert outcome.longest_streak == 8


def test_one_day_gap_requires_yesterday_activity() -> None:
    with pytest.raises(InvariantViolation):
        _evaluate(1, 3, 3)


def test_clock_skew_leaves_streak_unchanged() -> None:
    outcome = _evaluate(-1, 4, 6)

    assert outcome.streak == 4
    assert outcome.longest_streak == 6


def test_longest_streak_never_decreases_over_a_sequence() -> None:
    rule_met = DayActivity(minutes=15)
    streak, longest, last = 0, 0, None
    history = []
    gaps = [None, 1, 1, 1, 3, 1, 0, 1, 7, 1]
    day = date(2024, 1, 1)
    for gap in gaps:
        day = day if gap is None else day + timedelta(days=gap)
        outcome = evaluate_streak(
            last_active_date=last,
            streak=streak,
            longest_streak=longest,
            today=day,
            rule=RULE,
            yesterday=rule_met if needs_previous_day(last, day) else None,
        )
        assert outcome.longest_streak >= longest
        assert outcome.longest_streak >= outcome.streak
        streak, longest, last = outcome.streak, outcome.longest_streak, day
        history.append(streak)

    assert history == [1, 2, 3, 4, 1, 2, 2, 3, 1, 2]
    assert longest == 4


def test_needs_previous_day_only_for_one_day_gap() -> None:
    assert needs_previous_day(TODAY - timedelta(days=1), TODAY)
    assert not needs_previous_day(TODAY, TODAY)
    assert not needs_previous_day(TODAY - timedelta(days=2), TODAY)
    assert not needs_previous_day(None, TODAY)
