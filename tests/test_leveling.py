"""Tests for the XP to level projection."""
from __future__ import annotations

from types import SimpleNamespace

import pytest

from app.core.leveling import LevelCurve, apply_projection, project
from app.utils.exceptions import ValidationError


@pytest.fixture()
def curve() -> LevelCurve:
    return LevelCurve(base_xp_for_level=100, multiplier=1.2)


def test_zero_xp_is_level_one(curve: LevelCurve) -> None:
    projection = project(0, curve)

    assert (projection.level, projection.current_xp, projection.next_level_xp) == (1, 0, 100)
    assert projection.xp_to_next_level == 100


@pytest.mark.parametrize(
    ("total_xp", "expected"),
    [
        (99, (1, 99, 100)),
        (100, (2, 0, 120)),
        (219, (2, 119, 120)),
        (220, (3, 0, 144)),
        (364, (4, 0, 172)),
        (400, (4, 36, 172)),
    ],
)
def test_thresholds_grow_geometrically_and_overflow_rolls_over(
    curve: LevelCurve, total_xp: int, expected: tuple[int, int, int]
) -> None:
    projection = project(total_xp, curve)

    assert (projection.level, projection.current_xp, projection.next_level_xp) == expected


def test_projection_is_deterministic(curve: LevelCurve) -> None:
    assert project(12345, curve) == project(12345, curve)


def test_current_xp_stays_below_threshold_for_many_totals(curve: LevelCurve) -> None:
    for total in range(0, 5000, 37):
        projection = project(total, curve)
        assert 0 <= projection.current_xp < projection.next_level_xp


def test_base_xp_is_configuration() -> None:
    projection = project(250, LevelCurve(base_xp_for_level=250, multiplier=1.0))

    assert projection.level == 2
    assert projection.next_level_xp == 250


def test_negative_total_rejected(curve: LevelCurve) -> None:
    with pytest.raises(ValidationError):
        project(-1, curve)


@pytest.mark.parametrize("kwargs", [{"base_xp_for_level": 0}, {"multiplier": 0.5}])
def test_invalid_curve_rejected(kwargs: dict) -> None:
    with pytest.raises(ValidationError):
        LevelCurve(**kwargs)


def test_apply_projection_sets_derived_fields(curve: LevelCurve) -> None:
    account = SimpleNamespace(total_xp=230, level=1, current_xp=0, next_level_xp=100)

    apply_projection(account, curve)

    assert account.level == 3
    assert account.current_xp == 10
    assert account.next_level_xp == 144
