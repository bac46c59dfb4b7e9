"""XP to level projection.

Only ``total_xp`` is authoritative. ``level``, ``current_xp`` and
``next_level_xp`` are derived from it with a geometric curve: reaching level 2
costs ``base_xp_for_level`` and every following threshold is the previous one
multiplied by ``multiplier`` (rounded down).
"""
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import TYPE_CHECKING

from app.utils.exceptions import InvariantViolation, ValidationError

if TYPE_CHECKING:
    from app.config import Settings


@dataclass(frozen=True, slots=True)
class LevelCurve:
    """Configuration knobs for the leveling curve."""

    base_xp_for_level: int = 100
    multiplier: float = 1.2

    def __post_init__(self) -> None:
        if self.base_xp_for_level <= 0:
            raise ValidationError(
                "base_xp_for_level must be positive",
                {"base_xp_for_level": self.base_xp_for_level},
            )
        if self.multiplier < 1.0:
            raise ValidationError(
                "Level multiplier must be at least 1.0", {"multiplier": self.multiplier}
            )

    @classmethod
    def from_settings(cls, settings: "Settings") -> "LevelCurve":
        return cls(
            base_xp_for_level=settings.BASE_XP_FOR_LEVEL,
            multiplier=settings.LEVEL_XP_MULTIPLIER,
        )

    def next_threshold(self, threshold: int) -> int:
        return max(threshold, math.floor(threshold * self.multiplier))


@dataclass(frozen=True, slots=True)
class LevelProjection:
    level: int
    current_xp: int
    next_level_xp: int

    @property
    def xp_to_next_level(self) -> int:
        return self.next_level_xp - self.current_xp


def project(total_xp: int, curve: LevelCurve) -> LevelProjection:
    """Return ``(level, current_xp, next_level_xp)`` for an XP total.

    Pure and deterministic; level-ups consume the overflow so the returned
    ``current_xp`` is always below ``next_level_xp``.
    """

    if total_xp is None or total_xp < 0:
        raise ValidationError("total_xp must be a non-negative integer", {"total_xp": total_xp})

    level = 1
    remaining = int(total_xp)
    threshold = curve.base_xp_for_level
    while remaining >= threshold:
        remaining -= threshold
        level += 1
        threshold = curve.next_threshold(threshold)

    if not 0 <= remaining < threshold:
        raise InvariantViolation(
            "Projected current_xp must stay below next_level_xp",
            {"current_xp": remaining, "next_level_xp": threshold, "total_xp": total_xp},
        )
    return LevelProjection(level=level, current_xp=remaining, next_level_xp=threshold)


def apply_projection(account, curve: LevelCurve) -> LevelProjection:
    """Re-derive the account's level fields from its stored ``total_xp``."""

    projection = project(account.total_xp or 0, curve)
    account.level = projection.level
    account.current_xp = projection.current_xp
    account.next_level_xp = projection.next_level_xp
    return projection


__all__ = ["LevelCurve", "LevelProjection", "apply_projection", "project"]
