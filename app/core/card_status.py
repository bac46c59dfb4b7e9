"""Pluggable card status promotion policies."""
from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from app.config import Settings
    from app.db.models.progress import UserCardProgress


class CardStatusPolicy(Protocol):
    """Decides a card's next status after one answer.

    Implementations may update scheduling fields on ``progress`` but must not
    touch the answer counters; the caller records those.
    """

    def apply(self, progress: "UserCardProgress", was_correct: bool) -> str:
        ...


@dataclass(frozen=True, slots=True)
class RepetitionThresholdPolicy:
    """Promote cards by consecutive correct repetitions.

    A wrong answer resets the run. ``0`` repetitions is ``new``, up to
    ``learning_max`` is ``learning``, up to ``reviewing_max`` is
    ``reviewing`` and anything above is ``mastered``.
    """

    learning_max: int = 2
    reviewing_max: int = 5

    @classmethod
    def from_settings(cls, settings: "Settings") -> "RepetitionThresholdPolicy":
        return cls(
            learning_max=settings.CARD_LEARNING_MAX_REPETITIONS,
            reviewing_max=max(
                settings.CARD_REVIEWING_MAX_REPETITIONS, settings.CARD_LEARNING_MAX_REPETITIONS
            ),
        )

    def status_for(self, repetitions: int) -> str:
        if repetitions <= 0:
            return "new"
        if repetitions <= self.learning_max:
            return "learning"
        if repetitions <= self.reviewing_max:
            return "reviewing"
        return "mastered"

    def apply(self, progress: "UserCardProgress", was_correct: bool) -> str:
        repetitions = (progress.repetitions or 0) + 1 if was_correct else 0
        progress.repetitions = repetitions
        progress.status = self.status_for(repetitions)
        return progress.status


__all__ = ["CardStatusPolicy", "RepetitionThresholdPolicy"]
