"""Service layer for study session lifecycle and completion bookkeeping."""
from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from typing import Sequence

from loguru import logger
from sqlalchemy import select
from sqlalchemy.orm import Session

from app.config import settings
from app.core.card_status import CardStatusPolicy, RepetitionThresholdPolicy
from app.core.dates import utcnow
from app.core.leveling import LevelCurve, apply_projection
from app.db.models.progress import UserCardProgress
from app.db.models.study_session import StudySession
from app.db.models.user import User
from app.db.session import transaction
from app.services.daily_progress import DailyDelta, DailyProgressService
from app.services.users import UserService
from app.utils.cache import invalidate_user_views
from app.utils.exceptions import ConflictError, NotFoundError, ValidationError


@dataclass(slots=True)
class CardAnswer:
    card_id: uuid.UUID
    was_correct: bool


@dataclass(slots=True)
class SessionSnapshot:
    """Running totals reported by the client while a session is in progress."""

    duration_seconds: int | None = None
    correct_count: int | None = None
    incorrect_count: int | None = None
    skipped_count: int | None = None
    session_xp: int | None = None


@dataclass(slots=True)
class SessionCompletion:
    """Final totals for a session plus per-card answer outcomes."""

    duration_seconds: int = 0
    correct_count: int = 0
    incorrect_count: int = 0
    skipped_count: int = 0
    score: int | None = None
    session_xp: int | None = None
    card_answers: Sequence[CardAnswer] = field(default_factory=tuple)


@dataclass(slots=True)
class CompletionResult:
    session: StudySession
    xp_earned: int
    leveled_up: bool
    old_level: int
    new_level: int
    cards_learned: int
    cards_mastered: int


@dataclass(slots=True)
class CardOutcome:
    cards_learned: int = 0
    cards_mastered: int = 0


def _validate_counts(**values: int | None) -> None:
    negative = {name: value for name, value in values.items() if value is not None and value < 0}
    if negative:
        raise ValidationError("Session counters must be non-negative", negative)


class StudySessionService:
    """Coordinate session start, auto-save, completion and abandonment."""

    def __init__(
        self,
        db: Session,
        *,
        curve: LevelCurve | None = None,
        card_policy: CardStatusPolicy | None = None,
        daily_progress: DailyProgressService | None = None,
    ) -> None:
        self.db = db
        self.curve = curve or LevelCurve.from_settings(settings)
        self.card_policy = card_policy or RepetitionThresholdPolicy.from_settings(settings)
        self.daily_progress = daily_progress or DailyProgressService(db)
        self.users = UserService(db)

    # ------------------------------------------------------------------
    # Lookup helpers
    # ------------------------------------------------------------------
    def _lock_session(
        self,
        session_id: uuid.UUID,
        *,
        user_id: uuid.UUID | None = None,
        guest_token: str | None = None,
    ) -> StudySession:
        stmt = select(StudySession).where(StudySession.id == session_id)
        if user_id is not None:
            stmt = stmt.where(StudySession.user_id == user_id)
        else:
            stmt = stmt.where(
                StudySession.guest_token == guest_token,
                StudySession.user_id.is_(None),
                StudySession.is_guest.is_(True),
            )
        stmt = stmt.with_for_update().execution_options(populate_existing=True)
        session = self.db.scalars(stmt).first()
        if session is None:
            raise NotFoundError("Study session not found", {"session_id": str(session_id)})
        return session

    @staticmethod
    def _ensure_open(session: StudySession) -> None:
        if session.status != "in_progress":
            raise ConflictError(
                f"Study session is already {session.status}",
                {"session_id": str(session.id), "status": session.status},
            )

    def get_session(self, session_id: uuid.UUID, *, user_id: uuid.UUID) -> StudySession:
        stmt = select(StudySession).where(
            StudySession.id == session_id, StudySession.user_id == user_id
        )
        session = self.db.scalars(stmt).first()
        if session is None:
            raise NotFoundError("Study session not found", {"session_id": str(session_id)})
        return session

    def list_sessions(self, *, user_id: uuid.UUID, limit: int = 20) -> list[StudySession]:
        stmt = (
            select(StudySession)
            .where(StudySession.user_id == user_id)
            .order_by(StudySession.started_at.desc())
            .limit(limit)
        )
        return list(self.db.scalars(stmt))

    # ------------------------------------------------------------------
    # Start
    # ------------------------------------------------------------------
    def start_session(
        self,
        *,
        user: User,
        total_cards: int,
        deck_id: uuid.UUID | None = None,
        title: str | None = None,
    ) -> StudySession:
        _validate_counts(total_cards=total_cards)
        with transaction(self.db):
            session = StudySession(
                user_id=user.id,
                is_guest=False,
                deck_id=deck_id,
                title=title,
                total_cards=total_cards,
                status="in_progress",
                started_at=utcnow(),
                last_activity_at=utcnow(),
            )
            self.db.add(session)
        logger.info("Study session started", session_id=str(session.id), user_id=str(user.id))
        return session

    def start_guest_session(
        self,
        *,
        guest_token: str,
        total_cards: int,
        deck_id: uuid.UUID | None = None,
        title: str | None = None,
    ) -> StudySession:
        token = (guest_token or "").strip()
        if not token:
            raise ValidationError("A guest token is required for guest sessions")
        _validate_counts(total_cards=total_cards)
        with transaction(self.db):
            session = StudySession(
                user_id=None,
                is_guest=True,
                guest_token=token,
                deck_id=deck_id,
                title=title,
                total_cards=total_cards,
                status="in_progress",
                started_at=utcnow(),
                last_activity_at=utcnow(),
            )
            self.db.add(session)
        logger.info("Guest study session started", session_id=str(session.id))
        return session

    # ------------------------------------------------------------------
    # Auto-save
    # ------------------------------------------------------------------
    @staticmethod
    def _merge_snapshot(session: StudySession, snapshot: SessionSnapshot) -> DailyDelta:
        """Write the snapshot onto the session and return what grew since the last save."""

        time_delta = correct_delta = xp_delta = 0
        if snapshot.duration_seconds is not None:
            time_delta = max(0, snapshot.duration_seconds - (session.duration_seconds or 0))
            session.duration_seconds = max(session.duration_seconds or 0, snapshot.duration_seconds)
        if snapshot.correct_count is not None:
            correct_delta = max(0, snapshot.correct_count - (session.correct_count or 0))
            session.correct_count = max(session.correct_count or 0, snapshot.correct_count)
        if snapshot.session_xp is not None:
            xp_delta = max(0, snapshot.session_xp - (session.session_xp or 0))
            session.session_xp = max(session.session_xp or 0, snapshot.session_xp)
        if snapshot.incorrect_count is not None:
            session.incorrect_count = snapshot.incorrect_count
        if snapshot.skipped_count is not None:
            session.skipped_count = snapshot.skipped_count
        session.last_activity_at = utcnow()
        return DailyDelta(
            cards_studied=correct_delta, time_spent_seconds=time_delta, xp_earned=xp_delta
        )

    def save_progress(
        self, session_id: uuid.UUID, *, user_id: uuid.UUID, snapshot: SessionSnapshot
    ) -> StudySession:
        """Persist an in-progress snapshot and credit its increments right away.

        XP earned since the previous save goes to the account (with level-ups)
        and time, correct answers and XP go to the daily row of the day the
        session started, so an abandoned session still counts and a session
        running past midnight stays on one row.
        """

        _validate_counts(
            duration_seconds=snapshot.duration_seconds,
            correct_count=snapshot.correct_count,
            incorrect_count=snapshot.incorrect_count,
            skipped_count=snapshot.skipped_count,
            session_xp=snapshot.session_xp,
        )
        with transaction(self.db):
            session = self._lock_session(session_id, user_id=user_id)
            self._ensure_open(session)
            delta = self._merge_snapshot(session, snapshot)
            if delta.xp_earned:
                account = self.users.lock(user_id)
                account.total_xp = (account.total_xp or 0) + delta.xp_earned
                apply_projection(account, self.curve)
            day = self.daily_progress.session_day(session)
            self.daily_progress.apply_delta(user_id, day, delta)

        invalidate_user_views(user_id)
        return session

    def save_guest_progress(
        self, session_id: uuid.UUID, *, guest_token: str, snapshot: SessionSnapshot
    ) -> StudySession:
        """Persist a guest snapshot; guests have no account or daily rows to credit."""

        _validate_counts(
            duration_seconds=snapshot.duration_seconds,
            correct_count=snapshot.correct_count,
            incorrect_count=snapshot.incorrect_count,
            skipped_count=snapshot.skipped_count,
            session_xp=snapshot.session_xp,
        )
        with transaction(self.db):
            session = self._lock_session(session_id, guest_token=guest_token)
            self._ensure_open(session)
            self._merge_snapshot(session, snapshot)
        return session

    def complete_guest_session(
        self, session_id: uuid.UUID, *, guest_token: str, completion: SessionCompletion
    ) -> StudySession:
        _validate_counts(
            duration_seconds=completion.duration_seconds,
            correct_count=completion.correct_count,
            incorrect_count=completion.incorrect_count,
            skipped_count=completion.skipped_count,
            session_xp=completion.session_xp,
        )
        with transaction(self.db):
            session = self._lock_session(session_id, guest_token=guest_token)
            self._ensure_open(session)
            self._finalize(session, completion)
        logger.info("Guest study session completed", session_id=str(session_id))
        return session

    # ------------------------------------------------------------------
    # Completion
    # ------------------------------------------------------------------
    def _finalize(self, session: StudySession, completion: SessionCompletion) -> None:
        now = utcnow()
        session.status = "completed"
        session.completed_at = now
        session.last_activity_at = now
        session.duration_seconds = completion.duration_seconds
        session.correct_count = completion.correct_count
        session.incorrect_count = completion.incorrect_count
        session.skipped_count = completion.skipped_count
        session.score = completion.score
        if completion.session_xp is not None:
            session.session_xp = max(session.session_xp or 0, completion.session_xp)

    def _get_or_create_card_progress(self, user_id: uuid.UUID, card_id: uuid.UUID) -> UserCardProgress:
        stmt = (
            select(UserCardProgress)
            .where(UserCardProgress.user_id == user_id, UserCardProgress.card_id == card_id)
            .with_for_update()
        )
        progress = self.db.scalars(stmt).first()
        if progress is None:
            progress = UserCardProgress(
                user_id=user_id,
                card_id=card_id,
                status="new",
                repetitions=0,
                times_seen=0,
                times_correct=0,
                times_incorrect=0,
            )
            self.db.add(progress)
        return progress

    def _apply_card_answers(self, user_id: uuid.UUID, answers: Sequence[CardAnswer]) -> CardOutcome:
        outcome = CardOutcome()
        reviewed_at = utcnow()
        for answer in answers:
            progress = self._get_or_create_card_progress(user_id, answer.card_id)
            previous_status = progress.status
            if answer.was_correct and not progress.times_correct:
                outcome.cards_learned += 1
            new_status = self.card_policy.apply(progress, answer.was_correct)
            progress.record_answer(answer.was_correct, reviewed_at)
            if new_status == "mastered" and previous_status != "mastered":
                outcome.cards_mastered += 1
            self.db.flush([progress])
        return outcome

    def record_session_completion(
        self, session_id: uuid.UUID, *, user_id: uuid.UUID, completion: SessionCompletion
    ) -> CompletionResult:
        """Apply a session's terminal write and fold it into every aggregate.

        Only what auto-saves have not already credited is added: the time,
        correct-answer and XP deltas against the last saved snapshot.
        """

        _validate_counts(
            duration_seconds=completion.duration_seconds,
            correct_count=completion.correct_count,
            incorrect_count=completion.incorrect_count,
            skipped_count=completion.skipped_count,
            session_xp=completion.session_xp,
        )
        with transaction(self.db):
            session = self._lock_session(session_id, user_id=user_id)
            self._ensure_open(session)

            saved_seconds = session.duration_seconds or 0
            saved_correct = session.correct_count or 0
            saved_xp = session.session_xp or 0
            self._finalize(session, completion)
            time_delta = max(0, completion.duration_seconds - saved_seconds)
            correct_delta = max(0, completion.correct_count - saved_correct)
            xp_delta = max(0, (session.session_xp or 0) - saved_xp)

            cards = self._apply_card_answers(user_id, completion.card_answers)

            account = self.users.lock(user_id)
            old_level = account.level or 1
            account.total_xp = (account.total_xp or 0) + xp_delta
            projection = apply_projection(account, self.curve)
            account.total_time_spent = (account.total_time_spent or 0) + (
                completion.duration_seconds // 60
            )
            account.total_cards_learned = (account.total_cards_learned or 0) + cards.cards_learned
            account.total_decks_completed = (account.total_decks_completed or 0) + 1
            account.add_answers(
                correct=completion.correct_count,
                total=completion.correct_count + completion.incorrect_count,
            )

            self.daily_progress.apply_delta(
                user_id,
                self.daily_progress.session_day(session),
                DailyDelta(
                    cards_studied=correct_delta,
                    cards_learned=cards.cards_learned,
                    time_spent_seconds=time_delta,
                    xp_earned=xp_delta,
                    sessions_completed=1,
                ),
            )

        invalidate_user_views(user_id)
        logger.info(
            "Study session completed",
            session_id=str(session_id),
            user_id=str(user_id),
            xp_delta=xp_delta,
            cards_learned=cards.cards_learned,
            cards_mastered=cards.cards_mastered,
        )
        return CompletionResult(
            session=session,
            xp_earned=session.session_xp or 0,
            leveled_up=projection.level > old_level,
            old_level=old_level,
            new_level=projection.level,
            cards_learned=cards.cards_learned,
            cards_mastered=cards.cards_mastered,
        )

    def abandon_session(self, session_id: uuid.UUID, *, user_id: uuid.UUID) -> StudySession:
        with transaction(self.db):
            session = self._lock_session(session_id, user_id=user_id)
            self._ensure_open(session)
            session.status = "abandoned"
            session.last_activity_at = utcnow()
        logger.info("Study session abandoned", session_id=str(session_id), user_id=str(user_id))
        return session


__all__ = [
    "CardAnswer",
    "CompletionResult",
    "SessionCompletion",
    "SessionSnapshot",
    "StudySessionService",
]
