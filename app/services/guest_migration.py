"""Reconcile anonymous guest study activity into a registered account."""
from __future__ import annotations

import uuid
from dataclasses import dataclass

from loguru import logger
from sqlalchemy import case, func, select, update
from sqlalchemy.orm import Session

from app.config import settings
from app.core.leveling import LevelCurve, apply_projection
from app.db.models.study_session import StudySession
from app.db.models.user import User
from app.db.session import transaction
from app.services.daily_progress import DailyProgressService
from app.services.users import UserService
from app.utils.cache import invalidate_user_views
from app.utils.exceptions import ValidationError


@dataclass(slots=True)
class MigrationTotals:
    xp: int
    minutes: int
    completed_sessions: int


@dataclass(slots=True)
class MigrationResult:
    migrated_count: int
    account: User


class GuestMigrationService:
    """Move guest-owned sessions to an account exactly once.

    Reassignment clears the guest marker, so a repeated call with the same
    token matches nothing and leaves the account untouched.
    """

    def __init__(
        self,
        db: Session,
        *,
        curve: LevelCurve | None = None,
        daily_progress: DailyProgressService | None = None,
    ) -> None:
        self.db = db
        self.curve = curve or LevelCurve.from_settings(settings)
        self.daily_progress = daily_progress or DailyProgressService(db)
        self.users = UserService(db)

    @staticmethod
    def _normalize_token(guest_token: str | None) -> str:
        token = (guest_token or "").strip()
        if not token:
            raise ValidationError("A guest token is required to migrate guest activity")
        return token

    def _reassign(self, account_id: uuid.UUID, token: str) -> list[uuid.UUID]:
        stmt = (
            update(StudySession)
            .where(
                StudySession.guest_token == token,
                StudySession.user_id.is_(None),
                StudySession.is_guest.is_(True),
            )
            .values(user_id=account_id, is_guest=False)
            .returning(StudySession.id)
            .execution_options(synchronize_session="fetch")
        )
        return list(self.db.scalars(stmt))

    def _totals(self, session_ids: list[uuid.UUID]) -> MigrationTotals:
        xp, seconds, completed = self.db.execute(
            select(
                func.coalesce(func.sum(StudySession.session_xp), 0),
                func.coalesce(func.sum(StudySession.duration_seconds), 0),
                func.coalesce(
                    func.sum(case((StudySession.status == "completed", 1), else_=0)), 0
                ),
            ).where(StudySession.id.in_(session_ids))
        ).one()
        return MigrationTotals(
            xp=int(xp), minutes=int(seconds) // 60, completed_sessions=int(completed)
        )

    def migrate_guest_activity(
        self, user_id: uuid.UUID, guest_token: str | None, *, commit: bool = True
    ) -> MigrationResult:
        """Reassign the token's guest sessions to ``user_id`` and fold in their totals.

        With ``commit=False`` the work joins the caller's open transaction
        (registration creates the account and migrates in one commit).
        """

        token = self._normalize_token(guest_token)

        with transaction(self.db, commit=commit):
            account = self.users.lock(user_id)
            session_ids = self._reassign(account.id, token)
            if not session_ids:
                logger.info("No guest sessions to migrate", user_id=str(user_id))
                return MigrationResult(migrated_count=0, account=account)

            totals = self._totals(session_ids)
            account.total_xp = (account.total_xp or 0) + totals.xp
            account.current_xp = (account.current_xp or 0) + totals.xp
            account.total_time_spent = (account.total_time_spent or 0) + totals.minutes
            account.total_decks_completed = (
                account.total_decks_completed or 0
            ) + totals.completed_sessions
            apply_projection(account, self.curve)

            migrated = self.db.scalars(
                select(StudySession).where(StudySession.id.in_(session_ids))
            ).all()
            self.daily_progress.fold_sessions(account.id, migrated)

        invalidate_user_views(user_id)
        logger.info(
            "Guest sessions migrated",
            user_id=str(user_id),
            migrated=len(session_ids),
            xp=totals.xp,
            minutes=totals.minutes,
            completed_sessions=totals.completed_sessions,
        )
        return MigrationResult(migrated_count=len(session_ids), account=account)


__all__ = ["GuestMigrationService", "MigrationResult", "MigrationTotals"]
