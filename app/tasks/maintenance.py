"""Celery tasks for guest session housekeeping and daily progress repair."""
from __future__ import annotations

from datetime import date, timedelta
from uuid import UUID

from loguru import logger
from sqlalchemy import delete, func, select

from app.celery_app import celery_app
from app.config import settings
from app.core.dates import day_bounds, today_in, utcnow
from app.db.models.study_session import StudySession
from app.db.session import SessionLocal, transaction
from app.services.daily_progress import DailyProgressService


@celery_app.task(name="app.tasks.maintenance.cleanup_guest_sessions")
def cleanup_guest_sessions(retention_days: int | None = None) -> dict[str, int | str]:
    """Delete unclaimed guest sessions idle for longer than the retention period."""

    retention = retention_days or settings.GUEST_SESSION_RETENTION_DAYS
    cutoff = utcnow() - timedelta(days=retention)
    db = SessionLocal()

    try:
        with transaction(db):
            deleted = db.execute(
                delete(StudySession)
                .where(
                    StudySession.is_guest.is_(True),
                    StudySession.user_id.is_(None),
                    func.coalesce(StudySession.last_activity_at, StudySession.created_at)
                    < cutoff,
                )
                .execution_options(synchronize_session=False)
            ).rowcount

        logger.info(
            "Expired guest sessions cleaned up",
            deleted_count=deleted,
            cutoff=cutoff.isoformat(),
        )
        return {"deleted": deleted, "cutoff": cutoff.isoformat()}

    finally:
        db.close()


@celery_app.task(name="app.tasks.maintenance.guest_session_stats")
def guest_session_stats() -> dict[str, int]:
    """Count guest sessions by state; migrated ones keep their token after reassignment."""

    db = SessionLocal()
    try:
        unclaimed = StudySession.is_guest.is_(True) & StudySession.user_id.is_(None)
        total, active, abandoned, migrated = db.execute(
            select(
                func.count(StudySession.id).filter(unclaimed),
                func.count(StudySession.id).filter(
                    unclaimed, StudySession.status == "in_progress"
                ),
                func.count(StudySession.id).filter(unclaimed, StudySession.status == "abandoned"),
                func.count(StudySession.id).filter(
                    StudySession.is_guest.is_(False), StudySession.user_id.is_not(None)
                ),
            ).where(StudySession.guest_token.is_not(None))
        ).one()

        stats = {
            "total": int(total),
            "active": int(active),
            "abandoned": int(abandoned),
            "migrated": int(migrated),
        }
        logger.info("Guest session stats", **stats)
        return stats

    finally:
        db.close()


@celery_app.task(name="app.tasks.maintenance.rebuild_daily_progress", bind=True)
def rebuild_daily_progress(
    self, user_id: str | None = None, target_date: str | None = None
) -> dict[str, int | str]:
    """Top up daily rows from session history for one day (yesterday by default).

    Without ``user_id`` every account with a session starting on that day is
    repaired.
    """

    day = (
        date.fromisoformat(target_date)
        if target_date
        else today_in(settings.ACTIVITY_TIMEZONE) - timedelta(days=1)
    )
    db = SessionLocal()

    try:
        if user_id is not None:
            try:
                user_ids = [UUID(user_id)]
            except (TypeError, ValueError) as exc:
                raise ValueError(f"Invalid user id {user_id!r}") from exc
        else:
            start, end = day_bounds(day, settings.ACTIVITY_TIMEZONE)
            user_ids = list(
                db.scalars(
                    select(StudySession.user_id)
                    .where(
                        StudySession.user_id.is_not(None),
                        StudySession.started_at >= start,
                        StudySession.started_at < end,
                    )
                    .distinct()
                )
            )

        service = DailyProgressService(db)
        repaired = 0
        for account_id in user_ids:
            with transaction(db):
                service.rebuild_day(account_id, day)
            repaired += 1

        logger.info(
            "Daily progress rebuilt",
            date=day.isoformat(),
            accounts=repaired,
        )
        return {"date": day.isoformat(), "accounts": repaired}

    finally:
        db.close()
