"""Endpoints for per-day learner activity."""
from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.api.deps import get_current_user, get_db
from app.db.models.user import User
from app.schemas import DailyProgressRead
from app.services.daily_progress import DailyProgressService
from app.utils.cache import DAILY_PROGRESS_NAMESPACE, cache_backend


router = APIRouter(prefix="/progress", tags=["progress"])


@router.get("/daily", response_model=list[DailyProgressRead])
def list_daily_progress(
    *,
    days: int = Query(7, ge=1, le=365, description="Number of calendar days ending today"),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> list[DailyProgressRead]:
    """Return the recorded days in the window, oldest first."""

    service = DailyProgressService(db)
    today = service.today()
    cache_key = f"{current_user.id}:{today.isoformat()}:{days}"
    cached = cache_backend.get(DAILY_PROGRESS_NAMESPACE, cache_key)
    if cached is not None:
        return cached

    rows = service.list_range(current_user.id, days=days, end=today)
    payload = [DailyProgressRead.model_validate(row).model_dump(mode="json") for row in rows]
    cache_backend.set(DAILY_PROGRESS_NAMESPACE, cache_key, payload, ttl_seconds=60)
    return payload


@router.get("/today", response_model=DailyProgressRead)
def read_today(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> DailyProgressRead:
    """Return today's aggregate, or an empty day if nothing was recorded yet."""

    service = DailyProgressService(db)
    today = service.today()
    row = service.get_day(current_user.id, today)
    if row is None:
        return DailyProgressRead(date=today)
    return DailyProgressRead.model_validate(row)
