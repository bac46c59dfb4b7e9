"""User profile endpoints."""
from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.api import deps
from app.db.models.user import User
from app.schemas import GuestMigrationRequest, GuestMigrationResponse, UserRead
from app.services.guest_migration import GuestMigrationService
from app.utils.cache import PROFILE_NAMESPACE, cache_backend

router = APIRouter(prefix="/users", tags=["users"])


@router.get("/me", response_model=UserRead)
def read_current_user(current_user: User = Depends(deps.get_current_user)) -> UserRead:
    """Return the authenticated user profile."""

    cache_key = str(current_user.id)
    cached = cache_backend.get(PROFILE_NAMESPACE, cache_key)
    if cached is not None:
        return cached

    payload = UserRead.model_validate(current_user).model_dump(mode="json")
    cache_backend.set(PROFILE_NAMESPACE, cache_key, payload, ttl_seconds=300)
    return payload


@router.post("/me/migrate-guest", response_model=GuestMigrationResponse)
def migrate_guest_sessions(
    payload: GuestMigrationRequest,
    current_user: User = Depends(deps.get_current_user),
    db: Session = Depends(deps.get_db),
) -> GuestMigrationResponse:
    """Claim guest sessions for an existing account; repeating the call is a no-op."""

    service = GuestMigrationService(db)
    result = service.migrate_guest_activity(current_user.id, payload.guest_token)
    return GuestMigrationResponse(
        migrated_count=result.migrated_count,
        user=UserRead.model_validate(result.account),
    )
