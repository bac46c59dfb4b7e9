"""Service layer for account lookups."""
from __future__ import annotations

import uuid

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.db.models.user import User
from app.utils.exceptions import NotFoundError


class UserNotFoundError(NotFoundError):
    """Raised when a user lookup fails."""


class UserService:
    """Encapsulates reusable account data access operations."""

    def __init__(self, db: Session):
        self.db = db

    def get(self, user_id: uuid.UUID) -> User:
        """Return a user by identifier or raise ``UserNotFoundError``."""

        user = self.db.get(User, user_id)
        if not user:
            raise UserNotFoundError("User not found", {"user_id": str(user_id)})
        return user

    def lock(self, user_id: uuid.UUID) -> User:
        """Load the account row with a row-level write lock for this transaction.

        The row is re-read even if the session already holds the object, so
        counters reflect whatever committed before the lock was granted.
        """

        stmt = (
            select(User)
            .where(User.id == user_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        user = self.db.scalars(stmt).first()
        if not user:
            raise UserNotFoundError("User not found", {"user_id": str(user_id)})
        return user
