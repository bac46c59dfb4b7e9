"""Authentication service layer."""
from __future__ import annotations

from dataclasses import dataclass

from fastapi import HTTPException, status
from loguru import logger
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.config import settings
from app.core.leveling import LevelCurve, apply_projection
from app.core.security import hash_password, issue_token_pair, verify_password
from app.db.models.user import User
from app.db.session import transaction
from app.schemas import Token, UserCreate
from app.services.guest_migration import GuestMigrationService
from app.services.streak import StreakResult, StreakService
from app.utils.exceptions import StorageError


class EmailAlreadyExistsError(ValueError):
    """Raised when attempting to register with an email that already exists."""


class InvalidCredentialsError(ValueError):
    """Raised when authentication credentials are invalid."""


@dataclass(slots=True)
class RegistrationResult:
    user: User
    migrated_sessions: int


@dataclass(slots=True)
class LoginResult:
    user: User
    tokens: Token
    streak: StreakResult


class AuthService:
    """Encapsulates registration, login checkpoints and token issuance."""

    def __init__(
        self,
        db: Session,
        *,
        curve: LevelCurve | None = None,
        migration_service: GuestMigrationService | None = None,
        streak_service: StreakService | None = None,
    ):
        self.db = db
        self.curve = curve or LevelCurve.from_settings(settings)
        self.migration_service = migration_service or GuestMigrationService(db, curve=self.curve)
        self.streak_service = streak_service or StreakService(db)

    def register_user(self, payload: UserCreate) -> RegistrationResult:
        """Create the account and fold in its guest sessions in one transaction."""

        email = payload.email.lower()
        existing_user = self.db.scalar(select(User).where(User.email == email))
        if existing_user:
            raise EmailAlreadyExistsError("A user with this email already exists.")

        guest_token = (payload.guest_token or "").strip()
        migrated = 0
        try:
            with transaction(self.db):
                user = User(
                    email=email,
                    hashed_password=hash_password(payload.password),
                    full_name=payload.full_name,
                    total_xp=0,
                )
                apply_projection(user, self.curve)
                self.db.add(user)
                self.db.flush([user])
                if guest_token:
                    result = self.migration_service.migrate_guest_activity(
                        user.id, guest_token, commit=False
                    )
                    migrated = result.migrated_count
                    user = result.account
        except StorageError as exc:
            if isinstance(exc.__cause__, IntegrityError):
                raise EmailAlreadyExistsError("A user with this email already exists.") from exc
            raise

        logger.info("User registered", user_id=str(user.id), migrated_sessions=migrated)
        return RegistrationResult(user=user, migrated_sessions=migrated)

    def authenticate_user(self, email: str, password: str) -> User:
        """Validate credentials and return the associated user."""

        user = self.db.scalar(select(User).where(User.email == email.lower()))
        if not user or not verify_password(password, user.hashed_password):
            raise InvalidCredentialsError("Incorrect email or password")
        return user

    def login(self, email: str, password: str) -> LoginResult:
        """Authenticate and run the streak checkpoint before issuing tokens."""

        user = self.authenticate_user(email, password)
        streak = self.streak_service.record_login(user.id)
        return LoginResult(user=user, tokens=self.create_tokens(user), streak=streak)

    def create_tokens(self, user: User) -> Token:
        """Generate access and refresh tokens for a user."""

        access, refresh = issue_token_pair(user.id)
        return Token(access_token=access, refresh_token=refresh)


def handle_email_exists(error: EmailAlreadyExistsError) -> None:
    """Raise an HTTP 400 error for duplicate email attempts."""

    raise HTTPException(
        status_code=status.HTTP_400_BAD_REQUEST,
        detail=str(error),
    ) from error


def handle_invalid_credentials(error: InvalidCredentialsError) -> None:
    """Raise an HTTP 401 error for invalid login attempts."""

    raise HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=str(error),
        headers={"WWW-Authenticate": "Bearer"},
    ) from error
