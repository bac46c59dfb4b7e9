"""Authentication API endpoints."""
from __future__ import annotations

from fastapi import APIRouter, Depends, status
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy.orm import Session

from app.api.deps import get_db
from app.schemas import LoginResponse, RegistrationResponse, UserCreate, UserLogin, UserRead
from app.services.auth import (
    AuthService,
    EmailAlreadyExistsError,
    InvalidCredentialsError,
    LoginResult,
    handle_email_exists,
    handle_invalid_credentials,
)


router = APIRouter(prefix="/auth", tags=["auth"])


def _login_response(result: LoginResult) -> LoginResponse:
    return LoginResponse(
        access_token=result.tokens.access_token,
        refresh_token=result.tokens.refresh_token,
        streak=result.streak.streak,
        longest_streak=result.streak.longest_streak,
    )


@router.post(
    "/register", response_model=RegistrationResponse, status_code=status.HTTP_201_CREATED
)
def register_user(payload: UserCreate, db: Session = Depends(get_db)) -> RegistrationResponse:
    """Register a new user, claiming any guest sessions recorded under ``guest_token``."""

    service = AuthService(db)
    try:
        result = service.register_user(payload)
    except EmailAlreadyExistsError as exc:
        handle_email_exists(exc)
    return RegistrationResponse(
        user=UserRead.model_validate(result.user),
        migrated_sessions=result.migrated_sessions,
    )


@router.post("/login", response_model=LoginResponse)
def login(payload: UserLogin, db: Session = Depends(get_db)) -> LoginResponse:
    """Authenticate a user, update their streak and return JWT tokens."""

    service = AuthService(db)
    try:
        result = service.login(payload.email, payload.password)
    except InvalidCredentialsError as exc:
        handle_invalid_credentials(exc)
    return _login_response(result)


@router.post("/token", response_model=LoginResponse, include_in_schema=False)
def login_form(
    form: OAuth2PasswordRequestForm = Depends(), db: Session = Depends(get_db)
) -> LoginResponse:
    """OAuth2 password flow used by the interactive docs."""

    service = AuthService(db)
    try:
        result = service.login(form.username, form.password)
    except InvalidCredentialsError as exc:
        handle_invalid_credentials(exc)
    return _login_response(result)
