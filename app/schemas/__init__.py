"""Pydantic schemas package."""

from app.schemas.auth import LoginResponse, Token
from app.schemas.progress import DailyProgressRead
from app.schemas.study_session import (
    CardAnswerPayload,
    GuestSessionCompleteRequest,
    GuestSessionCreateRequest,
    GuestSessionProgressUpdate,
    SessionCompleteRequest,
    SessionCompletionResponse,
    SessionCreateRequest,
    SessionProgressUpdate,
    StudySessionRead,
)
from app.schemas.user import (
    GuestMigrationRequest,
    GuestMigrationResponse,
    RegistrationResponse,
    UserCreate,
    UserLogin,
    UserRead,
)

__all__ = [
    "LoginResponse",
    "Token",
    "DailyProgressRead",
    "CardAnswerPayload",
    "GuestSessionCompleteRequest",
    "GuestSessionCreateRequest",
    "GuestSessionProgressUpdate",
    "SessionCompleteRequest",
    "SessionCompletionResponse",
    "SessionCreateRequest",
    "SessionProgressUpdate",
    "StudySessionRead",
    "GuestMigrationRequest",
    "GuestMigrationResponse",
    "RegistrationResponse",
    "UserCreate",
    "UserLogin",
    "UserRead",
]
