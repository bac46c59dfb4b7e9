"""Service layer package."""

from app.services.auth import AuthService
from app.services.daily_progress import DailyProgressService
from app.services.guest_migration import GuestMigrationService
from app.services.streak import StreakService
from app.services.study_sessions import StudySessionService
from app.services.users import UserService

__all__ = [
    "AuthService",
    "DailyProgressService",
    "GuestMigrationService",
    "StreakService",
    "StudySessionService",
    "UserService",
]
