"""Database models package."""
from app.db.models.user import User
from app.db.models.study_session import StudySession
from app.db.models.progress import DailyProgress, UserCardProgress

__all__ = [
    "User",
    "StudySession",
    "DailyProgress",
    "UserCardProgress",
]
