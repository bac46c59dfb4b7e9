"""API endpoint modules for v1."""

from app.api.v1.endpoints import auth, progress, study_sessions, users

__all__ = [
    "auth",
    "progress",
    "study_sessions",
    "users",
]
