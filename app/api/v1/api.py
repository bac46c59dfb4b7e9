"""API router for version 1."""
from fastapi import APIRouter

from app.api.v1.endpoints import auth, progress, study_sessions, users


api_router = APIRouter()
api_router.include_router(auth.router)
api_router.include_router(users.router)
api_router.include_router(study_sessions.router)
api_router.include_router(progress.router)
