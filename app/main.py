"""FastAPI application factory."""
from __future__ import annotations

from typing import Callable, List

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.api.v1 import api_router
from app.config import settings
from app.utils.exceptions import (
    ConflictError,
    ContinuityEngineError,
    NotFoundError,
    StorageError,
    ValidationError,
    handle_conflict_error,
    handle_not_found_error,
    handle_storage_error,
    handle_validation_error,
)


tags_metadata: List[dict[str, str]] = [
    {"name": "auth", "description": "Register accounts, claim guest activity and log in."},
    {"name": "users", "description": "Learner profile, level and streak."},
    {"name": "study-sessions", "description": "Start, auto-save, complete and abandon sessions."},
    {"name": "progress", "description": "Per-day activity aggregates."},
]

_ERROR_HANDLERS: dict[type[ContinuityEngineError], Callable[..., HTTPException]] = {
    ValidationError: handle_validation_error,
    NotFoundError: handle_not_found_error,
    ConflictError: handle_conflict_error,
    StorageError: handle_storage_error,
}


def _to_response(error: HTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=error.status_code,
        content={"detail": error.detail},
        headers=getattr(error, "headers", None),
    )


def create_app() -> FastAPI:
    """Create and configure the FastAPI application instance."""

    app = FastAPI(
        title=settings.PROJECT_NAME,
        description="Streaks, XP levels and daily progress for flashcard study sessions.",
        version="0.1.0",
        openapi_tags=tags_metadata,
        docs_url=f"{settings.API_V1_STR}/docs",
        redoc_url=f"{settings.API_V1_STR}/redoc",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.BACKEND_CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        return JSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content={"detail": exc.errors(), "message": "Validation failed"},
        )

    @app.exception_handler(ContinuityEngineError)
    async def engine_exception_handler(
        request: Request, exc: ContinuityEngineError
    ) -> JSONResponse:
        for error_type, handler in _ERROR_HANDLERS.items():
            if isinstance(exc, error_type):
                return _to_response(handler(exc))
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"detail": exc.message},
        )

    app.include_router(api_router, prefix=settings.API_V1_STR)
    return app


app = create_app()
