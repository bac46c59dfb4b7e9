"""Custom exception classes and error handling utilities."""
from typing import Any, Dict, Optional

from fastapi import HTTPException, status
from loguru import logger


class ContinuityEngineError(Exception):
    """Base exception for the application."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)


class ValidationError(ContinuityEngineError):
    """Malformed input rejected before any transaction opens."""
    pass


class NotFoundError(ContinuityEngineError):
    """Referenced session or account does not exist for the caller."""
    pass


class ConflictError(ContinuityEngineError):
    """A terminal write was attempted twice on the same record."""
    pass


class StorageError(ContinuityEngineError):
    """Transaction failure or lock timeout; safe for the caller to retry."""
    pass


class InvariantViolation(AssertionError):
    """Programming fault: derived state broke a documented invariant."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)


def handle_validation_error(error: ValidationError) -> HTTPException:
    """Handle validation errors."""
    logger.warning(f"Validation error: {error.message}")
    return HTTPException(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        detail={
            "message": error.message,
            "details": error.details
        }
    )


def handle_not_found_error(error: NotFoundError) -> HTTPException:
    """Handle lookups of missing records."""
    logger.warning(f"Not found: {error.message}")
    return HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail=error.message
    )


def handle_conflict_error(error: ConflictError) -> HTTPException:
    """Handle repeated terminal writes."""
    logger.warning(f"Conflict: {error.message}")
    return HTTPException(
        status_code=status.HTTP_409_CONFLICT,
        detail=error.message
    )


def handle_storage_error(error: StorageError) -> HTTPException:
    """Handle storage failures with a generic retry message."""
    logger.error(f"Storage error: {error.message}")
    return HTTPException(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        detail="Something went wrong while saving your progress. Please try again."
    )
