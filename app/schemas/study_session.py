"""Pydantic models for study session endpoints."""
from __future__ import annotations

import uuid
from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


class SessionCreateRequest(BaseModel):
    """Payload for starting a study session."""

    total_cards: int = Field(..., ge=0)
    deck_id: Optional[uuid.UUID] = None
    title: Optional[str] = Field(default=None, max_length=200)


class GuestSessionCreateRequest(SessionCreateRequest):
    guest_token: str = Field(..., min_length=1, max_length=255)


class SessionProgressUpdate(BaseModel):
    """Running totals auto-saved while the session is in progress."""

    duration_seconds: Optional[int] = Field(default=None, ge=0)
    correct_count: Optional[int] = Field(default=None, ge=0)
    incorrect_count: Optional[int] = Field(default=None, ge=0)
    skipped_count: Optional[int] = Field(default=None, ge=0)
    session_xp: Optional[int] = Field(default=None, ge=0)


class GuestSessionProgressUpdate(SessionProgressUpdate):
    guest_token: str = Field(..., min_length=1, max_length=255)


class CardAnswerPayload(BaseModel):
    card_id: uuid.UUID
    was_correct: bool


class SessionCompleteRequest(BaseModel):
    """Final totals submitted when a session ends."""

    duration_seconds: int = Field(0, ge=0)
    correct_count: int = Field(0, ge=0)
    incorrect_count: int = Field(0, ge=0)
    skipped_count: int = Field(0, ge=0)
    score: Optional[int] = Field(default=None, ge=0, le=100)
    session_xp: Optional[int] = Field(default=None, ge=0)
    card_answers: list[CardAnswerPayload] = Field(default_factory=list)


class GuestSessionCompleteRequest(SessionCompleteRequest):
    guest_token: str = Field(..., min_length=1, max_length=255)


class StudySessionRead(BaseModel):
    """Study session representation."""

    id: uuid.UUID
    deck_id: Optional[uuid.UUID] = None
    title: Optional[str] = None
    is_guest: bool
    total_cards: int
    status: Literal["in_progress", "completed", "abandoned"]
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    duration_seconds: int
    correct_count: int
    incorrect_count: int
    skipped_count: int
    score: Optional[int] = None
    session_xp: int

    model_config = ConfigDict(from_attributes=True)


class SessionCompletionResponse(BaseModel):
    """Outcome of completing a session."""

    session: StudySessionRead
    xp_earned: int
    leveled_up: bool
    old_level: int
    new_level: int
    cards_learned: int
    cards_mastered: int
