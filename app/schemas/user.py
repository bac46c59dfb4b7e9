"""Pydantic models for account API interactions."""
from __future__ import annotations

import uuid
from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, computed_field


class UserCreate(BaseModel):
    """Registration input; ``guest_token`` claims earlier anonymous study sessions."""

    email: EmailStr
    password: str = Field(min_length=8, max_length=128)
    full_name: Optional[str] = Field(default=None, max_length=255)
    guest_token: Optional[str] = Field(default=None, max_length=255)


class UserLogin(BaseModel):
    """Schema for user login request."""

    email: EmailStr
    password: str


class UserRead(BaseModel):
    """Account profile with cumulative counters and level projection."""

    id: uuid.UUID
    email: EmailStr
    full_name: Optional[str] = None
    is_active: bool

    level: int
    current_xp: int
    next_level_xp: int
    total_xp: int
    streak: int
    longest_streak: int
    last_active_date: Optional[date] = None

    total_time_spent: int
    total_cards_learned: int
    total_decks_completed: int
    total_correct_answers: int
    total_answers: int
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def xp_to_next_level(self) -> int:
        return self.next_level_xp - self.current_xp

    @computed_field  # type: ignore[prop-decorator]
    @property
    def success_rate(self) -> float | None:
        if not self.total_answers:
            return None
        return round(self.total_correct_answers / self.total_answers, 4)


class RegistrationResponse(BaseModel):
    """Created account plus how many guest sessions were folded into it."""

    user: UserRead
    migrated_sessions: int


class GuestMigrationRequest(BaseModel):
    guest_token: str = Field(min_length=1, max_length=255)


class GuestMigrationResponse(BaseModel):
    migrated_count: int
    user: UserRead
