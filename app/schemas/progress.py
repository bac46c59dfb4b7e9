"""Pydantic models for daily progress endpoints."""
from __future__ import annotations

import datetime as dt

from pydantic import BaseModel, ConfigDict


class DailyProgressRead(BaseModel):
    """One calendar day of aggregated study activity."""

    date: dt.date
    cards_studied: int = 0
    cards_learned: int = 0
    time_spent_minutes: int = 0
    xp_earned: int = 0
    sessions_completed: int = 0

    model_config = ConfigDict(from_attributes=True)
