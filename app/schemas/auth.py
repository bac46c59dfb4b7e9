"""Authentication related schemas."""
from __future__ import annotations

from pydantic import BaseModel


class Token(BaseModel):
    """Token pair returned after successful authentication."""

    access_token: str
    refresh_token: str
    token_type: str = "bearer"


class LoginResponse(Token):
    """Tokens plus the streak evaluated at this login checkpoint."""

    streak: int
    longest_streak: int
