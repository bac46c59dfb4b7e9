"""Credentials for account checkpoints: bcrypt password hashes and signed account tokens."""
from __future__ import annotations

import uuid
from datetime import datetime, timedelta, timezone

import bcrypt
from jose import JWTError, jwt

from app.config import settings
from app.utils.exceptions import InvariantViolation

ALGORITHM = "HS256"
ACCESS = "access"
REFRESH = "refresh"


class InvalidTokenError(Exception):
    """The token is unsigned, expired, of the wrong kind or names no account."""


def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(password: str, hashed_password: str) -> bool:
    return bcrypt.checkpw(password.encode("utf-8"), hashed_password.encode("utf-8"))


def _lifetime(kind: str) -> timedelta:
    if kind == ACCESS:
        return timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    if kind == REFRESH:
        return timedelta(days=settings.REFRESH_TOKEN_EXPIRE_DAYS)
    raise InvariantViolation(f"Unknown token kind {kind!r}", {"kind": kind})


def issue_account_token(account_id: uuid.UUID | str, kind: str = ACCESS) -> str:
    """Sign a token of ``kind`` whose subject is the account id."""

    claims = {
        "sub": str(uuid.UUID(str(account_id))),
        "type": kind,
        "exp": datetime.now(timezone.utc) + _lifetime(kind),
    }
    return jwt.encode(claims, settings.SECRET_KEY, algorithm=ALGORITHM)


def issue_token_pair(account_id: uuid.UUID | str) -> tuple[str, str]:
    """Access and refresh tokens for one login."""

    return issue_account_token(account_id, ACCESS), issue_account_token(account_id, REFRESH)


def read_account_token(token: str, kind: str = ACCESS) -> uuid.UUID:
    """Verify ``token`` and return the account id it was issued for."""

    try:
        claims = jwt.decode(token, settings.SECRET_KEY, algorithms=[ALGORITHM])
    except JWTError as exc:
        raise InvalidTokenError(str(exc)) from exc

    if claims.get("type") != kind:
        raise InvalidTokenError(f"Expected a {kind} token")
    try:
        return uuid.UUID(str(claims["sub"]))
    except (KeyError, ValueError) as exc:
        raise InvalidTokenError("Token subject is not an account id") from exc
