"""User account database model."""
import uuid

from sqlalchemy import Boolean, Column, Date, DateTime, Integer, String
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.sql import func

from app.db.base import Base


class User(Base):
    """Represents a registered learner and their cumulative study counters."""

    __tablename__ = "users"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    email = Column(String(255), unique=True, nullable=False, index=True)
    hashed_password = Column(String(255), nullable=False)
    full_name = Column(String(255))

    # Gamification
    total_xp = Column(Integer, nullable=False, default=0)
    current_xp = Column(Integer, nullable=False, default=0)
    next_level_xp = Column(Integer, nullable=False, default=100)
    level = Column(Integer, nullable=False, default=1)
    streak = Column(Integer, nullable=False, default=0)
    longest_streak = Column(Integer, nullable=False, default=0)
    last_active_date = Column(Date, index=True)

    # Cumulative stats
    total_time_spent = Column(Integer, nullable=False, default=0)  # minutes
    total_cards_learned = Column(Integer, nullable=False, default=0)
    total_decks_completed = Column(Integer, nullable=False, default=0)
    total_correct_answers = Column(Integer, nullable=False, default=0)
    total_answers = Column(Integer, nullable=False, default=0)

    # Metadata
    last_login_at = Column(DateTime(timezone=True))
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
    is_active = Column(Boolean, default=True)

    def add_answers(self, *, correct: int, total: int) -> None:
        """Accumulate answer counters, keeping correct answers bounded by the total."""

        self.total_answers = (self.total_answers or 0) + total
        self.total_correct_answers = min(
            (self.total_correct_answers or 0) + correct, self.total_answers
        )
