"""Daily aggregate and per-card progress models."""
import uuid

from sqlalchemy import Column, Date, DateTime, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from app.db.base import Base

CARD_STATUSES = ("new", "learning", "reviewing", "mastered")


class DailyProgress(Base):
    """One aggregate row per (user, calendar day).

    Columns only ever grow: writers add deltas through an upsert and never
    overwrite the row from application memory.
    """

    __tablename__ = "daily_progress"
    __table_args__ = (UniqueConstraint("user_id", "date", name="uq_daily_progress_user_date"),)

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(
        UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    date = Column(Date, nullable=False)

    cards_studied = Column(Integer, nullable=False, default=0)
    cards_learned = Column(Integer, nullable=False, default=0)
    time_spent_seconds = Column(Integer, nullable=False, default=0)
    xp_earned = Column(Integer, nullable=False, default=0)
    sessions_completed = Column(Integer, nullable=False, default=0)

    user = relationship("User", backref="daily_progress")

    @property
    def time_spent_minutes(self) -> int:
        return (self.time_spent_seconds or 0) // 60


class UserCardProgress(Base):
    """Per-user learning state for a single card."""

    __tablename__ = "user_card_progress"
    __table_args__ = (UniqueConstraint("user_id", "card_id", name="uq_user_card_progress"),)

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(
        UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    card_id = Column(UUID(as_uuid=True), nullable=False, index=True)

    status = Column(String(20), nullable=False, default="new")
    repetitions = Column(Integer, nullable=False, default=0)
    times_seen = Column(Integer, nullable=False, default=0)
    times_correct = Column(Integer, nullable=False, default=0)
    times_incorrect = Column(Integer, nullable=False, default=0)
    last_reviewed_at = Column(DateTime(timezone=True))

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    def record_answer(self, correct: bool, reviewed_at) -> None:
        """Update usage counters for one answer."""

        self.times_seen = (self.times_seen or 0) + 1
        if correct:
            self.times_correct = (self.times_correct or 0) + 1
        else:
            self.times_incorrect = (self.times_incorrect or 0) + 1
        self.last_reviewed_at = reviewed_at
