"""Study session database model."""
import uuid

from sqlalchemy import Boolean, CheckConstraint, Column, DateTime, ForeignKey, Integer, String
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from app.db.base import Base

SESSION_STATUSES = ("in_progress", "completed", "abandoned")


class StudySession(Base):
    """One study attempt over a deck, owned by an account or by a guest token.

    A guest session has ``user_id`` NULL, ``is_guest`` true and a
    ``guest_token``. Migration reassigns it to an account and clears
    ``is_guest``; the flag never goes back to true.
    """

    __tablename__ = "study_sessions"
    __table_args__ = (
        CheckConstraint(
            "status IN ('in_progress', 'completed', 'abandoned')", name="ck_study_sessions_status"
        ),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(
        UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=True, index=True
    )
    guest_token = Column(String(255), index=True)
    is_guest = Column(Boolean, nullable=False, default=False)

    deck_id = Column(UUID(as_uuid=True))
    title = Column(String(200))
    total_cards = Column(Integer, nullable=False, default=0)

    status = Column(String(20), nullable=False, default="in_progress")
    started_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)
    completed_at = Column(DateTime(timezone=True))
    last_activity_at = Column(DateTime(timezone=True), server_default=func.now())
    duration_seconds = Column(Integer, nullable=False, default=0)

    score = Column(Integer)
    correct_count = Column(Integer, nullable=False, default=0)
    incorrect_count = Column(Integer, nullable=False, default=0)
    skipped_count = Column(Integer, nullable=False, default=0)
    session_xp = Column(Integer, nullable=False, default=0)

    created_at = Column(DateTime(timezone=True), server_default=func.now())

    user = relationship("User", backref="study_sessions")

    @property
    def is_completed(self) -> bool:
        return self.status == "completed"
