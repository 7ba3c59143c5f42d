# mentorhub/models/session.py
from sqlalchemy import Column, Integer, String, Text, ForeignKey, TIMESTAMP, CheckConstraint, func
from sqlalchemy.orm import relationship
from mentorhub.database import Base

STATUS_REQUESTED = "requested"
STATUS_ACTIVE = "active"
STATUS_PENDING_RATING = "pending_rating"
STATUS_COMPLETED = "completed"
STATUS_CANCELLED = "cancelled"

SESSION_STATUSES = (
    STATUS_REQUESTED,
    STATUS_ACTIVE,
    STATUS_COMPLETED,
    STATUS_PENDING_RATING,
    STATUS_CANCELLED,
)

# Statuses whose transcript stays readable
READABLE_STATUSES = (STATUS_ACTIVE, STATUS_COMPLETED, STATUS_PENDING_RATING)
# Statuses that accept a rating
RATEABLE_STATUSES = (STATUS_COMPLETED, STATUS_PENDING_RATING)


class Session(Base):
    __tablename__ = "sessions"

    id = Column(Integer, primary_key=True, index=True)
    mentee_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    mentor_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    course_id = Column(Integer, ForeignKey("courses.id"), nullable=True)
    description = Column(Text, default="")
    preferred_time = Column(TIMESTAMP)
    status = Column(String(20), nullable=False, default=STATUS_REQUESTED, index=True)
    scheduled_time = Column(TIMESTAMP)
    started_at = Column(TIMESTAMP)
    ended_at = Column(TIMESTAMP)
    summary = Column(Text)
    created_at = Column(TIMESTAMP, server_default=func.now())
    updated_at = Column(TIMESTAMP, server_default=func.now(), onupdate=func.now())

    __table_args__ = (
        CheckConstraint(
            "status IN ('requested', 'active', 'completed', 'cancelled', 'pending_rating')",
            name="sessions_status_check",
        ),
    )

    # Relationships
    mentee = relationship("User", foreign_keys=[mentee_id], back_populates="mentee_sessions")
    mentor = relationship("User", foreign_keys=[mentor_id], back_populates="mentor_sessions")
    course = relationship("Course", back_populates="sessions")
    rating = relationship("Rating", back_populates="session", uselist=False)
    messages = relationship("Message", back_populates="session", order_by="Message.id")

    def is_participant(self, user_id: int) -> bool:
        return user_id in (self.mentee_id, self.mentor_id)

    def role_of(self, user_id: int):
        if user_id == self.mentee_id:
            return "mentee"
        if user_id == self.mentor_id:
            return "mentor"
        return None


class SessionLog(Base):
    """Duration record written when a session leaves ``active``."""

    __tablename__ = "session_logs"

    id = Column(Integer, primary_key=True, index=True)
    session_id = Column(Integer, ForeignKey("sessions.id", ondelete="CASCADE"), nullable=False, index=True)
    mentee_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    mentor_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    course_id = Column(Integer, ForeignKey("courses.id"), nullable=True)
    duration = Column(Integer, nullable=False, default=0)  # minutes
    date = Column(TIMESTAMP, nullable=False)
    created_at = Column(TIMESTAMP, server_default=func.now())
