# mentorhub/models/rating.py
from sqlalchemy import Column, Integer, Text, ForeignKey, TIMESTAMP, Float, JSON, CheckConstraint, func
from sqlalchemy.orm import relationship
from mentorhub.database import Base


class Rating(Base):
    __tablename__ = "ratings"

    id = Column(Integer, primary_key=True, index=True)
    # One rating per session, enforced by the database
    session_id = Column(Integer, ForeignKey("sessions.id", ondelete="CASCADE"), unique=True, nullable=False)
    mentee_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    mentor_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    rating = Column(Integer, nullable=False)
    feedback = Column(Text, default="")
    created_at = Column(TIMESTAMP, server_default=func.now())

    # Constraints
    __table_args__ = (
        CheckConstraint('rating >= 1 AND rating <= 5', name='check_rating_range'),
    )

    # Relationships
    session = relationship("Session", back_populates="rating")
    mentee = relationship("User", foreign_keys=[mentee_id])
    mentor = relationship("User", foreign_keys=[mentor_id])


class MentorStatistics(Base):
    """Denormalized mentor profile statistics; only ``stats_service`` writes it."""

    __tablename__ = "mentor_statistics"

    id = Column(Integer, primary_key=True, index=True)
    mentor_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), unique=True, nullable=False)
    average_rating = Column(Float, default=0.0, nullable=False)
    total_ratings = Column(Integer, default=0, nullable=False)
    rating_distribution = Column(JSON, nullable=False, default=dict)
    students_helped = Column(Integer, default=0, nullable=False)
    total_minutes = Column(Integer, default=0, nullable=False)
    last_updated = Column(TIMESTAMP)

    # Relationship
    mentor = relationship("User", back_populates="statistics")
