from sqlalchemy import Column, Integer, String, Boolean, TIMESTAMP, func
from sqlalchemy.orm import relationship
from mentorhub.database import Base

ROLE_MENTEE = "mentee"
ROLE_MENTOR = "mentor"
ROLE_ADMIN = "admin"


# ---------------- USER (AUTH TABLE) ----------------
class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False)
    email = Column(String(255), unique=True, index=True, nullable=False)
    password_hash = Column(String(255), nullable=False)
    role = Column(String(20), nullable=False, default=ROLE_MENTEE)
    # Mentors are matchable only once an admin approves them
    approved = Column(Boolean, default=False, nullable=False)
    is_active = Column(Boolean, default=True)
    created_at = Column(TIMESTAMP, server_default=func.now())
    updated_at = Column(TIMESTAMP, onupdate=func.now())

    mentee_sessions = relationship("Session", foreign_keys="Session.mentee_id", back_populates="mentee")
    mentor_sessions = relationship("Session", foreign_keys="Session.mentor_id", back_populates="mentor")
    statistics = relationship("MentorStatistics", back_populates="mentor", uselist=False)

    @property
    def is_approved_mentor(self) -> bool:
        return self.role == ROLE_MENTOR and bool(self.approved)
