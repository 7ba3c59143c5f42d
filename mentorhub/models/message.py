# mentorhub/models/message.py
from sqlalchemy import Column, Integer, String, Text, ForeignKey, TIMESTAMP
from sqlalchemy.orm import relationship
from mentorhub.database import Base

MESSAGE_TEXT = "text"
MESSAGE_IMAGE = "image"
MESSAGE_FILE = "file"


class Message(Base):
    """Append-only chat line. Rows are never updated or deleted."""

    __tablename__ = "messages"

    id = Column(Integer, primary_key=True, index=True)
    session_id = Column(Integer, ForeignKey("sessions.id", ondelete="CASCADE"), nullable=False, index=True)
    sender_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    text = Column(Text, nullable=False, default="")
    message_type = Column(String(10), nullable=False, default=MESSAGE_TEXT)
    file_url = Column(String(500))
    file_name = Column(String(255))
    file_size = Column(Integer)
    file_type = Column(String(100))
    timestamp = Column(TIMESTAMP, nullable=False, index=True)

    session = relationship("Session", back_populates="messages")
    sender = relationship("User")
