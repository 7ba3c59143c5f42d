# mentorhub/models/__init__.py
# Import models in dependency order
from .user import User
from .course import Course
from .session import Session, SessionLog
from .message import Message
from .rating import Rating, MentorStatistics

__all__ = ["User", "Course", "Session", "SessionLog", "Message", "Rating", "MentorStatistics"]
