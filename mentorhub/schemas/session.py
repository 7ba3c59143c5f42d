from pydantic import BaseModel, ConfigDict, Field
from typing import Optional
from datetime import datetime

# ======================
# SESSION REQUEST MODELS
# ======================


class SessionRequest(BaseModel):
    mentor_id: int
    course_id: Optional[int] = None
    description: str = Field("", max_length=2000)
    preferred_time: Optional[datetime] = None


class SessionAccept(BaseModel):
    scheduled_time: Optional[datetime] = None


class SessionEnd(BaseModel):
    summary: Optional[str] = Field(None, max_length=5000)


# ======================
# SESSION RESPONSE MODELS
# ======================

class SessionBase(BaseModel):
    id: int
    mentee_id: int
    mentor_id: int
    course_id: Optional[int] = None
    description: Optional[str] = None
    preferred_time: Optional[datetime] = None
    status: str
    scheduled_time: Optional[datetime] = None
    started_at: Optional[datetime] = None
    ended_at: Optional[datetime] = None
    summary: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class Session(SessionBase):
    model_config = ConfigDict(from_attributes=True)


class SessionResponse(SessionBase):
    """Session row enriched for list endpoints."""
    mentee_name: Optional[str] = None
    mentor_name: Optional[str] = None
    course_title: Optional[str] = None
    user_role: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class SessionMutationResponse(BaseModel):
    message: str
    session: Session


class SessionEndResponse(SessionMutationResponse):
    duration_minutes: int
    requires_rating: bool
