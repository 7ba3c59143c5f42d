"""Socket event definitions.

Every frame on the wire is ``{"event": <name>, "data": {...}}``. Inbound and
outbound frames are closed sets of pydantic models discriminated by
``event`` so that handlers can match on them exhaustively.
"""

from enum import Enum
from typing import Annotated, Dict, Literal, Optional, Union

from pydantic import BaseModel, Field, TypeAdapter

from mentorhub.schemas.message import Message


class EventName(str, Enum):
    # client -> server
    JOIN_SESSION = "join-session"
    LEAVE_SESSION = "leave-session"
    TYPING = "typing"
    STOP_TYPING = "stop-typing"
    PING = "ping"

    # server -> client
    RECEIVE_MESSAGE = "receive-message"
    USER_TYPING = "user-typing"
    USER_STOP_TYPING = "user-stop-typing"
    MENTOR_RATING_UPDATED = "mentor-rating-updated"
    SESSION_UPDATED = "session-updated"
    JOINED = "joined"
    ERROR = "error"
    PONG = "pong"


# ----------------------------------------------------------------------
# Payloads
# ----------------------------------------------------------------------

class SessionRef(BaseModel):
    session_id: int


class TypingSignal(BaseModel):
    session_id: int
    user_id: int


class MentorRatingUpdate(BaseModel):
    mentor_id: int
    new_rating: float
    total_ratings: int
    rating_distribution: Dict[str, int]
    students_helped: int
    total_minutes: int


class SessionStatusChange(BaseModel):
    session_id: int
    status: str
    actor_id: Optional[int] = None


class ErrorPayload(BaseModel):
    message: str
    session_id: Optional[int] = None


# ----------------------------------------------------------------------
# Inbound frames
# ----------------------------------------------------------------------

class JoinSessionEvent(BaseModel):
    event: Literal["join-session"]
    data: SessionRef


class LeaveSessionEvent(BaseModel):
    event: Literal["leave-session"]
    data: SessionRef


class TypingEvent(BaseModel):
    event: Literal["typing"]
    data: TypingSignal


class StopTypingEvent(BaseModel):
    event: Literal["stop-typing"]
    data: TypingSignal


class PingEvent(BaseModel):
    event: Literal["ping"]
    data: Optional[dict] = None


ClientEvent = Annotated[
    Union[JoinSessionEvent, LeaveSessionEvent, TypingEvent, StopTypingEvent, PingEvent],
    Field(discriminator="event"),
]

client_event_adapter = TypeAdapter(ClientEvent)


# ----------------------------------------------------------------------
# Outbound frames
# ----------------------------------------------------------------------

class ReceiveMessageEvent(BaseModel):
    event: Literal["receive-message"] = "receive-message"
    data: Message


class UserTypingEvent(BaseModel):
    event: Literal["user-typing"] = "user-typing"
    data: TypingSignal


class UserStopTypingEvent(BaseModel):
    event: Literal["user-stop-typing"] = "user-stop-typing"
    data: TypingSignal


class MentorRatingUpdatedEvent(BaseModel):
    event: Literal["mentor-rating-updated"] = "mentor-rating-updated"
    data: MentorRatingUpdate


class SessionUpdatedEvent(BaseModel):
    event: Literal["session-updated"] = "session-updated"
    data: SessionStatusChange


class JoinedEvent(BaseModel):
    event: Literal["joined"] = "joined"
    data: SessionRef


class ErrorEvent(BaseModel):
    event: Literal["error"] = "error"
    data: ErrorPayload


class PongEvent(BaseModel):
    event: Literal["pong"] = "pong"
    data: Optional[dict] = None


ServerEvent = Union[
    ReceiveMessageEvent,
    UserTypingEvent,
    UserStopTypingEvent,
    MentorRatingUpdatedEvent,
    SessionUpdatedEvent,
    JoinedEvent,
    ErrorEvent,
    PongEvent,
]


def serialize_event(event: ServerEvent) -> dict:
    return event.model_dump(mode="json")
