"""
Schedules broadcasts from REST handlers.

Events are built while the request's database session is still open and
delivered by ``BackgroundTasks`` after the response is sent. A delivery
failure is logged and never reaches the client that issued the mutation.
"""

import logging
from typing import Any, Dict, Optional

from fastapi import BackgroundTasks

from mentorhub import models
from mentorhub.realtime.broadcaster import broadcaster
from mentorhub.schemas.events import (
    MentorRatingUpdate,
    MentorRatingUpdatedEvent,
    ReceiveMessageEvent,
    ServerEvent,
    SessionStatusChange,
    SessionUpdatedEvent,
)
from mentorhub.schemas.message import Message as MessageSchema

logger = logging.getLogger(__name__)


async def deliver_to_session(session_id: int, event: ServerEvent) -> None:
    try:
        await broadcaster.emit_to_session(session_id, event)
    except Exception:
        logger.warning("Broadcast of %s to session %s failed", event.event, session_id, exc_info=True)


async def deliver_global(event: ServerEvent) -> None:
    try:
        await broadcaster.emit_global(event)
    except Exception:
        logger.warning("Global broadcast of %s failed", event.event, exc_info=True)


def schedule_message(background_tasks: BackgroundTasks, message: models.Message) -> ReceiveMessageEvent:
    event = ReceiveMessageEvent(data=MessageSchema.model_validate(message))
    background_tasks.add_task(deliver_to_session, message.session_id, event)
    return event


def schedule_session_update(
    background_tasks: BackgroundTasks,
    session: models.Session,
    actor_id: Optional[int] = None,
) -> SessionUpdatedEvent:
    event = SessionUpdatedEvent(data=SessionStatusChange(
        session_id=session.id,
        status=session.status,
        actor_id=actor_id,
    ))
    background_tasks.add_task(deliver_to_session, session.id, event)
    return event


def schedule_rating_update(
    background_tasks: BackgroundTasks,
    statistics: Optional[Dict[str, Any]],
) -> Optional[MentorRatingUpdatedEvent]:
    """Global push of refreshed mentor statistics; skipped when the refresh failed."""
    if not statistics:
        return None
    event = MentorRatingUpdatedEvent(data=MentorRatingUpdate(
        mentor_id=statistics["mentor_id"],
        new_rating=statistics["average_rating"],
        total_ratings=statistics["total_ratings"],
        rating_distribution=statistics["rating_distribution"],
        students_helped=statistics["students_helped"],
        total_minutes=statistics["total_minutes"],
    ))
    background_tasks.add_task(deliver_global, event)
    return event
