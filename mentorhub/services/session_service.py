# mentorhub/services/session_service.py
"""
Session Lifecycle Manager

    requested --(mentor accepts)--> active
    requested --(mentor declines / participant cancels)--> cancelled
    active    --(mentor ends)-----> completed
    active    --(mentee ends)-----> pending_rating
    pending_rating --(mentee rates, see rating_service)--> completed

Every transition is a conditional UPDATE on the expected current status.
"""

import logging
import math
from datetime import datetime
from typing import List, Optional, Tuple

from sqlalchemy.orm import Session

from mentorhub.crud import session as session_crud
from mentorhub.crud import user as user_crud
from mentorhub.models.session import (
    Session as SessionModel,
    SessionLog,
    STATUS_ACTIVE,
    STATUS_CANCELLED,
    STATUS_COMPLETED,
    STATUS_PENDING_RATING,
    STATUS_REQUESTED,
)
from mentorhub.models.user import ROLE_MENTOR
from mentorhub.services import stats_service
from mentorhub.utils.errors import (
    Forbidden,
    InvalidMentor,
    InvalidState,
    NotFound,
    ValidationError,
)
from mentorhub.utils.timeutils import to_naive_utc, utcnow

logger = logging.getLogger(__name__)

HISTORY_STATUSES = (STATUS_COMPLETED, STATUS_PENDING_RATING)


# ======================
# HELPERS
# ======================

def _load(db: Session, session_id: int) -> SessionModel:
    session = session_crud.get_session(db, session_id)
    if not session:
        raise NotFound("Session not found")
    return session


def _apply_transition(
    db: Session,
    session: SessionModel,
    expected_status: str,
    values: dict,
) -> SessionModel:
    values = {**values, "updated_at": utcnow()}
    if not session_crud.transition_status(db, session.id, expected_status, values):
        db.rollback()
        raise InvalidState(f"Session is no longer {expected_status}")
    return session


def duration_minutes(started_at: Optional[datetime], ended_at: datetime) -> int:
    """Whole minutes between start and end; never negative."""
    if started_at is None:
        return 0
    minutes = math.floor((ended_at - started_at).total_seconds() / 60)
    return max(0, minutes)


# ======================
# TRANSITIONS
# ======================

def request_session(
    db: Session,
    mentee_id: int,
    mentor_id: int,
    course_id: Optional[int] = None,
    description: str = "",
    preferred_time: Optional[datetime] = None,
) -> SessionModel:
    """Create a session in ``requested`` for an approved mentor."""
    if mentee_id == mentor_id:
        raise ValidationError("Cannot request a session with yourself")

    mentor = user_crud.get_user(db, mentor_id)
    if not mentor or not mentor.is_approved_mentor:
        raise InvalidMentor("Invalid or unapproved mentor")

    if course_id is not None and not user_crud.get_course(db, course_id):
        raise NotFound("Course not found")

    session = session_crud.create_session(
        db,
        mentee_id=mentee_id,
        mentor_id=mentor_id,
        course_id=course_id,
        description=description or "",
        preferred_time=to_naive_utc(preferred_time),
        status=STATUS_REQUESTED,
    )
    db.commit()
    db.refresh(session)
    logger.info("Session %s requested (mentee=%s, mentor=%s)", session.id, mentee_id, mentor_id)
    return session


def accept_session(
    db: Session,
    session_id: int,
    actor_id: int,
    scheduled_time: Optional[datetime] = None,
) -> SessionModel:
    """``requested -> active``; only the assigned mentor may accept."""
    session = _load(db, session_id)

    if session.mentor_id != actor_id:
        raise Forbidden("Unauthorized to accept this session")
    if session.status != STATUS_REQUESTED:
        raise InvalidState("Session is not in requested status")

    start = to_naive_utc(scheduled_time) or utcnow()
    _apply_transition(db, session, STATUS_REQUESTED, {
        "status": STATUS_ACTIVE,
        "scheduled_time": start,
        "started_at": start,
    })
    db.commit()
    db.refresh(session)
    logger.info("Session %s accepted by mentor %s", session.id, actor_id)
    return session


def end_session(
    db: Session,
    session_id: int,
    actor_id: int,
    summary: Optional[str] = None,
) -> Tuple[SessionModel, SessionLog, Optional[dict]]:
    """
    End an active session.

    A mentee ending the session moves it to ``pending_rating``; the mentor
    ending it completes it directly. The duration log and the status change
    commit together; the statistics refresh runs afterwards and cannot undo
    them. Returns the session, its duration log and the refreshed mentor
    statistics (None when the refresh failed).
    """
    session = _load(db, session_id)

    if not session.is_participant(actor_id):
        raise Forbidden("Unauthorized to end this session")
    if session.status != STATUS_ACTIVE:
        raise InvalidState("Session is not active")

    ended_at = utcnow()
    duration = duration_minutes(session.started_at, ended_at)
    new_status = STATUS_PENDING_RATING if actor_id == session.mentee_id else STATUS_COMPLETED

    _apply_transition(db, session, STATUS_ACTIVE, {
        "status": new_status,
        "ended_at": ended_at,
        "summary": summary or "",
    })
    log = session_crud.create_session_log(db, session, duration, ended_at)
    db.commit()
    db.refresh(session)
    logger.info(
        "Session %s ended by user %s -> %s (%s min)",
        session.id, actor_id, new_status, duration,
    )

    statistics = stats_service.refresh_mentor_statistics(db, session.mentor_id)
    return session, log, statistics


def decline_session(db: Session, session_id: int, actor_id: int) -> SessionModel:
    """``requested -> cancelled`` by the assigned mentor."""
    session = _load(db, session_id)

    if session.mentor_id != actor_id:
        raise Forbidden("Only the assigned mentor can decline this request")
    if session.status != STATUS_REQUESTED:
        raise InvalidState("Only requested sessions can be declined")

    _apply_transition(db, session, STATUS_REQUESTED, {"status": STATUS_CANCELLED})
    db.commit()
    db.refresh(session)
    logger.info("Session %s declined by mentor %s", session.id, actor_id)
    return session


def cancel_session(db: Session, session_id: int, actor_id: int) -> SessionModel:
    """``requested -> cancelled`` by either participant."""
    session = _load(db, session_id)

    if not session.is_participant(actor_id):
        raise Forbidden("Unauthorized to cancel this session")
    if session.status != STATUS_REQUESTED:
        raise InvalidState("Only requested sessions can be cancelled")

    _apply_transition(db, session, STATUS_REQUESTED, {"status": STATUS_CANCELLED})
    db.commit()
    db.refresh(session)
    logger.info("Session %s cancelled by user %s", session.id, actor_id)
    return session


# ======================
# READS
# ======================

def get_session_for_participant(db: Session, session_id: int, user_id: int) -> SessionModel:
    session = _load(db, session_id)
    if not session.is_participant(user_id):
        raise Forbidden("Not authorized for this session")
    return session


def list_active_sessions(db: Session, user_id: int) -> List[SessionModel]:
    return session_crud.list_user_sessions(
        db,
        user_id,
        (STATUS_ACTIVE,),
        order_by=SessionModel.started_at.desc(),
    )


def list_pending_requests(db: Session, mentor) -> List[SessionModel]:
    """Incoming requests for a mentor."""
    if (mentor.role or "").lower() != ROLE_MENTOR:
        raise Forbidden("Only mentors have incoming session requests")
    return session_crud.list_mentor_sessions(db, mentor.id, STATUS_REQUESTED)


def list_session_history(db: Session, user_id: int, limit: int = 10, offset: int = 0) -> List[SessionModel]:
    """Ended sessions (completed or awaiting a rating), most recent first."""
    return session_crud.list_user_sessions(
        db,
        user_id,
        HISTORY_STATUSES,
        order_by=SessionModel.ended_at.desc(),
        limit=limit,
        offset=offset,
    )
