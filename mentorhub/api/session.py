# mentorhub/api/session.py
"""
Session Lifecycle API

State changes are validated and persisted by ``session_service``; on success
the new status is pushed to the session room.
"""

from fastapi import APIRouter, BackgroundTasks, Depends, Query, status
from sqlalchemy.orm import Session
from typing import List, Optional

from mentorhub.database import get_db
from mentorhub.models.session import Session as SessionModel
from mentorhub.models.user import User
from mentorhub.realtime import publish
from mentorhub.schemas.session import (
    Session as SessionSchema,
    SessionAccept,
    SessionEnd,
    SessionEndResponse,
    SessionMutationResponse,
    SessionRequest,
    SessionResponse,
)
from mentorhub.services import session_service
from mentorhub.utils.errors import MentorHubError, to_http_exception
from mentorhub.utils.security import get_current_user

router = APIRouter(prefix="/sessions", tags=["sessions"])


# ======================
# HELPER FUNCTIONS
# ======================
def _to_response(s: SessionModel, current_user_id: int) -> SessionResponse:
    return SessionResponse(
        id=s.id,
        mentee_id=s.mentee_id,
        mentor_id=s.mentor_id,
        course_id=s.course_id,
        description=s.description,
        preferred_time=s.preferred_time,
        status=s.status,
        scheduled_time=s.scheduled_time,
        started_at=s.started_at,
        ended_at=s.ended_at,
        summary=s.summary,
        created_at=s.created_at,
        updated_at=s.updated_at,
        mentee_name=s.mentee.name if s.mentee else None,
        mentor_name=s.mentor.name if s.mentor else None,
        course_title=s.course.title if s.course else None,
        user_role=s.role_of(current_user_id),
    )


def _mutation(message: str, session: SessionModel) -> SessionMutationResponse:
    return SessionMutationResponse(
        message=message,
        session=SessionSchema.model_validate(session),
    )


# ======================
# SESSION LISTING
# ======================
@router.get("/active", response_model=List[SessionResponse])
def get_active_sessions(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Active sessions where the caller is mentee or mentor."""
    sessions = session_service.list_active_sessions(db, current_user.id)
    return [_to_response(s, current_user.id) for s in sessions]


@router.get("/pending", response_model=List[SessionResponse])
def get_pending_requests(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Incoming session requests for the calling mentor."""
    try:
        sessions = session_service.list_pending_requests(db, current_user)
    except MentorHubError as e:
        raise to_http_exception(e)
    return [_to_response(s, current_user.id) for s in sessions]


@router.get("/logs", response_model=List[SessionResponse])
def get_session_logs(
    limit: int = Query(10, ge=1, le=100),
    offset: int = Query(0, ge=0),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Completed sessions and sessions awaiting the mentee's rating."""
    sessions = session_service.list_session_history(db, current_user.id, limit=limit, offset=offset)
    return [_to_response(s, current_user.id) for s in sessions]


@router.get("/{session_id}", response_model=SessionResponse)
def get_session(
    session_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    try:
        session = session_service.get_session_for_participant(db, session_id, current_user.id)
    except MentorHubError as e:
        raise to_http_exception(e)
    return _to_response(session, current_user.id)


# ======================
# CREATE SESSION REQUEST
# ======================
@router.post("/request", response_model=SessionMutationResponse, status_code=status.HTTP_201_CREATED)
def request_session(
    payload: SessionRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Request a mentorship session with an approved mentor."""
    try:
        session = session_service.request_session(
            db,
            mentee_id=current_user.id,
            mentor_id=payload.mentor_id,
            course_id=payload.course_id,
            description=payload.description,
            preferred_time=payload.preferred_time,
        )
    except MentorHubError as e:
        raise to_http_exception(e)

    return _mutation("Session requested successfully", session)


# ======================
# ACCEPT SESSION
# ======================
@router.post("/{session_id}/accept", response_model=SessionMutationResponse)
def accept_session(
    session_id: int,
    background_tasks: BackgroundTasks,
    payload: Optional[SessionAccept] = None,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Accept a requested session (assigned mentor only). Starts the session."""
    try:
        session = session_service.accept_session(
            db,
            session_id,
            current_user.id,
            scheduled_time=payload.scheduled_time if payload else None,
        )
    except MentorHubError as e:
        raise to_http_exception(e)

    publish.schedule_session_update(background_tasks, session, current_user.id)
    return _mutation("Session accepted successfully", session)


# ======================
# END SESSION
# ======================
@router.post("/{session_id}/end", response_model=SessionEndResponse)
def end_session(
    session_id: int,
    background_tasks: BackgroundTasks,
    payload: Optional[SessionEnd] = None,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    End an active session.

    Mentee endings wait for a rating (``pending_rating``); mentor endings
    complete the session.
    """
    try:
        session, log, statistics = session_service.end_session(
            db,
            session_id,
            current_user.id,
            summary=payload.summary if payload else None,
        )
    except MentorHubError as e:
        raise to_http_exception(e)

    publish.schedule_session_update(background_tasks, session, current_user.id)
    publish.schedule_rating_update(background_tasks, statistics)
    return SessionEndResponse(
        message="Session ended successfully",
        session=SessionSchema.model_validate(session),
        duration_minutes=log.duration,
        requires_rating=session.status == "pending_rating",
    )


# ======================
# DECLINE / CANCEL REQUEST
# ======================
@router.post("/{session_id}/decline", response_model=SessionMutationResponse)
def decline_session(
    session_id: int,
    background_tasks: BackgroundTasks,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    try:
        session = session_service.decline_session(db, session_id, current_user.id)
    except MentorHubError as e:
        raise to_http_exception(e)

    publish.schedule_session_update(background_tasks, session, current_user.id)
    return _mutation("Session request declined", session)


@router.post("/{session_id}/cancel", response_model=SessionMutationResponse)
def cancel_session(
    session_id: int,
    background_tasks: BackgroundTasks,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    try:
        session = session_service.cancel_session(db, session_id, current_user.id)
    except MentorHubError as e:
        raise to_http_exception(e)

    publish.schedule_session_update(background_tasks, session, current_user.id)
    return _mutation("Session request cancelled", session)
