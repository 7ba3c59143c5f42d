# mentorhub/services/rating_service.py
"""
Rating Ledger

One write-once rating per session, given by the session's mentee once the
session has ended. A rating on a ``pending_rating`` session completes it.
"""

import logging
from typing import Any, Dict, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from mentorhub.crud import rating as rating_crud
from mentorhub.crud import session as session_crud
from mentorhub.crud import user as user_crud
from mentorhub.models.rating import Rating
from mentorhub.models.session import (
    RATEABLE_STATUSES,
    STATUS_COMPLETED,
    STATUS_PENDING_RATING,
)
from mentorhub.models.user import ROLE_MENTOR
from mentorhub.services import stats_service
from mentorhub.utils.errors import (
    DuplicateRating,
    Forbidden,
    InvalidState,
    MentorMismatch,
    NotFound,
)
from mentorhub.utils.timeutils import utcnow

logger = logging.getLogger(__name__)

MIN_RATING = 1
MAX_RATING = 5


def clamp_rating(value: int) -> int:
    return max(MIN_RATING, min(MAX_RATING, int(value)))


# ======================
# RATING SUBMISSION
# ======================

def submit_rating(
    db: Session,
    session_id: int,
    mentee_id: int,
    mentor_id: int,
    rating: int,
    feedback: Optional[str] = None
) -> Dict[str, Any]:
    """
    Record the mentee's rating for a session.

    Args:
        db: Database session
        session_id: Session identifier
        mentee_id: Caller, must be the session's mentee
        mentor_id: Mentor being rated, must match the session
        rating: Star value, clamped into 1..5
        feedback: Optional free text

    Returns:
        Dictionary with the stored rating, the session and its resulting status,
        and the refreshed mentor statistics (None when the refresh failed)

    Raises:
        NotFound, Forbidden, InvalidState, MentorMismatch, DuplicateRating
    """
    session = session_crud.get_session(db, session_id)
    if not session:
        raise NotFound("Session not found")

    if session.mentee_id != mentee_id:
        raise Forbidden("Only the mentee of this session can rate it")

    if session.status not in RATEABLE_STATUSES:
        raise InvalidState("Session must be ended before it can be rated")

    if session.mentor_id != mentor_id:
        raise MentorMismatch("Mentor ID does not match session")

    if rating_crud.get_rating_by_session(db, session_id):
        raise DuplicateRating("Rating already submitted for this session")

    was_pending = session.status == STATUS_PENDING_RATING

    try:
        row = rating_crud.create_rating(
            db=db,
            session_id=session_id,
            mentee_id=mentee_id,
            mentor_id=mentor_id,
            rating=clamp_rating(rating),
            feedback=feedback
        )
        if was_pending:
            session_crud.transition_status(db, session_id, STATUS_PENDING_RATING, {
                "status": STATUS_COMPLETED,
                "updated_at": utcnow(),
            })
        db.commit()
    except IntegrityError:
        # Lost the race against a concurrent submission for the same session
        db.rollback()
        raise DuplicateRating("Rating already submitted for this session")

    db.refresh(row)
    db.refresh(session)
    logger.info(
        "Rating %s stored for session %s (mentor=%s, stars=%s, status=%s)",
        row.id, session_id, mentor_id, row.rating, session.status,
    )

    statistics = stats_service.refresh_mentor_statistics(db, mentor_id)

    return {
        "message": "Rating submitted successfully",
        "rating": row,
        "session": session,
        "session_status": session.status,
        "statistics": statistics,
    }


# ======================
# RATING RETRIEVAL
# ======================

def _require_mentor(db: Session, mentor_id: int):
    mentor = user_crud.get_user(db, mentor_id)
    if not mentor or mentor.role != ROLE_MENTOR:
        raise NotFound("Mentor not found")
    return mentor


def list_mentor_ratings(
    db: Session,
    mentor_id: int,
    limit: int = 10,
    offset: int = 0
) -> Dict[str, Any]:
    """Page of a mentor's ratings with the overall average and count."""
    _require_mentor(db, mentor_id)

    ratings = rating_crud.get_ratings_by_mentor(db, mentor_id, limit, offset)
    distribution = rating_crud.get_rating_distribution(db, mentor_id)
    total = sum(distribution.values())

    return {
        "ratings": ratings,
        "average_rating": stats_service.average_from_distribution(distribution),
        "total_ratings": total,
        "has_more": offset + len(ratings) < total,
    }


def get_mentor_statistics(db: Session, mentor_id: int) -> Dict[str, Any]:
    _require_mentor(db, mentor_id)
    return stats_service.get_mentor_statistics(db, mentor_id)


def get_session_rating(db: Session, session_id: int, user_id: int) -> Optional[Rating]:
    """Rating for a session, visible to its participants only."""
    session = session_crud.get_session(db, session_id)
    if not session:
        raise NotFound("Session not found")
    if not session.is_participant(user_id):
        raise Forbidden("Not authorized to view this rating")
    return rating_crud.get_rating_by_session(db, session_id)
