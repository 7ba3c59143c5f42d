# mentorhub/api/rating.py
"""
Rating API

Endpoints:
- POST /ratings - Submit the mentee's rating for an ended session
- GET /ratings/session/{session_id} - Rating of a session (participants)
- GET /ratings/{mentor_id} - Paginated ratings and average for a mentor
- GET /ratings/{mentor_id}/stats - Current mentor statistics
"""

from fastapi import APIRouter, BackgroundTasks, Depends, Query, status
from sqlalchemy.orm import Session
from typing import Optional

from mentorhub.database import get_db
from mentorhub.models.user import User
from mentorhub.realtime import publish
from mentorhub.schemas.rating import (
    MentorRatingsPage,
    MentorStatisticsResponse,
    Rating as RatingSchema,
    RatingCreate,
    RatingSubmitResponse,
)
from mentorhub.services import rating_service
from mentorhub.utils.errors import MentorHubError, to_http_exception
from mentorhub.utils.security import get_current_user

router = APIRouter(prefix="/ratings", tags=["ratings"])


# ======================
# SUBMIT RATING
# ======================
@router.post("", response_model=RatingSubmitResponse, status_code=status.HTTP_201_CREATED)
def submit_rating(
    payload: RatingCreate,
    background_tasks: BackgroundTasks,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    Submit a rating for an ended session.

    Requirements:
    - Caller must be the session's mentee
    - Session must be completed or pending_rating
    - mentor_id must match the session
    - Only one rating per session
    - Out-of-range ratings are clamped into 1..5
    """
    try:
        result = rating_service.submit_rating(
            db=db,
            session_id=payload.session_id,
            mentee_id=current_user.id,
            mentor_id=payload.mentor_id,
            rating=payload.rating,
            feedback=payload.feedback
        )
    except MentorHubError as e:
        raise to_http_exception(e)

    publish.schedule_session_update(background_tasks, result["session"], current_user.id)
    publish.schedule_rating_update(background_tasks, result["statistics"])
    return RatingSubmitResponse(
        message=result["message"],
        rating=RatingSchema.model_validate(result["rating"]),
        session_status=result["session_status"],
        statistics=result["statistics"],
    )


# ======================
# GET RATING BY SESSION
# ======================
@router.get("/session/{session_id}", response_model=Optional[RatingSchema])
def get_session_rating(
    session_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    try:
        row = rating_service.get_session_rating(db, session_id, current_user.id)
    except MentorHubError as e:
        raise to_http_exception(e)
    return RatingSchema.model_validate(row) if row else None


# ======================
# GET MENTOR RATINGS
# ======================
@router.get("/{mentor_id}", response_model=MentorRatingsPage)
def get_mentor_ratings(
    mentor_id: int,
    limit: int = Query(10, ge=1, le=100),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db)
):
    """Ratings for a mentor, newest first (public endpoint)."""
    try:
        page = rating_service.list_mentor_ratings(db, mentor_id, limit=limit, offset=offset)
    except MentorHubError as e:
        raise to_http_exception(e)

    return MentorRatingsPage(
        ratings=[RatingSchema.model_validate(r) for r in page["ratings"]],
        average_rating=page["average_rating"],
        total_ratings=page["total_ratings"],
        has_more=page["has_more"],
    )


@router.get("/{mentor_id}/stats", response_model=MentorStatisticsResponse)
def get_mentor_stats(
    mentor_id: int,
    db: Session = Depends(get_db)
):
    """Current mentor statistics (public endpoint)."""
    try:
        stats = rating_service.get_mentor_statistics(db, mentor_id)
    except MentorHubError as e:
        raise to_http_exception(e)
    return MentorStatisticsResponse(**stats)
