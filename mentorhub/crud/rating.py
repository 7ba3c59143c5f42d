# mentorhub/crud/rating.py
"""
Rating ledger and mentor statistics queries.
"""

from sqlalchemy.orm import Session
from sqlalchemy import func
from typing import Dict, List, Optional

from mentorhub.models.rating import Rating, MentorStatistics
from mentorhub.models.session import Session as SessionModel, SessionLog, STATUS_COMPLETED


# ======================
# RATING CRUD
# ======================

def create_rating(
    db: Session,
    session_id: int,
    mentee_id: int,
    mentor_id: int,
    rating: int,
    feedback: Optional[str] = None
) -> Rating:
    """
    Insert a rating row. Range checking happens in the service layer, which
    clamps instead of rejecting.
    """
    row = Rating(
        session_id=session_id,
        mentee_id=mentee_id,
        mentor_id=mentor_id,
        rating=rating,
        feedback=feedback or ""
    )

    db.add(row)
    db.flush()
    return row


def get_rating_by_session(db: Session, session_id: int) -> Optional[Rating]:
    return db.query(Rating).filter(Rating.session_id == session_id).first()


def get_ratings_by_mentor(
    db: Session,
    mentor_id: int,
    limit: int = 10,
    offset: int = 0
) -> List[Rating]:
    """Ratings for a mentor, newest first."""
    return db.query(Rating).filter(
        Rating.mentor_id == mentor_id
    ).order_by(
        Rating.created_at.desc(),
        Rating.id.desc()
    ).offset(offset).limit(limit).all()


# ======================
# AGGREGATE QUERIES
# ======================

def get_rating_distribution(db: Session, mentor_id: int) -> Dict[str, int]:
    """
    Count ratings per star value.

    Returns:
        {"1": count, ..., "5": count}
    """
    distribution = {str(star): 0 for star in range(1, 6)}

    results = db.query(
        Rating.rating,
        func.count(Rating.id).label('count')
    ).filter(
        Rating.mentor_id == mentor_id
    ).group_by(
        Rating.rating
    ).all()

    for rating, count in results:
        distribution[str(rating)] = int(count)

    return distribution


def count_students_helped(db: Session, mentor_id: int) -> int:
    """Distinct mentees across the mentor's completed sessions."""
    result = db.query(
        func.count(func.distinct(SessionModel.mentee_id))
    ).filter(
        SessionModel.mentor_id == mentor_id,
        SessionModel.status == STATUS_COMPLETED
    ).scalar()
    return int(result or 0)


def sum_logged_minutes(db: Session, mentor_id: int) -> int:
    result = db.query(
        func.coalesce(func.sum(SessionLog.duration), 0)
    ).filter(
        SessionLog.mentor_id == mentor_id
    ).scalar()
    return int(result or 0)


# ======================
# MENTOR STATISTICS CRUD
# ======================

def get_mentor_statistics(db: Session, mentor_id: int) -> Optional[MentorStatistics]:
    return db.query(MentorStatistics).filter(
        MentorStatistics.mentor_id == mentor_id
    ).first()


def get_or_create_mentor_statistics(db: Session, mentor_id: int) -> MentorStatistics:
    row = get_mentor_statistics(db, mentor_id)

    if not row:
        row = MentorStatistics(
            mentor_id=mentor_id,
            average_rating=0.0,
            total_ratings=0,
            rating_distribution={str(star): 0 for star in range(1, 6)},
            students_helped=0,
            total_minutes=0,
        )
        db.add(row)
        db.flush()

    return row
