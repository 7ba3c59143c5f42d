# mentorhub/services/stats_service.py
"""
Mentor Statistics Aggregator

Statistics are a cache over sessions, duration logs and ratings. This module
is the only writer of ``MentorStatistics`` rows: every refresh recomputes the
whole record from primary data, so running it again without data changes
yields the same values.
"""

import logging
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Dict, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from mentorhub.crud import rating as rating_crud
from mentorhub.crud import user as user_crud
from mentorhub.models.rating import MentorStatistics
from mentorhub.utils.errors import DependencyFailure
from mentorhub.utils.timeutils import utcnow

logger = logging.getLogger(__name__)


def average_from_distribution(distribution: Dict[str, int]) -> float:
    """Mean star value rounded half-up to one decimal place (0.0 when empty)."""
    total = sum(distribution.values())
    if total == 0:
        return 0.0
    weighted = sum(int(star) * count for star, count in distribution.items())
    mean = (Decimal(weighted) / Decimal(total)).quantize(Decimal("0.1"), rounding=ROUND_HALF_UP)
    return float(mean)


def compute_mentor_statistics(db: Session, mentor_id: int) -> Dict[str, Any]:
    """
    Derive a mentor's statistics from primary data without writing anything.

    Args:
        db: Database session
        mentor_id: Mentor user ID

    Returns:
        Dictionary shaped like ``MentorStatisticsResponse`` (minus timestamps)
    """
    distribution = rating_crud.get_rating_distribution(db, mentor_id)
    return {
        "mentor_id": mentor_id,
        "average_rating": average_from_distribution(distribution),
        "total_ratings": sum(distribution.values()),
        "rating_distribution": distribution,
        "students_helped": rating_crud.count_students_helped(db, mentor_id),
        "total_minutes": rating_crud.sum_logged_minutes(db, mentor_id),
    }


def recompute_mentor_statistics(db: Session, mentor_id: int) -> MentorStatistics:
    """
    Recompute and store a mentor's statistics. The caller commits.

    Raises:
        DependencyFailure: when the aggregate queries or the write fail
    """
    try:
        computed = compute_mentor_statistics(db, mentor_id)
        row = rating_crud.get_or_create_mentor_statistics(db, mentor_id)
        row.average_rating = computed["average_rating"]
        row.total_ratings = computed["total_ratings"]
        row.rating_distribution = computed["rating_distribution"]
        row.students_helped = computed["students_helped"]
        row.total_minutes = computed["total_minutes"]
        row.last_updated = utcnow()
        db.flush()
        return row
    except SQLAlchemyError as exc:
        raise DependencyFailure(f"Statistics recompute failed for mentor {mentor_id}: {exc}") from exc


def refresh_mentor_statistics(db: Session, mentor_id: int) -> Optional[Dict[str, Any]]:
    """
    Best-effort recompute after a committed mutation.

    Never raises: a failure is logged, rolled back and reported as None so the
    triggering mutation still succeeds. Re-running ``recompute`` repairs the
    cache later.
    """
    try:
        row = recompute_mentor_statistics(db, mentor_id)
        db.commit()
        return statistics_to_dict(row)
    except Exception:
        db.rollback()
        logger.warning("Mentor statistics refresh failed (mentor_id=%s)", mentor_id, exc_info=True)
        return None


def statistics_to_dict(row: MentorStatistics) -> Dict[str, Any]:
    return {
        "mentor_id": row.mentor_id,
        "average_rating": row.average_rating,
        "total_ratings": row.total_ratings,
        "rating_distribution": {str(k): int(v) for k, v in (row.rating_distribution or {}).items()},
        "students_helped": row.students_helped,
        "total_minutes": row.total_minutes,
        "last_updated": row.last_updated,
    }


def get_mentor_statistics(db: Session, mentor_id: int) -> Dict[str, Any]:
    """Stored statistics, or freshly derived ones when none were stored yet."""
    row = rating_crud.get_mentor_statistics(db, mentor_id)
    if row is not None:
        return statistics_to_dict(row)
    computed = compute_mentor_statistics(db, mentor_id)
    computed["last_updated"] = None
    return computed


def recompute_all_mentor_statistics(db: Session) -> Dict[str, Any]:
    """
    Backfill/repair: recompute statistics for every approved mentor.

    Each mentor is committed separately so one failure does not discard the
    others.
    """
    mentors = user_crud.list_approved_mentors(db)
    results: List[Dict[str, Any]] = []
    updated_count = 0

    for mentor in mentors:
        mentor_id, mentor_name = mentor.id, mentor.name
        try:
            row = recompute_mentor_statistics(db, mentor_id)
            db.commit()
            updated_count += 1
            results.append({
                "mentor_id": mentor_id,
                "mentor_name": mentor_name,
                "success": True,
                "statistics": statistics_to_dict(row),
            })
            logger.info("Updated statistics for mentor %s (%s)", mentor_id, mentor_name)
        except Exception as exc:
            db.rollback()
            logger.warning("Failed to update statistics for mentor %s", mentor_id, exc_info=True)
            results.append({
                "mentor_id": mentor_id,
                "mentor_name": mentor_name,
                "success": False,
                "error": str(exc),
            })

    return {
        "total_mentors": len(mentors),
        "updated_count": updated_count,
        "results": results,
        "message": "Mentor statistics recalculation complete",
    }
