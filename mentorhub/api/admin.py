# mentorhub/api/admin.py
"""
Admin endpoints: mentor approval, session overview and statistics repair.
"""

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from sqlalchemy import func

from mentorhub.database import get_db
from mentorhub.models.session import Session as SessionModel, SESSION_STATUSES
from mentorhub.models.user import User, ROLE_ADMIN, ROLE_MENTOR
from mentorhub.schemas.rating import RecomputeAllResponse
from mentorhub.schemas.user import User as UserSchema
from mentorhub.services import stats_service
from mentorhub.utils.security import require_role

router = APIRouter(prefix="/admin", tags=["Admin"])

require_admin = require_role(ROLE_ADMIN)


# ─────────────────────────────────────────
# GET /admin/stats - session overview
# ─────────────────────────────────────────
@router.get("/stats")
def get_dashboard_stats(
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    counts = dict(
        db.query(SessionModel.status, func.count(SessionModel.id))
        .group_by(SessionModel.status)
        .all()
    )
    sessions = {s: int(counts.get(s, 0)) for s in SESSION_STATUSES}
    sessions["total"] = sum(sessions.values())

    mentors_total = db.query(User).filter(User.role == ROLE_MENTOR).count()
    mentors_approved = db.query(User).filter(
        User.role == ROLE_MENTOR, User.approved.is_(True)
    ).count()

    return {
        "sessions": sessions,
        "mentors": {
            "total": mentors_total,
            "approved": mentors_approved,
            "awaiting_approval": mentors_total - mentors_approved,
        },
    }


# ─────────────────────────────────────────
# POST /admin/mentors/{user_id}/approve
# ─────────────────────────────────────────
@router.post("/mentors/{user_id}/approve", response_model=UserSchema)
def approve_mentor(
    user_id: int,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    if user.role != ROLE_MENTOR:
        raise HTTPException(status_code=400, detail="User is not a mentor")

    user.approved = True
    db.commit()
    db.refresh(user)
    return user


# ─────────────────────────────────────────
# POST /admin/mentor-statistics/recompute
# ─────────────────────────────────────────
@router.post("/mentor-statistics/recompute", response_model=RecomputeAllResponse)
def recompute_mentor_statistics(
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """Rebuild every approved mentor's statistics from sessions, logs and ratings."""
    return stats_service.recompute_all_mentor_statistics(db)
