# mentorhub/crud/session.py
"""Session store queries. Status changes go through ``transition_status`` only."""

from typing import Any, Dict, List, Optional, Sequence

from sqlalchemy import or_
from sqlalchemy.orm import Session

from mentorhub.models.session import Session as SessionModel, SessionLog


def get_session(db: Session, session_id: int) -> Optional[SessionModel]:
    return db.query(SessionModel).filter(SessionModel.id == session_id).first()


def create_session(db: Session, **fields: Any) -> SessionModel:
    session = SessionModel(**fields)
    db.add(session)
    db.flush()
    return session


def transition_status(
    db: Session,
    session_id: int,
    expected_status: str,
    values: Dict[str, Any],
) -> bool:
    """
    Compare-and-set on ``status``.

    Issues ``UPDATE ... WHERE id = :id AND status = :expected`` and reports
    whether exactly one row changed, so two concurrent callers cannot both
    move the same session out of ``expected_status``.
    """
    updated = db.query(SessionModel).filter(
        SessionModel.id == session_id,
        SessionModel.status == expected_status,
    ).update(values, synchronize_session=False)
    return updated == 1


def list_user_sessions(
    db: Session,
    user_id: int,
    statuses: Sequence[str],
    *,
    order_by=None,
    limit: Optional[int] = None,
    offset: int = 0,
) -> List[SessionModel]:
    query = db.query(SessionModel).filter(
        or_(SessionModel.mentee_id == user_id, SessionModel.mentor_id == user_id),
        SessionModel.status.in_(statuses),
    )
    if order_by is not None:
        query = query.order_by(order_by)
    if offset:
        query = query.offset(offset)
    if limit is not None:
        query = query.limit(limit)
    return query.all()


def list_mentor_sessions(db: Session, mentor_id: int, status: str) -> List[SessionModel]:
    return db.query(SessionModel).filter(
        SessionModel.mentor_id == mentor_id,
        SessionModel.status == status,
    ).order_by(SessionModel.created_at.desc(), SessionModel.id.desc()).all()


def create_session_log(db: Session, session: SessionModel, duration: int, date) -> SessionLog:
    log = SessionLog(
        session_id=session.id,
        mentee_id=session.mentee_id,
        mentor_id=session.mentor_id,
        course_id=session.course_id,
        duration=duration,
        date=date,
    )
    db.add(log)
    db.flush()
    return log
