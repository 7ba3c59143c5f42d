from datetime import datetime
from typing import List, Optional

from sqlalchemy import and_, or_
from sqlalchemy.orm import Session

from mentorhub.models.message import Message


def create_message(db: Session, **fields) -> Message:
    message = Message(**fields)
    db.add(message)
    db.flush()
    return message


def list_messages(
    db: Session,
    session_id: int,
    limit: int,
    before: Optional[datetime] = None,
    before_id: Optional[int] = None,
) -> List[Message]:
    """
    Newest ``limit`` messages older than the cursor, returned oldest first.

    The cursor is ``(before, before_id)``. With only ``before`` given, messages
    sharing that exact timestamp are excluded; pass the id of the oldest
    message already shown to page through ties.
    """
    query = db.query(Message).filter(Message.session_id == session_id)
    if before is not None and before_id is not None:
        query = query.filter(or_(
            Message.timestamp < before,
            and_(Message.timestamp == before, Message.id < before_id),
        ))
    elif before is not None:
        query = query.filter(Message.timestamp < before)

    newest_first = query.order_by(
        Message.timestamp.desc(),
        Message.id.desc(),
    ).limit(limit).all()

    return list(reversed(newest_first))
