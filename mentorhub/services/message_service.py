# mentorhub/services/message_service.py
"""
Message Archive

Append-only chat log scoped to a session. New messages are accepted only
while the session is active; the transcript stays readable after it ends.
"""

import logging
from datetime import datetime
from typing import List, Optional

from sqlalchemy.orm import Session

from mentorhub.config import settings
from mentorhub.crud import message as message_crud
from mentorhub.crud import session as session_crud
from mentorhub.models.message import Message, MESSAGE_FILE, MESSAGE_IMAGE, MESSAGE_TEXT
from mentorhub.models.session import Session as SessionModel, READABLE_STATUSES, STATUS_ACTIVE
from mentorhub.services.file_storage import StoredFile
from mentorhub.utils.errors import Forbidden, InvalidState, NotFound, ValidationError
from mentorhub.utils.timeutils import to_naive_utc, utcnow

logger = logging.getLogger(__name__)


def derive_message_type(content_type: Optional[str]) -> str:
    """``image/*`` attachments are images, any other attachment is a file."""
    if content_type is None:
        return MESSAGE_TEXT
    if content_type.lower().startswith("image/"):
        return MESSAGE_IMAGE
    return MESSAGE_FILE


def _participant_session(db: Session, session_id: int, user_id: int, action: str) -> SessionModel:
    session = session_crud.get_session(db, session_id)
    if not session:
        raise NotFound("Session not found")
    if not session.is_participant(user_id):
        raise Forbidden(f"Unauthorized to {action} messages in this session")
    return session


def get_sendable_session(db: Session, session_id: int, sender_id: int) -> SessionModel:
    """Check that ``sender_id`` may post to the session right now."""
    session = _participant_session(db, session_id, sender_id, "send")
    if session.status != STATUS_ACTIVE:
        raise InvalidState("Session is not active")
    return session


def send_message(
    db: Session,
    session_id: int,
    sender_id: int,
    text: Optional[str] = None,
    attachment: Optional[StoredFile] = None,
) -> Message:
    """
    Persist a chat message.

    Text may be empty only when a file is attached; in that case the stored
    text stays empty rather than getting a generated caption.
    """
    get_sendable_session(db, session_id, sender_id)

    body = (text or "").strip()
    if not body and attachment is None:
        raise ValidationError("Message text is required")

    fields = {
        "session_id": session_id,
        "sender_id": sender_id,
        "text": body,
        "message_type": derive_message_type(attachment.content_type if attachment else None),
        "timestamp": utcnow(),
    }
    if attachment is not None:
        fields.update(
            file_url=attachment.url,
            file_name=attachment.name,
            file_size=attachment.size,
            file_type=attachment.content_type,
        )

    message = message_crud.create_message(db, **fields)
    db.commit()
    db.refresh(message)
    logger.debug("Message %s stored in session %s (%s)", message.id, session_id, message.message_type)
    return message


def list_messages(
    db: Session,
    session_id: int,
    requester_id: int,
    limit: Optional[int] = None,
    before: Optional[datetime] = None,
    before_id: Optional[int] = None,
) -> List[Message]:
    """Transcript page, oldest to newest, optionally before a ``(timestamp, id)`` cursor."""
    session = _participant_session(db, session_id, requester_id, "view")
    if session.status not in READABLE_STATUSES:
        raise InvalidState("Messages are not available for this session")

    page_size = limit or settings.MESSAGE_PAGE_LIMIT
    page_size = max(1, min(page_size, settings.MESSAGE_PAGE_MAX))
    return message_crud.list_messages(db, session_id, page_size, to_naive_utc(before), before_id)
