# mentorhub/api/chat.py
"""
Chat API

- POST /chat/messages - send a text message
- POST /chat/messages/upload - send a message with an attachment
- GET /chat/messages/{session_id} - transcript page
"""

from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, BackgroundTasks, Depends, File, Form, Query, UploadFile, status
from sqlalchemy.orm import Session

from mentorhub.config import settings
from mentorhub.database import get_db
from mentorhub.models.user import User
from mentorhub.realtime import publish
from mentorhub.schemas.message import Message as MessageSchema, MessageCreate, MessageSendResponse
from mentorhub.services import file_storage, message_service
from mentorhub.utils.errors import MentorHubError, ValidationError, to_http_exception
from mentorhub.utils.security import get_current_user

router = APIRouter(prefix="/chat", tags=["chat"])


def _sent(background_tasks: BackgroundTasks, message) -> MessageSendResponse:
    event = publish.schedule_message(background_tasks, message)
    return MessageSendResponse(message="Message sent successfully", message_data=event.data)


@router.post("/messages", response_model=MessageSendResponse, status_code=status.HTTP_201_CREATED)
def send_message(
    payload: MessageCreate,
    background_tasks: BackgroundTasks,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Send a text message to an active session."""
    try:
        message = message_service.send_message(
            db,
            session_id=payload.session_id,
            sender_id=current_user.id,
            text=payload.text,
        )
    except MentorHubError as e:
        raise to_http_exception(e)

    return _sent(background_tasks, message)


@router.post("/messages/upload", response_model=MessageSendResponse, status_code=status.HTTP_201_CREATED)
def upload_message(
    background_tasks: BackgroundTasks,
    session_id: int = Form(...),
    text: Optional[str] = Form(None),
    file: Optional[UploadFile] = File(None),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    Send a message with a file attachment.

    The file is stored only after the caller is known to be allowed to post,
    and the message text is kept exactly as supplied (possibly empty).
    """
    try:
        if file is None or not file.filename:
            raise ValidationError("No file uploaded")
        message_service.get_sendable_session(db, session_id, current_user.id)
        stored = file_storage.store_upload(file)
    except MentorHubError as e:
        raise to_http_exception(e)

    try:
        message = message_service.send_message(
            db,
            session_id=session_id,
            sender_id=current_user.id,
            text=text,
            attachment=stored,
        )
    except MentorHubError as e:
        file_storage.discard_upload(stored)
        raise to_http_exception(e)

    return _sent(background_tasks, message)


@router.get("/messages/{session_id}", response_model=List[MessageSchema])
def get_messages(
    session_id: int,
    limit: int = Query(settings.MESSAGE_PAGE_LIMIT, ge=1, le=settings.MESSAGE_PAGE_MAX),
    before: Optional[datetime] = Query(None, description="Only messages older than this timestamp"),
    before_id: Optional[int] = Query(None, description="Id of the oldest message already shown; breaks timestamp ties"),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Messages of a session, oldest first. Participants only."""
    try:
        messages = message_service.list_messages(
            db,
            session_id=session_id,
            requester_id=current_user.id,
            limit=limit,
            before=before,
            before_id=before_id,
        )
    except MentorHubError as e:
        raise to_http_exception(e)

    return [MessageSchema.model_validate(m) for m in messages]
