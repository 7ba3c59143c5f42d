from __future__ import annotations

import asyncio
import io
from datetime import timedelta
from pathlib import Path

import pytest
from fastapi import BackgroundTasks, HTTPException
from starlette.datastructures import Headers, UploadFile

from mentorhub.api.chat import get_messages, send_message, upload_message
from mentorhub.config import settings
from mentorhub.models.message import Message
from mentorhub.schemas.message import MessageCreate
from mentorhub.services import file_storage, message_service
from mentorhub.utils.errors import Forbidden, InvalidState, NotFound, ValidationError
from mentorhub.utils.timeutils import utcnow


@pytest.fixture
def active_session(mentee, mentor, make_session):
    return make_session(mentee, mentor, status="active", started_at=utcnow())


@pytest.fixture
def upload_dir(tmp_path, monkeypatch):
    monkeypatch.setattr(settings, "UPLOAD_DIR", str(tmp_path))
    monkeypatch.setattr(settings, "PUBLIC_BASE_URL", None)
    return tmp_path


def _upload(data: bytes, filename: str, content_type: str) -> UploadFile:
    return UploadFile(
        file=io.BytesIO(data),
        filename=filename,
        headers=Headers({"content-type": content_type}),
    )


def test_send_message_strips_and_stores_text(db_session, mentee, active_session):
    message = message_service.send_message(db_session, active_session.id, mentee.id, "  hello mentor  ")

    assert message.id is not None
    assert message.text == "hello mentor"
    assert message.message_type == "text"
    assert message.file_url is None


def test_send_requires_text_without_attachment(db_session, mentee, active_session):
    with pytest.raises(ValidationError):
        message_service.send_message(db_session, active_session.id, mentee.id, "   ")
    assert db_session.query(Message).count() == 0


def test_outsider_cannot_send_or_read(db_session, make_user, active_session):
    outsider = make_user("mentee")

    with pytest.raises(Forbidden):
        message_service.send_message(db_session, active_session.id, outsider.id, "hi")
    with pytest.raises(Forbidden):
        message_service.list_messages(db_session, active_session.id, outsider.id)
    assert db_session.query(Message).count() == 0


def test_unknown_session_is_not_found(db_session, mentee):
    with pytest.raises(NotFound):
        message_service.send_message(db_session, 777, mentee.id, "hi")


def test_transcript_readable_after_end_but_closed_for_writes(db_session, mentee, mentor, active_session):
    message_service.send_message(db_session, active_session.id, mentee.id, "question")
    message_service.send_message(db_session, active_session.id, mentor.id, "answer")

    active_session.status = "completed"
    db_session.commit()

    with pytest.raises(InvalidState):
        message_service.send_message(db_session, active_session.id, mentee.id, "one more thing")

    transcript = message_service.list_messages(db_session, active_session.id, mentor.id)
    assert [m.text for m in transcript] == ["question", "answer"]


def test_messages_not_readable_before_accept(db_session, mentee, mentor, make_session):
    requested = make_session(mentee, mentor)

    with pytest.raises(InvalidState):
        message_service.list_messages(db_session, requested.id, mentee.id)
    with pytest.raises(InvalidState):
        message_service.send_message(db_session, requested.id, mentee.id, "early")


def test_list_messages_pages_newest_window_oldest_first(db_session, mentee, active_session):
    base = utcnow() - timedelta(minutes=10)
    for i in range(5):
        db_session.add(Message(
            session_id=active_session.id,
            sender_id=mentee.id,
            text=f"m{i}",
            message_type="text",
            timestamp=base + timedelta(minutes=i),
        ))
    db_session.commit()

    latest = message_service.list_messages(db_session, active_session.id, mentee.id, limit=2)
    assert [m.text for m in latest] == ["m3", "m4"]

    older = message_service.list_messages(
        db_session, active_session.id, mentee.id, limit=2, before=latest[0].timestamp
    )
    assert [m.text for m in older] == ["m1", "m2"]


def test_derive_message_type():
    assert message_service.derive_message_type(None) == "text"
    assert message_service.derive_message_type("image/png") == "image"
    assert message_service.derive_message_type("IMAGE/JPEG") == "image"
    assert message_service.derive_message_type("application/pdf") == "file"


def test_send_message_route_returns_message_data(db_session, mentee, active_session):
    background_tasks = BackgroundTasks()

    response = send_message(
        payload=MessageCreate(session_id=active_session.id, text="ping"),
        background_tasks=background_tasks,
        current_user=mentee,
        db=db_session,
    )

    assert response.message == "Message sent successfully"
    assert response.message_data.text == "ping"
    assert response.message_data.sender_id == mentee.id
    assert len(background_tasks.tasks) == 1
    asyncio.run(background_tasks())


def test_send_message_route_maps_errors(db_session, make_user, active_session):
    outsider = make_user("mentee")

    with pytest.raises(HTTPException) as exc:
        send_message(
            payload=MessageCreate(session_id=active_session.id, text="hello"),
            background_tasks=BackgroundTasks(),
            current_user=outsider,
            db=db_session,
        )
    assert exc.value.status_code == 403


def test_upload_image_with_empty_caption(db_session, mentee, active_session, upload_dir):
    background_tasks = BackgroundTasks()

    response = upload_message(
        background_tasks=background_tasks,
        session_id=active_session.id,
        text="",
        file=_upload(b"\x89PNG fake image bytes", "diagram.png", "image/png"),
        current_user=mentee,
        db=db_session,
    )

    data = response.message_data
    assert data.message_type == "image"
    assert data.text == ""
    assert data.file_name == "diagram.png"
    assert data.file_size == len(b"\x89PNG fake image bytes")
    assert data.file_type == "image/png"
    assert data.file_url.startswith("/uploads/")
    stored = upload_dir / Path(data.file_url).name
    assert stored.read_bytes() == b"\x89PNG fake image bytes"


def test_upload_document_is_file_type(db_session, mentor, active_session, upload_dir):
    response = upload_message(
        background_tasks=BackgroundTasks(),
        session_id=active_session.id,
        text="notes attached",
        file=_upload(b"%PDF-1.7", "notes.pdf", "application/pdf"),
        current_user=mentor,
        db=db_session,
    )

    assert response.message_data.message_type == "file"
    assert response.message_data.text == "notes attached"


def test_upload_without_file_is_rejected(db_session, mentee, active_session, upload_dir):
    with pytest.raises(HTTPException) as exc:
        upload_message(
            background_tasks=BackgroundTasks(),
            session_id=active_session.id,
            text="hi",
            file=None,
            current_user=mentee,
            db=db_session,
        )
    assert exc.value.status_code == 400
    assert exc.value.detail == "No file uploaded"


def test_upload_to_inactive_session_stores_nothing(db_session, mentee, mentor, make_session, upload_dir):
    ended = make_session(mentee, mentor, status="completed")

    with pytest.raises(HTTPException) as exc:
        upload_message(
            background_tasks=BackgroundTasks(),
            session_id=ended.id,
            text=None,
            file=_upload(b"data", "a.txt", "text/plain"),
            current_user=mentee,
            db=db_session,
        )
    assert exc.value.status_code == 400
    assert list(upload_dir.iterdir()) == []


def test_store_upload_enforces_size_limit(upload_dir, monkeypatch):
    monkeypatch.setattr(settings, "MAX_UPLOAD_BYTES", 4)

    with pytest.raises(ValidationError):
        file_storage.store_upload(_upload(b"too large", "big.bin", "application/octet-stream"))
    assert list(upload_dir.iterdir()) == []


def test_store_upload_uses_public_base_url(upload_dir, monkeypatch):
    monkeypatch.setattr(settings, "PUBLIC_BASE_URL", "https://cdn.mentorhub.io/")

    stored = file_storage.store_upload(_upload(b"abc", "a.txt", "text/plain"))

    assert stored.url.startswith("https://cdn.mentorhub.io/uploads/")
    assert stored.url.endswith(".txt")


def test_get_messages_route(db_session, mentee, mentor, active_session):
    message_service.send_message(db_session, active_session.id, mentee.id, "first")

    messages = get_messages(
        session_id=active_session.id,
        limit=50,
        before=None,
        before_id=None,
        current_user=mentor,
        db=db_session,
    )

    assert [m.text for m in messages] == ["first"]


def test_upload_removed_when_message_insert_fails(db_session, mentee, active_session, upload_dir, monkeypatch):
    def _ended_meanwhile(db, **kwargs):
        raise InvalidState("Session is not active")

    monkeypatch.setattr(message_service, "send_message", _ended_meanwhile)

    with pytest.raises(HTTPException) as exc:
        upload_message(
            background_tasks=BackgroundTasks(),
            session_id=active_session.id,
            text="slides",
            file=_upload(b"%PDF-1.7", "slides.pdf", "application/pdf"),
            current_user=mentee,
            db=db_session,
        )
    assert exc.value.status_code == 400
    assert list(upload_dir.iterdir()) == []
    assert db_session.query(Message).count() == 0


def test_cursor_pages_through_identical_timestamps(db_session, mentee, active_session):
    same_instant = utcnow().replace(microsecond=0)
    for i in range(4):
        db_session.add(Message(
            session_id=active_session.id,
            sender_id=mentee.id,
            text=f"burst{i}",
            message_type="text",
            timestamp=same_instant,
        ))
    db_session.commit()

    latest = message_service.list_messages(db_session, active_session.id, mentee.id, limit=2)
    assert [m.text for m in latest] == ["burst2", "burst3"]

    older = message_service.list_messages(
        db_session, active_session.id, mentee.id, limit=2,
        before=latest[0].timestamp, before_id=latest[0].id,
    )
    assert [m.text for m in older] == ["burst0", "burst1"]
