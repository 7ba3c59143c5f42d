"""End-to-end flows driven through the route functions."""

from __future__ import annotations

import asyncio
import io

import pytest
from fastapi import BackgroundTasks, HTTPException
from starlette.datastructures import Headers, UploadFile

from mentorhub.api.chat import get_messages, send_message, upload_message
from mentorhub.api.rating import get_mentor_stats, submit_rating
from mentorhub.api.session import accept_session, end_session, request_session
from mentorhub.config import settings
from mentorhub.realtime import publish
from mentorhub.realtime.broadcaster import ConnectionManager
from mentorhub.schemas.message import MessageCreate
from mentorhub.schemas.rating import RatingCreate
from mentorhub.schemas.session import SessionRequest


class RecordingSocket:
    def __init__(self):
        self.sent = []

    async def send_json(self, data):
        self.sent.append(data)


@pytest.fixture
def live_manager(monkeypatch):
    manager = ConnectionManager()
    monkeypatch.setattr(publish, "broadcaster", manager)
    return manager


def _run(call, **kwargs):
    background_tasks = BackgroundTasks()
    result = call(background_tasks=background_tasks, **kwargs)
    asyncio.run(background_tasks())
    return result


def _start_session(db, mentee, mentor):
    created = request_session(payload=SessionRequest(mentor_id=mentor.id), current_user=mentee, db=db)
    session_id = created.session.id
    _run(accept_session, session_id=session_id, payload=None, current_user=mentor, db=db)
    return session_id


def test_mentee_ends_then_rates(db_session, mentee, mentor, live_manager):
    watcher = RecordingSocket()
    live_manager.register(watcher, mentor.id)

    session_id = _start_session(db_session, mentee, mentor)
    live_manager.join(session_id, watcher)

    for sender, text in ((mentee, "hi"), (mentor, "hello"), (mentee, "thanks")):
        _run(send_message, payload=MessageCreate(session_id=session_id, text=text),
             current_user=sender, db=db_session)

    ended = _run(end_session, session_id=session_id, payload=None, current_user=mentee, db=db_session)
    assert ended.session.status == "pending_rating"

    before = get_mentor_stats(mentor_id=mentor.id, db=db_session)
    rated = _run(submit_rating, payload=RatingCreate(session_id=session_id, mentor_id=mentor.id, rating=4),
                 current_user=mentee, db=db_session)

    assert rated.session_status == "completed"
    assert rated.statistics.total_ratings == before.total_ratings + 1
    assert rated.statistics.average_rating == 4.0

    events = [frame["event"] for frame in watcher.sent]
    assert events.count("receive-message") == 3
    assert events[-1] == "mentor-rating-updated"
    assert watcher.sent[-1]["data"]["new_rating"] == 4.0
    statuses = [f["data"]["status"] for f in watcher.sent if f["event"] == "session-updated"]
    assert statuses == ["pending_rating", "completed"]

    transcript = get_messages(session_id=session_id, limit=50, before=None, before_id=None, current_user=mentee, db=db_session)
    assert [m.text for m in transcript] == ["hi", "hello", "thanks"]


def test_mentor_ends_and_only_one_rating_lands(db_session, mentee, mentor, live_manager):
    session_id = _start_session(db_session, mentee, mentor)

    ended = _run(end_session, session_id=session_id, payload=None, current_user=mentor, db=db_session)
    assert ended.session.status == "completed"

    payload = RatingCreate(session_id=session_id, mentor_id=mentor.id, rating=5)
    first = _run(submit_rating, payload=payload, current_user=mentee, db=db_session)
    assert first.session_status == "completed"

    with pytest.raises(HTTPException) as exc:
        _run(submit_rating, payload=payload, current_user=mentee, db=db_session)
    assert exc.value.status_code == 400

    with pytest.raises(HTTPException) as exc:
        _run(send_message, payload=MessageCreate(session_id=session_id, text="late"),
             current_user=mentee, db=db_session)
    assert exc.value.status_code == 400


def test_outsider_cannot_read_transcript(db_session, mentee, mentor, make_user, live_manager):
    session_id = _start_session(db_session, mentee, mentor)
    outsider = make_user("mentee")

    with pytest.raises(HTTPException) as exc:
        get_messages(session_id=session_id, limit=50, before=None, before_id=None, current_user=outsider, db=db_session)
    assert exc.value.status_code == 403


def test_image_without_caption(db_session, mentee, mentor, live_manager, tmp_path, monkeypatch):
    monkeypatch.setattr(settings, "UPLOAD_DIR", str(tmp_path))
    session_id = _start_session(db_session, mentee, mentor)
    upload = UploadFile(
        file=io.BytesIO(b"fake-jpeg"),
        filename="whiteboard.jpg",
        headers=Headers({"content-type": "image/jpeg"}),
    )

    sent = _run(upload_message, session_id=session_id, text=None, file=upload,
                current_user=mentee, db=db_session)

    assert sent.message_data.message_type == "image"
    assert sent.message_data.text == ""
    assert sent.message_data.file_url


def test_mentor_end_pushes_refreshed_statistics_globally(db_session, mentee, mentor, make_user, live_manager):
    # Registered but never joined to the session room
    lobby = RecordingSocket()
    live_manager.register(lobby, make_user("mentee").id)

    session_id = _start_session(db_session, mentee, mentor)
    ended = _run(end_session, session_id=session_id, payload=None, current_user=mentor, db=db_session)

    assert ended.session.status == "completed"
    assert [frame["event"] for frame in lobby.sent] == ["mentor-rating-updated"]
    update = lobby.sent[0]["data"]
    assert update["mentor_id"] == mentor.id
    assert update["students_helped"] == 1
    assert update["total_minutes"] == ended.duration_minutes
    assert update["total_ratings"] == 0
