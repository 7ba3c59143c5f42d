"""Per-connection socket protocol: room membership and typing relay."""

import json
import logging
from typing import Any, Callable, Optional

from fastapi import WebSocketDisconnect
from fastapi.concurrency import run_in_threadpool
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.orm import Session as DBSession

from mentorhub import models
from mentorhub.realtime.broadcaster import ConnectionManager
from mentorhub.schemas.events import (
    ClientEvent,
    ErrorEvent,
    ErrorPayload,
    EventName,
    JoinedEvent,
    JoinSessionEvent,
    LeaveSessionEvent,
    PingEvent,
    PongEvent,
    SessionRef,
    StopTypingEvent,
    TypingEvent,
    TypingSignal,
    UserStopTypingEvent,
    UserTypingEvent,
    client_event_adapter,
)

logger = logging.getLogger(__name__)


class SessionSocket:
    """Holds the state of one authenticated socket connection.

    Each inbound event is handled by a ``handle_<event>`` method.
    """

    def __init__(
        self,
        websocket: Any,
        user: models.User,
        *,
        manager: ConnectionManager,
        session_factory: Callable[[], DBSession],
    ):
        self.ws = websocket
        self.user_id = user.id
        self.manager = manager
        self.session_factory = session_factory
        self._handlers = {
            EventName.JOIN_SESSION: self.handle_join_session,
            EventName.LEAVE_SESSION: self.handle_leave_session,
            EventName.TYPING: self.handle_typing,
            EventName.STOP_TYPING: self.handle_stop_typing,
            EventName.PING: self.handle_ping,
        }

    async def run(self) -> None:
        self.manager.register(self.ws, self.user_id)
        try:
            while True:
                text = await self.ws.receive_text()
                try:
                    raw = json.loads(text)
                except ValueError:
                    await self._error("Unrecognised event frame")
                    continue
                await self.dispatch(raw)
        except WebSocketDisconnect:
            pass
        finally:
            self.manager.unregister(self.ws)

    async def dispatch(self, raw: Any) -> None:
        try:
            event: ClientEvent = client_event_adapter.validate_python(raw)
        except PydanticValidationError:
            await self._error("Unrecognised event frame")
            return
        handler = self._handlers[EventName(event.event)]
        await handler(event)

    async def _error(self, message: str, session_id: Optional[int] = None) -> None:
        await self.manager.send(
            self.ws,
            ErrorEvent(data=ErrorPayload(message=message, session_id=session_id)),
        )

    def _is_participant(self, session_id: int) -> bool:
        db = self.session_factory()
        try:
            session = db.get(models.Session, session_id)
            return session is not None and session.is_participant(self.user_id)
        finally:
            db.close()

    # ------------------------------------------------------------------
    # Handlers
    # ------------------------------------------------------------------

    async def handle_join_session(self, event: JoinSessionEvent) -> None:
        session_id = event.data.session_id
        allowed = await run_in_threadpool(self._is_participant, session_id)
        if not allowed:
            await self._error("Not a participant of this session", session_id)
            return
        self.manager.join(session_id, self.ws)
        logger.info("User %s joined session room %s", self.user_id, session_id)
        await self.manager.send(self.ws, JoinedEvent(data=SessionRef(session_id=session_id)))

    async def handle_leave_session(self, event: LeaveSessionEvent) -> None:
        self.manager.leave(event.data.session_id, self.ws)

    async def handle_typing(self, event: TypingEvent) -> None:
        await self._relay_typing(event.data.session_id, UserTypingEvent)

    async def handle_stop_typing(self, event: StopTypingEvent) -> None:
        await self._relay_typing(event.data.session_id, UserStopTypingEvent)

    async def handle_ping(self, event: PingEvent) -> None:
        await self.manager.send(self.ws, PongEvent())

    async def _relay_typing(self, session_id: int, event_cls) -> None:
        if not self.manager.is_member(session_id, self.ws):
            await self._error("Join the session before sending typing signals", session_id)
            return
        # Sender id comes from the authenticated connection, not the frame
        signal = TypingSignal(session_id=session_id, user_id=self.user_id)
        await self.manager.emit_to_session(session_id, event_cls(data=signal), exclude=self.ws)
