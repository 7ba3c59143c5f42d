"""WebSocket endpoint for session rooms, typing signals and live updates."""

import logging
from typing import Optional

from fastapi import APIRouter, Query, WebSocket, status
from fastapi.concurrency import run_in_threadpool

from mentorhub import database
from mentorhub.realtime.broadcaster import broadcaster
from mentorhub.realtime.socket_handler import SessionSocket
from mentorhub.utils.security import resolve_user_from_token

router = APIRouter()
logger = logging.getLogger(__name__)


def _authenticate(token: Optional[str]):
    db = database.SessionLocal()
    try:
        user = resolve_user_from_token(db, token)
        if user is not None:
            db.expunge(user)
        return user
    finally:
        db.close()


@router.websocket("/ws")
async def session_socket(websocket: WebSocket, token: Optional[str] = Query(None)) -> None:
    """
    Authenticated socket. Frames are ``{"event": ..., "data": ...}``; see
    ``mentorhub.schemas.events`` for the closed set of events.
    """
    user = await run_in_threadpool(_authenticate, token)
    if user is None:
        logger.info("Rejected socket without a valid token")
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    await websocket.accept()
    handler = SessionSocket(
        websocket,
        user,
        manager=broadcaster,
        session_factory=database.SessionLocal,
    )
    await handler.run()
