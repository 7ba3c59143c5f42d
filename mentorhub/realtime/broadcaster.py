"""
Real-time broadcast channel.

Rooms are keyed by session id. Delivery is fire-and-forget: there is no
queue, a client that is offline misses the event and recovers state through
the REST read endpoints. Rooms live in this process only; running several
server processes needs a shared pub/sub backbone in front of this class.
"""

import logging
from collections import defaultdict
from typing import Any, Dict, Iterable, Optional, Set

from mentorhub.schemas.events import ServerEvent, serialize_event

logger = logging.getLogger(__name__)


class ConnectionManager:
    """Tracks open sockets, their user ids and the session rooms they joined."""

    def __init__(self) -> None:
        self._connections: Dict[Any, int] = {}
        self._rooms: Dict[int, Set[Any]] = defaultdict(set)

    # ------------------------------------------------------------------
    # Registry
    # ------------------------------------------------------------------

    def register(self, websocket: Any, user_id: int) -> None:
        self._connections[websocket] = user_id
        logger.info("Socket connected (user_id=%s, open=%s)", user_id, len(self._connections))

    def unregister(self, websocket: Any) -> None:
        user_id = self._connections.pop(websocket, None)
        for session_id in list(self._rooms):
            self._discard(session_id, websocket)
        if user_id is not None:
            logger.info("Socket disconnected (user_id=%s, open=%s)", user_id, len(self._connections))

    def join(self, session_id: int, websocket: Any) -> None:
        self._rooms[session_id].add(websocket)
        logger.debug("Socket joined room %s (members=%s)", session_id, len(self._rooms[session_id]))

    def leave(self, session_id: int, websocket: Any) -> None:
        self._discard(session_id, websocket)

    def _discard(self, session_id: int, websocket: Any) -> None:
        members = self._rooms.get(session_id)
        if members is None:
            return
        members.discard(websocket)
        if not members:
            del self._rooms[session_id]

    def is_member(self, session_id: int, websocket: Any) -> bool:
        return websocket in self._rooms.get(session_id, ())

    def room_size(self, session_id: int) -> int:
        return len(self._rooms.get(session_id, ()))

    @property
    def connection_count(self) -> int:
        return len(self._connections)

    # ------------------------------------------------------------------
    # Delivery
    # ------------------------------------------------------------------

    async def send(self, websocket: Any, event: ServerEvent) -> bool:
        """Send one event to one socket; a failed send drops the socket."""
        try:
            await websocket.send_json(serialize_event(event))
            return True
        except Exception as exc:
            logger.warning(
                "Dropping socket after failed send of %s (user_id=%s): %s",
                event.event,
                self._connections.get(websocket),
                exc,
            )
            self.unregister(websocket)
            return False

    async def _fan_out(self, targets: Iterable[Any], event: ServerEvent) -> int:
        delivered = 0
        for websocket in list(targets):
            if await self.send(websocket, event):
                delivered += 1
        return delivered

    async def emit_to_session(
        self,
        session_id: int,
        event: ServerEvent,
        exclude: Optional[Any] = None,
    ) -> int:
        """Publish to every socket in the session room except ``exclude``."""
        targets = [ws for ws in self._rooms.get(session_id, ()) if ws is not exclude]
        delivered = await self._fan_out(targets, event)
        logger.debug("Emitted %s to room %s (%s delivered)", event.event, session_id, delivered)
        return delivered

    async def emit_global(self, event: ServerEvent) -> int:
        """Publish to every open socket regardless of room."""
        delivered = await self._fan_out(self._connections.keys(), event)
        logger.debug("Emitted %s globally (%s delivered)", event.event, delivered)
        return delivered


broadcaster = ConnectionManager()
