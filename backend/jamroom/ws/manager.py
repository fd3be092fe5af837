from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from fastapi import WebSocket

from jamroom.state.room_registry import RoomRegistry
from jamroom.ws.session import Session


logger = logging.getLogger(__name__)


class ConnectionManager:
    """Tracks live sessions and fans events out to room members.

    In-memory and single-process only. Room membership is read from the
    RoomRegistry; delivery goes through each session's outbox so a broadcast
    never waits on a slow socket.
    """

    def __init__(self, registry: RoomRegistry, outbox_size: int = 256) -> None:
        self.registry = registry
        self.outbox_size = outbox_size
        self._sessions: Dict[str, Session] = {}

    async def connect(self, websocket: WebSocket) -> Session:
        await websocket.accept()
        return self.register(Session(outbox_size=self.outbox_size))

    def register(self, session: Session) -> Session:
        self._sessions[session.id] = session
        logger.info("[ws] connected session=%s (total: %d)", session.id, len(self._sessions))
        return session

    def disconnect(self, session: Session) -> None:
        if self._sessions.pop(session.id, None) is None:
            return
        session.close()
        logger.info("[ws] disconnected session=%s (remaining: %d)", session.id, len(self._sessions))

    def get(self, session_id: str) -> Optional[Session]:
        return self._sessions.get(session_id)

    def __len__(self) -> int:
        return len(self._sessions)

    def broadcast_to_room(
        self,
        room_id: str,
        event: str,
        payload: Any,
        exclude: Optional[str] = None,
    ) -> int:
        delivered = 0
        for member_id in self.registry.list_members(room_id):
            if member_id == exclude:
                continue
            session = self._sessions.get(member_id)
            if session is None:
                continue
            if session.emit(event, payload):
                delivered += 1
        return delivered

    async def pump(self, session: Session, websocket: WebSocket) -> None:
        """Drain the session outbox to its socket until closed or a send fails."""
        while True:
            envelope = await session.next_envelope()
            if envelope is None:
                return
            try:
                await websocket.send_json(envelope)
            except Exception as e:
                logger.warning("[ws] send failed session=%s err=%s", session.id, e)
                return
