from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, List, Optional

from jamroom.schemas.room import ChatMessage
from jamroom.schemas.spotify import TrackInfo
from jamroom.state.room_registry import RoomRegistry
from jamroom.ws.manager import ConnectionManager
from jamroom.ws.session import Session


logger = logging.getLogger(__name__)

# Inbound event names
JOIN_ROOM = "join-room"
LEAVE_ROOM = "leave-room"
CHAT_MESSAGE = "chat-message"
SIGNALING_KINDS = ("offer", "answer", "ice-candidate")

# Outbound event names
USER_JOINED = "user-joined"
USER_LEFT = "user-left"
ROOM_USERS = "room-users"
NOW_PLAYING = "now-playing"

ANONYMOUS = "Anonymous"


def _room_of(payload: Any) -> Optional[str]:
    if not isinstance(payload, dict):
        return None
    room_id = payload.get("roomId")
    return room_id if isinstance(room_id, str) else None


class EventRouter:
    """Turns inbound session events into registry changes and room broadcasts.

    Every handler is synchronous: registry mutations and outbox enqueues finish
    before the handler returns, so one event is fully routed before the next.

    | inbound          | recipients                              |
    |------------------|-----------------------------------------|
    | join             | user-joined: others, room-users: all    |
    | chat             | all, sender included                    |
    | offer/answer/ice | others                                  |
    | leave/disconnect | user-left: remaining members            |
    """

    def __init__(self, registry: RoomRegistry, manager: ConnectionManager) -> None:
        self.registry = registry
        self.manager = manager

    def on_join(self, session: Session, room_id: str, display_name: Optional[str] = None) -> None:
        if display_name:
            session.display_name = display_name
        self.registry.join(room_id, session.id)
        session.rooms.add(room_id)
        logger.info("[rooms] %s joined room=%s", session.label, room_id)

        self.manager.broadcast_to_room(room_id, USER_JOINED, session.label, exclude=session.id)
        self.manager.broadcast_to_room(room_id, ROOM_USERS, self.registry.list_members(room_id))

    def on_leave(self, session: Session, room_id: str) -> None:
        if room_id not in session.rooms:
            return
        self._leave(session, room_id)

    def on_chat(self, session: Session, room_id: str, message: Any, sender: Optional[str] = None) -> None:
        chat = ChatMessage(
            sender=sender or ANONYMOUS,
            message=message,
            timestamp=datetime.now(timezone.utc).isoformat(),
        )
        count = self.manager.broadcast_to_room(room_id, CHAT_MESSAGE, chat.model_dump())
        logger.debug("[rooms] chat room=%s session=%s recipients=%d", room_id, session.id, count)

    def on_signaling(self, kind: str, session: Session, payload: Any) -> None:
        room_id = _room_of(payload)
        if kind not in SIGNALING_KINDS or room_id is None:
            logger.debug("[rooms] dropped %s from session=%s without room", kind, session.id)
            return
        count = self.manager.broadcast_to_room(room_id, kind, payload, exclude=session.id)
        logger.debug("[rooms] relayed %s room=%s session=%s recipients=%d", kind, room_id, session.id, count)

    def on_disconnecting(self, session: Session) -> List[str]:
        left = sorted(session.rooms)
        for room_id in left:
            self._leave(session, room_id)
        return left

    def on_now_playing(self, room_id: str, track: Optional[TrackInfo]) -> None:
        payload = track.model_dump() if track is not None else None
        count = self.manager.broadcast_to_room(room_id, NOW_PLAYING, payload)
        logger.info("[rooms] now-playing room=%s track=%s recipients=%d", room_id, payload and payload["title"], count)

    def dispatch(self, session: Session, event: Any, payload: Any) -> None:
        """Route one decoded client frame. Malformed events are ignored."""
        if event in SIGNALING_KINDS:
            self.on_signaling(event, session, payload)
            return

        room_id = _room_of(payload)
        if room_id is None:
            logger.debug("[rooms] ignored event=%r from session=%s", event, session.id)
            return

        if event == JOIN_ROOM:
            username = payload.get("username")
            self.on_join(session, room_id, username if isinstance(username, str) else None)
        elif event == LEAVE_ROOM:
            self.on_leave(session, room_id)
        elif event == CHAT_MESSAGE:
            sender = payload.get("sender")
            self.on_chat(session, room_id, payload.get("message"), sender if isinstance(sender, str) else None)
        else:
            logger.debug("[rooms] unknown event=%r from session=%s", event, session.id)

    def _leave(self, session: Session, room_id: str) -> None:
        self.registry.leave(room_id, session.id)
        session.rooms.discard(room_id)
        logger.info("[rooms] %s left room=%s", session.id, room_id)
        self.manager.broadcast_to_room(room_id, USER_LEFT, session.id, exclude=session.id)
