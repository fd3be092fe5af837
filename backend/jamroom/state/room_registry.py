from __future__ import annotations

import threading
from typing import Dict, List, Set


class RoomRegistry:
    """In-memory mapping of room id to the ids of its members.

    A room exists only while it has at least one member: it is created by the
    first ``join`` and removed by the ``leave`` that empties it. Membership is
    by participant id only; connections themselves live in the
    ConnectionManager.

    Every operation runs under one lock so that emptying and deleting a room
    is atomic with respect to concurrent joins and reads.
    """

    def __init__(self) -> None:
        self._room_to_members: Dict[str, Set[str]] = {}
        self._lock = threading.Lock()

    def join(self, room_id: str, participant_id: str) -> None:
        with self._lock:
            members = self._room_to_members.setdefault(room_id, set())
            members.add(participant_id)

    def leave(self, room_id: str, participant_id: str) -> None:
        with self._lock:
            members = self._room_to_members.get(room_id)
            if members is None:
                return
            members.discard(participant_id)
            if not members:
                del self._room_to_members[room_id]

    def list_members(self, room_id: str) -> List[str]:
        with self._lock:
            return list(self._room_to_members.get(room_id, ()))

    def rooms(self) -> List[str]:
        with self._lock:
            return list(self._room_to_members)

    def __contains__(self, room_id: object) -> bool:
        with self._lock:
            return room_id in self._room_to_members

    def __len__(self) -> int:
        with self._lock:
            return len(self._room_to_members)
