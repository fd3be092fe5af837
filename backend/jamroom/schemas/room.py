from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


class RoomList(BaseModel):
    rooms: list[str] = []


class RoomMembers(BaseModel):
    roomId: str
    members: list[str] = Field(default_factory=list, description="Session ids currently in the room")


class ChatMessage(BaseModel):
    sender: str
    message: Any = None
    timestamp: str = Field(description="ISO-8601 UTC time assigned by the server")
