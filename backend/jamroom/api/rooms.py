from __future__ import annotations

from fastapi import APIRouter, Depends, Request

from jamroom.schemas.room import RoomList, RoomMembers
from jamroom.state.room_registry import RoomRegistry


router = APIRouter(prefix="/rooms", tags=["rooms"])


def get_registry(request: Request) -> RoomRegistry:
    return request.app.state.room_registry  # type: ignore[attr-defined]


@router.get("", response_model=RoomList)
async def list_rooms(registry: RoomRegistry = Depends(get_registry)) -> RoomList:
    return RoomList(rooms=registry.rooms())


@router.get("/{roomId}/members", response_model=RoomMembers)
async def list_members(roomId: str, registry: RoomRegistry = Depends(get_registry)) -> RoomMembers:
    # Unknown rooms are simply empty
    return RoomMembers(roomId=roomId, members=registry.list_members(roomId))
