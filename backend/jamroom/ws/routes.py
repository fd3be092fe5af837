from __future__ import annotations

from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect
import asyncio
import contextlib
import json
import logging

from jamroom.events.router import EventRouter
from jamroom.ws.manager import ConnectionManager


logger = logging.getLogger(__name__)

router = APIRouter()


def get_manager(websocket: WebSocket) -> ConnectionManager:
    return websocket.app.state.ws_manager  # type: ignore[attr-defined]


def get_router(websocket: WebSocket) -> EventRouter:
    return websocket.app.state.event_router  # type: ignore[attr-defined]


@router.websocket("/ws")
async def websocket_endpoint(
    websocket: WebSocket,
    manager: ConnectionManager = Depends(get_manager),
    events: EventRouter = Depends(get_router),
) -> None:
    session = await manager.connect(websocket)
    writer = asyncio.create_task(manager.pump(session, websocket))
    session.emit("ready", {"sessionId": session.id})
    try:
        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                raise WebSocketDisconnect(message.get("code", 1000))
            raw = message.get("text")
            if raw is None:
                # Binary frames carry nothing we route
                continue
            try:
                data = json.loads(raw)
            except ValueError:
                continue
            if not isinstance(data, dict):
                continue
            events.dispatch(session, data.get("event"), data.get("payload"))
    except WebSocketDisconnect:
        pass
    finally:
        rooms = events.on_disconnecting(session)
        manager.disconnect(session)
        logger.info("[ws] session=%s left rooms=%s", session.id, rooms)
        # Nothing left to deliver once the client is gone
        writer.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await writer
