from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
import logging

import httpx
import uvicorn

from jamroom.core.config import Settings, get_settings
from jamroom.core.log import setup_logging
from jamroom.api.auth import router as auth_router
from jamroom.api.now_playing import router as now_playing_router
from jamroom.api.rooms import router as rooms_router
from jamroom.events.bus import EventBus, NOW_PLAYING_TOPIC
from jamroom.events.router import EventRouter
from jamroom.services.spotify import SpotifyClient
from jamroom.state.room_registry import RoomRegistry
from jamroom.ws.manager import ConnectionManager
from jamroom.ws.routes import router as ws_router


logger = logging.getLogger(__name__)


def create_app(
    settings: Settings | None = None,
    spotify_transport: httpx.AsyncBaseTransport | None = None,
) -> FastAPI:
    settings = settings or get_settings()
    setup_logging(settings.log_level)
    app = FastAPI(title="Jamroom Backend", version="0.1.0")

    app.state.settings = settings
    app.state.room_registry = RoomRegistry()
    app.state.ws_manager = ConnectionManager(app.state.room_registry, outbox_size=settings.outbox_size)
    app.state.event_router = EventRouter(app.state.room_registry, app.state.ws_manager)
    app.state.event_bus = EventBus()
    app.state.spotify = SpotifyClient(settings, transport=spotify_transport)

    if settings.cors_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=settings.cors_origins,
            allow_credentials=True,
            allow_methods=["GET", "POST"],
            allow_headers=["*"],
        )

    @app.get("/health")
    async def health() -> dict[str, str]:
        return {"status": "ok"}

    app.include_router(auth_router)
    app.include_router(now_playing_router)
    app.include_router(rooms_router)
    app.include_router(ws_router)

    async def _on_now_playing(payload: dict) -> None:
        room_id = payload.get("roomId")
        if not room_id:
            return
        app.state.event_router.on_now_playing(room_id, payload.get("track"))

    app.state.event_bus.subscribe(NOW_PLAYING_TOPIC, _on_now_playing)
    return app


def main() -> None:
    settings = get_settings()
    log_level = setup_logging(settings.log_level)
    logger.info("Starting Jamroom server on %s:%s", settings.host, settings.port)
    uvicorn.run(create_app(settings), host=settings.host, port=settings.port, log_level=log_level)


if __name__ == "__main__":
    main()
