from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Request, Response

from jamroom.events.bus import EventBus, NOW_PLAYING_TOPIC
from jamroom.schemas.spotify import NowPlayingRequest, TrackInfo
from jamroom.services.spotify import SpotifyClient, SpotifyError


router = APIRouter(tags=["now-playing"])


def get_bus(request: Request) -> EventBus:
    return request.app.state.event_bus  # type: ignore[attr-defined]


def get_spotify(request: Request) -> SpotifyClient:
    return request.app.state.spotify  # type: ignore[attr-defined]


@router.post("/update-now-playing", response_model=TrackInfo)
async def update_now_playing(
    body: NowPlayingRequest,
    bus: EventBus = Depends(get_bus),
    spotify: SpotifyClient = Depends(get_spotify),
):
    """Fetch the caller's current track and broadcast it to the room.

    Nothing playing still broadcasts ``now-playing`` with a null payload so the
    room can clear its display; the HTTP response is then 204.
    """
    if not body.accessToken or not body.roomId:
        raise HTTPException(status_code=400, detail="Missing access token or room ID.")
    try:
        track = await spotify.fetch_currently_playing(body.accessToken)
    except SpotifyError as e:
        raise HTTPException(status_code=e.status_code, detail="Failed to fetch currently playing track.")

    await bus.publish(NOW_PLAYING_TOPIC, {"roomId": body.roomId, "track": track})
    if track is None:
        return Response(status_code=204)
    return track
