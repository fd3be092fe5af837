from __future__ import annotations

from urllib.parse import parse_qs

import httpx
import pytest
from fastapi.testclient import TestClient

from jamroom.core.config import Settings
from jamroom.main import create_app


TRACK_ITEM = {
    "type": "track",
    "name": "Harvest Moon",
    "artists": [{"name": "Neil Young"}, {"name": "Crazy Horse"}],
    "album": {"images": [{"url": "https://i.scdn.co/image/large"}, {"url": "https://i.scdn.co/image/small"}]},
}


class FakeSpotify:
    """Canned Spotify accounts/API responses behind an httpx.MockTransport."""

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self.token_status = 200
        self.token_payload = {
            "access_token": "access-1",
            "refresh_token": "refresh-1",
            "expires_in": 3600,
            "token_type": "Bearer",
            "scope": "user-read-email",
        }
        self.now_playing_status = 200
        self.now_playing_payload: dict | None = {"is_playing": True, "item": TRACK_ITEM}
        self.profile_status = 200
        self.profile_payload = {"id": "alice", "display_name": "Alice"}

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path
        if request.url.host == "accounts.spotify.com" and path == "/api/token":
            return httpx.Response(self.token_status, json=self.token_payload)
        if path == "/v1/me/player/currently-playing":
            if self.now_playing_status == 204:
                return httpx.Response(204)
            return httpx.Response(self.now_playing_status, json=self.now_playing_payload)
        if path == "/v1/me":
            return httpx.Response(self.profile_status, json=self.profile_payload)
        return httpx.Response(404, json={"error": "not found"})

    def last_form(self) -> dict[str, list[str]]:
        return parse_qs(self.requests[-1].content.decode())


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def settings() -> Settings:
    return Settings(
        spotify_client_id="client-id",
        spotify_client_secret="client-secret",
        backend_url="http://api.test",
        frontend_url="http://front.test",
        cors_origins=["http://front.test"],
    )


@pytest.fixture
def fake_spotify() -> FakeSpotify:
    return FakeSpotify()


@pytest.fixture
def app(settings, fake_spotify):
    return create_app(settings, spotify_transport=httpx.MockTransport(fake_spotify.handler))


@pytest.fixture
def client(app):
    # One shared portal so HTTP requests and WebSocket sessions run on the same loop
    with TestClient(app) as c:
        yield c
