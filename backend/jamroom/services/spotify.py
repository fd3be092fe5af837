from __future__ import annotations

import logging
from typing import Any, Optional
from urllib.parse import urlencode

import httpx

from jamroom.core.config import Settings
from jamroom.schemas.spotify import TokenGrant, TrackInfo


logger = logging.getLogger(__name__)

AUTHORIZE_URL = "https://accounts.spotify.com/authorize"
TOKEN_URL = "https://accounts.spotify.com/api/token"
API_BASE_URL = "https://api.spotify.com/v1"

SCOPES = [
    "user-read-private",
    "user-read-email",
    "user-modify-playback-state",
    "user-read-playback-state",
    "user-read-currently-playing",
]


class SpotifyError(Exception):
    """Upstream call failed; carries the status code to hand back to the caller."""

    def __init__(self, status_code: int, detail: str, body: Any = None) -> None:
        super().__init__(f"{status_code}: {detail}")
        self.status_code = status_code
        self.detail = detail
        self.body = body


def _error_body(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return response.text


def parse_track(data: dict | None) -> Optional[TrackInfo]:
    """Normalize a currently-playing response to TrackInfo.

    Returns None when nothing is playing or the item is not a track (e.g. a
    podcast episode).
    """
    item = (data or {}).get("item")
    if not item or item.get("type") != "track":
        return None
    artists = ", ".join(a.get("name", "") for a in item.get("artists") or [])
    images = (item.get("album") or {}).get("images") or []
    return TrackInfo(
        title=item.get("name", ""),
        artist=artists,
        albumArtUrl=images[0].get("url") if images else None,
    )


class SpotifyClient:
    """Stateless proxy for the Spotify accounts and Web API endpoints.

    A new httpx.AsyncClient is opened per call; ``transport`` lets tests plug
    in an httpx.MockTransport.
    """

    def __init__(self, settings: Settings, transport: httpx.AsyncBaseTransport | None = None) -> None:
        self.settings = settings
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self.settings.http_timeout_s, transport=self._transport)

    def authorize_url(self) -> str:
        query = urlencode({
            "response_type": "code",
            "client_id": self.settings.spotify_client_id or "",
            "scope": " ".join(SCOPES),
            "redirect_uri": self.settings.redirect_uri,
        })
        return f"{AUTHORIZE_URL}?{query}"

    async def exchange_auth_code(self, code: str) -> TokenGrant:
        return await self._token_request({
            "grant_type": "authorization_code",
            "code": code,
            "redirect_uri": self.settings.redirect_uri,
        })

    async def refresh_access_token(self, refresh_token: str) -> TokenGrant:
        grant = await self._token_request({
            "grant_type": "refresh_token",
            "refresh_token": refresh_token,
        })
        # Spotify only rotates the refresh token sometimes
        if grant.refreshToken is None:
            grant.refreshToken = refresh_token
        return grant

    async def fetch_profile(self, access_token: str) -> dict:
        response = await self._get("/me", access_token)
        return response.json()

    async def fetch_currently_playing(self, access_token: str) -> Optional[TrackInfo]:
        response = await self._get("/me/player/currently-playing", access_token)
        if response.status_code == 204 or not response.content:
            return None
        return parse_track(response.json())

    async def _token_request(self, form: dict) -> TokenGrant:
        data = dict(form)
        data["client_id"] = self.settings.spotify_client_id or ""
        data["client_secret"] = self.settings.spotify_client_secret or ""
        async with self._client() as client:
            try:
                response = await client.post(
                    TOKEN_URL,
                    data=data,
                    headers={"Content-Type": "application/x-www-form-urlencoded"},
                )
            except httpx.HTTPError as e:
                logger.warning("[spotify] token request failed grant=%s err=%s", form.get("grant_type"), e)
                raise SpotifyError(502, "Spotify token endpoint unreachable") from e
        if response.is_error:
            body = _error_body(response)
            logger.warning("[spotify] token request rejected status=%s body=%s", response.status_code, body)
            raise SpotifyError(response.status_code, "Spotify token request failed", body)
        payload = response.json()
        return TokenGrant(
            accessToken=payload["access_token"],
            refreshToken=payload.get("refresh_token"),
            expiresIn=payload.get("expires_in", 3600),
            scope=payload.get("scope"),
            tokenType=payload.get("token_type"),
        )

    async def _get(self, path: str, access_token: str) -> httpx.Response:
        async with self._client() as client:
            try:
                response = await client.get(
                    f"{API_BASE_URL}{path}",
                    headers={"Authorization": f"Bearer {access_token}"},
                )
            except httpx.HTTPError as e:
                logger.warning("[spotify] GET %s failed err=%s", path, e)
                raise SpotifyError(502, "Spotify API unreachable") from e
        if response.is_error:
            body = _error_body(response)
            logger.warning("[spotify] GET %s rejected status=%s body=%s", path, response.status_code, body)
            raise SpotifyError(response.status_code, f"Spotify API request failed: {path}", body)
        return response
