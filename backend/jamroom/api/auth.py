from __future__ import annotations

import logging
from urllib.parse import urlencode

from fastapi import APIRouter, Depends, Header, HTTPException, Request
from fastapi.responses import RedirectResponse

from jamroom.schemas.spotify import TokenGrant
from jamroom.services.spotify import SpotifyClient, SpotifyError


logger = logging.getLogger(__name__)

router = APIRouter(tags=["auth"])


def get_spotify(request: Request) -> SpotifyClient:
    return request.app.state.spotify  # type: ignore[attr-defined]


@router.get("/login")
async def login(spotify: SpotifyClient = Depends(get_spotify)) -> RedirectResponse:
    return RedirectResponse(spotify.authorize_url())


@router.get("/callback")
async def callback(
    request: Request,
    code: str | None = None,
    spotify: SpotifyClient = Depends(get_spotify),
) -> RedirectResponse:
    if not code:
        raise HTTPException(status_code=400, detail="code is required")
    try:
        grant = await spotify.exchange_auth_code(code)
    except SpotifyError as e:
        logger.error("[auth] code exchange failed: %s", e.body or e.detail)
        raise HTTPException(status_code=500, detail="Failed to get access token from Spotify.")

    frontend_url = request.app.state.settings.frontend_url.rstrip("/")  # type: ignore[attr-defined]
    query = urlencode({
        "access_token": grant.accessToken,
        "refresh_token": grant.refreshToken or "",
        "expires_in": grant.expiresIn,
    })
    return RedirectResponse(f"{frontend_url}/callback?{query}")


@router.get("/refresh_token", response_model=TokenGrant)
async def refresh_token(
    refresh_token: str | None = None,
    spotify: SpotifyClient = Depends(get_spotify),
) -> TokenGrant:
    if not refresh_token:
        raise HTTPException(status_code=400, detail="refresh_token is required")
    try:
        return await spotify.refresh_access_token(refresh_token)
    except SpotifyError as e:
        logger.error("[auth] token refresh failed: %s", e.body or e.detail)
        raise HTTPException(status_code=500, detail="Failed to refresh token")


@router.get("/profile")
async def profile(
    authorization: str | None = Header(default=None),
    spotify: SpotifyClient = Depends(get_spotify),
) -> dict:
    scheme, _, token = (authorization or "").partition(" ")
    if scheme.lower() != "bearer" or not token:
        raise HTTPException(status_code=401, detail="No access token provided.")
    try:
        return await spotify.fetch_profile(token)
    except SpotifyError as e:
        raise HTTPException(status_code=e.status_code, detail="Failed to fetch Spotify profile.")
