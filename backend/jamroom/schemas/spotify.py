from __future__ import annotations

from pydantic import BaseModel


class TrackInfo(BaseModel):
    title: str
    artist: str
    albumArtUrl: str | None = None


class TokenGrant(BaseModel):
    accessToken: str
    refreshToken: str | None = None
    expiresIn: int = 3600
    scope: str | None = None
    tokenType: str | None = None


class NowPlayingRequest(BaseModel):
    accessToken: str
    roomId: str
