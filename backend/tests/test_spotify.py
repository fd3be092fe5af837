from urllib.parse import parse_qs, urlparse

import httpx
import pytest

from jamroom.services.spotify import SCOPES, SpotifyClient, SpotifyError, parse_track

from conftest import TRACK_ITEM


@pytest.fixture
def spotify(settings, fake_spotify):
    return SpotifyClient(settings, transport=httpx.MockTransport(fake_spotify.handler))


def test_authorize_url(spotify):
    url = urlparse(spotify.authorize_url())
    query = parse_qs(url.query)

    assert url.netloc == "accounts.spotify.com"
    assert url.path == "/authorize"
    assert query["response_type"] == ["code"]
    assert query["client_id"] == ["client-id"]
    assert query["redirect_uri"] == ["http://api.test/callback"]
    assert query["scope"] == [" ".join(SCOPES)]


def test_parse_track_joins_artists_and_takes_first_image():
    track = parse_track({"item": TRACK_ITEM})
    assert track.title == "Harvest Moon"
    assert track.artist == "Neil Young, Crazy Horse"
    assert track.albumArtUrl == "https://i.scdn.co/image/large"


def test_parse_track_without_images():
    item = dict(TRACK_ITEM, album={"images": []})
    assert parse_track({"item": item}).albumArtUrl is None


@pytest.mark.parametrize("data", [None, {}, {"item": None}, {"item": {"type": "episode", "name": "Pod"}}])
def test_parse_track_returns_none_for_non_tracks(data):
    assert parse_track(data) is None


@pytest.mark.anyio
async def test_exchange_auth_code_posts_form(spotify, fake_spotify):
    grant = await spotify.exchange_auth_code("the-code")

    assert grant.accessToken == "access-1"
    assert grant.refreshToken == "refresh-1"
    assert grant.expiresIn == 3600
    form = fake_spotify.last_form()
    assert form["grant_type"] == ["authorization_code"]
    assert form["code"] == ["the-code"]
    assert form["redirect_uri"] == ["http://api.test/callback"]
    assert form["client_secret"] == ["client-secret"]


@pytest.mark.anyio
async def test_refresh_keeps_old_refresh_token_when_not_rotated(spotify, fake_spotify):
    fake_spotify.token_payload = {"access_token": "access-2", "expires_in": 1800}
    grant = await spotify.refresh_access_token("refresh-old")

    assert grant.accessToken == "access-2"
    assert grant.refreshToken == "refresh-old"
    assert fake_spotify.last_form()["grant_type"] == ["refresh_token"]


@pytest.mark.anyio
async def test_token_error_raises(spotify, fake_spotify):
    fake_spotify.token_status = 400
    fake_spotify.token_payload = {"error": "invalid_grant"}

    with pytest.raises(SpotifyError) as exc:
        await spotify.exchange_auth_code("bad")
    assert exc.value.status_code == 400
    assert exc.value.body == {"error": "invalid_grant"}


@pytest.mark.anyio
async def test_fetch_currently_playing_uses_player_endpoint(spotify, fake_spotify):
    track = await spotify.fetch_currently_playing("tok")

    assert track.title == "Harvest Moon"
    request = fake_spotify.requests[-1]
    assert str(request.url) == "https://api.spotify.com/v1/me/player/currently-playing"
    assert request.headers["Authorization"] == "Bearer tok"


@pytest.mark.anyio
async def test_fetch_currently_playing_nothing_playing(spotify, fake_spotify):
    fake_spotify.now_playing_status = 204
    assert await spotify.fetch_currently_playing("tok") is None


@pytest.mark.anyio
async def test_fetch_currently_playing_propagates_status(spotify, fake_spotify):
    fake_spotify.now_playing_status = 401
    fake_spotify.now_playing_payload = {"error": {"status": 401, "message": "expired"}}

    with pytest.raises(SpotifyError) as exc:
        await spotify.fetch_currently_playing("tok")
    assert exc.value.status_code == 401


@pytest.mark.anyio
async def test_transport_failure_maps_to_bad_gateway(settings):
    def unreachable(request):
        raise httpx.ConnectError("down", request=request)

    spotify = SpotifyClient(settings, transport=httpx.MockTransport(unreachable))
    with pytest.raises(SpotifyError) as exc:
        await spotify.fetch_profile("tok")
    assert exc.value.status_code == 502
