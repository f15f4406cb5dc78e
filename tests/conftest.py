"""Shared fixtures for the portfolio-spotify tests."""

import pytest
from fastapi.testclient import TestClient
from spotipy.exceptions import SpotifyException

from portfolio_spotify.api import get_client_factory, get_token_exchanger
from portfolio_spotify.auth import get_code_exchanger
from portfolio_spotify.config import SpotifyConfig, get_config
from portfolio_spotify.main import create_app


class FakeResponse:
    """Just enough of requests.Response for the code under test."""

    def __init__(self, status_code=200, payload=None, text=""):
        self.status_code = status_code
        self._payload = payload
        self.text = text

    @property
    def ok(self):
        return 200 <= self.status_code < 400

    def json(self):
        if self._payload is None:
            raise ValueError("no JSON body")
        return self._payload


class FakeSpotify:
    """Stands in for spotipy.Spotify. A value that is an exception gets raised."""

    def __init__(self, playing=None, recent=None, top_artists=None):
        self.playing = playing
        self.recent = recent
        self.top_artists = top_artists
        self.calls = []

    def _answer(self, value):
        if isinstance(value, Exception):
            raise value
        return value

    def current_user_playing_track(self):
        self.calls.append(("currently-playing", {}))
        return self._answer(self.playing)

    def current_user_recently_played(self, limit=50, after=None, before=None):
        self.calls.append(("recently-played", {"limit": limit}))
        return self._answer(self.recent)

    def current_user_top_artists(self, limit=20, offset=0, time_range="medium_term"):
        self.calls.append(("top-artists", {"limit": limit, "time_range": time_range}))
        return self._answer(self.top_artists)


def spotify_error(status=500):
    return SpotifyException(status, -1, "upstream failure")


def make_item(name="Blinding Lights", artists=("The Weeknd",), track_id="track-1", duration_ms=200000, images=True):
    return {
        "id": track_id,
        "name": name,
        "duration_ms": duration_ms,
        "artists": [{"name": a} for a in artists],
        "album": {
            "name": "After Hours",
            "release_date": "2020-03-20",
            "images": [{"url": "https://i.scdn.co/image/large"}, {"url": "https://i.scdn.co/image/small"}] if images else [],
        },
        "external_urls": {"spotify": f"https://open.spotify.com/track/{track_id}"},
    }


@pytest.fixture
def full_config():
    return SpotifyConfig(client_id="cid", client_secret="secret", refresh_token="refresh")


@pytest.fixture
def fake_spotify():
    return FakeSpotify()


@pytest.fixture
def exchange_calls():
    return []


@pytest.fixture
def app_overrides(full_config, fake_spotify, exchange_calls):
    """Create an app whose collaborators are all fakes.

    Tests tweak the returned dict: ``config``, ``token`` (str or Unavailable)
    and ``code_exchange`` (callable) are read on every request.
    """
    app = create_app()
    state = {"app": app, "config": full_config, "token": "access-token", "code_exchange": None}

    def fake_exchange(config):
        exchange_calls.append(("refresh", config))
        return state["token"]

    def fake_code_exchange(config, code, redirect_uri):
        exchange_calls.append(("code", code, redirect_uri))
        return state["code_exchange"](config, code, redirect_uri)

    app.dependency_overrides[get_config] = lambda: state["config"]
    app.dependency_overrides[get_token_exchanger] = lambda: fake_exchange
    app.dependency_overrides[get_client_factory] = lambda: (lambda token: fake_spotify)
    app.dependency_overrides[get_code_exchanger] = lambda: fake_code_exchange
    return state


@pytest.fixture
def client(app_overrides):
    return TestClient(app_overrides["app"])
