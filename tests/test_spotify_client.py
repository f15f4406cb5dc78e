"""Tests for portfolio_spotify/spotify_client.py."""

import pytest
import spotipy

from conftest import make_item
from portfolio_spotify.spotify_client import create_spotify_client, normalize_track


def test_client_makes_a_single_attempt():
    sp = create_spotify_client("access-token")
    assert isinstance(sp, spotipy.Spotify)
    assert sp.retries == 0
    assert sp.status_retries == 0


class TestNormalizeTrack:
    def test_joins_artists(self):
        track = normalize_track(make_item(artists=("A", "B")), is_playing=True, progress_ms=42)
        assert track.artist == "A, B"
        assert track.progress_ms == 42

    def test_brief_form_omits_playback_fields(self):
        track = normalize_track(make_item(), is_playing=False, detailed=False)
        assert track.to_json() == {
            "name": "Blinding Lights",
            "artist": "The Weeknd",
            "album": "After Hours",
            "albumArt": "https://i.scdn.co/image/large",
            "url": "https://open.spotify.com/track/track-1",
            "isPlaying": False,
        }

    def test_missing_external_url_is_empty(self):
        item = make_item()
        del item["external_urls"]
        assert normalize_track(item, is_playing=True).url == ""

    def test_missing_artists_raises(self):
        item = make_item()
        del item["artists"]
        with pytest.raises(KeyError):
            normalize_track(item, is_playing=True)
