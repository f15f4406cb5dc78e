from __future__ import annotations

from typing import Any, Callable

import requests
from spotipy.exceptions import SpotifyException

from portfolio_spotify.config import SpotifyConfig
from portfolio_spotify.logger import default_logger
from portfolio_spotify.models import Stats, TopArtist, Track, Unavailable, UnavailableReason
from portfolio_spotify.spotify_client import ClientFactory, create_spotify_client, normalize_track
from portfolio_spotify.tokens import exchange_refresh_token


TokenExchanger = Callable[[SpotifyConfig], str | Unavailable]

RECENT_TRACKS_LIMIT = 5
TOP_ARTISTS_LIMIT = 5
TOP_ARTISTS_TIME_RANGE = "short_term"

# Errors a spotipy read can surface: HTTP failures are wrapped in
# SpotifyException, connection problems come straight from requests.
UPSTREAM_ERRORS = (SpotifyException, requests.RequestException)
MALFORMED_ERRORS = (KeyError, TypeError, AttributeError, ValueError)

logger = default_logger(__name__)


def _access_token(config: SpotifyConfig, exchange: TokenExchanger) -> str | Unavailable:
    if not config.is_complete:
        return Unavailable(reason=UnavailableReason.MISSING_CONFIG)
    return exchange(config)


def resolve_now_playing(
    config: SpotifyConfig,
    exchange: TokenExchanger = exchange_refresh_token,
    client_factory: ClientFactory = create_spotify_client,
) -> Track | Unavailable:
    """Fetch the owner's currently playing track."""
    token = _access_token(config, exchange)
    if isinstance(token, Unavailable):
        return token

    sp = client_factory(token)
    try:
        data = sp.current_user_playing_track()
    except UPSTREAM_ERRORS as exc:
        logger.warning("currently-playing request failed: %s", exc)
        return Unavailable(reason=UnavailableReason.UPSTREAM_FAILED, detail=str(exc))

    # 204 No Content comes back from spotipy as None
    if not data:
        return Unavailable(reason=UnavailableReason.NOTHING_PLAYING)
    if not isinstance(data, dict):
        logger.warning("Unexpected currently-playing payload type: %s", type(data).__name__)
        return Unavailable(reason=UnavailableReason.MALFORMED_PAYLOAD, detail=type(data).__name__)
    if not data.get("item"):
        return Unavailable(reason=UnavailableReason.NOTHING_PLAYING)

    try:
        return normalize_track(data["item"], data.get("is_playing"), data.get("progress_ms"))
    except MALFORMED_ERRORS as exc:
        logger.warning("Unexpected currently-playing payload: %r", exc)
        return Unavailable(reason=UnavailableReason.MALFORMED_PAYLOAD, detail=repr(exc))


def _items(data: Any, label: str) -> list:
    """The ``items`` list of a paging object, or [] for anything else."""
    if not data:
        return []
    if not isinstance(data, dict) or not isinstance(data.get("items") or [], list):
        logger.warning("Unexpected %s payload type: %s", label, type(data).__name__)
        return []
    return data.get("items") or []


def _recent_tracks(sp) -> list[Track]:
    try:
        data = sp.current_user_recently_played(limit=RECENT_TRACKS_LIMIT)
    except UPSTREAM_ERRORS as exc:
        logger.warning("recently-played request failed: %s", exc)
        return []
    tracks: list[Track] = []
    for entry in _items(data, "recently-played"):
        try:
            tracks.append(normalize_track(entry["track"], is_playing=False, detailed=False))
        except MALFORMED_ERRORS:
            logger.debug("Skipping malformed recently-played entry: %r", entry)
    return tracks


def _top_artists(sp) -> list[TopArtist]:
    try:
        data = sp.current_user_top_artists(limit=TOP_ARTISTS_LIMIT, time_range=TOP_ARTISTS_TIME_RANGE)
    except UPSTREAM_ERRORS as exc:
        logger.warning("top-artists request failed: %s", exc)
        return []
    artists: list[TopArtist] = []
    for entry in _items(data, "top-artists"):
        try:
            artists.append(TopArtist(name=entry["name"]))
        except MALFORMED_ERRORS:
            logger.debug("Skipping malformed top-artists entry: %r", entry)
    return artists

def resolve_stats(
    config: SpotifyConfig,
    exchange: TokenExchanger = exchange_refresh_token,
    client_factory: ClientFactory = create_spotify_client,
) -> Stats | Unavailable:
    """Fetch recent tracks and short-term top artists.

    The two reads are independent; either one failing only empties its own field.
    """
    token = _access_token(config, exchange)
    if isinstance(token, Unavailable):
        return token

    sp = client_factory(token)
    return Stats(top_artists=_top_artists(sp), recent_tracks=_recent_tracks(sp))
