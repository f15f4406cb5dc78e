from __future__ import annotations

from typing import Any, Callable

import spotipy

from portfolio_spotify.models import Track


ClientFactory = Callable[[str], spotipy.Spotify]


def create_spotify_client(access_token: str) -> spotipy.Spotify:
    """Create a Spotipy client using a raw access token.

    Retries are disabled: every inbound request gets exactly one attempt
    at each upstream call.
    """
    return spotipy.Spotify(auth=access_token, retries=0, status_retries=0)


def normalize_track(item: dict[str, Any], is_playing: bool, progress_ms: int | None = None, detailed: bool = True) -> Track:
    """Turn a Spotify track object into a ``Track``.

    Raises KeyError/TypeError when the item is missing required fields.
    ``detailed`` adds id, progress, duration and release date.
    """
    album = item["album"]
    images = album.get("images") or []
    fields: dict[str, Any] = {
        "name": item["name"],
        "artist": ", ".join(a["name"] for a in item["artists"]),
        "album": album["name"],
        "album_art": images[0].get("url", "") if images else "",
        "url": (item.get("external_urls") or {}).get("spotify", ""),
        "is_playing": bool(is_playing),
    }
    if detailed:
        fields.update(
            id=item.get("id"),
            progress_ms=progress_ms or 0,
            duration_ms=item.get("duration_ms") or 0,
            release_date=album.get("release_date") or "",
        )
    return Track(**fields)
