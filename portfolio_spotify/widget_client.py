from __future__ import annotations

import os
from typing import Optional

import requests

from portfolio_spotify.models import Stats, Track


DEFAULT_API_BASE = "http://127.0.0.1:8000"
REQUEST_TIMEOUT_SECONDS = 10


def api_base() -> str:
    return os.getenv("API_BASE", DEFAULT_API_BASE).rstrip("/")


def _get_json(base: str, path: str):
    resp = requests.get(f"{base}/api/spotify/{path}", timeout=REQUEST_TIMEOUT_SECONDS)
    if not resp.ok:
        return None
    return resp.json()


def fetch_now_playing(base: str) -> Optional[Track]:
    """Currently playing track from the API, or None when there is nothing to show.

    Network errors are left to the caller.
    """
    data = _get_json(base, "now-playing")
    return Track.model_validate(data) if data else None


def fetch_stats(base: str) -> Optional[Stats]:
    data = _get_json(base, "stats")
    return Stats.model_validate(data) if data else None
