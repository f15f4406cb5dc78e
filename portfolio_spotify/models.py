from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    def to_json(self) -> dict:
        return self.model_dump(by_alias=True, exclude_none=True)


class Track(_CamelModel):
    id: str | None = Field(None, description="Spotify track id, used to detect song changes")
    name: str
    artist: str = Field(..., description="Artist names joined by ', '")
    album: str
    album_art: str = ""
    url: str = ""
    is_playing: bool = False
    progress_ms: int | None = None
    duration_ms: int | None = None
    release_date: str | None = None


class TopArtist(_CamelModel):
    name: str


class Stats(_CamelModel):
    top_artists: list[TopArtist] = Field(default_factory=list)
    recent_tracks: list[Track] = Field(default_factory=list)


class UnavailableReason(str, Enum):
    MISSING_CONFIG = "missing_config"
    AUTH_FAILED = "auth_failed"
    NOTHING_PLAYING = "nothing_playing"
    UPSTREAM_FAILED = "upstream_failed"
    MALFORMED_PAYLOAD = "malformed_payload"


class Unavailable(BaseModel):
    """Why a resolver produced no data. Rendered as JSON ``null`` over HTTP."""

    model_config = ConfigDict(frozen=True)

    reason: UnavailableReason
    detail: str | None = None


class TokenInfo(BaseModel):
    access_token: str = Field(..., description="Spotify access token")
    refresh_token: str | None = Field(None, description="Spotify refresh token")
    expires_in: int | None = Field(None, description="Seconds until the access token expires")
    scope: str | None = None
    token_type: str | None = None
