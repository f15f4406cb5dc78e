from __future__ import annotations

import os
from typing import Mapping

from dotenv import find_dotenv, load_dotenv
from pydantic import BaseModel, ConfigDict, Field


# Pick up a .env next to wherever the server is started from
load_dotenv(dotenv_path=find_dotenv(usecwd=True))

CLIENT_ID_ENV = "SPOTIFY_CLIENT_ID"
CLIENT_SECRET_ENV = "SPOTIFY_CLIENT_SECRET"
REFRESH_TOKEN_ENV = "SPOTIFY_REFRESH_TOKEN"


class SpotifyConfig(BaseModel):
    """Spotify credentials for the site owner's account.

    Built once per request from the environment and handed to the resolvers,
    which never look at ``os.environ`` themselves.
    """

    model_config = ConfigDict(frozen=True)

    client_id: str | None = Field(None, description="Spotify app client id")
    client_secret: str | None = Field(None, description="Spotify app client secret")
    refresh_token: str | None = Field(None, description="Long-lived refresh token from the bootstrap flow")

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "SpotifyConfig":
        env = os.environ if environ is None else environ
        return cls(
            client_id=env.get(CLIENT_ID_ENV) or None,
            client_secret=env.get(CLIENT_SECRET_ENV) or None,
            refresh_token=env.get(REFRESH_TOKEN_ENV) or None,
        )

    @property
    def has_client_credentials(self) -> bool:
        return bool(self.client_id and self.client_secret)

    @property
    def is_complete(self) -> bool:
        return self.has_client_credentials and bool(self.refresh_token)


def get_config() -> SpotifyConfig:
    """FastAPI dependency: read the credentials at request time."""
    return SpotifyConfig.from_env()


def allowed_origins() -> list[str]:
    frontend_url = os.getenv("FRONTEND_URL")
    if frontend_url:
        return [frontend_url]
    # Fallback: allow any origin for local development
    return ["*"]
