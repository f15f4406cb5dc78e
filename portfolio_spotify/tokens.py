from __future__ import annotations

import requests
from pydantic import ValidationError

from portfolio_spotify.config import SpotifyConfig
from portfolio_spotify.logger import default_logger
from portfolio_spotify.models import TokenInfo, Unavailable, UnavailableReason


TOKEN_URL = "https://accounts.spotify.com/api/token"
TOKEN_TIMEOUT_SECONDS = 10

logger = default_logger(__name__)


class TokenExchangeError(Exception):
    """The token endpoint rejected a grant or could not be reached."""

    def __init__(self, text: str, status_code: int | None = None):
        super().__init__(text)
        self.text = text
        self.status_code = status_code


def _post_grant(config: SpotifyConfig, data: dict) -> dict:
    try:
        resp = requests.post(
            TOKEN_URL,
            data=data,
            auth=(config.client_id, config.client_secret),
            timeout=TOKEN_TIMEOUT_SECONDS,
        )
    except requests.RequestException as exc:
        raise TokenExchangeError(str(exc)) from exc
    if not resp.ok:
        raise TokenExchangeError(resp.text, resp.status_code)
    try:
        payload = resp.json()
    except ValueError as exc:
        raise TokenExchangeError(f"Invalid token response: {resp.text}", resp.status_code) from exc
    if not isinstance(payload, dict):
        raise TokenExchangeError(f"Invalid token response: {resp.text}", resp.status_code)
    return payload


def exchange_refresh_token(config: SpotifyConfig) -> str | Unavailable:
    """Trade the stored refresh token for a fresh access token.

    Called once per inbound request; the access token is never cached.
    """
    if not config.is_complete:
        return Unavailable(reason=UnavailableReason.MISSING_CONFIG)
    try:
        payload = _post_grant(
            config,
            {"grant_type": "refresh_token", "refresh_token": config.refresh_token},
        )
    except TokenExchangeError as exc:
        logger.warning("Spotify token error (status %s): %s", exc.status_code, exc.text)
        return Unavailable(reason=UnavailableReason.AUTH_FAILED, detail=exc.text)
    access_token = payload.get("access_token")
    if not access_token:
        logger.warning("Spotify token response had no access_token")
        return Unavailable(reason=UnavailableReason.AUTH_FAILED, detail="No access token returned from Spotify")
    return access_token


def exchange_authorization_code(config: SpotifyConfig, code: str, redirect_uri: str) -> TokenInfo:
    """Exchange an authorization code from the consent screen for tokens.

    ``redirect_uri`` must be the exact value sent to the authorize endpoint.
    """
    payload = _post_grant(
        config,
        {"grant_type": "authorization_code", "code": code, "redirect_uri": redirect_uri},
    )
    try:
        return TokenInfo.model_validate(payload)
    except ValidationError as exc:
        raise TokenExchangeError("No access token returned from Spotify") from exc
