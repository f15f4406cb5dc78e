from __future__ import annotations

from pathlib import Path
from typing import Callable
from urllib.parse import urlencode

from fastapi import APIRouter, Depends, Request
from fastapi.responses import PlainTextResponse, RedirectResponse, Response
from fastapi.templating import Jinja2Templates

from portfolio_spotify.config import CLIENT_ID_ENV, CLIENT_SECRET_ENV, SpotifyConfig, get_config
from portfolio_spotify.logger import default_logger
from portfolio_spotify.models import TokenInfo
from portfolio_spotify.tokens import TokenExchangeError, exchange_authorization_code


AUTHORIZE_URL = "https://accounts.spotify.com/authorize"
CALLBACK_PATH = "/api/spotify/callback"
AUTH_PATH = "/api/spotify/auth"
SCOPES = (
    "user-read-currently-playing",
    "user-read-recently-played",
    "user-top-read",
)

CodeExchanger = Callable[[SpotifyConfig, str, str], TokenInfo]

logger = default_logger(__name__)

templates = Jinja2Templates(directory=str(Path(__file__).parent / "templates"))

router = APIRouter(prefix="/api/spotify", tags=["spotify-auth"])


def get_code_exchanger() -> CodeExchanger:
    return exchange_authorization_code


def callback_redirect_uri(request: Request) -> str:
    """This deployment's callback URL as Spotify must see it.

    Spotify rejects "localhost" in redirect URIs, so it becomes 127.0.0.1.
    """
    netloc = request.url.netloc
    if request.url.hostname == "localhost":
        netloc = netloc.replace("localhost", "127.0.0.1", 1)
    return f"{request.url.scheme}://{netloc}{CALLBACK_PATH}"


def build_authorize_url(client_id: str, redirect_uri: str) -> str:
    query = urlencode(
        {
            "client_id": client_id,
            "response_type": "code",
            "redirect_uri": redirect_uri,
            "scope": " ".join(SCOPES),
            "show_dialog": "false",
        }
    )
    return f"{AUTHORIZE_URL}?{query}"


@router.get("/auth")
def auth(request: Request, config: SpotifyConfig = Depends(get_config)) -> Response:
    """Send the site owner to Spotify's consent screen."""
    if not config.client_id:
        return PlainTextResponse(
            f"{CLIENT_ID_ENV} not found in environment variables. Please add it to your .env file.",
            status_code=500,
        )
    return RedirectResponse(build_authorize_url(config.client_id, callback_redirect_uri(request)), status_code=302)


@router.get("/callback")
def callback(
    request: Request,
    config: SpotifyConfig = Depends(get_config),
    exchange_code: CodeExchanger = Depends(get_code_exchanger),
) -> Response:
    """Handle Spotify's redirect and show the refresh token once.

    The token is only displayed; the operator copies it into the environment.
    """
    params = dict(request.query_params)
    redirect_uri = callback_redirect_uri(request)
    error = params.get("error")
    if error:
        logger.info("Spotify authorization returned error=%s", error)
        return templates.TemplateResponse(
            request,
            "callback_error.html",
            {
                "error": error,
                "error_description": params.get("error_description"),
                "redirect_uri": redirect_uri,
                "auth_path": AUTH_PATH,
            },
            status_code=400,
        )

    code = params.get("code")
    if not code:
        return templates.TemplateResponse(
            request,
            "callback_missing_code.html",
            {
                "request_url": str(request.url),
                "redirect_uri": redirect_uri,
                "params": params,
                "auth_path": AUTH_PATH,
            },
            status_code=400,
        )

    if not config.has_client_credentials:
        return PlainTextResponse(
            f"{CLIENT_ID_ENV} or {CLIENT_SECRET_ENV} not found. Please add them to your .env file.",
            status_code=500,
        )

    try:
        token_info = exchange_code(config, code, redirect_uri)
    except TokenExchangeError as exc:
        logger.warning("Authorization code exchange failed (status %s)", exc.status_code)
        return PlainTextResponse(f"Failed to exchange code for tokens: {exc.text}", status_code=500)

    if not token_info.refresh_token:
        return PlainTextResponse("Spotify did not return a refresh token.", status_code=500)

    return templates.TemplateResponse(
        request,
        "callback_success.html",
        {"refresh_token": token_info.refresh_token, "client_id": config.client_id},
    )
