from __future__ import annotations

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from portfolio_spotify.config import SpotifyConfig, get_config
from portfolio_spotify.logger import default_logger
from portfolio_spotify.models import Unavailable, UnavailableReason
from portfolio_spotify.resolvers import TokenExchanger, resolve_now_playing, resolve_stats
from portfolio_spotify.spotify_client import ClientFactory, create_spotify_client
from portfolio_spotify.tokens import exchange_refresh_token


NOW_PLAYING_CACHE_CONTROL = "public, max-age=5"
STATS_CACHE_CONTROL = "public, max-age=600"

logger = default_logger(__name__)

router = APIRouter(prefix="/api/spotify", tags=["spotify"])


def get_token_exchanger() -> TokenExchanger:
    return exchange_refresh_token


def get_client_factory() -> ClientFactory:
    return create_spotify_client


def _json_or_null(result, cache_control: str, endpoint: str) -> JSONResponse:
    # The widget has its own fallback render, so "no data" is always a 200 null
    if isinstance(result, Unavailable):
        if result.reason is UnavailableReason.NOTHING_PLAYING:
            logger.debug("%s: nothing playing", endpoint)
        else:
            logger.info("%s unavailable: %s", endpoint, result.reason.value)
        return JSONResponse(content=None)
    return JSONResponse(content=result.to_json(), headers={"Cache-Control": cache_control})


@router.get("/now-playing")
def now_playing(
    config: SpotifyConfig = Depends(get_config),
    exchange: TokenExchanger = Depends(get_token_exchanger),
    client_factory: ClientFactory = Depends(get_client_factory),
) -> JSONResponse:
    """Return the currently playing track, or null."""
    result = resolve_now_playing(config, exchange=exchange, client_factory=client_factory)
    return _json_or_null(result, NOW_PLAYING_CACHE_CONTROL, "now-playing")


@router.get("/stats")
def stats(
    config: SpotifyConfig = Depends(get_config),
    exchange: TokenExchanger = Depends(get_token_exchanger),
    client_factory: ClientFactory = Depends(get_client_factory),
) -> JSONResponse:
    """Return top artists and recently played tracks, or null."""
    result = resolve_stats(config, exchange=exchange, client_factory=client_factory)
    return _json_or_null(result, STATS_CACHE_CONTROL, "stats")
