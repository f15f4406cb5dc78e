from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from portfolio_spotify.api import router as api_router
from portfolio_spotify.auth import router as auth_router
from portfolio_spotify.config import allowed_origins


def create_app() -> FastAPI:
    app = FastAPI(title="portfolio-spotify API", version="0.1.0")

    # Allow the portfolio frontend (or anyone, in development) to call the API
    app.add_middleware(
        CORSMiddleware,
        allow_origins=allowed_origins(),
        allow_credentials=True,
        allow_methods=["GET"],
        allow_headers=["*"],
    )

    app.include_router(auth_router)
    app.include_router(api_router)
    return app


app = create_app()
