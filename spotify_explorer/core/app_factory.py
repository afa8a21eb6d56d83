"""Application factory for creating and configuring the FastAPI app."""

from fastapi import FastAPI

from spotify_explorer import __version__
from spotify_explorer.config import Settings, get_settings
from spotify_explorer.core.lifespan import lifespan
from spotify_explorer.core.middleware import setup_middleware
from spotify_explorer.middleware.error_handlers import register_error_handlers
from spotify_explorer.routers import auth_router, health_router, player_router, search_router, view_router


def create_app(settings: Settings | None = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        settings: Settings to run with. Defaults to the environment-loaded singleton.

    Returns:
        Configured FastAPI application instance
    """
    settings = settings or get_settings()

    app = FastAPI(
        title="Spotify API Explorer",
        description="""
        🎵 **Spotify API Explorer** - Search the catalog and control playback

        ## 🔐 Authentication
        1. Visit `/auth/login` in your browser
        2. Log in with your Spotify account and approve access
        3. You'll be redirected back to `/auth/callback` and the session is stored

        ## 📊 Health & Monitoring
        - `/health` - Basic health check
        - `/health/ready` - Readiness probe (session and player state)

        ## ⚡ Rate Limits
        - Most endpoints: 60 requests/minute per IP
        - Search and play: 30 requests/minute per IP
        """,
        version=__version__,
        lifespan=lifespan,
    )
    app.state.settings = settings

    setup_middleware(app, settings)
    register_error_handlers(app)

    # Page state and OAuth redirects - no prefix
    app.include_router(view_router.router, tags=["views"])
    app.include_router(auth_router.router, prefix="/auth", tags=["auth"])

    app.include_router(health_router.router, tags=["health"])

    app.include_router(search_router.router, prefix="/api", tags=["catalog"])
    app.include_router(player_router.router, prefix="/api/player", tags=["player"])

    return app
