"""Middleware configuration."""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from slowapi import Limiter
from slowapi.util import get_remote_address

from spotify_explorer.config import Settings
from spotify_explorer.logging_config import get_logger, log_with_context

logger = get_logger(__name__)

# Shared by the route decorators and app.state so both see the same counters
limiter = Limiter(key_func=get_remote_address, default_limits=["60/minute"])


def get_cors_origins(settings: Settings) -> list[str]:
    return [origin.strip() for origin in settings.cors_origins.split(",") if origin.strip()]


def setup_middleware(app: FastAPI, settings: Settings) -> Limiter:
    """Configure CORS and rate limiting.

    Returns:
        Limiter instance for rate limiting
    """
    origins = get_cors_origins(settings)
    log_with_context(
        logger,
        "info",
        "Configuring CORS middleware",
        origins=origins,
        event_type="security_config",
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=True,
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )

    app.state.limiter = limiter

    return limiter
