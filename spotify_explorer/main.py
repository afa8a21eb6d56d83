"""Main FastAPI application entry point."""

from pathlib import Path

from dotenv import load_dotenv
from fastapi.responses import Response

from spotify_explorer.config import get_settings
from spotify_explorer.core.app_factory import create_app
from spotify_explorer.logging_config import setup_logging

# Load environment variables from .env file
load_dotenv(Path(__file__).parent.parent / ".env")

# Configure structured logging (JSON to file + console)
settings = get_settings()
setup_logging(settings.log_level, settings.log_dir)

app = create_app(settings)


@app.get("/favicon.ico")
async def favicon():
    """Return empty favicon to prevent 404 errors."""
    return Response(content=b"", media_type="image/x-icon")


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "spotify_explorer.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=True,
    )
