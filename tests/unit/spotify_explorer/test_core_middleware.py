"""Unit tests for middleware setup."""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from spotify_explorer.core.middleware import get_cors_origins, limiter, setup_middleware


def test_cors_origins_are_split_and_trimmed(mock_settings):
    settings = mock_settings.model_copy(update={"cors_origins": "http://a.test, http://b.test ,"})

    assert get_cors_origins(settings) == ["http://a.test", "http://b.test"]


def test_setup_middleware_installs_cors_and_shared_limiter(mock_settings):
    app = FastAPI()

    returned = setup_middleware(app, mock_settings)

    assert returned is limiter
    assert app.state.limiter is limiter
    assert [m.cls for m in app.user_middleware] == [CORSMiddleware]
