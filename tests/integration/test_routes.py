"""Integration tests for the HTTP routes, with Spotify mocked at the HTTP client."""

from unittest.mock import patch
from urllib.parse import parse_qs, urlparse

import pytest
from fastapi.testclient import TestClient

from spotify_explorer.core.app_factory import create_app
from spotify_explorer.models import TokenGrant

API_BASE = "https://api.spotify.com/v1"


@pytest.fixture
def app(mock_settings):
    return create_app(mock_settings)


@pytest.fixture
def client(app, mock_http_client):
    """Test client whose lifespan builds everything around the mocked HTTP client."""
    mock_http_client.is_closed = False
    with patch("spotify_explorer.core.lifespan.create_http_client", return_value=mock_http_client):
        with TestClient(app) as test_client:
            yield test_client


@pytest.fixture
def authenticated(app, client):
    app.state.session_manager.establish(TokenGrant(access_token="tok", expires_in_seconds=3600))
    return client


class TestHealth:
    def test_health(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "ok"

    def test_readiness(self, client):
        response = client.get("/health/ready")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["checks"] == {"http_client": "ok", "session": "not_authenticated", "playback": "uninitialized"}


class TestPageAndAuth:
    def test_page_load_anonymous(self, client):
        response = client.get("/")

        assert response.status_code == 200
        data = response.json()
        assert data["authenticated"] is False
        assert data["controller"]["state"] == "uninitialized"
        assert data["login_url"] == "/auth/login"

    def test_login_redirects_to_provider(self, client, mock_settings):
        response = client.get("/auth/login", follow_redirects=False)

        assert response.status_code == 307
        location = urlparse(response.headers["location"])
        params = parse_qs(location.query)
        assert f"{location.scheme}://{location.netloc}{location.path}" == mock_settings.spotify_auth_url
        assert params["code_challenge_method"] == ["S256"]
        assert params["client_id"] == ["test-client-id"]

    def test_callback_denied(self, client):
        response = client.get("/auth/callback", params={"error": "access_denied"})

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "AUTHORIZATION_DENIED"

    def test_callback_state_mismatch(self, client, mock_http_client):
        client.get("/auth/login", follow_redirects=False)

        response = client.get("/auth/callback", params={"code": "abc123", "state": "wrong"})

        assert response.status_code == 400
        assert response.json()["error"]["details"] == {}
        mock_http_client.post.assert_not_called()

    def test_callback_without_params_reports_session(self, client):
        response = client.get("/auth/callback")

        assert response.status_code == 200
        assert response.json()["authenticated"] is False

    def test_full_login_search_logout(self, client, mock_http_client, make_response, mock_settings):
        login = client.get("/auth/login", follow_redirects=False)
        state = parse_qs(urlparse(login.headers["location"]).query)["state"][0]
        mock_http_client.post.return_value = make_response(
            200,
            json={"access_token": "tok", "token_type": "Bearer", "expires_in": 3600},
            method="POST",
            url=mock_settings.spotify_token_url,
        )

        callback = client.get("/auth/callback", params={"code": "abc123", "state": state})

        assert callback.status_code == 200
        assert callback.json()["authenticated"] is True
        assert callback.json()["message"] == "Successfully connected to Spotify!"
        assert client.get("/auth/status").json()["authenticated"] is True

        mock_http_client.request.return_value = make_response(
            200,
            json={"artists": {"items": [{"name": "Daft Punk", "genres": ["french house"]}]}},
        )
        search = client.get("/api/search", params={"q": "daft punk", "type": "artist"})

        assert search.status_code == 200
        assert search.json()["items"][0]["name"] == "Daft Punk"
        call = mock_http_client.request.call_args
        assert call.args[1] == f"{API_BASE}/search?q=daft+punk&type=artist&limit=20"
        assert call.kwargs["headers"]["Authorization"] == "Bearer tok"

        assert client.post("/auth/logout").status_code == 200
        assert client.post("/auth/logout").status_code == 200
        assert client.get("/auth/status").json()["authenticated"] is False


class TestCatalog:
    def test_search_rejects_short_query_before_auth(self, client, mock_http_client):
        response = client.get("/api/search", params={"q": "a", "type": "track"})

        assert response.status_code == 422
        assert response.json()["error"]["code"] == "VALIDATION_ERROR"
        mock_http_client.request.assert_not_called()

    def test_search_requires_session(self, client):
        response = client.get("/api/search", params={"q": "ab", "type": "track"})

        assert response.status_code == 401
        assert response.json()["error"]["code"] == "NOT_AUTHENTICATED"

    def test_search_401_forces_logout(self, authenticated, mock_http_client, make_response):
        mock_http_client.request.return_value = make_response(401)

        response = authenticated.get("/api/search", params={"q": "ab", "type": "track"})

        assert response.status_code == 401
        assert response.json()["error"]["code"] == "UNAUTHORIZED"
        assert authenticated.get("/auth/status").json()["authenticated"] is False

    def test_profile_failure_is_swallowed(self, client):
        response = client.get("/api/me")

        assert response.status_code == 200
        assert response.json() == {"profile": None, "playlists": []}

    def test_artist_details(self, authenticated, mock_http_client, make_response):
        mock_http_client.request.return_value = make_response(200, json={"name": "Daft Punk", "followers": {"total": 5}})

        response = authenticated.get("/api/artists/4tZwfgrHOc3mvqYlEYSvVi")

        assert response.status_code == 200
        assert response.json()["followers"] == 5

    def test_track_not_found(self, authenticated, mock_http_client, make_response):
        mock_http_client.request.return_value = make_response(404)

        response = authenticated.get("/api/tracks/missing")

        assert response.status_code == 404
        assert response.json()["error"]["details"]["upstream_status"] == 404


class TestPlayer:
    def test_player_status(self, client):
        response = client.get("/api/player")

        assert response.status_code == 200
        assert response.json()["state"] == "uninitialized"
        assert response.json()["player"] is None

    def test_devices(self, authenticated, mock_http_client, make_response, mock_spotify_devices_response):
        mock_http_client.request.return_value = make_response(200, json=mock_spotify_devices_response)

        response = authenticated.get("/api/player/devices")

        assert [d["id"] for d in response.json()] == ["phone-id", "desktop-id"]

    def test_play_rejects_non_track_uri(self, authenticated):
        response = authenticated.post("/api/player/play", json={"track_uri": "spotify:album:abc"})

        assert response.status_code == 422

    def test_play_resolves_device_and_plays(
        self, authenticated, mock_http_client, make_response, mock_spotify_devices_response
    ):
        mock_http_client.request.side_effect = [
            make_response(200, json=mock_spotify_devices_response),
            make_response(204, method="PUT"),
        ]

        response = authenticated.post("/api/player/play", json={"track_uri": "spotify:track:abc"})

        assert response.status_code == 200
        assert response.json() == {"status": "playing", "sent": True}
        play_call = mock_http_client.request.call_args
        assert play_call.kwargs["json"] == {"device_id": "desktop-id", "uris": ["spotify:track:abc"]}

    def test_play_without_devices_is_conflict(self, authenticated, mock_http_client, make_response):
        mock_http_client.request.return_value = make_response(200, json={"devices": []})

        response = authenticated.post("/api/player/play", json={"track_uri": "spotify:track:abc"})

        assert response.status_code == 409
        assert response.json()["error"]["code"] == "NO_DEVICE_AVAILABLE"

    def test_player_status_reports_device_message(self, authenticated, mock_http_client, make_response):
        mock_http_client.request.return_value = make_response(200, json={"devices": []})
        authenticated.post("/api/player/play", json={"track_uri": "spotify:track:abc"})

        response = authenticated.get("/api/player")

        assert response.status_code == 200
        assert response.json()["message"].startswith("No active Spotify devices found. Open Spotify")

    def test_player_status_reports_device_source(
        self, authenticated, mock_http_client, make_response, mock_spotify_devices_response
    ):
        mock_http_client.request.side_effect = [
            make_response(200, json=mock_spotify_devices_response),
            make_response(204, method="PUT"),
        ]
        authenticated.post("/api/player/play", json={"track_uri": "spotify:track:abc"})

        data = authenticated.get("/api/player").json()

        assert data["device_id"] == "desktop-id"
        assert data["device_source"] == "on_demand"
        assert data["message"] is None

    def test_play_device_lost_keeps_session(
        self, authenticated, mock_http_client, make_response, mock_spotify_devices_response
    ):
        mock_http_client.request.side_effect = [
            make_response(200, json=mock_spotify_devices_response),
            make_response(404, method="PUT"),
        ]

        response = authenticated.post("/api/player/play", json={"track_uri": "spotify:track:abc"})

        assert response.status_code == 409
        assert response.json()["error"]["code"] == "DEVICE_LOST"
        assert authenticated.get("/auth/status").json()["authenticated"] is True

    def test_transport_without_player(self, client):
        response = client.post("/api/player/toggle")

        assert response.status_code == 200
        assert response.json() == {"status": "player_not_initialized", "sent": False}
