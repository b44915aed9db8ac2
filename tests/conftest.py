"""Shared pytest fixtures for spotify-mcp tests.

This module provides reusable fixtures for token records, token storage,
and a scriptable fake of the Spotify accounts and Web API hosts served
through httpx.MockTransport.
"""

import socket
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any

import httpx
import pytest

from spotify_mcp.auth.models import TokenRecord
from spotify_mcp.auth.token_manager import TokenManager
from spotify_mcp.auth.token_storage import TokenStorage
from spotify_mcp.config import SpotifyConfig
from spotify_mcp.server.api_client import SpotifyApiClient

TOKEN_PATH = "/api/token"

# =============================================================================
# Token Fixtures
# =============================================================================


@pytest.fixture
def valid_record() -> TokenRecord:
    """Create a valid, non-expired token record."""
    return TokenRecord(
        access_token="test_access_token_abc123",
        refresh_token="test_refresh_token_xyz789",
        expires_at=datetime.now(timezone.utc) + timedelta(hours=1),
    )


@pytest.fixture
def expired_record() -> TokenRecord:
    """Create an expired token record."""
    return TokenRecord(
        access_token="expired_access_token",
        refresh_token="test_refresh_token",
        expires_at=datetime.now(timezone.utc) - timedelta(hours=1),
    )


# =============================================================================
# Configuration and Storage Fixtures
# =============================================================================


@pytest.fixture
def temp_token_path(tmp_path: Path) -> Path:
    """Get the path for a temporary token file."""
    return tmp_path / ".spotify-mcp" / "spotify_tokens.json"


@pytest.fixture
def spotify_config(temp_token_path: Path) -> SpotifyConfig:
    """Create a configuration with test credentials and temporary storage."""
    return SpotifyConfig(
        client_id="test_client_id",
        client_secret="test_client_secret",  # pragma: allowlist secret
        token_path=temp_token_path,
        callback_host="127.0.0.1",
    )


@pytest.fixture
def token_storage(temp_token_path: Path) -> TokenStorage:
    """Create a TokenStorage instance with temporary storage."""
    return TokenStorage(token_path=temp_token_path)


# =============================================================================
# Fake Spotify
# =============================================================================


class FakeSpotify:
    """Scriptable stand-in for accounts.spotify.com and api.spotify.com.

    Responses are queued per (method, path). The last queued response for a
    route is reused once the queue is down to one entry. Unrouted requests
    get a Spotify-style 404.
    """

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self._routes: dict[tuple[str, str], list[tuple[int, Any]]] = {}

    def add(self, method: str, path: str, status: int = 200, body: Any = None) -> None:
        """Queue a response for a route."""
        self._routes.setdefault((method, path), []).append((status, body))

    def add_token_response(
        self,
        access_token: str = "new_access_token",
        expires_in: int = 3600,
        refresh_token: str | None = None,
    ) -> None:
        """Queue a successful token endpoint response."""
        body: dict[str, Any] = {
            "access_token": access_token,
            "token_type": "Bearer",
            "expires_in": expires_in,
            "scope": "user-top-read",
        }
        if refresh_token is not None:
            body["refresh_token"] = refresh_token
        self.add("POST", TOKEN_PATH, 200, body)

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        queue = self._routes.get((request.method, request.url.path))
        if not queue:
            return httpx.Response(
                404, json={"error": {"status": 404, "message": "Service not found"}}
            )
        status, body = queue.pop(0) if len(queue) > 1 else queue[0]
        if body is None:
            return httpx.Response(status)
        return httpx.Response(status, json=body)

    def requests_to(self, path: str) -> list[httpx.Request]:
        """Requests received for a path, in order."""
        return [r for r in self.requests if r.url.path == path]

    @property
    def token_requests(self) -> list[httpx.Request]:
        return self.requests_to(TOKEN_PATH)

    @property
    def api_requests(self) -> list[httpx.Request]:
        return [r for r in self.requests if r.url.host == "api.spotify.com"]


@pytest.fixture
def fake_spotify() -> FakeSpotify:
    """Create an empty fake Spotify."""
    return FakeSpotify()


@pytest.fixture
def http_client(fake_spotify: FakeSpotify) -> httpx.AsyncClient:
    """Create an AsyncClient routed to the fake Spotify."""
    return httpx.AsyncClient(transport=httpx.MockTransport(fake_spotify.handler))


# =============================================================================
# Token Manager and API Client Fixtures
# =============================================================================


@pytest.fixture
def token_manager(
    spotify_config: SpotifyConfig,
    token_storage: TokenStorage,
    http_client: httpx.AsyncClient,
    valid_record: TokenRecord,
) -> TokenManager:
    """Create a TokenManager that starts with a valid stored record."""
    token_storage.save(valid_record)
    return TokenManager(spotify_config, token_storage, http_client)


@pytest.fixture
def api_client(token_manager: TokenManager, http_client: httpx.AsyncClient) -> SpotifyApiClient:
    """Create a SpotifyApiClient backed by the fake Spotify."""
    return SpotifyApiClient(token_manager, http_client)


# =============================================================================
# Network Helpers
# =============================================================================


@pytest.fixture
def free_port() -> int:
    """Find a free local TCP port for a callback listener."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        sock.bind(("127.0.0.1", 0))
        return sock.getsockname()[1]
