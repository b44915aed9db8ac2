"""Authenticated HTTP client for the Spotify Web API."""

import logging
from typing import Any

import httpx

from spotify_mcp.auth.token_manager import TokenManager
from spotify_mcp.config import SPOTIFY_API_BASE
from spotify_mcp.exceptions import ApiError

logger = logging.getLogger(__name__)


def _error_message(response: httpx.Response) -> str:
    """Extract Spotify's error message from a failed response."""
    try:
        body = response.json()
    except ValueError:
        body = None

    if isinstance(body, dict):
        error = body.get("error")
        if isinstance(error, dict) and error.get("message"):
            return str(error["message"])
        if isinstance(error, str):
            return body.get("error_description") or error

    return response.text or response.reason_phrase


class SpotifyApiClient:
    """Bearer-token client for https://api.spotify.com/v1.

    A 401 is taken to mean the token went stale before its recorded expiry:
    the client refreshes once and retries once. Nothing else is retried.

    Attributes:
        token_manager: Source of valid access tokens.
        base_url: Web API base URL.
    """

    def __init__(
        self,
        token_manager: TokenManager,
        http_client: httpx.AsyncClient,
        base_url: str = SPOTIFY_API_BASE,
    ) -> None:
        self.token_manager = token_manager
        self._http_client = http_client
        self.base_url = base_url

    async def _send(
        self,
        access_token: str,
        method: str,
        url: str,
        params: dict[str, Any] | None,
        json_data: dict[str, Any] | None,
    ) -> httpx.Response:
        return await self._http_client.request(
            method=method,
            url=url,
            params=params,
            json=json_data,
            headers={
                "Authorization": f"Bearer {access_token}",
                "Content-Type": "application/json",
                "Accept": "application/json",
            },
        )

    async def request(
        self,
        endpoint: str,
        method: str = "GET",
        params: dict[str, Any] | None = None,
        json_data: dict[str, Any] | None = None,
    ) -> Any:
        """Make an authenticated request to the Spotify Web API.

        Args:
            endpoint: Path below the API base, e.g. "/me/top/tracks".
            method: HTTP method (GET, POST, etc.).
            params: Optional query parameters. None values are dropped.
            json_data: Optional JSON body.

        Returns:
            Parsed JSON response, or an empty dict for an empty body.

        Raises:
            AuthRequiredError: If no token has been obtained.
            RefreshFailedError: If a needed refresh fails.
            ApiError: If Spotify answers with a non-2xx status.
        """
        url = f"{self.base_url}{endpoint}"
        if params is not None:
            params = {key: value for key, value in params.items() if value is not None}

        access_token = await self.token_manager.ensure_valid()
        response = await self._send(access_token, method, url, params, json_data)

        if response.status_code == 401:
            logger.info(f"Spotify rejected the access token for {endpoint}, refreshing and retrying")
            record = await self.token_manager.refresh()
            response = await self._send(record.access_token, method, url, params, json_data)

        if response.is_error:
            message = _error_message(response)
            if response.status_code == 401:
                message += ". Spotify still rejects the refreshed token; run the authenticate tool again."
            raise ApiError(response.status_code, message)

        if not response.content:
            return {}
        return response.json()
