"""In-memory owner of the Spotify token record.

The TokenManager loads the persisted record once, hands out valid access
tokens, and refreshes them against the Spotify token endpoint when they
expire or when the API rejects them. Every change is written through to
TokenStorage.
"""

import logging
from typing import Any

import httpx

from spotify_mcp.auth.models import TokenRecord
from spotify_mcp.auth.token_storage import TokenStorage
from spotify_mcp.config import SPOTIFY_TOKEN_URL, SpotifyConfig
from spotify_mcp.exceptions import AuthRequiredError, RefreshFailedError

logger = logging.getLogger(__name__)


class TokenManager:
    """Owns the current TokenRecord and keeps it fresh.

    Concurrent requests that both observe an expired token will both refresh.
    The second refresh only re-saves newer tokens, so no lock is taken.

    Attributes:
        config: Client credentials used for refresh requests.
        storage: Durable mirror of the record.
        record: Current token record, or None before first authentication.
    """

    def __init__(
        self,
        config: SpotifyConfig,
        storage: TokenStorage,
        http_client: httpx.AsyncClient,
    ) -> None:
        """Initialize the manager and load any persisted record.

        Args:
            config: Spotify client configuration.
            storage: Token storage to load from and save to.
            http_client: Shared HTTP client for token endpoint calls.
        """
        self.config = config
        self.storage = storage
        self._http_client = http_client
        self.record: TokenRecord | None = storage.load()

    @property
    def is_authenticated(self) -> bool:
        """Whether a token has ever been obtained."""
        return self.record is not None

    async def ensure_valid(self) -> str:
        """Return a currently valid access token, refreshing if expired.

        Returns:
            Access token string.

        Raises:
            AuthRequiredError: If no token has been obtained yet.
            RefreshFailedError: If the token is expired and refresh fails.
        """
        if self.record is None:
            raise AuthRequiredError()

        if self.record.is_expired():
            logger.info("Access token expired, refreshing...")
            await self.refresh()

        return self.record.access_token

    async def refresh(self) -> TokenRecord:
        """Exchange the refresh token for a new access token.

        Returns:
            The updated TokenRecord.

        Raises:
            RefreshFailedError: If no refresh token is held or Spotify rejects
                the request.
        """
        if self.record is None or not self.record.refresh_token:
            raise RefreshFailedError("No refresh token available. Please re-authenticate.")

        previous_refresh_token = self.record.refresh_token
        try:
            response = await self._http_client.post(
                SPOTIFY_TOKEN_URL,
                data={
                    "grant_type": "refresh_token",
                    "refresh_token": previous_refresh_token,
                    "client_id": self.config.client_id,
                    "client_secret": self.config.client_secret,
                },
                headers={"Content-Type": "application/x-www-form-urlencoded"},
            )
        except httpx.HTTPError as e:
            logger.error(f"Token refresh request failed: {e}")
            raise RefreshFailedError(f"Failed to refresh token: {e}") from e

        if response.is_error:
            logger.error(f"Token refresh rejected with status {response.status_code}")
            raise RefreshFailedError(
                f"Failed to refresh token: status {response.status_code} {response.text}. "
                "Please re-authenticate using the authenticate tool."
            )

        try:
            record = TokenRecord.from_token_response(response.json(), previous_refresh_token)
        except ValueError as e:
            raise RefreshFailedError(f"Failed to refresh token: {e}") from e

        self._set_record(record)
        logger.info("Access token refreshed")
        return record

    def update_from_response(self, payload: dict[str, Any]) -> TokenRecord:
        """Replace the record with tokens from an authorization-code exchange.

        Args:
            payload: Parsed token endpoint response.

        Returns:
            The new TokenRecord.

        Raises:
            ValueError: If the payload is missing required token fields.
        """
        record = TokenRecord.from_token_response(payload)
        self._set_record(record)
        return record

    def _set_record(self, record: TokenRecord) -> None:
        self.record = record
        self.storage.save(record)
