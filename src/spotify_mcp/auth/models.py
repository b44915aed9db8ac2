"""Token models for Spotify OAuth credentials."""

from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field, field_validator


class TokenStatus(str, Enum):
    """State of the persisted token file."""

    VALID = "valid"
    EXPIRED = "expired"
    MISSING = "missing"
    INVALID = "invalid"


class TokenRecord(BaseModel):
    """The access token, refresh token and absolute expiry held for the user.

    Attributes:
        access_token: Short-lived bearer credential for the Web API.
        refresh_token: Long-lived credential used to mint new access tokens.
        expires_at: Instant (UTC) at which the access token stops being valid.
    """

    access_token: str = Field(..., min_length=1)
    refresh_token: str = Field(..., min_length=1)
    expires_at: datetime

    @field_validator("expires_at")
    @classmethod
    def _ensure_timezone(cls, value: datetime) -> datetime:
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value

    def is_expired(self, buffer_seconds: int = 0) -> bool:
        """Check whether the access token has expired.

        Args:
            buffer_seconds: Treat the token as expired this many seconds early.

        Returns:
            True if the current time is at or past the (buffered) expiry.
        """
        now = datetime.now(timezone.utc)
        return now >= self.expires_at - timedelta(seconds=buffer_seconds)

    @classmethod
    def from_token_response(
        cls,
        payload: dict[str, Any],
        previous_refresh_token: str | None = None,
    ) -> "TokenRecord":
        """Build a record from a Spotify token endpoint response.

        The expiry is computed from the server-reported lifetime rather than
        copied. Spotify omits the refresh token on most refreshes, in which
        case the previous one stays in use.

        Args:
            payload: Parsed JSON body from the token endpoint.
            previous_refresh_token: Refresh token to keep if none is returned.

        Returns:
            New TokenRecord.

        Raises:
            ValueError: If the payload lacks an access token, an expiry or any
                refresh token.
        """
        refresh_token = payload.get("refresh_token") or previous_refresh_token
        if "expires_in" not in payload:
            raise ValueError("Token response is missing expires_in")
        return cls(
            access_token=payload.get("access_token", ""),
            refresh_token=refresh_token or "",
            expires_at=datetime.now(timezone.utc) + timedelta(seconds=int(payload["expires_in"])),
        )
