"""Exception hierarchy for spotify-mcp.

Every failure a tool handler can raise derives from SpotifyMCPError so the
dispatcher can turn it into a readable tool result. ConfigMissingError is the
only one that is fatal, and it is raised before the server starts serving.
"""


class SpotifyMCPError(Exception):
    """Base class for all spotify-mcp errors."""


class ConfigMissingError(SpotifyMCPError):
    """Required Spotify client credentials are not set in the environment."""

    def __init__(self, missing: list[str]) -> None:
        self.missing = missing
        super().__init__(
            f"Missing required environment variable(s): {', '.join(missing)}. "
            "Set SPOTIFY_CLIENT_ID and SPOTIFY_CLIENT_SECRET before starting the server."
        )


class AuthRequiredError(SpotifyMCPError):
    """No token has been obtained yet."""

    def __init__(self, message: str | None = None) -> None:
        super().__init__(
            message
            or "No access token. Please authenticate first using the authenticate tool."
        )


class RefreshFailedError(SpotifyMCPError):
    """The refresh token is missing or was rejected by the token endpoint."""


class AuthorizationError(SpotifyMCPError):
    """The interactive authorization flow failed."""


class AuthorizationDeniedError(AuthorizationError):
    """The user or Spotify rejected the consent request."""


class AuthorizationTimeoutError(AuthorizationError):
    """No callback arrived before the authorization flow timed out."""


class ApiError(SpotifyMCPError):
    """Non-2xx response from the Spotify Web API.

    Attributes:
        status: HTTP status code returned by Spotify.
        message: Error message extracted from the response body.
    """

    def __init__(self, status: int, message: str) -> None:
        self.status = status
        self.message = message
        super().__init__(f"Spotify API error {status}: {message}")


class UnknownToolError(SpotifyMCPError):
    """The invoked tool is not in the registry."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Unknown tool: {name}")
