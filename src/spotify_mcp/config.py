"""Configuration for the Spotify MCP server.

Environment Variables:
    SPOTIFY_CLIENT_ID: Spotify application client ID (required)
    SPOTIFY_CLIENT_SECRET: Spotify application client secret (required)
    SPOTIFY_TOKEN_FILE: Token file path (default: ./.spotify-mcp/spotify_tokens.json)
    SPOTIFY_CALLBACK_HOST: Interface the OAuth callback listener binds (default: localhost)
"""

import os
from pathlib import Path

from pydantic import BaseModel, Field

from spotify_mcp.exceptions import ConfigMissingError

# Spotify endpoints
SPOTIFY_AUTHORIZE_URL = "https://accounts.spotify.com/authorize"
SPOTIFY_TOKEN_URL = "https://accounts.spotify.com/api/token"  # nosec B105 - public endpoint
SPOTIFY_API_BASE = "https://api.spotify.com/v1"

# OAuth callback defaults
DEFAULT_CALLBACK_HOST = "localhost"
CALLBACK_PORT = 8888
CALLBACK_PATH = "/callback"
REDIRECT_URI = f"http://localhost:{CALLBACK_PORT}{CALLBACK_PATH}"

# Seconds to wait for the browser consent step
AUTHORIZATION_TIMEOUT = 300

# Read/modify access to profile, library, playback state, playlists and follows
SPOTIFY_SCOPES = [
    "user-read-private",
    "user-read-email",
    "user-read-playback-state",
    "user-modify-playback-state",
    "user-read-currently-playing",
    "user-library-read",
    "user-library-modify",
    "user-read-playback-position",
    "user-top-read",
    "user-read-recently-played",
    "playlist-read-private",
    "playlist-read-collaborative",
    "playlist-modify-private",
    "playlist-modify-public",
    "user-follow-read",
    "user-follow-modify",
]

# Project-level credentials directory, like the .env holding the client secrets
CREDENTIALS_DIR = Path.cwd() / ".spotify-mcp"
TOKEN_FILE = CREDENTIALS_DIR / "spotify_tokens.json"


def get_token_path() -> Path:
    """Get the token storage path, honouring SPOTIFY_TOKEN_FILE.

    Returns:
        Path to the token JSON file.
    """
    override = os.environ.get("SPOTIFY_TOKEN_FILE")
    if override:
        return Path(override).expanduser()
    return TOKEN_FILE


class SpotifyConfig(BaseModel):
    """Client credentials and local settings for one Spotify account."""

    client_id: str = Field(..., min_length=1, description="Spotify client ID")
    client_secret: str = Field(..., min_length=1, description="Spotify client secret")
    token_path: Path = Field(default_factory=get_token_path, description="Token file path")
    callback_host: str = Field(
        default=DEFAULT_CALLBACK_HOST, description="Interface for the callback listener"
    )
    redirect_uri: str = Field(default=REDIRECT_URI, description="OAuth redirect URI")

    model_config = {"frozen": True}


def load_config() -> SpotifyConfig:
    """Build the configuration from the process environment.

    Returns:
        SpotifyConfig populated from environment variables.

    Raises:
        ConfigMissingError: If the client ID or secret is not set.
    """
    client_id = os.environ.get("SPOTIFY_CLIENT_ID", "")
    client_secret = os.environ.get("SPOTIFY_CLIENT_SECRET", "")

    missing = [
        name
        for name, value in (
            ("SPOTIFY_CLIENT_ID", client_id),
            ("SPOTIFY_CLIENT_SECRET", client_secret),
        )
        if not value
    ]
    if missing:
        raise ConfigMissingError(missing)

    return SpotifyConfig(
        client_id=client_id,
        client_secret=client_secret,
        token_path=get_token_path(),
        callback_host=os.environ.get("SPOTIFY_CALLBACK_HOST", DEFAULT_CALLBACK_HOST),
    )
