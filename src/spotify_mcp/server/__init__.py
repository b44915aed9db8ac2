"""MCP server implementation for Spotify.

Provides 12 tools over a personal Spotify account:

Authentication (1):
- authenticate: interactive OAuth consent in the browser

Listening data (4):
- User profile
- Top tracks and top artists by time range
- Recently played tracks

Catalog (3):
- Track search
- Audio features for up to 100 tracks
- Recommendations from seed tracks, artists or genres

Playlists (4):
- List playlists and read playlist tracks
- Create playlists and add tracks

Transport: Stdio (for Claude Desktop)
Authentication: OAuth 2.0 authorization code with automatic token refresh
"""

from spotify_mcp.server.spotify_server import SpotifyServer, main


def create_server() -> SpotifyServer:
    """Create and configure a Spotify MCP server.

    Returns:
        SpotifyServer: Configured server instance ready to run.

    Raises:
        ConfigMissingError: If SPOTIFY_CLIENT_ID or SPOTIFY_CLIENT_SECRET is unset.

    Example:
        >>> server = create_server()
        >>> asyncio.run(server.run())
    """
    return SpotifyServer()


__all__ = ["create_server", "SpotifyServer", "main"]
