"""Spotify MCP server for Claude Desktop integration.

This MCP server exposes a personal Spotify account to a language model:
listening history (top tracks and artists, recently played), search, audio
features, recommendations, and playlist management.

Tokens are managed by TokenManager and persisted by TokenStorage. Expired
tokens are refreshed silently, and a 401 from the Web API triggers one
refresh-and-retry.
"""

import asyncio
import json
import logging
import sys
from collections.abc import Awaitable, Callable
from typing import Any
from urllib.parse import quote

import httpx
from mcp.server import Server
from mcp.server.stdio import stdio_server
from mcp.types import TextContent, Tool

from spotify_mcp.auth import OAuthManager, TokenManager, TokenStorage
from spotify_mcp.config import SpotifyConfig, load_config
from spotify_mcp.exceptions import ConfigMissingError, UnknownToolError
from spotify_mcp.server.api_client import SpotifyApiClient
from spotify_mcp.server.tools import (
    TOOL_DEFINITIONS,
    TOOL_REGISTRY,
    AddTracksToPlaylistArguments,
    CreatePlaylistArguments,
    GetPlaylistsArguments,
    GetPlaylistTracksArguments,
    GetRecentlyPlayedArguments,
    GetRecommendationsArguments,
    GetTopArtistsArguments,
    GetTopTracksArguments,
    GetTrackFeaturesArguments,
    SearchTracksArguments,
    ToolArguments,
)

# Configure logging (stderr, stdout carries the MCP stream)
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

Handler = Callable[[Any], Awaitable[Any]]


class SpotifyServer:
    """MCP server for the Spotify Web API.

    Provides 12 tools:
    - authenticate: interactive OAuth consent
    - Listening data: profile, top tracks/artists, recently played
    - Catalog: search, audio features, recommendations
    - Playlists: list, read, create, add tracks

    Attributes:
        server: MCP Server instance.
        config: Spotify client configuration.
        storage: TokenStorage persisting the token record.
        tokens: TokenManager owning the in-memory token state.
        oauth: OAuthManager for the interactive consent flow.
        api: SpotifyApiClient for Web API calls.
    """

    def __init__(
        self,
        config: SpotifyConfig | None = None,
        storage: TokenStorage | None = None,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize the Spotify MCP server.

        Args:
            config: Client configuration. Loaded from the environment if omitted.
            storage: Token storage. Defaults to the configured token path.
            http_client: Shared HTTP client. Created with pooling if omitted.

        Raises:
            ConfigMissingError: If no config is given and the environment lacks
                the client credentials.
        """
        self.config = config or load_config()
        self.server = Server("spotify-mcp")
        self.storage = storage or TokenStorage(self.config.token_path)
        self._http_client = http_client or httpx.AsyncClient(
            limits=httpx.Limits(max_connections=100, max_keepalive_connections=20),
            timeout=httpx.Timeout(30.0, connect=10.0),
        )
        self.tokens = TokenManager(self.config, self.storage, self._http_client)
        self.oauth = OAuthManager(self.config, self.tokens, self._http_client)
        self.api = SpotifyApiClient(self.tokens, self._http_client)
        self._handlers: dict[str, Handler] = {
            "authenticate": self._authenticate,
            "get_user_profile": self._get_user_profile,
            "get_top_tracks": self._get_top_tracks,
            "get_top_artists": self._get_top_artists,
            "get_recently_played": self._get_recently_played,
            "search_tracks": self._search_tracks,
            "get_track_features": self._get_track_features,
            "get_playlists": self._get_playlists,
            "get_playlist_tracks": self._get_playlist_tracks,
            "create_playlist": self._create_playlist,
            "add_tracks_to_playlist": self._add_tracks_to_playlist,
            "get_recommendations": self._get_recommendations,
        }
        self._setup_handlers()

    async def close(self) -> None:
        """Close the shared HTTP client and release resources."""
        await self._http_client.aclose()

    def _setup_handlers(self) -> None:
        """Register MCP tool handlers."""

        @self.server.list_tools()
        async def list_tools() -> list[Tool]:
            """Return list of available tools."""
            return self.list_tools()

        # Arguments are validated by the pydantic argument models in call_tool
        @self.server.call_tool(validate_input=False)
        async def call_tool(name: str, arguments: dict[str, Any]) -> list[TextContent]:
            """Handle tool calls."""
            return await self.call_tool(name, arguments)

    def list_tools(self) -> list[Tool]:
        """Build the MCP tool list from the registry."""
        return [
            Tool(name=tool.name, description=tool.description, inputSchema=tool.input_schema)
            for tool in TOOL_DEFINITIONS
        ]

    async def call_tool(self, name: str, arguments: dict[str, Any] | None) -> list[TextContent]:
        """Invoke a tool and wrap the outcome in a text result.

        Failures never escape: they come back as text starting with "Error:".
        """
        try:
            result = await self._dispatch_tool(name, arguments or {})
        except Exception as e:
            logger.exception(f"Error calling tool {name}")
            return [TextContent(type="text", text=f"Error: {e}")]

        text = result if isinstance(result, str) else json.dumps(result, indent=2)
        return [TextContent(type="text", text=text)]

    async def _dispatch_tool(self, name: str, arguments: dict[str, Any]) -> Any:
        """Dispatch tool call to appropriate handler.

        Args:
            name: Tool name.
            arguments: Raw tool arguments.

        Returns:
            Handler result (remote JSON or a message string).

        Raises:
            UnknownToolError: If tool name is not recognized.
            pydantic.ValidationError: If the arguments do not match the schema.
        """
        definition = TOOL_REGISTRY.get(name)
        if definition is None:
            raise UnknownToolError(name)

        validated: ToolArguments = definition.arguments.model_validate(arguments)
        return await self._handlers[name](validated)

    # -------------------------------------------------------------------------
    # Handlers
    # -------------------------------------------------------------------------

    async def _authenticate(self, arguments: ToolArguments) -> str:
        """Run the interactive consent flow."""
        await self.oauth.authenticate()
        return "Successfully authenticated with Spotify! You can now use all Spotify tools."

    async def _get_user_profile(self, arguments: ToolArguments) -> Any:
        return await self.api.request("/me")

    async def _get_top_tracks(self, arguments: GetTopTracksArguments) -> Any:
        return await self.api.request(
            "/me/top/tracks",
            params={"time_range": arguments.time_range, "limit": arguments.limit},
        )

    async def _get_top_artists(self, arguments: GetTopArtistsArguments) -> Any:
        return await self.api.request(
            "/me/top/artists",
            params={"time_range": arguments.time_range, "limit": arguments.limit},
        )

    async def _get_recently_played(self, arguments: GetRecentlyPlayedArguments) -> Any:
        return await self.api.request(
            "/me/player/recently-played", params={"limit": arguments.limit}
        )

    async def _search_tracks(self, arguments: SearchTracksArguments) -> Any:
        return await self.api.request(
            "/search",
            params={"q": arguments.query, "type": "track", "limit": arguments.limit},
        )

    async def _get_track_features(self, arguments: GetTrackFeaturesArguments) -> Any:
        return await self.api.request(
            "/audio-features", params={"ids": ",".join(arguments.track_ids)}
        )

    async def _get_playlists(self, arguments: GetPlaylistsArguments) -> Any:
        return await self.api.request("/me/playlists", params={"limit": arguments.limit})

    async def _get_playlist_tracks(self, arguments: GetPlaylistTracksArguments) -> Any:
        return await self.api.request(
            f"/playlists/{quote(arguments.playlist_id, safe='')}/tracks",
            params={"limit": arguments.limit},
        )

    async def _create_playlist(self, arguments: CreatePlaylistArguments) -> Any:
        """Create a playlist owned by the current user (resolved via /me)."""
        profile = await self.api.request("/me")
        return await self.api.request(
            f"/users/{quote(profile['id'], safe='')}/playlists",
            method="POST",
            json_data={
                "name": arguments.name,
                "description": arguments.description,
                "public": arguments.public,
            },
        )

    async def _add_tracks_to_playlist(self, arguments: AddTracksToPlaylistArguments) -> Any:
        return await self.api.request(
            f"/playlists/{quote(arguments.playlist_id, safe='')}/tracks",
            method="POST",
            json_data={"uris": arguments.track_uris},
        )

    async def _get_recommendations(self, arguments: GetRecommendationsArguments) -> Any:
        return await self.api.request("/recommendations", params=arguments.to_query())

    async def run(self) -> None:
        """Run the MCP server using stdio transport."""
        try:
            async with stdio_server() as (read_stream, write_stream):
                await self.server.run(
                    read_stream,
                    write_stream,
                    self.server.create_initialization_options(),
                )
        finally:
            await self.close()


def main() -> None:
    """Entry point for the Spotify MCP server."""
    try:
        server = SpotifyServer()
    except ConfigMissingError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
    logger.info("Spotify MCP server running on stdio")
    asyncio.run(server.run())


if __name__ == "__main__":
    main()
