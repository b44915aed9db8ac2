"""Tool definitions for the Spotify MCP server.

Each tool declares one pydantic argument model. The model is both the JSON
schema advertised to the client (types, bounds, enums, defaults) and the
validator the dispatcher runs before a handler sees the arguments.
"""

from dataclasses import dataclass
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

TimeRange = Literal["short_term", "medium_term", "long_term"]

TIME_RANGE_DESCRIPTION = (
    "Time range: short_term (4 weeks), medium_term (6 months), long_term (several years)"
)


class ToolArguments(BaseModel):
    """Base for tool argument models. Unknown keys are ignored."""

    model_config = ConfigDict(extra="ignore")


class AuthenticateArguments(ToolArguments):
    pass


class GetUserProfileArguments(ToolArguments):
    pass


class GetTopTracksArguments(ToolArguments):
    time_range: TimeRange = Field(default="medium_term", description=TIME_RANGE_DESCRIPTION)
    limit: int = Field(default=20, ge=1, le=50, description="Number of tracks to return")


class GetTopArtistsArguments(ToolArguments):
    time_range: TimeRange = Field(default="medium_term", description=TIME_RANGE_DESCRIPTION)
    limit: int = Field(default=20, ge=1, le=50, description="Number of artists to return")


class GetRecentlyPlayedArguments(ToolArguments):
    limit: int = Field(default=20, ge=1, le=50, description="Number of tracks to return")


class SearchTracksArguments(ToolArguments):
    query: str = Field(..., min_length=1, description="Search query for tracks")
    limit: int = Field(default=20, ge=1, le=50, description="Number of results to return")


class GetTrackFeaturesArguments(ToolArguments):
    track_ids: list[str] = Field(
        ..., min_length=1, max_length=100, description="Array of Spotify track IDs"
    )


class GetPlaylistsArguments(ToolArguments):
    limit: int = Field(default=20, ge=1, le=50, description="Number of playlists to return")


class GetPlaylistTracksArguments(ToolArguments):
    playlist_id: str = Field(..., min_length=1, description="Spotify playlist ID")
    limit: int = Field(default=50, ge=1, le=100, description="Number of tracks to return")


class CreatePlaylistArguments(ToolArguments):
    name: str = Field(..., min_length=1, description="Playlist name")
    description: str = Field(default="", description="Playlist description")
    public: bool = Field(default=False, description="Whether the playlist should be public")


class AddTracksToPlaylistArguments(ToolArguments):
    playlist_id: str = Field(..., min_length=1, description="Spotify playlist ID")
    track_uris: list[str] = Field(
        ...,
        min_length=1,
        max_length=100,
        description="Array of Spotify track URIs (spotify:track:...)",
    )


class GetRecommendationsArguments(ToolArguments):
    seed_tracks: list[str] | None = Field(default=None, max_length=5, description="Seed track IDs")
    seed_artists: list[str] | None = Field(
        default=None, max_length=5, description="Seed artist IDs"
    )
    seed_genres: list[str] | None = Field(
        default=None, max_length=5, description="Seed genre names"
    )
    target_danceability: float | None = Field(default=None, ge=0, le=1)
    target_energy: float | None = Field(default=None, ge=0, le=1)
    target_valence: float | None = Field(default=None, ge=0, le=1)
    target_tempo: float | None = Field(default=None, ge=0)
    limit: int = Field(
        default=20, ge=1, le=100, description="Number of recommendations to return"
    )

    def to_query(self) -> dict[str, str | int | float]:
        """Build query parameters, omitting absent fields and joining seed lists.

        The limit always comes last, after the supplied seeds and targets.
        """
        query: dict[str, str | int | float] = {}
        for key, value in self.model_dump(exclude_none=True).items():
            if isinstance(value, list):
                query[key] = ",".join(value)
            else:
                query[key] = value
        return query


def _simplify_schema(schema: Any) -> Any:
    """Make a pydantic JSON schema friendlier for tool callers.

    Drops generated titles, collapses ``X | None`` into ``X`` and removes
    ``null`` defaults, so optional parameters read as plain optional fields.
    """
    if isinstance(schema, list):
        return [_simplify_schema(item) for item in schema]
    if not isinstance(schema, dict):
        return schema

    schema = dict(schema)
    if "properties" in schema:
        schema["properties"] = {
            name: _simplify_schema(prop) for name, prop in schema["properties"].items()
        }
        schema.pop("title", None)
        return schema

    schema.pop("title", None)
    variants = schema.pop("anyOf", None)
    if variants is not None:
        non_null = [v for v in variants if v.get("type") != "null"]
        if len(non_null) == 1:
            schema = {**non_null[0], **schema}
        else:
            schema["anyOf"] = non_null
    if "default" in schema and schema["default"] is None:
        del schema["default"]
    return schema


@dataclass(frozen=True)
class ToolDefinition:
    """A named tool with its description and argument model."""

    name: str
    description: str
    arguments: type[ToolArguments]

    @property
    def input_schema(self) -> dict[str, Any]:
        """JSON schema for the tool's arguments."""
        schema = _simplify_schema(self.arguments.model_json_schema())
        schema.setdefault("properties", {})
        schema.setdefault("required", [])
        return schema


TOOL_DEFINITIONS: tuple[ToolDefinition, ...] = (
    ToolDefinition(
        name="authenticate",
        description="Authenticate with Spotify to access your personal data",
        arguments=AuthenticateArguments,
    ),
    ToolDefinition(
        name="get_user_profile",
        description="Get your Spotify user profile information",
        arguments=GetUserProfileArguments,
    ),
    ToolDefinition(
        name="get_top_tracks",
        description="Get your top tracks over different time periods",
        arguments=GetTopTracksArguments,
    ),
    ToolDefinition(
        name="get_top_artists",
        description="Get your top artists over different time periods",
        arguments=GetTopArtistsArguments,
    ),
    ToolDefinition(
        name="get_recently_played",
        description="Get your recently played tracks",
        arguments=GetRecentlyPlayedArguments,
    ),
    ToolDefinition(
        name="search_tracks",
        description="Search for tracks on Spotify",
        arguments=SearchTracksArguments,
    ),
    ToolDefinition(
        name="get_track_features",
        description="Get audio features for tracks (danceability, energy, valence, etc.)",
        arguments=GetTrackFeaturesArguments,
    ),
    ToolDefinition(
        name="get_playlists",
        description="Get your playlists",
        arguments=GetPlaylistsArguments,
    ),
    ToolDefinition(
        name="get_playlist_tracks",
        description="Get tracks from a specific playlist",
        arguments=GetPlaylistTracksArguments,
    ),
    ToolDefinition(
        name="create_playlist",
        description="Create a new playlist",
        arguments=CreatePlaylistArguments,
    ),
    ToolDefinition(
        name="add_tracks_to_playlist",
        description="Add tracks to a playlist",
        arguments=AddTracksToPlaylistArguments,
    ),
    ToolDefinition(
        name="get_recommendations",
        description="Get track recommendations based on seed tracks, artists, or genres",
        arguments=GetRecommendationsArguments,
    ),
)

TOOL_REGISTRY: dict[str, ToolDefinition] = {tool.name: tool for tool in TOOL_DEFINITIONS}
