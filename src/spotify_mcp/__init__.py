"""Spotify MCP server: personal listening data and playlists for Claude."""

from spotify_mcp.__version__ import __version__

__all__ = ["__version__"]
