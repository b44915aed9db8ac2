"""Command-line interface for spotify-mcp."""
