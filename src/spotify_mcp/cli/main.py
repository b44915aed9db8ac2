"""Command-line interface for spotify-mcp."""

import asyncio
import os
import sys

import click

from spotify_mcp.__version__ import __version__


@click.group()
@click.version_option(version=__version__)
def main() -> None:
    """Spotify MCP Server - Connect Claude to your Spotify account.

    This tool provides 12 tools across:
    - Listening data (profile, top tracks/artists, recently played)
    - Catalog (search, audio features, recommendations)
    - Playlists (list, read, create, add tracks)
    """
    pass


async def _run_setup(config) -> str:
    """Run the OAuth flow with a dedicated HTTP client.

    Returns:
        Path of the stored token file.
    """
    import httpx

    from spotify_mcp.auth import OAuthManager, TokenManager, TokenStorage

    storage = TokenStorage(config.token_path)
    async with httpx.AsyncClient(timeout=httpx.Timeout(30.0, connect=10.0)) as client:
        tokens = TokenManager(config, storage, client)
        manager = OAuthManager(config, tokens, client)
        await manager.authenticate()
    return str(storage.token_path)


@main.command()
@click.option("--client-id", envvar="SPOTIFY_CLIENT_ID", help="Spotify client ID")
@click.option("--client-secret", envvar="SPOTIFY_CLIENT_SECRET", help="Spotify client secret")
def setup(client_id: str | None, client_secret: str | None) -> None:
    """Set up Spotify OAuth authentication.

    This will:
    1. Open browser for the Spotify consent page
    2. Receive the callback on http://localhost:8888/callback
    3. Store tokens at ./.spotify-mcp/spotify_tokens.json (or SPOTIFY_TOKEN_FILE)

    Requires:
    - SPOTIFY_CLIENT_ID environment variable or --client-id option
    - SPOTIFY_CLIENT_SECRET environment variable or --client-secret option
    """
    from spotify_mcp.auth import TokenStatus, TokenStorage
    from spotify_mcp.config import DEFAULT_CALLBACK_HOST, SpotifyConfig

    # Validate credentials
    if not client_id or not client_secret:
        click.echo("❌ Error: Spotify client credentials required")
        click.echo("")
        click.echo("Set environment variables:")
        click.echo("  export SPOTIFY_CLIENT_ID='your-client-id'")
        click.echo("  export SPOTIFY_CLIENT_SECRET='your-client-secret'")
        click.echo("")
        click.echo("Or pass as options:")
        click.echo("  spotify-mcp setup --client-id=... --client-secret=...")
        sys.exit(1)

    config = SpotifyConfig(
        client_id=client_id,
        client_secret=client_secret,
        callback_host=os.environ.get("SPOTIFY_CALLBACK_HOST", DEFAULT_CALLBACK_HOST),
    )

    # Check if already authenticated
    if TokenStorage(config.token_path).get_status() == TokenStatus.VALID:
        click.echo("✓ Already authenticated!")
        click.echo(f"Token stored at: {config.token_path}")
        click.echo("")

        if not click.confirm("Re-authenticate?"):
            return

    click.echo("Starting OAuth authentication flow...")
    click.echo("Browser will open for Spotify consent...")
    click.echo("")

    try:
        token_path = asyncio.run(_run_setup(config))
        click.echo("✓ Authentication successful!")
        click.echo(f"Token stored at: {token_path}")
    except Exception as e:
        click.echo(f"❌ Authentication failed: {e}")
        sys.exit(1)


@main.command()
def mcp() -> None:
    """Start the MCP server for Claude Desktop integration.

    Requires SPOTIFY_CLIENT_ID and SPOTIFY_CLIENT_SECRET. A stored token is
    not required: the authenticate tool can obtain one from within Claude.

    This command is typically invoked by Claude Desktop via the MCP protocol.
    """
    from spotify_mcp.config import load_config
    from spotify_mcp.exceptions import ConfigMissingError
    from spotify_mcp.server import SpotifyServer

    try:
        config = load_config()
    except ConfigMissingError as e:
        click.echo(f"❌ {e}", err=True)
        sys.exit(1)

    try:
        click.echo("Starting Spotify MCP server...", err=True)
        server = SpotifyServer(config=config)
        asyncio.run(server.run())
    except KeyboardInterrupt:
        click.echo("\nServer stopped.", err=True)
    except Exception as e:
        click.echo(f"❌ Server error: {e}", err=True)
        sys.exit(1)


@main.command()
def status() -> None:
    """Show the status of the stored Spotify token."""
    from spotify_mcp.auth import TokenStatus, TokenStorage

    storage = TokenStorage()
    token_status = storage.get_status()

    click.echo(f"Token file: {storage.token_path}")
    click.echo(f"Status: {token_status.value}")

    if token_status in (TokenStatus.VALID, TokenStatus.EXPIRED):
        record = storage.load()
        if record is not None:
            click.echo(f"Access token expires at: {record.expires_at.isoformat()}")
        if token_status == TokenStatus.EXPIRED:
            click.echo("The access token will be refreshed on the next API call.")
    elif token_status == TokenStatus.MISSING:
        click.echo("Not authenticated. Run 'spotify-mcp setup' or use the authenticate tool.")
    else:
        click.echo("Token file corrupted. Run 'spotify-mcp setup' to re-authenticate.")


@main.command()
def logout() -> None:
    """Delete the stored Spotify token."""
    from spotify_mcp.auth import TokenStorage

    storage = TokenStorage()
    if storage.clear():
        click.echo(f"✓ Removed {storage.token_path}")
    else:
        click.echo("No stored token to remove.")
