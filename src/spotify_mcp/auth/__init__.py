"""OAuth authentication for the Spotify MCP server.

This package owns the Spotify token lifecycle: persisting the token record,
handing out valid access tokens with silent refresh, and running the
interactive authorization-code flow.

Quick Start:
    ```python
    from spotify_mcp.auth import OAuthManager, TokenManager, TokenStorage

    storage = TokenStorage()
    tokens = TokenManager(config, storage, http_client)
    manager = OAuthManager(config, tokens, http_client)

    # Authenticate
    record = await manager.authenticate()

    # Get a valid access token for API use
    access_token = await tokens.ensure_valid()
    ```
"""

from spotify_mcp.auth.models import TokenRecord, TokenStatus
from spotify_mcp.auth.oauth_manager import FlowState, OAuthManager
from spotify_mcp.auth.token_manager import TokenManager
from spotify_mcp.auth.token_storage import TokenStorage

__all__ = [
    "FlowState",
    "OAuthManager",
    "TokenManager",
    "TokenRecord",
    "TokenStatus",
    "TokenStorage",
]
