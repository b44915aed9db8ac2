"""Interactive OAuth authorization-code flow for Spotify.

The flow binds a short-lived callback listener on the fixed redirect port,
opens the Spotify consent page in the user's browser, waits for the redirect
carrying either an authorization code or an error, exchanges the code for
tokens, and tears the listener down.

Only one flow can run at a time: a second attempt fails to bind the port.
"""

import asyncio
import concurrent.futures
import html
import logging
import webbrowser
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from http.server import BaseHTTPRequestHandler, HTTPServer
from urllib.parse import parse_qs, quote, urlencode, urlparse

import httpx

from spotify_mcp.auth.models import TokenRecord
from spotify_mcp.auth.token_manager import TokenManager
from spotify_mcp.config import (
    AUTHORIZATION_TIMEOUT,
    CALLBACK_PATH,
    CALLBACK_PORT,
    SPOTIFY_AUTHORIZE_URL,
    SPOTIFY_SCOPES,
    SPOTIFY_TOKEN_URL,
    SpotifyConfig,
)
from spotify_mcp.exceptions import (
    AuthorizationDeniedError,
    AuthorizationError,
    AuthorizationTimeoutError,
)

logger = logging.getLogger(__name__)

# Seconds the callback handler waits for the exchange before answering the browser
PAGE_TIMEOUT = 60

SUCCESS_PAGE = (
    b"<html><body><h1>Authentication Successful!</h1>"
    b"<p>You can close this window and return to your assistant.</p></body></html>"
)


def _failure_page(reason: str) -> bytes:
    return (
        "<html><body><h1>Authentication Failed</h1>"
        f"<p>{html.escape(reason)}</p>"
        "<p>Please close this window and try again.</p></body></html>"
    ).encode()


class FlowState(str, Enum):
    """Lifecycle of one authorization attempt."""

    IDLE = "idle"
    LISTENING = "listening"
    AWAITING_CALLBACK = "awaiting_callback"
    EXCHANGING = "exchanging"
    AUTHENTICATED = "authenticated"
    FAILED = "failed"


@dataclass
class _Callback:
    """Query parameters delivered to the callback route."""

    code: str | None
    error: str | None


# (HTTP status, HTML body) sent back to the browser
PageFuture = concurrent.futures.Future


def _make_callback_handler(
    callback_path: str,
    deliver: Callable[[_Callback], PageFuture],
) -> type[BaseHTTPRequestHandler]:
    """Build the request handler class for the callback listener.

    The handler only signals the callback to the waiting flow and renders
    whatever page the flow decides on; it never completes the flow itself.
    """

    class OAuthCallbackHandler(BaseHTTPRequestHandler):
        """HTTP handler for the Spotify redirect."""

        def log_message(self, format: str, *args) -> None:
            """Suppress HTTP server logs."""
            pass

        def _respond(self, status: int, body: bytes) -> None:
            self.send_response(status)
            self.send_header("Content-type", "text/html")
            self.end_headers()
            self.wfile.write(body)

        def do_GET(self) -> None:
            """Handle GET request from the OAuth redirect."""
            request_parsed = urlparse(self.path)

            if request_parsed.path != callback_path:
                self.send_response(404)
                self.end_headers()
                self.wfile.write(b"Not Found")
                return

            query_params = parse_qs(request_parsed.query)
            callback = _Callback(
                code=query_params.get("code", [None])[0],
                error=query_params.get("error", [None])[0],
            )

            page = deliver(callback)
            try:
                status, body = page.result(timeout=PAGE_TIMEOUT)
            except concurrent.futures.TimeoutError:
                status, body = 504, _failure_page("Timed out completing authentication.")
            self._respond(status, body)

    return OAuthCallbackHandler


class OAuthManager:
    """Drives the interactive Spotify consent flow.

    Attributes:
        config: Spotify client configuration.
        token_manager: Receives the tokens from a successful exchange.
        state: Current FlowState of the most recent attempt.

    Example:
        ```python
        manager = OAuthManager(config, token_manager, http_client)
        record = await manager.authenticate()
        print(f"Token expires at: {record.expires_at}")
        ```
    """

    def __init__(
        self,
        config: SpotifyConfig,
        token_manager: TokenManager,
        http_client: httpx.AsyncClient,
        port: int = CALLBACK_PORT,
        timeout: float = AUTHORIZATION_TIMEOUT,
        open_browser: Callable[[str], object] = webbrowser.open,
    ) -> None:
        """Initialize the flow controller.

        Args:
            config: Spotify client configuration.
            token_manager: Token manager updated after the code exchange.
            http_client: Shared HTTP client for the token endpoint.
            port: Callback listener port. Must match the redirect URI.
            timeout: Seconds to wait for the callback.
            open_browser: Callable that opens a URL in the user's browser.
        """
        self.config = config
        self.token_manager = token_manager
        self._http_client = http_client
        self.port = port
        self.timeout = timeout
        self._open_browser = open_browser
        self.state = FlowState.IDLE

    def build_authorization_url(self) -> str:
        """Build the Spotify consent URL.

        Returns:
            Authorization URL with client id, response type, redirect URI and scopes.
        """
        params = {
            "client_id": self.config.client_id,
            "response_type": "code",
            "redirect_uri": self.config.redirect_uri,
            "scope": " ".join(SPOTIFY_SCOPES),
        }
        return f"{SPOTIFY_AUTHORIZE_URL}?{urlencode(params, quote_via=quote)}"

    async def authenticate(self) -> TokenRecord:
        """Run the complete authorization-code flow.

        Returns:
            TokenRecord obtained from the code exchange.

        Raises:
            AuthorizationError: If the listener cannot bind or the exchange fails.
            AuthorizationDeniedError: If the callback carries an error.
            AuthorizationTimeoutError: If no callback arrives in time.
        """
        loop = asyncio.get_running_loop()
        outcome: asyncio.Future[tuple[_Callback, PageFuture]] = loop.create_future()

        def resolve(callback: _Callback, page: PageFuture) -> None:
            if outcome.done():
                page.set_result((409, _failure_page("Authentication already handled.")))
            else:
                outcome.set_result((callback, page))

        def deliver(callback: _Callback) -> PageFuture:
            page: PageFuture = concurrent.futures.Future()
            loop.call_soon_threadsafe(resolve, callback, page)
            return page

        handler = _make_callback_handler(CALLBACK_PATH, deliver)
        try:
            server = HTTPServer((self.config.callback_host, self.port), handler)
        except OSError as e:
            self.state = FlowState.FAILED
            raise AuthorizationError(
                f"Could not start callback listener on port {self.port}: {e}. "
                "Another authentication may already be in progress."
            ) from e

        self.state = FlowState.LISTENING
        logger.info(f"Callback listener started on {self.config.callback_host}:{self.port}")
        serving = loop.run_in_executor(None, server.serve_forever)

        try:
            return await self._await_authorization(outcome)
        except Exception:
            self.state = FlowState.FAILED
            raise
        finally:
            await loop.run_in_executor(None, server.shutdown)
            server.server_close()
            await serving
            logger.info("Callback listener stopped")

    async def _await_authorization(
        self, outcome: "asyncio.Future[tuple[_Callback, PageFuture]]"
    ) -> TokenRecord:
        auth_url = self.build_authorization_url()
        logger.info("Opening browser for Spotify authentication...")
        logger.info(f"If the browser doesn't open, visit: {auth_url}")
        self._open_browser(auth_url)
        self.state = FlowState.AWAITING_CALLBACK

        try:
            callback, page = await asyncio.wait_for(outcome, timeout=self.timeout)
        except asyncio.TimeoutError:
            logger.warning(f"No authorization callback within {self.timeout} seconds")
            raise AuthorizationTimeoutError(
                f"Authentication timeout: no callback received within {self.timeout} seconds"
            ) from None

        logger.info("Authorization callback received")
        try:
            if callback.error:
                logger.warning(f"Authorization denied: {callback.error}")
                page.set_result((400, _failure_page(f"Spotify returned: {callback.error}")))
                raise AuthorizationDeniedError(f"Authentication failed: {callback.error}")

            if not callback.code:
                page.set_result((400, _failure_page("No authorization code received.")))
                raise AuthorizationError("No authorization code received from Spotify")

            self.state = FlowState.EXCHANGING
            try:
                record = await self._exchange_code(callback.code)
            except AuthorizationError as e:
                page.set_result((500, _failure_page(str(e))))
                raise

            page.set_result((200, SUCCESS_PAGE))
            self.state = FlowState.AUTHENTICATED
            logger.info("Spotify authentication successful")
            return record
        finally:
            if not page.done():
                page.set_result((500, _failure_page("Authentication aborted.")))

    async def _exchange_code(self, code: str) -> TokenRecord:
        """Exchange an authorization code for tokens.

        Args:
            code: Authorization code from the callback.

        Returns:
            TokenRecord stored through the token manager.

        Raises:
            AuthorizationError: On network failure, non-2xx or malformed response.
        """
        try:
            response = await self._http_client.post(
                SPOTIFY_TOKEN_URL,
                data={
                    "grant_type": "authorization_code",
                    "code": code,
                    "redirect_uri": self.config.redirect_uri,
                    "client_id": self.config.client_id,
                    "client_secret": self.config.client_secret,
                },
                headers={"Content-Type": "application/x-www-form-urlencoded"},
            )
        except httpx.HTTPError as e:
            raise AuthorizationError(f"Authentication error: {e}") from e

        if response.is_error:
            raise AuthorizationError(
                f"Authentication error: token exchange returned status "
                f"{response.status_code} {response.text}"
            )

        try:
            return self.token_manager.update_from_response(response.json())
        except ValueError as e:
            raise AuthorizationError(f"Authentication error: invalid token response: {e}") from e
