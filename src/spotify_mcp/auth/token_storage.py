"""JSON file storage for the Spotify token record.

Storage Location: ./.spotify-mcp/spotify_tokens.json (override with SPOTIFY_TOKEN_FILE)

The file holds exactly one TokenRecord. It is read once at startup and fully
rewritten after every token acquisition or refresh. There is no schema
versioning; a file that does not validate is treated as absent.
"""

import json
import logging
from pathlib import Path

from pydantic import ValidationError

from spotify_mcp.auth.models import TokenRecord, TokenStatus
from spotify_mcp.config import get_token_path

logger = logging.getLogger(__name__)


class TokenStorage:
    """Durable mirror of the current TokenRecord.

    Attributes:
        token_path: Path to the token JSON file.

    Example:
        ```python
        storage = TokenStorage()
        storage.save(record)

        record = storage.load()
        if record is None:
            print("Not authenticated yet")
        ```
    """

    def __init__(self, token_path: Path | None = None) -> None:
        """Initialize token storage.

        Args:
            token_path: Custom path for the token file. Defaults to the
                project-level ./.spotify-mcp/spotify_tokens.json.
        """
        self.token_path = token_path or get_token_path()

    def _ensure_credentials_dir(self) -> None:
        """Create the token directory with owner-only permissions if needed."""
        creds_dir = self.token_path.parent
        if not creds_dir.exists():
            creds_dir.mkdir(parents=True, mode=0o700)

    def _read(self) -> dict | None:
        """Read the raw JSON document, or None if missing or unreadable."""
        if not self.token_path.exists():
            return None

        try:
            with open(self.token_path) as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"Could not read token file {self.token_path}: {e}")
            return None

        if not isinstance(data, dict):
            logger.warning(f"Token file {self.token_path} does not hold a JSON object")
            return None
        return data

    def load(self) -> TokenRecord | None:
        """Load the stored token record.

        Returns:
            TokenRecord if the file exists and is valid, None otherwise.
        """
        data = self._read()
        if data is None:
            return None

        try:
            return TokenRecord.model_validate(data)
        except ValidationError as e:
            logger.warning(f"Ignoring invalid token file {self.token_path}: {e}")
            return None

    def save(self, record: TokenRecord) -> None:
        """Overwrite the token file with the given record.

        Args:
            record: Token record to persist.
        """
        self._ensure_credentials_dir()

        with open(self.token_path, "w") as f:
            f.write(record.model_dump_json(indent=2))

        # Owner read/write only (600)
        self.token_path.chmod(0o600)

    def get_status(self) -> TokenStatus:
        """Get the status of the stored token.

        Returns:
            TokenStatus indicating the token file's current state.
        """
        if not self.token_path.exists():
            return TokenStatus.MISSING

        record = self.load()
        if record is None:
            return TokenStatus.INVALID

        if record.is_expired():
            return TokenStatus.EXPIRED

        return TokenStatus.VALID

    def clear(self) -> bool:
        """Delete the token file.

        Returns:
            True if a file was deleted, False if none existed.
        """
        if not self.token_path.exists():
            return False
        self.token_path.unlink()
        return True
