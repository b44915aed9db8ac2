"""Version information for spotify-mcp."""

from importlib.metadata import PackageNotFoundError, version
from pathlib import Path

# Repository checkout: src/spotify_mcp/__version__.py -> VERSION
_ROOT_VERSION_FILE = Path(__file__).resolve().parents[2] / "VERSION"


def _get_version() -> str:
    """Get the installed distribution version, else the checkout's VERSION file."""
    try:
        return version("spotify-mcp")
    except PackageNotFoundError:
        pass

    if _ROOT_VERSION_FILE.exists():
        return _ROOT_VERSION_FILE.read_text().strip()
    return "0.0.0"


__version__ = _get_version()
