"""SOCKS5 client for tunneling connections through a local Tor proxy."""

import pathlib
import tomllib
from importlib import metadata

from loguru import logger

# Library code stays quiet unless the application calls setup_logging()
logger.disable("socks_socket")


def get_version() -> str:
    """Read version from the installed metadata or pyproject.toml."""
    try:
        return metadata.version("socks-socket")
    except metadata.PackageNotFoundError:
        pass

    # Look for pyproject.toml in parent directories
    current_dir = pathlib.Path(__file__).parent
    for parent in [current_dir, *current_dir.parents]:
        pyproject_path = parent / "pyproject.toml"
        if pyproject_path.exists():
            with pyproject_path.open("rb") as f:
                pyproject_data = tomllib.load(f)
            return pyproject_data["project"]["version"]

    # Fallback version if file not found
    return "0.0.0"


__version__ = get_version()
