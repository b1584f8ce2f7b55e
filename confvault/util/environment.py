"""Identity and platform information for manifests and known config lookup."""

import getpass
import os
import platform
import socket
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from .. import __version__
from ..util.logging import get_logger
from ..util.paths import expand_path

logger = get_logger(__name__)


@dataclass
class EnvironmentInfo:
    """Capture metadata recorded in every manifest."""

    username: str
    hostname: str
    tool_version: str
    platform_key: str


def current_platform() -> str:
    """Return the platform key used by the known-config table."""
    if sys.platform.startswith("win"):
        return "windows"
    if sys.platform == "darwin":
        return "macos"
    return "linux"


def get_username() -> str:
    """Get the current user name, falling back to environment variables."""
    try:
        return getpass.getuser()
    except (KeyError, OSError) as e:
        logger.debug(f"getpass could not determine user: {e}")
        return os.environ.get("USERNAME") or os.environ.get("USER") or "unknown"


def get_hostname() -> str:
    """Get the current host name."""
    return socket.gethostname() or platform.node() or "unknown"


def get_tool_version() -> str:
    """Tool and runtime version string."""
    return f"confvault {__version__} (Python {platform.python_version()})"


def get_environment_info() -> EnvironmentInfo:
    """Collect identity information for the current process."""
    return EnvironmentInfo(
        username=get_username(),
        hostname=get_hostname(),
        tool_version=get_tool_version(),
        platform_key=current_platform(),
    )


def resolve_config_location(raw_path: str) -> Optional[Path]:
    """Expand a known-config location.

    Returns None when the location references an environment variable
    that is not set on this machine.
    """
    expanded = os.path.expandvars(os.path.expanduser(raw_path))
    if "$" in expanded or "%" in expanded:
        logger.debug(f"Unresolved environment variable in {raw_path}")
        return None
    return expand_path(expanded)
