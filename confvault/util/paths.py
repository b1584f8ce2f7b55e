"""Utility functions for path operations."""

import os
from pathlib import Path
from typing import Union

_UNSAFE_CHARS = str.maketrans({c: "_" for c in "/\\:*?\"<>|\n\r\t"})
_SIZE_UNITS = ("B", "KB", "MB", "GB", "TB")


def ensure_directory(path: Path) -> Path:
    """Ensure directory exists, creating it if necessary."""
    path.mkdir(parents=True, exist_ok=True)
    return path


def expand_path(path: Union[str, Path]) -> Path:
    """Expand ~ and environment variables and make the path absolute.

    Symlinks are not resolved so a restore writes through the same link
    the user configured.
    """
    expanded = os.path.expandvars(os.path.expanduser(str(path)))
    return Path(os.path.abspath(expanded))


def safe_filename(filename: str) -> str:
    """Make a name usable as a single path component on any platform.

    Separators, reserved characters and control whitespace become
    underscores. Leading dots are kept so dotfiles keep their names.
    """
    safe_name = filename.translate(_UNSAFE_CHARS).strip(" ").rstrip(".")

    if not safe_name.strip("."):
        return "unknown"
    return safe_name


def is_within(path: Path, root: Path) -> bool:
    """Return True if path lies inside root (lexically, after normalization)."""
    path_norm = os.path.normcase(os.path.normpath(os.path.abspath(path)))
    root_norm = os.path.normcase(os.path.normpath(os.path.abspath(root)))
    try:
        return os.path.commonpath([path_norm, root_norm]) == root_norm and path_norm != root_norm
    except ValueError:
        # Different drives on Windows
        return False


def format_size(size_bytes: int) -> str:
    """Format file size in human readable format."""
    if size_bytes == 0:
        return "0 B"

    size = float(size_bytes)
    for unit in _SIZE_UNITS[:-1]:
        if size < 1024.0:
            return f"{size:.1f} {unit}"
        size /= 1024.0
    return f"{size:.1f} {_SIZE_UNITS[-1]}"
