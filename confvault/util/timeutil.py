"""Utility functions for time operations."""

from datetime import datetime
from typing import Optional

MANIFEST_TIME_FORMAT = "%Y-%m-%d %H:%M:%S"
BACKUP_ID_FORMAT = "%Y%m%d_%H%M%S"

_PARSE_FORMATS = (
    MANIFEST_TIME_FORMAT,
    BACKUP_ID_FORMAT,
    "%Y-%m-%dT%H:%M:%S",
)


def now() -> datetime:
    """Current local time truncated to whole seconds."""
    return datetime.now().replace(microsecond=0)


def format_manifest_time(dt: Optional[datetime] = None) -> str:
    """Format a timestamp the way manifests store it."""
    return (dt or now()).strftime(MANIFEST_TIME_FORMAT)


def generate_backup_id(dt: Optional[datetime] = None) -> str:
    """Generate a backup set directory name from a timestamp."""
    return (dt or now()).strftime(BACKUP_ID_FORMAT)


def format_duration(seconds: float) -> str:
    """Format duration in human readable format."""
    if seconds < 60:
        return f"{seconds:.1f}s"
    if seconds < 3600:
        return f"{seconds / 60:.1f}m"
    return f"{seconds / 3600:.1f}h"


def parse_timestamp(value: str) -> datetime:
    """Parse a manifest timestamp or backup set name.

    Raises:
        ValueError: if no known format matches
    """
    for fmt in _PARSE_FORMATS:
        try:
            return datetime.strptime(value, fmt)
        except ValueError:
            continue

    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        raise ValueError(f"Unrecognized timestamp: {value!r}") from None
