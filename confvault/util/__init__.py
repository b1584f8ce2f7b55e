"""Utility module initialization."""

from .environment import (
    EnvironmentInfo,
    current_platform,
    get_environment_info,
    resolve_config_location,
)
from .logging import SUCCESS, get_logger, log_success, setup_logging
from .paths import ensure_directory, expand_path, format_size, is_within, safe_filename
from .timeutil import (
    format_duration,
    format_manifest_time,
    generate_backup_id,
    now,
    parse_timestamp,
)

__all__ = [
    # environment
    "EnvironmentInfo",
    "current_platform",
    "get_environment_info",
    "resolve_config_location",
    # logging
    "SUCCESS",
    "get_logger",
    "log_success",
    "setup_logging",
    # paths
    "ensure_directory",
    "expand_path",
    "format_size",
    "is_within",
    "safe_filename",
    # timeutil
    "format_duration",
    "format_manifest_time",
    "generate_backup_id",
    "now",
    "parse_timestamp",
]
