"""Error taxonomy for backup and restore operations."""

from enum import Enum
from pathlib import Path
from typing import Optional, Union


class ErrorKind(str, Enum):
    """Enumerated failure reasons attached to results."""

    NOT_FOUND = "NotFound"
    IO_ERROR = "IOError"
    PARSE_ERROR = "ParseError"
    SIZE_MISMATCH = "SizeMismatch"
    TARGET_BUSY = "TargetBusy"
    VALIDATION_FAILED = "ValidationFailed"


class ConfVaultError(Exception):
    """Base error for the backup engine."""

    kind = ErrorKind.IO_ERROR

    def __init__(self, message: str, path: Optional[Union[str, Path]] = None):
        super().__init__(message)
        self.message = message
        self.path = Path(path) if path is not None else None


class NotFoundError(ConfVaultError):
    """Source, payload or manifest is missing."""

    kind = ErrorKind.NOT_FOUND


class BackupIOError(ConfVaultError):
    """A filesystem operation failed."""

    kind = ErrorKind.IO_ERROR


class ManifestParseError(ConfVaultError):
    """Manifest is unreadable or malformed."""

    kind = ErrorKind.PARSE_ERROR


class SizeMismatchError(ConfVaultError):
    """Post-copy size verification failed."""

    kind = ErrorKind.SIZE_MISMATCH

    def __init__(self, message: str, path=None, expected: Optional[int] = None, actual: Optional[int] = None):
        super().__init__(message, path)
        self.expected = expected
        self.actual = actual


class TargetBusyError(ConfVaultError):
    """Destination is locked by another process."""

    kind = ErrorKind.TARGET_BUSY


class ValidationFailedError(ConfVaultError):
    """Integrity check found missing or corrupt archive members."""

    kind = ErrorKind.VALIDATION_FAILED
