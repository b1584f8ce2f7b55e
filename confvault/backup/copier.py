"""Single file and directory tree copying with post-copy verification."""

import os
import shutil
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from ..errors import BackupIOError, ConfVaultError, ErrorKind, NotFoundError, SizeMismatchError
from ..util.logging import get_logger
from ..util.paths import ensure_directory, format_size

logger = get_logger(__name__)

COPY_ATTEMPTS = 3


@dataclass
class CopyResult:
    """Outcome of copying one item."""

    source: Path
    dest: Path
    success: bool
    is_directory: bool = False
    size: Optional[int] = None
    kind: Optional[ErrorKind] = None
    message: str = ""


@retry(
    retry=retry_if_exception_type((PermissionError, BlockingIOError)),
    stop=stop_after_attempt(COPY_ATTEMPTS),
    wait=wait_exponential(multiplier=0.1, min=0.1, max=1),
    reraise=True,
)
def _copy_file(source: Path, dest: Path) -> None:
    """Copy file data and metadata, retrying transient lock errors."""
    shutil.copy2(source, dest)


@retry(
    retry=retry_if_exception_type((PermissionError, BlockingIOError)),
    stop=stop_after_attempt(COPY_ATTEMPTS),
    wait=wait_exponential(multiplier=0.1, min=0.1, max=1),
    reraise=True,
)
def _copy_tree(source: Path, dest: Path) -> None:
    """Copy a directory tree, merging into an existing destination."""
    shutil.copytree(source, dest, symlinks=True, dirs_exist_ok=True)


class FileCopier:
    """Copies a single file or a directory tree and verifies the copy.

    The same primitive serves both directions: live item into a backup
    set, and backup payload back onto the live path.
    """

    def copy_item(self, source: Path, dest: Path) -> CopyResult:
        """Copy source to dest and verify.

        Files are verified by comparing destination and source sizes;
        directories by existence of the destination only.
        """
        source = Path(source)
        dest = Path(dest)
        is_directory = source.is_dir()

        try:
            if is_directory:
                self._copy_directory(source, dest)
                size = None
            else:
                size = self._copy_single_file(source, dest)
        except ConfVaultError as e:
            logger.error(e.message)
            return CopyResult(source, dest, False, is_directory, kind=e.kind, message=e.message)
        except OSError as e:
            message = f"Failed to copy {source} -> {dest}: {e}"
            logger.error(message)
            return CopyResult(source, dest, False, is_directory, kind=ErrorKind.IO_ERROR, message=message)

        logger.debug(f"Copied {source} -> {dest}")
        return CopyResult(source, dest, True, is_directory, size=size)

    def _copy_single_file(self, source: Path, dest: Path) -> int:
        if not source.is_file():
            raise NotFoundError(f"Source not found: {source}", source)

        if dest.is_dir():
            raise BackupIOError(f"Destination is a directory: {dest}", dest)

        try:
            source_size = source.stat().st_size
            ensure_directory(dest.parent)
            _copy_file(source, dest)
        except FileNotFoundError as e:
            raise NotFoundError(f"Source not found: {source}", source) from e
        except OSError as e:
            raise BackupIOError(f"Failed to copy {source} -> {dest}: {e}", dest) from e

        self.verify_size(dest, source_size)
        return source_size

    def _copy_directory(self, source: Path, dest: Path) -> None:
        if dest.exists() and not dest.is_dir():
            raise BackupIOError(f"Destination is not a directory: {dest}", dest)

        try:
            ensure_directory(dest.parent)
            _copy_tree(source, dest)
        except (OSError, shutil.Error) as e:
            raise BackupIOError(f"Failed to copy directory {source} -> {dest}: {e}", dest) from e

        if not dest.is_dir():
            raise BackupIOError(f"Directory copy produced no destination: {dest}", dest)

    def verify_size(self, path: Path, expected: int) -> None:
        """Raise if path is missing or its size differs from expected."""
        if not path.is_file():
            raise NotFoundError(f"Copied file not found: {path}", path)

        actual = path.stat().st_size
        if actual != expected:
            raise SizeMismatchError(
                f"Size mismatch for {path}: expected {format_size(expected)} ({expected} bytes), "
                f"got {format_size(actual)} ({actual} bytes)",
                path,
                expected=expected,
                actual=actual,
            )

    def probe_writable(self, path: Path) -> bool:
        """Check that an existing file can be opened exclusively for writing.

        The handle is released immediately; the file is not modified.
        """
        try:
            with open(path, "r+b") as f:
                if os.name == "posix":
                    import fcntl

                    fcntl.flock(f.fileno(), fcntl.LOCK_EX | fcntl.LOCK_NB)
                    fcntl.flock(f.fileno(), fcntl.LOCK_UN)
        except OSError as e:
            logger.debug(f"Write probe failed for {path}: {e}")
            return False
        return True
