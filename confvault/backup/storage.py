"""Backup set creation and manifest lifecycle."""

import os
import typing as t
from datetime import datetime
from pathlib import Path

from ..errors import BackupIOError, ManifestParseError, NotFoundError
from ..util.environment import EnvironmentInfo, get_environment_info
from ..util.logging import get_logger
from ..util.paths import is_within
from ..util.timeutil import format_manifest_time, generate_backup_id, now
from .manifest import BackupEntry, BackupManifest, ManifestManager, is_reserved_name

logger = get_logger(__name__)


class BackupSetHandle:
    """In-process owner of one backup set directory and its manifest."""

    def __init__(self, path: Path, manifest: BackupManifest) -> None:
        self.path = Path(path)
        self.manifest = manifest
        self.manifest_manager = ManifestManager(self.path)

    @property
    def name(self) -> str:
        return self.path.name

    @property
    def manifest_path(self) -> Path:
        return self.manifest_manager.manifest_path

    def resolve(self, entry: BackupEntry) -> Path:
        """Map an entry's backup path to its payload location inside the set.

        Raises:
            ManifestParseError: if a relative backup path escapes the set, or
                the path names the manifest itself
        """
        raw = Path(entry.backup_path)

        if raw.is_absolute():
            if is_within(raw, self.path):
                candidate = raw
            else:
                # The set was moved since capture; payloads live next to the manifest
                candidate = self.path / raw.name
        else:
            candidate = self.path / raw
            if not is_within(candidate, self.path):
                raise ManifestParseError(
                    f"Backup path escapes the backup set: {entry.backup_path}",
                    self.manifest_path
                )

        if is_reserved_name(Path(os.path.normpath(candidate)).name):
            raise ManifestParseError(
                f"Backup path refers to the manifest: {entry.backup_path}",
                self.manifest_path
            )
        return candidate

    def reload(self) -> BackupManifest:
        """Re-read the manifest from disk."""
        self.manifest = self.manifest_manager.load_manifest()
        return self.manifest

    def __repr__(self) -> str:
        return f"BackupSetHandle(path='{self.path}', entries={len(self.manifest.entries)})"


def open_backup_set(path: t.Union[str, Path]) -> BackupSetHandle:
    """Open an existing backup set.

    Raises:
        NotFoundError: if the directory or manifest is missing
        ManifestParseError: if the manifest cannot be parsed
    """
    backup_dir = Path(path)
    if not backup_dir.is_dir():
        raise NotFoundError(f"Backup directory not found: {backup_dir}", backup_dir)

    manifest = ManifestManager(backup_dir).load_manifest()
    return BackupSetHandle(backup_dir, manifest)


class BackupStorage:
    """Creates backup sets under a root directory and appends their entries."""

    def __init__(self, base_path: Path, environment: t.Optional[EnvironmentInfo] = None) -> None:
        """Initialize backup storage.

        Args:
            base_path: Root directory holding all backup sets
            environment: Identity metadata for new manifests (detected if None)
        """
        self.base_path = Path(base_path)
        self._environment = environment

    @property
    def environment(self) -> EnvironmentInfo:
        if self._environment is None:
            self._environment = get_environment_info()
        return self._environment

    def _derive_backup_dir(self, timestamp: datetime, suffix: t.Optional[str]) -> Path:
        """Pick `<root>/<yyyyMMdd_HHmmss>[_suffix]`, avoiding existing sets."""
        name = generate_backup_id(timestamp)
        if suffix:
            name = f"{name}_{suffix}"

        candidate = self.base_path / name
        counter = 2
        while ManifestManager(candidate).exists():
            candidate = self.base_path / f"{name}_{counter}"
            counter += 1
        return candidate

    def create_backup_set(
        self,
        explicit_path: t.Optional[Path] = None,
        timestamp: t.Optional[datetime] = None,
        suffix: t.Optional[str] = None,
    ) -> BackupSetHandle:
        """Create a new backup set with an empty manifest.

        Args:
            explicit_path: Directory to use instead of a derived one
            timestamp: Creation time (uses current time if None)
            suffix: Appended to derived directory names, e.g. "restore-point"

        Returns:
            Handle owning the new backup set

        Raises:
            BackupIOError: if the directory or initial manifest cannot be created
        """
        if timestamp is None:
            timestamp = now()

        if explicit_path is not None:
            backup_dir = Path(explicit_path)
            if ManifestManager(backup_dir).exists():
                raise BackupIOError(f"Backup set already exists: {backup_dir}", backup_dir)
        else:
            backup_dir = self._derive_backup_dir(timestamp, suffix)

        try:
            backup_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise BackupIOError(f"Failed to create backup directory {backup_dir}: {e}", backup_dir) from e

        env = self.environment
        manifest = BackupManifest(
            timestamp=format_manifest_time(timestamp),
            backup_path=str(backup_dir.absolute()),
            tool_version=env.tool_version,
            hostname=env.hostname,
            username=env.username,
        )

        handle = BackupSetHandle(backup_dir, manifest)
        handle.manifest_manager.save_manifest(manifest)

        logger.info(f"Created backup set: {backup_dir}")
        return handle

    def open_backup_set(self, path: Path) -> BackupSetHandle:
        """Open an existing backup set."""
        return open_backup_set(path)

    def append_entry(self, handle: BackupSetHandle, entry: BackupEntry) -> None:
        """Append an entry: re-read the manifest, add the entry, rewrite it.

        This read-modify-write is not guarded against concurrent writers.
        """
        manifest = handle.reload()
        manifest.entries.append(entry)
        handle.manifest_manager.save_manifest(manifest)
        logger.debug(f"Appended manifest entry for {entry.original_path} to {handle.name}")

    def list_set_directories(self) -> t.List[Path]:
        """All directories directly under the root, newest name first."""
        if not self.base_path.is_dir():
            return []

        return sorted(
            (d for d in self.base_path.iterdir() if d.is_dir()),
            key=lambda d: d.name,
            reverse=True
        )
