"""Backup execution: copying live configuration items into a backup set."""

import typing as t
from dataclasses import dataclass
from pathlib import Path

from ..config import KnownConfig
from ..errors import ConfVaultError, ErrorKind
from ..util.environment import resolve_config_location
from ..util.logging import get_logger, log_success
from ..util.paths import expand_path, format_size, safe_filename
from ..util.timeutil import format_manifest_time
from .copier import FileCopier
from .manifest import BackupEntry, is_reserved_name
from .storage import BackupSetHandle, BackupStorage

logger = get_logger(__name__)

BACKUP_SUFFIX = ".backup"


@dataclass
class BackupItemResult:
    """Outcome of backing up one item."""

    source: Path
    success: bool
    entry: t.Optional[BackupEntry] = None
    kind: t.Optional[ErrorKind] = None
    message: str = ""


class BackupExecutor:
    """Executes backup operations."""

    def __init__(self, storage: BackupStorage, copier: t.Optional[FileCopier] = None) -> None:
        """Initialize backup executor.

        Args:
            storage: Backup set manager that owns manifest updates
            copier: File copier (a default one is created if None)
        """
        self.storage = storage
        self.copier = copier or FileCopier()

    def payload_name(self, source: Path, backup_name: t.Optional[str] = None) -> str:
        """Name of the payload inside the backup set."""
        if backup_name:
            return safe_filename(backup_name)
        return safe_filename(source.name) + BACKUP_SUFFIX

    def backup_item(
        self,
        handle: BackupSetHandle,
        source: t.Union[str, Path],
        backup_name: t.Optional[str] = None,
    ) -> BackupItemResult:
        """Back up a single file or directory into a backup set.

        Args:
            handle: Target backup set
            source: Live path; ~ and environment variables are expanded
            backup_name: Payload name override; duplicates within a set overwrite each other

        Returns:
            BackupItemResult carrying the appended manifest entry on success
        """
        source_path = expand_path(source)

        if not source_path.exists():
            message = f"Source not found: {source_path}"
            logger.warning(message)
            return BackupItemResult(source_path, False, kind=ErrorKind.NOT_FOUND, message=message)

        name = self.payload_name(source_path, backup_name)
        if is_reserved_name(name):
            message = f"Payload name is reserved for the backup set manifest: {name}"
            logger.error(message)
            return BackupItemResult(source_path, False, kind=ErrorKind.IO_ERROR, message=message)

        dest = handle.path / name
        captured_at = format_manifest_time()

        copy_result = self.copier.copy_item(source_path, dest)
        if not copy_result.success:
            return BackupItemResult(source_path, False, kind=copy_result.kind, message=copy_result.message)

        entry = BackupEntry(
            original_path=str(source_path),
            backup_path=name,
            backup_time=captured_at,
            file_size=copy_result.size,
        )

        try:
            self.storage.append_entry(handle, entry)
        except ConfVaultError as e:
            logger.error(e.message)
            return BackupItemResult(source_path, False, kind=e.kind, message=e.message)

        if copy_result.size is not None:
            log_success(logger, f"Backed up {source_path} ({format_size(copy_result.size)})")
        else:
            log_success(logger, f"Backed up directory {source_path}")

        return BackupItemResult(source_path, True, entry=entry)

    def applicable_known_configs(
        self,
        known_configs: t.Dict[str, KnownConfig],
        names: t.Optional[t.Iterable[str]] = None,
    ) -> t.Dict[str, KnownConfig]:
        """Select known configs by name and current platform.

        The platform comes from the storage's environment info. Explicitly
        requested names bypass the platform filter.
        """
        if names:
            selected = {}
            for name in names:
                if name not in known_configs:
                    logger.warning(f"Unknown configuration name: {name}")
                    continue
                selected[name] = known_configs[name]
            return selected

        platform_key = self.storage.environment.platform_key
        return {
            name: known for name, known in known_configs.items()
            if platform_key in known.platforms
        }

    def backup_known_configs(
        self,
        handle: BackupSetHandle,
        known_configs: t.Dict[str, KnownConfig],
        names: t.Optional[t.Iterable[str]] = None,
    ) -> t.Dict[str, BackupItemResult]:
        """Back up a named set of well-known configuration locations.

        Missing locations are reported as NotFound and do not stop the run.
        """
        results: t.Dict[str, BackupItemResult] = {}
        names = list(names) if names else None

        if names:
            for name in names:
                if name not in known_configs:
                    message = f"Unknown configuration name: {name}"
                    results[name] = BackupItemResult(Path(name), False, kind=ErrorKind.NOT_FOUND, message=message)

        selected = self.applicable_known_configs(known_configs, names)
        logger.info(f"Backing up {len(selected)} known configuration item(s) into {handle.name}")

        for name, known in selected.items():
            location = resolve_config_location(known.path)
            if location is None:
                message = f"{name}: location cannot be resolved on this machine ({known.path})"
                logger.warning(message)
                results[name] = BackupItemResult(Path(known.path), False, kind=ErrorKind.NOT_FOUND, message=message)
                continue

            results[name] = self.backup_item(handle, location, known.backup_name)

        succeeded = sum(1 for r in results.values() if r.success)
        logger.info(f"Known configuration backup completed: {succeeded}/{len(results)} items")
        return results
