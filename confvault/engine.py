"""Public entry point wiring the backup components from configuration."""

import typing as t
from pathlib import Path

from .backup import (
    BackupExecutor,
    BackupItemResult,
    BackupRegistry,
    BackupSetHandle,
    BackupSetSummary,
    BackupStorage,
    FileCopier,
    IntegrityValidator,
    RestoreExecutor,
    RestoreResult,
    ValidationReport,
)
from .config import ConfVaultConfig
from .util.environment import EnvironmentInfo


class BackupEngine:
    """Configuration backup and restore operations.

    The backup root comes from the configuration passed in; nothing here
    falls back to a process-wide default.
    """

    def __init__(self, config: ConfVaultConfig, environment: t.Optional[EnvironmentInfo] = None):
        self.config = config
        self.storage = BackupStorage(config.backup_root, environment)
        self.copier = FileCopier()
        self.validator = IntegrityValidator()
        self.executor = BackupExecutor(self.storage, self.copier)
        self.restorer = RestoreExecutor(
            self.storage,
            copier=self.copier,
            validator=self.validator,
            show_progress=config.show_progress,
        )
        self.registry = BackupRegistry(self.storage)

    @property
    def backup_root(self) -> Path:
        return self.storage.base_path

    def create_backup_set(self, explicit_path: t.Optional[Path] = None) -> BackupSetHandle:
        """Create an empty backup set. Raises BackupIOError on failure."""
        return self.storage.create_backup_set(explicit_path)

    def open_backup_set(self, path: Path) -> BackupSetHandle:
        return self.storage.open_backup_set(path)

    def backup_item(
        self,
        handle: BackupSetHandle,
        source: t.Union[str, Path],
        backup_name: t.Optional[str] = None,
    ) -> BackupItemResult:
        return self.executor.backup_item(handle, source, backup_name)

    def backup_known_configs(
        self,
        handle: BackupSetHandle,
        names: t.Optional[t.Iterable[str]] = None,
    ) -> t.Dict[str, BackupItemResult]:
        return self.executor.backup_known_configs(handle, self.config.known_configs, names)

    def restore(
        self,
        backup_path: t.Union[str, Path],
        patterns: t.Optional[t.Sequence[str]] = None,
        validate_before_restore: bool = False,
        create_restore_point: bool = False,
    ) -> RestoreResult:
        return self.restorer.restore(
            backup_path,
            patterns=patterns,
            validate_before_restore=validate_before_restore,
            create_restore_point=create_restore_point,
        )

    def validate(self, backup_set: t.Union[BackupSetHandle, str, Path]) -> ValidationReport:
        return self.validator.validate(backup_set)

    def list_backup_sets(self) -> t.List[BackupSetSummary]:
        return self.registry.list_backup_sets()

    def remove_backup_set(
        self,
        path: t.Union[str, Path],
        force: bool = False,
        confirm: t.Optional[t.Callable[[str], bool]] = None,
        allow_unmanaged: bool = False,
    ) -> bool:
        return self.registry.remove_backup_set(
            path, force=force, confirm=confirm, allow_unmanaged=allow_unmanaged
        )
