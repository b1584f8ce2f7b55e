"""Backup restore functionality."""

import os
import time
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Callable, List, Optional, Sequence, Union

from tqdm import tqdm

from ..errors import ConfVaultError, ErrorKind
from ..util.logging import get_logger, log_success
from ..util.paths import ensure_directory
from ..util.timeutil import format_duration
from .copier import FileCopier
from .executor import BackupExecutor
from .manifest import BackupEntry
from .storage import BackupSetHandle, BackupStorage, open_backup_set
from .validator import IntegrityValidator, StageError

logger = get_logger(__name__)

RESTORE_POINT_SUFFIX = "restore-point"


@dataclass
class EntryOutcome:
    """Per-entry restore outcome."""

    original_path: str
    backup_path: str
    restored: bool
    kind: Optional[ErrorKind] = None
    message: str = ""


@dataclass
class RestoreResult:
    """Result of one restore invocation. Not persisted."""

    backup_path: Path
    success: bool = False
    outcomes: List[EntryOutcome] = field(default_factory=list)
    validation_errors: List[StageError] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    restore_point: Optional[Path] = None
    started_at: datetime = field(default_factory=datetime.now)
    finished_at: Optional[datetime] = None

    @property
    def restored_files(self) -> List[EntryOutcome]:
        return [o for o in self.outcomes if o.restored]

    @property
    def failed_files(self) -> List[EntryOutcome]:
        return [o for o in self.outcomes if not o.restored]

    @property
    def duration(self) -> float:
        end = self.finished_at or datetime.now()
        return (end - self.started_at).total_seconds()


def matches_patterns(original_path: str, patterns: Optional[Sequence[str]]) -> bool:
    """True if any pattern is a substring of the path.

    Case sensitivity follows the host filesystem convention. An empty
    pattern set matches everything.
    """
    if not patterns:
        return True

    haystack = os.path.normcase(original_path)
    return any(os.path.normcase(pattern) in haystack for pattern in patterns if pattern)


class RestoreExecutor:
    """Executes restore operations.

    No rollback is performed: entries restored before a later failure stay
    restored, and the failure is reported in the result.
    """

    def __init__(
        self,
        storage: BackupStorage,
        copier: Optional[FileCopier] = None,
        validator: Optional[IntegrityValidator] = None,
        show_progress: bool = True,
    ):
        self.storage = storage
        self.copier = copier or FileCopier()
        self.validator = validator or IntegrityValidator()
        self.executor = BackupExecutor(storage, self.copier)
        self.show_progress = show_progress

    def restore(
        self,
        backup_path: Union[str, Path],
        patterns: Optional[Sequence[str]] = None,
        validate_before_restore: bool = False,
        create_restore_point: bool = False,
        progress_callback: Optional[Callable[[int, int, str], None]] = None
    ) -> RestoreResult:
        """Restore entries of a backup set onto their original paths."""
        result = RestoreResult(backup_path=Path(backup_path))
        started = time.monotonic()

        # Load
        try:
            handle = open_backup_set(backup_path)
        except ConfVaultError as e:
            logger.error(f"Cannot restore from {backup_path}: {e.message}")
            result.validation_errors.append(StageError("load", e.kind, e.message))
            return self._finish(result)

        entries = handle.manifest.effective_entries()
        logger.info(f"Loaded backup set {handle.name} with {len(entries)} entries")

        # Pre-validate
        if validate_before_restore:
            report = self.validator.validate(handle)
            if not report.valid:
                for problem in report.summary():
                    result.validation_errors.append(
                        StageError("validate", ErrorKind.VALIDATION_FAILED, problem)
                    )
                logger.error(f"Backup set {handle.name} failed validation; nothing restored")
                return self._finish(result)

        # Restore point
        if create_restore_point:
            result.restore_point = self._create_restore_point(handle, entries, result)

        # Selective filter
        selected = [e for e in entries if matches_patterns(e.original_path, patterns)]
        if patterns:
            logger.info(f"Selected {len(selected)}/{len(entries)} entries matching {list(patterns)}")

        # Per-entry restore
        total = len(selected)
        with tqdm(total=total, desc="Restoring", unit="item", disable=not self.show_progress) as pbar:
            for i, entry in enumerate(selected):
                if progress_callback:
                    progress_callback(i + 1, total, entry.original_path)

                pbar.set_postfix_str(Path(entry.original_path).name)
                result.outcomes.append(self._restore_entry(handle, entry))
                pbar.update(1)

        self._finish(result)
        message = (
            f"Restore completed: {len(result.restored_files)}/{total} entries restored "
            f"in {format_duration(time.monotonic() - started)}"
        )
        if result.success:
            log_success(logger, message)
        else:
            logger.warning(f"{message}, {len(result.failed_files)} failed")

        return result

    def _finish(self, result: RestoreResult) -> RestoreResult:
        result.finished_at = datetime.now()
        result.success = not result.validation_errors and not result.failed_files
        return result

    def _create_restore_point(
        self,
        handle: BackupSetHandle,
        entries: List[BackupEntry],
        result: RestoreResult
    ) -> Optional[Path]:
        """Snapshot the current live state of every original path that exists.

        Problems are recorded as warnings and never abort the restore.
        """
        try:
            point = self.storage.create_backup_set(suffix=RESTORE_POINT_SUFFIX)
        except ConfVaultError as e:
            warning = f"Could not create restore point: {e.message}"
            logger.warning(warning)
            result.warnings.append(warning)
            return None

        logger.info(f"Creating restore point {point.path}")

        for entry in entries:
            if not Path(entry.original_path).exists():
                continue

            item = self.executor.backup_item(point, entry.original_path, Path(entry.backup_path).name)
            if not item.success:
                warning = f"Restore point could not capture {entry.original_path}: {item.message}"
                logger.warning(warning)
                result.warnings.append(warning)

        log_success(logger, f"Restore point created with {len(point.manifest.entries)} entries")
        return point.path

    def _restore_entry(self, handle: BackupSetHandle, entry: BackupEntry) -> EntryOutcome:
        """Restore a single entry onto its original path."""
        outcome = EntryOutcome(entry.original_path, entry.backup_path, restored=False)

        try:
            source = handle.resolve(entry)
        except ConfVaultError as e:
            return self._failed(outcome, e.kind, e.message)

        if not source.exists():
            return self._failed(outcome, ErrorKind.NOT_FOUND, f"Backup file not found: {source}")

        target = Path(entry.original_path)

        try:
            ensure_directory(target.parent)
        except OSError as e:
            return self._failed(outcome, ErrorKind.IO_ERROR, f"Cannot create parent directory for {target}: {e}")

        if target.is_file() and not self.copier.probe_writable(target):
            return self._failed(outcome, ErrorKind.TARGET_BUSY, f"Target is locked or not writable: {target}")

        copy_result = self.copier.copy_item(source, target)
        if not copy_result.success:
            return self._failed(outcome, copy_result.kind, copy_result.message)

        if not target.exists():
            return self._failed(outcome, ErrorKind.IO_ERROR, f"Restored item not found: {target}")

        if source.is_file():
            try:
                self.copier.verify_size(target, source.stat().st_size)
            except ConfVaultError as e:
                return self._failed(outcome, e.kind, e.message)

        logger.debug(f"Restored {source} -> {target}")
        outcome.restored = True
        return outcome

    def _failed(self, outcome: EntryOutcome, kind: Optional[ErrorKind], message: str) -> EntryOutcome:
        logger.error(f"Failed to restore {outcome.original_path}: {message}")
        outcome.kind = kind or ErrorKind.IO_ERROR
        outcome.message = message
        return outcome
