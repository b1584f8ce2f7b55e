"""Integrity validation of a backup set against its manifest."""

from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Union

from ..errors import ConfVaultError, ErrorKind
from ..util.logging import get_logger, log_success
from .storage import BackupSetHandle, open_backup_set

logger = get_logger(__name__)


@dataclass
class StageError:
    """A set-level failure attached to the stage that produced it."""

    stage: str
    kind: ErrorKind
    message: str


@dataclass
class CorruptFile:
    """A payload whose on-disk size differs from the recorded size.

    actual_size is None when the payload is no longer a regular file.
    """

    path: str
    expected_size: int
    actual_size: Optional[int]


@dataclass
class ValidationReport:
    """Result of validating one backup set."""

    backup_path: Path
    valid: bool = True
    missing_files: List[str] = field(default_factory=list)
    corrupt_files: List[CorruptFile] = field(default_factory=list)
    validated_count: int = 0
    errors: List[StageError] = field(default_factory=list)

    @property
    def problem_count(self) -> int:
        return len(self.missing_files) + len(self.corrupt_files) + len(self.errors)

    def summary(self) -> List[str]:
        """Human readable list of problems."""
        lines = [error.message for error in self.errors]
        lines.extend(f"Missing backup file: {path}" for path in self.missing_files)
        for c in self.corrupt_files:
            if c.actual_size is None:
                lines.append(f"Not a regular file: {c.path} (expected {c.expected_size} bytes)")
            else:
                lines.append(f"Size mismatch: {c.path} (expected {c.expected_size}, actual {c.actual_size})")
        return lines


class IntegrityValidator:
    """Checks a backup set's payloads against its manifest.

    Only the archive is inspected; original live paths are never touched.
    """

    def validate(self, backup_set: Union[BackupSetHandle, Path, str]) -> ValidationReport:
        """Validate every effective manifest entry of a backup set."""
        handle: Optional[BackupSetHandle]
        if isinstance(backup_set, BackupSetHandle):
            handle = backup_set
            report = ValidationReport(backup_path=handle.path)
            try:
                handle.reload()
            except ConfVaultError as e:
                return self._fail(report, e)
        else:
            path = Path(backup_set)
            report = ValidationReport(backup_path=path)
            try:
                handle = open_backup_set(path)
            except ConfVaultError as e:
                return self._fail(report, e)

        for entry in handle.manifest.effective_entries():
            report.validated_count += 1

            try:
                payload = handle.resolve(entry)
            except ConfVaultError as e:
                report.errors.append(StageError("validate", e.kind, e.message))
                report.valid = False
                continue

            if not payload.exists():
                logger.warning(f"Missing backup file: {payload}")
                report.missing_files.append(str(payload))
                report.valid = False
                continue

            if entry.file_size is None:
                continue

            if not payload.is_file():
                logger.warning(f"Expected a file of {entry.file_size} bytes, found a non-file: {payload}")
                report.corrupt_files.append(CorruptFile(str(payload), entry.file_size, None))
                report.valid = False
                continue

            actual = payload.stat().st_size
            if actual != entry.file_size:
                logger.warning(f"Size mismatch for {payload}: expected {entry.file_size}, actual {actual}")
                report.corrupt_files.append(CorruptFile(str(payload), entry.file_size, actual))
                report.valid = False

        if report.valid:
            log_success(logger, f"Backup set {handle.name} is valid ({report.validated_count} entries)")
        else:
            logger.error(f"Backup set {handle.name} failed validation: {report.problem_count} problem(s)")

        return report

    def _fail(self, report: ValidationReport, error: ConfVaultError) -> ValidationReport:
        logger.error(error.message)
        report.valid = False
        report.errors.append(StageError("load", error.kind, error.message))
        return report
