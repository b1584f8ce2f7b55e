"""Backup module initialization."""

from .copier import CopyResult, FileCopier
from .executor import BackupExecutor, BackupItemResult
from .manifest import MANIFEST_FILENAME, BackupEntry, BackupManifest, ManifestManager
from .registry import BackupRegistry, BackupSetSummary
from .restore import EntryOutcome, RestoreExecutor, RestoreResult, matches_patterns
from .storage import BackupSetHandle, BackupStorage, open_backup_set
from .validator import CorruptFile, IntegrityValidator, StageError, ValidationReport

__all__ = [
    # manifest
    "MANIFEST_FILENAME",
    "BackupEntry",
    "BackupManifest",
    "ManifestManager",
    # storage
    "BackupSetHandle",
    "BackupStorage",
    "open_backup_set",
    # copier
    "CopyResult",
    "FileCopier",
    # executor
    "BackupExecutor",
    "BackupItemResult",
    # validator
    "CorruptFile",
    "IntegrityValidator",
    "StageError",
    "ValidationReport",
    # restore
    "EntryOutcome",
    "RestoreExecutor",
    "RestoreResult",
    "matches_patterns",
    # registry
    "BackupRegistry",
    "BackupSetSummary",
]
