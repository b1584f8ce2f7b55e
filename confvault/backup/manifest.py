"""Backup manifest model and utilities."""

import json
import os
from pathlib import Path
from typing import Dict, List, Optional

from pydantic import BaseModel, Field, ValidationError

from ..errors import BackupIOError, ManifestParseError, NotFoundError
from ..util.logging import get_logger
from ..util.timeutil import format_manifest_time

logger = get_logger(__name__)

MANIFEST_FILENAME = "backup-manifest.json"
MANIFEST_TMP_SUFFIX = ".tmp"


def is_reserved_name(name: str) -> bool:
    """True if a payload with this name would clobber the manifest or its temp file."""
    reserved = (MANIFEST_FILENAME, MANIFEST_FILENAME + MANIFEST_TMP_SUFFIX)
    return os.path.normcase(name) in {os.path.normcase(r) for r in reserved}


class BackupEntry(BaseModel):
    """Individual item entry in a backup manifest."""

    original_path: str = Field(alias="OriginalPath", description="Absolute path of the live item")
    backup_path: str = Field(alias="BackupPath", description="Payload path, relative to the backup set")
    backup_time: str = Field(
        alias="BackupTime",
        default_factory=format_manifest_time,
        description="Capture timestamp (yyyy-MM-dd HH:mm:ss)"
    )
    file_size: Optional[int] = Field(
        alias="FileSize",
        default=None,
        description="Size in bytes at capture time; None for directories"
    )

    class Config:
        """Pydantic configuration."""

        populate_by_name = True


class BackupManifest(BaseModel):
    """Descriptor of one backup set."""

    timestamp: str = Field(alias="Timestamp", default_factory=format_manifest_time)
    backup_path: str = Field(alias="BackupPath", description="Backup set directory")
    tool_version: str = Field(alias="ToolVersion", default="")
    hostname: str = Field(alias="Hostname", default="")
    username: str = Field(alias="Username", default="")
    entries: List[BackupEntry] = Field(alias="Entries", default_factory=list)

    class Config:
        """Pydantic configuration."""

        populate_by_name = True
        validate_assignment = True

    def effective_entries(self) -> List[BackupEntry]:
        """Entries with duplicates collapsed, the last write for a path winning.

        Surviving entries keep manifest order.
        """
        last_index: Dict[str, int] = {}
        for index, entry in enumerate(self.entries):
            last_index[entry.original_path] = index
        return [entry for index, entry in enumerate(self.entries) if last_index[entry.original_path] == index]

    @property
    def total_size(self) -> int:
        return sum(e.file_size or 0 for e in self.effective_entries())


class ManifestManager:
    """Reads and writes the manifest file of one backup set."""

    def __init__(self, backup_path: Path):
        self.backup_path = Path(backup_path)
        self.manifest_path = self.backup_path / MANIFEST_FILENAME

    def exists(self) -> bool:
        return self.manifest_path.is_file()

    def save_manifest(self, manifest: BackupManifest) -> None:
        """Rewrite the whole manifest file.

        Data goes to a temporary sibling first and is moved over the old
        manifest, so readers never see a half-written file.
        """
        tmp_path = self.manifest_path.with_name(self.manifest_path.name + MANIFEST_TMP_SUFFIX)
        try:
            with open(tmp_path, "w", encoding="utf-8") as f:
                json.dump(manifest.model_dump(by_alias=True), f, indent=2)
                f.write("\n")
            os.replace(tmp_path, self.manifest_path)
        except OSError as e:
            self._discard(tmp_path)
            raise BackupIOError(f"Failed to write manifest {self.manifest_path}: {e}", self.manifest_path) from e

        logger.debug(f"Saved manifest to {self.manifest_path}")

    def _discard(self, tmp_path: Path) -> None:
        try:
            tmp_path.unlink(missing_ok=True)
        except OSError as e:
            logger.warning(f"Could not remove temporary manifest {tmp_path}: {e}")

    def load_manifest(self) -> BackupManifest:
        """Load and validate the manifest file."""
        if not self.exists():
            raise NotFoundError(f"Manifest not found: {self.manifest_path}", self.manifest_path)

        try:
            with open(self.manifest_path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except OSError as e:
            raise BackupIOError(f"Failed to read manifest {self.manifest_path}: {e}", self.manifest_path) from e
        except ValueError as e:
            raise ManifestParseError(f"Manifest is not valid JSON: {self.manifest_path}: {e}", self.manifest_path) from e

        if not isinstance(data, dict):
            raise ManifestParseError(f"Manifest is not a JSON object: {self.manifest_path}", self.manifest_path)

        try:
            manifest = BackupManifest.model_validate(data)
        except ValidationError as e:
            raise ManifestParseError(
                f"Manifest is malformed: {self.manifest_path}: {e.error_count()} validation error(s)",
                self.manifest_path
            ) from e

        logger.debug(f"Loaded manifest from {self.manifest_path} ({len(manifest.entries)} entries)")
        return manifest
