"""Enumeration and removal of backup sets under a root directory."""

import os
import shutil
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Callable, List, Optional, Union

from rich.prompt import Confirm

from ..errors import ConfVaultError
from ..util.logging import get_logger, log_success
from ..util.paths import format_size, is_within
from ..util.timeutil import parse_timestamp
from .manifest import MANIFEST_FILENAME, ManifestManager
from .storage import BackupStorage

logger = get_logger(__name__)


@dataclass
class BackupSetSummary:
    """Listing row for one backup set."""

    path: Path
    name: str
    created: datetime
    entry_count: Optional[int] = None
    total_size: Optional[int] = None
    has_manifest: bool = False

    @property
    def entry_count_display(self) -> str:
        return "unknown" if self.entry_count is None else str(self.entry_count)

    @property
    def size_display(self) -> str:
        return "unknown" if self.total_size is None else format_size(self.total_size)


def _ask_confirmation(prompt: str) -> bool:
    return Confirm.ask(prompt, default=False)


class BackupRegistry:
    """Lists and prunes backup sets under a root directory."""

    def __init__(self, storage: BackupStorage):
        self.storage = storage

    @property
    def root(self) -> Path:
        return self.storage.base_path

    def summarize(self, backup_dir: Path) -> BackupSetSummary:
        """Summarize a backup set directory, tolerating a bad manifest."""
        manager = ManifestManager(backup_dir)
        created = datetime.fromtimestamp(backup_dir.stat().st_ctime)
        summary = BackupSetSummary(path=backup_dir, name=backup_dir.name, created=created)

        if not manager.exists():
            return summary

        summary.has_manifest = True
        try:
            manifest = manager.load_manifest()
        except ConfVaultError as e:
            logger.debug(f"Unreadable manifest in {backup_dir}: {e.message}")
            return summary

        summary.entry_count = len(manifest.effective_entries())
        summary.total_size = manifest.total_size
        try:
            summary.created = parse_timestamp(manifest.timestamp)
        except ValueError:
            logger.debug(f"Unparseable manifest timestamp in {backup_dir}: {manifest.timestamp}")

        return summary

    def list_backup_sets(self) -> List[BackupSetSummary]:
        """List backup sets sorted newest first by directory name.

        Names start with a fixed-width yyyyMMdd_HHmmss stamp, so a
        lexicographic sort is a chronological one.
        """
        summaries = []
        for backup_dir in self.storage.list_set_directories():
            try:
                summaries.append(self.summarize(backup_dir))
            except OSError as e:
                logger.warning(f"Skipping unreadable backup directory {backup_dir}: {e}")
        return summaries

    def remove_backup_set(
        self,
        path: Union[str, Path],
        force: bool = False,
        confirm: Optional[Callable[[str], bool]] = None,
        allow_unmanaged: bool = False,
    ) -> bool:
        """Recursively delete a backup set after confirmation.

        The backup root itself is never removed. A directory without a
        manifest is only removed when allow_unmanaged is set.

        Returns:
            True if the directory is absent afterwards, including when it
            never existed
        """
        backup_dir = Path(path)

        if not backup_dir.exists():
            logger.info(f"Backup set does not exist: {backup_dir}")
            return True

        if not backup_dir.is_dir():
            logger.error(f"Not a backup set directory: {backup_dir}")
            return False

        is_root = self.root.exists() and os.path.samefile(backup_dir, self.root)
        if is_root or is_within(self.root, backup_dir):
            logger.error(f"Refusing to remove the backup root or one of its parents: {backup_dir}")
            return False

        if not allow_unmanaged and not ManifestManager(backup_dir).exists():
            logger.error(f"Refusing to remove {backup_dir}: no {MANIFEST_FILENAME} found")
            return False

        if not force:
            ask = confirm or _ask_confirmation
            if not ask(f"Delete backup set {backup_dir}?"):
                logger.info(f"Removal of {backup_dir} cancelled")
                return False

        try:
            shutil.rmtree(backup_dir)
        except OSError as e:
            logger.error(f"Failed to remove backup set {backup_dir}: {e}")

        removed = not backup_dir.exists()
        if removed:
            log_success(logger, f"Removed backup set {backup_dir}")
        return removed
