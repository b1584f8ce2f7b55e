"""Tests for listing and removing backup sets."""

from datetime import datetime
from unittest.mock import MagicMock, patch

from confvault.backup.manifest import MANIFEST_FILENAME
from confvault.backup.registry import BackupRegistry


class TestListBackupSets:
    """Test backup set enumeration."""

    def test_newest_first(self, storage):
        storage.create_backup_set(timestamp=datetime(2024, 1, 1, 1, 0, 0))
        storage.create_backup_set(timestamp=datetime(2024, 6, 1, 2, 0, 0))

        summaries = BackupRegistry(storage).list_backup_sets()

        assert [s.name for s in summaries] == ["20240601_020000", "20240101_010000"]

    def test_summary_from_manifest(self, storage, executor, live_dir, write_file):
        handle = storage.create_backup_set(timestamp=datetime(2024, 6, 1, 2, 0, 0))
        executor.backup_item(handle, write_file(live_dir / "a.conf", "a"))
        executor.backup_item(handle, write_file(live_dir / "b.conf", "b"))

        summary = BackupRegistry(storage).list_backup_sets()[0]

        assert summary.has_manifest
        assert summary.entry_count == 2
        assert summary.entry_count_display == "2"
        assert summary.total_size == 2
        assert summary.size_display == "2.0 B"
        assert summary.created == datetime(2024, 6, 1, 2, 0, 0)
        assert summary.path == handle.path

    def test_unreadable_manifest_has_unknown_count(self, storage, backup_root):
        backup_dir = backup_root / "20240101_010000"
        backup_dir.mkdir(parents=True)
        (backup_dir / MANIFEST_FILENAME).write_text("not json", encoding="utf-8")

        summary = BackupRegistry(storage).list_backup_sets()[0]

        assert summary.has_manifest
        assert summary.entry_count is None
        assert summary.entry_count_display == "unknown"
        assert isinstance(summary.created, datetime)

    def test_directory_without_manifest(self, storage, backup_root):
        (backup_root / "20240101_010000").mkdir(parents=True)

        summary = BackupRegistry(storage).list_backup_sets()[0]

        assert not summary.has_manifest
        assert summary.entry_count is None

    def test_missing_root(self, storage):
        assert BackupRegistry(storage).list_backup_sets() == []


class TestRemoveBackupSet:
    """Test backup set removal."""

    def test_force_removes_without_prompt(self, storage):
        handle = storage.create_backup_set()
        confirm = MagicMock(return_value=False)

        assert BackupRegistry(storage).remove_backup_set(handle.path, force=True, confirm=confirm)
        assert not handle.path.exists()
        confirm.assert_not_called()

    def test_confirmed_removal(self, storage):
        handle = storage.create_backup_set()

        assert BackupRegistry(storage).remove_backup_set(handle.path, confirm=lambda prompt: True)
        assert not handle.path.exists()

    def test_declined_removal_keeps_set(self, storage):
        handle = storage.create_backup_set()

        assert not BackupRegistry(storage).remove_backup_set(handle.path, confirm=lambda prompt: False)
        assert handle.path.exists()

    def test_default_prompt_uses_rich_confirm(self, storage):
        handle = storage.create_backup_set()

        with patch("confvault.backup.registry.Confirm.ask", return_value=True) as ask:
            assert BackupRegistry(storage).remove_backup_set(handle.path)

        ask.assert_called_once()
        assert not handle.path.exists()

    def test_nonexistent_set(self, storage, tmp_path):
        assert BackupRegistry(storage).remove_backup_set(tmp_path / "never-existed", force=True)

    def test_delete_failure_returns_false(self, storage):
        handle = storage.create_backup_set()

        with patch("confvault.backup.registry.shutil.rmtree", side_effect=OSError("busy")):
            assert not BackupRegistry(storage).remove_backup_set(handle.path, force=True)

        assert handle.path.exists()

    def test_refuses_backup_root_and_parents(self, storage, backup_root, tmp_path):
        storage.create_backup_set()
        registry = BackupRegistry(storage)

        assert not registry.remove_backup_set(backup_root, force=True, allow_unmanaged=True)
        assert not registry.remove_backup_set(tmp_path, force=True, allow_unmanaged=True)
        assert backup_root.is_dir()

    def test_refuses_directory_without_manifest(self, storage, tmp_path):
        stray = tmp_path / "not-a-set"
        stray.mkdir()
        (stray / "keep.txt").write_text("x", encoding="utf-8")
        registry = BackupRegistry(storage)

        assert not registry.remove_backup_set(stray, force=True)
        assert (stray / "keep.txt").exists()

        assert registry.remove_backup_set(stray, force=True, allow_unmanaged=True)
        assert not stray.exists()
