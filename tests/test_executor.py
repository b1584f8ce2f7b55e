"""Tests for backing up items into a backup set."""

from unittest.mock import patch

from confvault.backup.executor import BackupExecutor
from confvault.backup.manifest import MANIFEST_FILENAME
from confvault.backup.storage import BackupStorage, open_backup_set
from confvault.config import KnownConfig
from confvault.errors import ErrorKind
from confvault.util.environment import EnvironmentInfo


class TestBackupItem:
    """Test backup-one-item."""

    def test_single_entry_with_capture_size(self, storage, executor, live_dir, write_file):
        """The manifest holds exactly one entry for the item, sized as captured."""
        source = write_file(live_dir / ".gitconfig", "[user]\n\tname = Tester\n")
        handle = storage.create_backup_set()

        result = executor.backup_item(handle, source)

        assert result.success
        manifest = open_backup_set(handle.path).manifest
        matching = [e for e in manifest.entries if e.original_path == str(source)]
        assert len(matching) == 1
        assert matching[0].file_size == source.stat().st_size
        assert matching[0].backup_path == ".gitconfig.backup"
        assert (handle.path / ".gitconfig.backup").read_bytes() == source.read_bytes()

    def test_override_name_is_sanitized(self, storage, executor, live_dir, write_file):
        source = write_file(live_dir / "settings.json", "{}")
        handle = storage.create_backup_set()

        result = executor.backup_item(handle, source, "terminal/settings.json.backup")

        assert result.success
        assert result.entry.backup_path == "terminal_settings.json.backup"
        assert (handle.path / "terminal_settings.json.backup").is_file()

    def test_user_path_is_expanded(self, storage, executor, tmp_path, monkeypatch, write_file):
        monkeypatch.setenv("HOME", str(tmp_path))
        source = write_file(tmp_path / ".bashrc", "export EDITOR=vim\n")
        handle = storage.create_backup_set()

        result = executor.backup_item(handle, "~/.bashrc")

        assert result.success
        assert result.entry.original_path == str(source)

    def test_missing_source(self, storage, executor, live_dir):
        handle = storage.create_backup_set()

        result = executor.backup_item(handle, live_dir / "missing.conf")

        assert not result.success
        assert result.kind == ErrorKind.NOT_FOUND
        assert open_backup_set(handle.path).manifest.entries == []

    def test_directory_item(self, storage, executor, live_dir, write_file):
        config_dir = live_dir / "nvim"
        write_file(config_dir / "init.lua", "-- config")
        handle = storage.create_backup_set()

        result = executor.backup_item(handle, config_dir)

        assert result.success
        assert result.entry.file_size is None
        assert (handle.path / "nvim.backup" / "init.lua").is_file()

    def test_backing_up_twice_keeps_last_write(self, storage, executor, live_dir, write_file):
        source = write_file(live_dir / "app.conf", "v1")
        handle = storage.create_backup_set()
        executor.backup_item(handle, source)

        write_file(source, "version two")
        executor.backup_item(handle, source)

        manifest = open_backup_set(handle.path).manifest
        assert len(manifest.entries) == 2
        effective = manifest.effective_entries()
        assert len(effective) == 1
        assert effective[0].file_size == len("version two")

    def test_copy_failure_is_reported(self, storage, executor, live_dir, write_file):
        source = write_file(live_dir / "app.conf", "data")
        handle = storage.create_backup_set()

        with patch("confvault.backup.copier.shutil.copy2", side_effect=OSError("boom")):
            result = executor.backup_item(handle, source)

        assert not result.success
        assert result.kind == ErrorKind.IO_ERROR
        assert open_backup_set(handle.path).manifest.entries == []

    def test_manifest_name_is_refused(self, storage, executor, live_dir, write_file):
        """An override name equal to the manifest must not replace it."""
        first = write_file(live_dir / "a.conf", "alpha")
        other = write_file(live_dir / "settings.json", "{\"theme\": \"dark\"}")
        handle = storage.create_backup_set()
        executor.backup_item(handle, first)

        for reserved in (MANIFEST_FILENAME, MANIFEST_FILENAME + ".tmp"):
            result = executor.backup_item(handle, other, reserved)

            assert not result.success
            assert result.kind == ErrorKind.IO_ERROR

        manifest = open_backup_set(handle.path).manifest
        assert [e.original_path for e in manifest.entries] == [str(first)]
        assert not (handle.path / (MANIFEST_FILENAME + ".tmp")).exists()


class TestBackupKnownConfigs:
    """Test backup-named-set-of-known-configs."""

    def known_table(self, live_dir):
        return {
            "git": KnownConfig(path=str(live_dir / ".gitconfig"), backup_name="gitconfig.backup"),
            "terminal": KnownConfig(
                path=str(live_dir / "terminal" / "settings.json"),
                backup_name="windows-terminal-settings.json.backup",
                platforms=["windows"],
            ),
            "ssh": KnownConfig(path=str(live_dir / ".ssh" / "config"), backup_name="ssh-config.backup"),
        }

    def test_platform_filter_and_missing_locations(self, storage, executor, live_dir, write_file):
        write_file(live_dir / ".gitconfig", "[core]\n")
        handle = storage.create_backup_set()

        results = executor.backup_known_configs(handle, self.known_table(live_dir))

        assert set(results) == {"git", "ssh"}
        assert results["git"].success
        assert results["git"].entry.backup_path == "gitconfig.backup"
        assert not results["ssh"].success
        assert results["ssh"].kind == ErrorKind.NOT_FOUND

    def test_named_selection_bypasses_platform(self, storage, executor, live_dir, write_file):
        write_file(live_dir / "terminal" / "settings.json", "{}")
        handle = storage.create_backup_set()

        results = executor.backup_known_configs(handle, self.known_table(live_dir), ["terminal", "bogus"])

        assert results["terminal"].success
        assert (handle.path / "windows-terminal-settings.json.backup").is_file()
        assert not results["bogus"].success
        assert results["bogus"].kind == ErrorKind.NOT_FOUND

    def test_unresolvable_location(self, storage, executor):
        handle = storage.create_backup_set()
        table = {"vscode": KnownConfig(path="%CONFVAULT_TEST_UNSET%/Code/User/settings.json")}

        results = executor.backup_known_configs(handle, table, ["vscode"])

        assert not results["vscode"].success
        assert results["vscode"].kind == ErrorKind.NOT_FOUND

    def test_platform_comes_from_environment(self, backup_root, env_info, live_dir, write_file):
        write_file(live_dir / "terminal" / "settings.json", "{}")
        windows = EnvironmentInfo(
            username=env_info.username,
            hostname=env_info.hostname,
            tool_version=env_info.tool_version,
            platform_key="windows",
        )
        storage = BackupStorage(backup_root, windows)
        handle = storage.create_backup_set()

        results = BackupExecutor(storage).backup_known_configs(handle, self.known_table(live_dir))

        assert set(results) == {"git", "terminal", "ssh"}
        assert results["terminal"].success
