"""Tests for configuration loading and saving."""

from pathlib import Path

from confvault.config import ConfVaultConfig, KnownConfig, load_config, save_config


class TestConfVaultConfig:
    """Test configuration model and persistence."""

    def test_defaults(self):
        config = ConfVaultConfig()

        assert config.backup_root == Path.home() / ".local/share/confvault/backups"
        assert config.restore.validate_before_restore
        assert config.restore.create_restore_point
        assert config.known_configs["git"].backup_name == "gitconfig.backup"
        assert config.known_configs["windows-terminal"].platforms == ["windows"]

    def test_save_load_round_trip(self, tmp_path):
        config_path = tmp_path / "config.yaml"
        config = ConfVaultConfig(
            backup_root=tmp_path / "backups",
            log_level="DEBUG",
            show_progress=False,
            known_configs={"tool": KnownConfig(path="~/.toolrc", description="Tool rc")},
        )
        config.restore.create_restore_point = False

        save_config(config, config_path)
        loaded = load_config(config_path)

        assert loaded == config

    def test_load_creates_default_file(self, tmp_path):
        config_path = tmp_path / "nested" / "config.yaml"

        config = load_config(config_path)

        assert config_path.is_file()
        assert config.log_level == "INFO"

    def test_partial_file_uses_defaults(self, tmp_path):
        config_path = tmp_path / "config.yaml"
        config_path.write_text(f"backup_root: {tmp_path / 'b'}\nrestore:\n  validate_before_restore: false\n")

        config = load_config(config_path)

        assert config.backup_root == tmp_path / "b"
        assert not config.restore.validate_before_restore
        assert config.restore.create_restore_point
        assert "git" in config.known_configs
