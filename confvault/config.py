"""Configuration management for confvault."""

from pathlib import Path
from typing import Dict, List, Optional

from pydantic import BaseModel, Field
from ruamel.yaml import YAML

DEFAULT_CONFIG_PATH = Path.home() / ".config/confvault/config.yaml"


class KnownConfig(BaseModel):
    """A well-known configuration location."""

    path: str = Field(description="Location; ~ and environment variables are expanded")
    backup_name: Optional[str] = Field(default=None, description="Payload name inside the backup set")
    platforms: List[str] = Field(
        default_factory=lambda: ["windows", "macos", "linux"],
        description="Platforms on which this location applies"
    )
    description: str = Field(default="", description="Human readable description")


def default_known_configs() -> Dict[str, KnownConfig]:
    """Default table of well-known configuration locations."""
    return {
        "git": KnownConfig(
            path="~/.gitconfig",
            backup_name="gitconfig.backup",
            description="Git global configuration",
        ),
        "windows-terminal": KnownConfig(
            path="%LOCALAPPDATA%/Packages/Microsoft.WindowsTerminal_8wekyb3d8bbwe/LocalState/settings.json",
            backup_name="windows-terminal-settings.json.backup",
            platforms=["windows"],
            description="Windows Terminal settings",
        ),
        "powershell-profile": KnownConfig(
            path="~/Documents/PowerShell/Microsoft.PowerShell_profile.ps1",
            backup_name="powershell-profile.ps1.backup",
            platforms=["windows"],
            description="PowerShell user profile",
        ),
        "vscode": KnownConfig(
            path="%APPDATA%/Code/User/settings.json",
            backup_name="vscode-settings.json.backup",
            platforms=["windows"],
            description="VS Code user settings",
        ),
        "vscode-macos": KnownConfig(
            path="~/Library/Application Support/Code/User/settings.json",
            backup_name="vscode-settings.json.backup",
            platforms=["macos"],
            description="VS Code user settings",
        ),
        "vscode-linux": KnownConfig(
            path="~/.config/Code/User/settings.json",
            backup_name="vscode-settings.json.backup",
            platforms=["linux"],
            description="VS Code user settings",
        ),
        "ssh": KnownConfig(
            path="~/.ssh/config",
            backup_name="ssh-config.backup",
            description="OpenSSH client configuration",
        ),
        "bash": KnownConfig(
            path="~/.bashrc",
            backup_name="bashrc.backup",
            platforms=["macos", "linux"],
            description="Bash startup file",
        ),
        "zsh": KnownConfig(
            path="~/.zshrc",
            backup_name="zshrc.backup",
            platforms=["macos", "linux"],
            description="Zsh startup file",
        ),
    }


class RestoreConfig(BaseModel):
    """Default flags for restore operations started from the CLI."""

    validate_before_restore: bool = Field(default=True, description="Validate archive before restoring")
    create_restore_point: bool = Field(default=True, description="Snapshot live files before restoring")


class ConfVaultConfig(BaseModel):
    """Main configuration for confvault."""

    backup_root: Path = Field(
        default_factory=lambda: Path.home() / ".local/share/confvault/backups",
        description="Root directory for backup sets"
    )
    log_level: str = Field(default="INFO", description="Logging level")
    log_file: Optional[Path] = Field(default=None, description="Optional detailed log file")
    show_progress: bool = Field(default=True, description="Show progress bars during restore")

    restore: RestoreConfig = Field(default_factory=RestoreConfig)
    known_configs: Dict[str, KnownConfig] = Field(default_factory=default_known_configs)

    class Config:
        """Pydantic configuration."""

        validate_assignment = True


def load_config(config_path: Optional[Path] = None) -> ConfVaultConfig:
    """Load configuration from file or create default."""

    if config_path is None:
        config_path = DEFAULT_CONFIG_PATH

    if config_path.exists():
        yaml = YAML(typ="safe")
        with open(config_path, "r", encoding="utf-8") as f:
            data = yaml.load(f) or {}
        return ConfVaultConfig(**data)
    else:
        config = ConfVaultConfig()
        save_config(config, config_path)
        return config


def save_config(config: ConfVaultConfig, config_path: Optional[Path] = None) -> None:
    """Save configuration to file."""

    if config_path is None:
        config_path = DEFAULT_CONFIG_PATH

    config_path.parent.mkdir(parents=True, exist_ok=True)

    yaml = YAML()
    yaml.default_flow_style = False

    with open(config_path, "w", encoding="utf-8") as f:
        yaml.dump(config.model_dump(mode="json"), f)
