"""Shared fixtures for backup engine tests."""

from pathlib import Path

import pytest

from confvault.backup import BackupExecutor, BackupStorage, RestoreExecutor
from confvault.util.environment import EnvironmentInfo


@pytest.fixture
def env_info():
    return EnvironmentInfo(
        username="tester",
        hostname="testhost",
        tool_version="confvault 0.1.0 (Python 3.12.0)",
        platform_key="linux",
    )


@pytest.fixture
def backup_root(tmp_path) -> Path:
    return tmp_path / "backups"


@pytest.fixture
def live_dir(tmp_path) -> Path:
    path = tmp_path / "live"
    path.mkdir()
    return path


@pytest.fixture
def storage(backup_root, env_info):
    return BackupStorage(backup_root, env_info)


@pytest.fixture
def executor(storage):
    return BackupExecutor(storage)


@pytest.fixture
def restorer(storage):
    return RestoreExecutor(storage, show_progress=False)


@pytest.fixture
def write_file():
    def _write(path: Path, content: str) -> Path:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
        return path

    return _write
