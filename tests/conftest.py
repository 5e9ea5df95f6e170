"""Shared fixtures for remote-mcp tests."""

import shutil
from pathlib import Path
from typing import Dict, List, Optional

import pytest

from remote_mcp.config import RemoteConfig
from remote_mcp.exceptions import FileTransferError
from remote_mcp.models import CommandResult
from remote_mcp.target import RemoteTarget
from remote_mcp.transport import SSHTransport


class FakeTransport:
    """In-memory stand-in for SSHTransport.

    Remote files live in ``files``; every upload, download and command is
    recorded so tests can assert on what reached the "remote" side.
    """

    def __init__(self, files: Optional[Dict[str, str]] = None):
        self.config = RemoteConfig()
        self.files: Dict[str, str] = dict(files or {})
        self.uploads: List[str] = []
        self.downloads: List[str] = []
        self.commands: List[dict] = []
        self.staged_paths: List[Path] = []
        self.fail_upload = False
        self.next_result = CommandResult(stdout="", stderr="", returncode=0)

    async def download(self, host, remote_path, local_path):
        self.downloads.append(remote_path)
        self.staged_paths.append(Path(local_path))
        if remote_path not in self.files:
            raise FileTransferError(
                f"Failed to download file: {remote_path}: No such file or directory",
                path=remote_path
            )
        with open(local_path, "w", encoding="utf-8", newline="") as handle:
            handle.write(self.files[remote_path])

    async def upload(self, host, local_path, remote_path):
        self.staged_paths.append(Path(local_path))
        if self.fail_upload:
            raise FileTransferError("Failed to upload file: Permission denied", path=remote_path)
        with open(local_path, "r", encoding="utf-8", newline="") as handle:
            self.files[remote_path] = handle.read()
        self.uploads.append(remote_path)

    async def run(self, host, command, timeout_ms=None, cwd=None, check=True):
        self.commands.append(
            {"host": host, "command": command, "timeout_ms": timeout_ms, "cwd": cwd, "check": check}
        )
        return self.next_result


@pytest.fixture
def target():
    return RemoteTarget(host="devbox", path="/srv/app")


@pytest.fixture
def fake_transport():
    return FakeTransport()


@pytest.fixture(autouse=True)
def reset_transport_singleton():
    SSHTransport.reset_instance()
    yield
    SSHTransport.reset_instance()
