"""Tests for the ssh/scp transport, with subprocess creation mocked."""

import asyncio
import sys
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from remote_mcp.config import RemoteConfig
from remote_mcp.exceptions import (
    CommandTimeoutError,
    ConnectionFailedError,
    FileTransferError,
    RemoteCommandError,
    TransportError,
)
from remote_mcp.transport import SSHTransport


def make_process(stdout=b"", stderr=b"", returncode=0):
    process = MagicMock()
    process.communicate = AsyncMock(return_value=(stdout, stderr))
    process.returncode = returncode
    process.wait = AsyncMock(return_value=returncode)
    process.kill = MagicMock()
    return process


@pytest.fixture
def transport():
    return SSHTransport(RemoteConfig())


class TestRun:
    """Tests for SSHTransport.run."""

    @pytest.mark.asyncio
    async def test_builds_ssh_command(self, transport):
        process = make_process(stdout=b"hello\n")
        with patch("asyncio.create_subprocess_exec", AsyncMock(return_value=process)) as spawn:
            result = await transport.run("devbox", "echo hello")

        args = spawn.call_args.args
        assert args[0] == "ssh"
        assert "ConnectTimeout=10" in args
        assert "ServerAliveInterval=60" in args
        assert "ServerAliveCountMax=3" in args
        assert args[-2:] == ("devbox", "echo hello")
        assert result.stdout == "hello\n"
        assert result.success

    @pytest.mark.asyncio
    async def test_cwd_is_quoted(self, transport):
        process = make_process()
        with patch("asyncio.create_subprocess_exec", AsyncMock(return_value=process)) as spawn:
            await transport.run("devbox", "ls", cwd="/srv/my app")

        assert spawn.call_args.args[-1] == "cd '/srv/my app' && ls"

    @pytest.mark.asyncio
    async def test_non_zero_exit_raises_when_checked(self, transport):
        process = make_process(stderr=b"not found", returncode=127)
        with patch("asyncio.create_subprocess_exec", AsyncMock(return_value=process)):
            with pytest.raises(RemoteCommandError) as exc_info:
                await transport.run("devbox", "nope")

        assert exc_info.value.returncode == 127
        assert exc_info.value.stderr == "not found"

    @pytest.mark.asyncio
    async def test_non_zero_exit_returned_when_unchecked(self, transport):
        process = make_process(stdout=b"", stderr=b"err", returncode=1)
        with patch("asyncio.create_subprocess_exec", AsyncMock(return_value=process)):
            result = await transport.run("devbox", "false", check=False)

        assert result.returncode == 1
        assert result.stderr == "err"
        assert not result.success

    @pytest.mark.asyncio
    async def test_timeout_kills_process(self, transport):
        process = make_process()
        process.communicate = AsyncMock(side_effect=asyncio.TimeoutError)
        with patch("asyncio.create_subprocess_exec", AsyncMock(return_value=process)):
            with pytest.raises(CommandTimeoutError) as exc_info:
                await transport.run("devbox", "sleep 100", timeout_ms=50)

        assert exc_info.value.timeout_ms == 50
        assert "50ms" in str(exc_info.value)
        assert isinstance(exc_info.value, TransportError)
        process.kill.assert_called_once()

    @pytest.mark.asyncio
    async def test_cancelled_call_kills_process(self, transport):
        process = make_process()
        process.communicate = AsyncMock(side_effect=asyncio.CancelledError)
        with patch("asyncio.create_subprocess_exec", AsyncMock(return_value=process)):
            with pytest.raises(asyncio.CancelledError):
                await transport.run("devbox", "sleep 100")

        process.kill.assert_called_once()
        process.wait.assert_awaited()

    @pytest.mark.asyncio
    async def test_cancelled_spawn_leaves_no_running_child(self, transport):
        spawned = []
        real_spawn = asyncio.create_subprocess_exec

        async def recording_spawn(*args, **kwargs):
            process = await real_spawn(*args, **kwargs)
            spawned.append(process)
            return process

        with patch("asyncio.create_subprocess_exec", recording_spawn):
            task = asyncio.create_task(
                transport._spawn([sys.executable, "-c", "import time; time.sleep(30)"], 60)
            )
            while not spawned:
                await asyncio.sleep(0.01)
            await asyncio.sleep(0.1)
            task.cancel()
            with pytest.raises(asyncio.CancelledError):
                await task

        assert spawned[0].returncode is not None

    @pytest.mark.asyncio
    async def test_invalid_utf8_replaced(self, transport):
        process = make_process(stdout=b"ok \xff")
        with patch("asyncio.create_subprocess_exec", AsyncMock(return_value=process)):
            result = await transport.run("devbox", "cat bin")

        assert result.stdout == "ok �"

    @pytest.mark.asyncio
    async def test_missing_ssh_binary(self, transport):
        with patch("asyncio.create_subprocess_exec", AsyncMock(side_effect=FileNotFoundError("ssh"))):
            with pytest.raises(RemoteCommandError, match="Failed to start ssh"):
                await transport.run("devbox", "true")


class TestTimeouts:
    """Tests for timeout defaults and clamping."""

    def test_default(self, transport):
        assert transport.effective_timeout_ms(None) == 120000

    def test_clamped_to_maximum(self, transport):
        assert transport.effective_timeout_ms(900000) == 600000

    def test_explicit(self, transport):
        assert transport.effective_timeout_ms(5000) == 5000


class TestTransfers:
    """Tests for scp upload and download."""

    @pytest.mark.asyncio
    async def test_upload(self, transport):
        process = make_process()
        with patch("asyncio.create_subprocess_exec", AsyncMock(return_value=process)) as spawn:
            await transport.upload("devbox", "/tmp/staged", "/srv/app/main.py")

        args = spawn.call_args.args
        assert args[0] == "scp"
        assert args[-2:] == ("/tmp/staged", "devbox:/srv/app/main.py")

    @pytest.mark.asyncio
    async def test_download(self, transport):
        process = make_process()
        with patch("asyncio.create_subprocess_exec", AsyncMock(return_value=process)) as spawn:
            await transport.download("devbox", "/srv/app/main.py", "/tmp/staged")

        assert spawn.call_args.args[-2:] == ("devbox:/srv/app/main.py", "/tmp/staged")

    @pytest.mark.asyncio
    async def test_failed_transfer(self, transport):
        process = make_process(stderr=b"scp: /srv/x: No such file or directory\n", returncode=1)
        with patch("asyncio.create_subprocess_exec", AsyncMock(return_value=process)):
            with pytest.raises(FileTransferError) as exc_info:
                await transport.download("devbox", "/srv/x", "/tmp/staged")

        assert exc_info.value.path == "/srv/x"
        assert str(exc_info.value).startswith("Failed to download file:")
        assert "No such file" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_transfer_timeout(self, transport):
        process = make_process()
        process.communicate = AsyncMock(side_effect=asyncio.TimeoutError)
        with patch("asyncio.create_subprocess_exec", AsyncMock(return_value=process)):
            with pytest.raises(FileTransferError, match="timed out"):
                await transport.upload("devbox", "/tmp/staged", "/srv/x")


class TestConnection:
    """Tests for the connection probe."""

    @pytest.mark.asyncio
    async def test_probe_succeeds(self, transport):
        process = make_process()
        with patch("asyncio.create_subprocess_exec", AsyncMock(return_value=process)) as spawn:
            await transport.test_connection("devbox")

        assert "BatchMode=yes" in spawn.call_args.args

    @pytest.mark.asyncio
    async def test_probe_fails(self, transport):
        process = make_process(stderr=b"Permission denied (publickey).", returncode=255)
        with patch("asyncio.create_subprocess_exec", AsyncMock(return_value=process)):
            with pytest.raises(ConnectionFailedError, match="Permission denied") as exc_info:
                await transport.test_connection("devbox")

        assert exc_info.value.host == "devbox"


class TestSingleton:
    """Tests for shared instance handling."""

    def test_get_instance_reuses(self):
        config = RemoteConfig()
        first = SSHTransport.get_instance(config)
        assert SSHTransport.get_instance() is first

    def test_reset_instance(self):
        first = SSHTransport.get_instance(RemoteConfig())
        SSHTransport.reset_instance()
        assert SSHTransport.get_instance(RemoteConfig()) is not first
