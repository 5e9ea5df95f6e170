"""SSH transport for remote-mcp.

Every call spawns a fresh ``ssh`` or ``scp`` process; no remote session
survives between calls. Commands are bounded by a timeout, after which the
local process is killed and CommandTimeoutError is raised. A cancelled call
kills its process too, so an aborted upload never completes later.
"""

import asyncio
import logging
import shlex
from pathlib import Path
from typing import List, Optional, Tuple, Union

from .config import RemoteConfig, get_config, validate_config
from .exceptions import (
    CommandTimeoutError,
    ConnectionFailedError,
    FileTransferError,
    RemoteCommandError,
)
from .models import CommandResult

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


class SSHTransport:
    """Runs commands and copies files against a remote host with ssh/scp.

    A shared instance is available through get_instance(); tests and
    callers that need different settings construct their own.
    """

    _instance: Optional["SSHTransport"] = None

    def __init__(self, config: Optional[RemoteConfig] = None):
        """Initialize the transport.

        Args:
            config: Configuration object. If None, loads from environment.
        """
        self._config = config or get_config()
        validate_config(self._config)

    @classmethod
    def get_instance(cls, config: Optional[RemoteConfig] = None) -> "SSHTransport":
        """Get the singleton instance."""
        if cls._instance is None:
            cls._instance = cls(config)
        return cls._instance

    @classmethod
    def reset_instance(cls):
        """Reset the singleton instance (for testing)."""
        cls._instance = None

    @property
    def config(self) -> RemoteConfig:
        return self._config

    def _ssh_options(self) -> List[str]:
        return [
            "-o", f"ConnectTimeout={self._config.connect_timeout}",
            "-o", "ServerAliveInterval=60",
            "-o", "ServerAliveCountMax=3",
        ]

    def effective_timeout_ms(self, timeout_ms: Optional[int]) -> int:
        """Apply the configured default and clamp to the configured maximum."""
        if timeout_ms is None or timeout_ms <= 0:
            timeout_ms = self._config.command_timeout_ms
        return min(timeout_ms, self._config.max_command_timeout_ms)

    async def _spawn(self, args: List[str], timeout: float) -> Tuple[int, str, str]:
        """Run a local process, returning (returncode, stdout, stderr).

        Raises:
            asyncio.TimeoutError: If the process outlives ``timeout`` seconds
            asyncio.CancelledError: If the awaiting task is cancelled; the
                process is killed first
            OSError: If the executable cannot be started
        """
        process = await asyncio.create_subprocess_exec(
            *args,
            stdin=asyncio.subprocess.DEVNULL,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
        try:
            stdout, stderr = await asyncio.wait_for(process.communicate(), timeout=timeout)
        except (asyncio.TimeoutError, asyncio.CancelledError):
            await self._kill_process(process)
            raise

        return (
            process.returncode,
            stdout.decode("utf-8", errors="replace"),
            stderr.decode("utf-8", errors="replace"),
        )

    async def _kill_process(self, process: asyncio.subprocess.Process):
        try:
            process.kill()
        except ProcessLookupError:
            return
        try:
            await asyncio.wait_for(process.wait(), timeout=5.0)
        except asyncio.TimeoutError:
            logger.warning("Process %s did not exit after kill", process.pid)

    async def run(
        self,
        host: str,
        command: str,
        timeout_ms: Optional[int] = None,
        cwd: Optional[str] = None,
        check: bool = True,
    ) -> CommandResult:
        """Execute a command on the remote host.

        Args:
            host: ssh destination (alias, host or user@host)
            command: Shell command to run remotely
            timeout_ms: Timeout in milliseconds (default from config, clamped to maximum)
            cwd: Remote directory to run the command in
            check: Raise RemoteCommandError on a non-zero exit status

        Returns:
            CommandResult with stdout, stderr, returncode

        Raises:
            CommandTimeoutError: If the command does not finish in time
            RemoteCommandError: If check is set and the command fails
        """
        effective_timeout = self.effective_timeout_ms(timeout_ms)

        full_command = command
        if cwd:
            full_command = f"cd {shlex.quote(cwd)} && {command}"

        args = ["ssh", *self._ssh_options(), host, full_command]
        logger.debug("ssh %s: %s", host, full_command)

        try:
            returncode, stdout, stderr = await self._spawn(args, effective_timeout / 1000)
        except asyncio.TimeoutError:
            logger.warning("Command on %s timed out after %dms", host, effective_timeout)
            raise CommandTimeoutError(
                f"Command timed out after {effective_timeout}ms",
                timeout_ms=effective_timeout
            )
        except OSError as e:
            raise RemoteCommandError(f"Failed to start ssh: {e}", returncode=-1, stderr=str(e))

        if check and returncode != 0:
            logger.warning("Command on %s exited with %d", host, returncode)
            raise RemoteCommandError(
                f"Command failed with exit code {returncode}: {stderr.strip()}",
                returncode=returncode,
                stderr=stderr
            )

        return CommandResult(stdout=stdout, stderr=stderr, returncode=returncode)

    async def _scp(self, source: str, destination: str, path: str, action: str):
        args = ["scp", "-q", *self._ssh_options(), source, destination]
        logger.debug("scp %s -> %s", source, destination)

        try:
            returncode, _, stderr = await self._spawn(args, self._config.transfer_timeout)
        except asyncio.TimeoutError:
            raise FileTransferError(
                f"Failed to {action} file: timed out after {self._config.transfer_timeout}s",
                path=path
            )
        except OSError as e:
            raise FileTransferError(f"Failed to {action} file: {e}", path=path)

        if returncode != 0:
            logger.warning("scp %s of %s failed: %s", action, path, stderr.strip())
            raise FileTransferError(
                f"Failed to {action} file: {stderr.strip() or f'scp exited with {returncode}'}",
                path=path
            )

    async def upload(self, host: str, local_path: PathLike, remote_path: str):
        """Copy a local file over ``remote_path`` on the host.

        Raises:
            FileTransferError: If the copy fails
        """
        await self._scp(str(local_path), f"{host}:{remote_path}", remote_path, "upload")

    async def download(self, host: str, remote_path: str, local_path: PathLike):
        """Copy ``remote_path`` on the host over a local file.

        Raises:
            FileTransferError: If the copy fails
        """
        await self._scp(f"{host}:{remote_path}", str(local_path), remote_path, "download")

    async def test_connection(self, host: str):
        """Check that a non-interactive ssh login to the host works.

        Raises:
            ConnectionFailedError: If the probe fails or times out
        """
        args = ["ssh", "-o", "ConnectTimeout=5", "-o", "BatchMode=yes", host, "true"]
        try:
            returncode, _, stderr = await self._spawn(args, 10.0)
        except asyncio.TimeoutError:
            raise ConnectionFailedError("SSH connection failed: timed out", host=host)
        except OSError as e:
            raise ConnectionFailedError(f"SSH connection failed: {e}", host=host)

        if returncode != 0:
            raise ConnectionFailedError(
                f"SSH connection failed: {stderr.strip() or f'ssh exited with {returncode}'}",
                host=host
            )
