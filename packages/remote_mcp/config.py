"""Configuration for the remote-mcp server."""

import logging
import os
import sys
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

from .exceptions import ConfigurationError

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


@dataclass
class RemoteConfig:
    """Configuration for the MCP server and its SSH transport."""
    # Timeouts
    command_timeout_ms: int = 120000
    max_command_timeout_ms: int = 600000
    connect_timeout: int = 10
    transfer_timeout: float = 120.0

    # Output shaping
    max_output_chars: int = 30000
    read_line_limit: int = 2000

    # Local staging files
    staging_prefix: str = "remote-mcp-"

    # Server identification
    server_name: str = "remote-mcp"
    log_level: str = "WARNING"


def _env_int(key: str, default: int) -> int:
    raw = os.getenv(key)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw.strip())
    except ValueError:
        raise ConfigurationError(
            f"{key} must be an integer, got {raw!r}",
            missing_key=key
        )


def _env_float(key: str, default: float) -> float:
    raw = os.getenv(key)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw.strip())
    except ValueError:
        raise ConfigurationError(
            f"{key} must be a number, got {raw!r}",
            missing_key=key
        )


def get_config() -> RemoteConfig:
    """Load configuration from environment.

    Optional environment variables:
        REMOTE_MCP_COMMAND_TIMEOUT_MS: Default remote command timeout (default: 120000)
        REMOTE_MCP_MAX_COMMAND_TIMEOUT_MS: Upper bound for command timeouts (default: 600000)
        REMOTE_MCP_CONNECT_TIMEOUT: ssh ConnectTimeout in seconds (default: 10)
        REMOTE_MCP_TRANSFER_TIMEOUT: scp timeout in seconds (default: 120.0)
        REMOTE_MCP_MAX_OUTPUT_CHARS: BashRemote output truncation (default: 30000)
        REMOTE_MCP_READ_LINE_LIMIT: Lines returned by ReadRemote without a limit (default: 2000)
        REMOTE_MCP_STAGING_PREFIX: Prefix for local staging files (default: remote-mcp-)
        REMOTE_MCP_SERVER_NAME: Server name (default: remote-mcp)
        REMOTE_MCP_LOG_LEVEL: Logging level name (default: WARNING)

    Returns:
        RemoteConfig with loaded values

    Raises:
        ConfigurationError: If a numeric variable cannot be parsed
    """
    # Load .env file if it exists
    env_file = Path(__file__).parent / ".env"
    if env_file.exists():
        load_dotenv(env_file)

    # Also try parent directory .env
    parent_env = Path(__file__).parent.parent / ".env"
    if parent_env.exists():
        load_dotenv(parent_env)

    return RemoteConfig(
        command_timeout_ms=_env_int("REMOTE_MCP_COMMAND_TIMEOUT_MS", 120000),
        max_command_timeout_ms=_env_int("REMOTE_MCP_MAX_COMMAND_TIMEOUT_MS", 600000),
        connect_timeout=_env_int("REMOTE_MCP_CONNECT_TIMEOUT", 10),
        transfer_timeout=_env_float("REMOTE_MCP_TRANSFER_TIMEOUT", 120.0),
        max_output_chars=_env_int("REMOTE_MCP_MAX_OUTPUT_CHARS", 30000),
        read_line_limit=_env_int("REMOTE_MCP_READ_LINE_LIMIT", 2000),
        staging_prefix=os.getenv("REMOTE_MCP_STAGING_PREFIX", "remote-mcp-"),
        server_name=os.getenv("REMOTE_MCP_SERVER_NAME", "remote-mcp"),
        log_level=os.getenv("REMOTE_MCP_LOG_LEVEL", "WARNING"),
    )


def validate_config(config: RemoteConfig) -> None:
    """Validate configuration values.

    Args:
        config: The configuration to validate

    Raises:
        ConfigurationError: If a value is out of range
    """
    if config.command_timeout_ms <= 0:
        raise ConfigurationError(
            "Command timeout must be positive",
            missing_key="REMOTE_MCP_COMMAND_TIMEOUT_MS"
        )

    if config.max_command_timeout_ms < config.command_timeout_ms:
        raise ConfigurationError(
            f"Maximum command timeout ({config.max_command_timeout_ms}ms) is lower "
            f"than the default timeout ({config.command_timeout_ms}ms)",
            missing_key="REMOTE_MCP_MAX_COMMAND_TIMEOUT_MS"
        )

    if config.connect_timeout <= 0:
        raise ConfigurationError(
            "Connect timeout must be positive",
            missing_key="REMOTE_MCP_CONNECT_TIMEOUT"
        )

    if config.transfer_timeout <= 0:
        raise ConfigurationError(
            "Transfer timeout must be positive",
            missing_key="REMOTE_MCP_TRANSFER_TIMEOUT"
        )

    if config.max_output_chars <= 0 or config.read_line_limit <= 0:
        raise ConfigurationError(
            "Output and read limits must be positive",
            missing_key="REMOTE_MCP_MAX_OUTPUT_CHARS"
        )


def configure_logging(level_name: str) -> int:
    """Send log records to stderr; stdout carries the MCP stdio stream.

    Returns:
        The numeric level that was applied
    """
    level = getattr(logging, level_name.upper(), None)
    known = isinstance(level, int)
    if not known:
        level = logging.WARNING

    logging.basicConfig(level=level, stream=sys.stderr, format=LOG_FORMAT)

    if not known:
        logger.warning(
            "Unknown REMOTE_MCP_LOG_LEVEL %r. Falling back to WARNING.",
            level_name,
        )
    return level
