"""Custom exceptions for the remote-mcp server."""

from typing import Optional


class RemoteMcpError(Exception):
    """Base exception for the remote-mcp server."""
    pass


class ConfigurationError(RemoteMcpError):
    """Raised when configuration is invalid or missing."""

    def __init__(self, message: str, missing_key: str = ""):
        super().__init__(message)
        self.missing_key = missing_key


class InvalidTargetError(RemoteMcpError):
    """Raised when a target string is not of the form host:path."""
    pass


class TransportError(RemoteMcpError):
    """Base exception for ssh/scp failures."""
    pass


class ConnectionFailedError(TransportError):
    """Raised when the SSH connection probe fails."""

    def __init__(self, message: str, host: str = ""):
        super().__init__(message)
        self.host = host


class CommandTimeoutError(TransportError):
    """Raised when a remote command exceeds its timeout."""

    def __init__(self, message: str, timeout_ms: int = 0):
        super().__init__(message)
        self.timeout_ms = timeout_ms


class RemoteCommandError(TransportError):
    """Raised when a remote command exits with a non-zero status."""

    def __init__(self, message: str, returncode: int = -1, stderr: str = ""):
        super().__init__(message)
        self.returncode = returncode
        self.stderr = stderr


class FileTransferError(TransportError):
    """Raised when file upload/download fails."""

    def __init__(self, message: str, path: str = ""):
        super().__init__(message)
        self.path = path


class EditError(RemoteMcpError):
    """Base exception for edits rejected before any remote write.

    ``edit_index`` is the 1-based position of the failing edit when the
    edit is part of a multi-edit sequence, otherwise None.
    """

    def __init__(self, message: str, edit_index: Optional[int] = None):
        super().__init__(message)
        self.edit_index = edit_index


class InvalidEditError(EditError):
    """Raised when old_string is empty or identical to new_string."""
    pass


class MatchNotFoundError(EditError):
    """Raised when old_string does not occur in the file."""

    def __init__(self, message: str, old_string: str = "", edit_index: Optional[int] = None):
        super().__init__(message, edit_index=edit_index)
        self.old_string = old_string


class AmbiguousMatchError(EditError):
    """Raised when a single-occurrence edit matches more than once."""

    def __init__(self, message: str, occurrences: int = 0, edit_index: Optional[int] = None):
        super().__init__(message, edit_index=edit_index)
        self.occurrences = occurrences
