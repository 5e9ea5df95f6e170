"""Parsing of the host:path target the server is bound to."""

from dataclasses import dataclass

from .exceptions import InvalidTargetError


@dataclass(frozen=True)
class RemoteTarget:
    """A remote host plus the working directory tool calls default to."""
    host: str
    path: str

    def __str__(self) -> str:
        return f"{self.host}:{self.path}"


def parse_target(target: str) -> RemoteTarget:
    """Parse a ``host:path`` string.

    Only the first colon separates host from path, so the path may itself
    contain colons.

    Raises:
        InvalidTargetError: If there is no colon or the host is empty
    """
    host, sep, path = target.partition(":")
    if not sep:
        raise InvalidTargetError('Invalid target format. Expected "host:path"')
    if not host:
        raise InvalidTargetError(f"Invalid target {target!r}: host must not be empty")
    return RemoteTarget(host=host, path=path)
