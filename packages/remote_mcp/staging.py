"""Local staging files that carry file content to and from the remote host.

A staging file belongs to the single operation that created it and is
removed when that operation finishes, whatever the outcome.
"""

import logging
import os
import tempfile
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

logger = logging.getLogger(__name__)

DEFAULT_PREFIX = "remote-mcp-"


def create_staged_file(content: str = "", prefix: str = DEFAULT_PREFIX) -> Path:
    """Create a uniquely named local file seeded with ``content``."""
    fd, name = tempfile.mkstemp(prefix=prefix)
    path = Path(name)
    try:
        # newline="" keeps CRLF files byte-identical
        with os.fdopen(fd, "w", encoding="utf-8", newline="") as handle:
            handle.write(content)
    except BaseException:
        remove_staged_file(path)
        raise
    return path


def read_staged_file(path: Path) -> str:
    with open(path, "r", encoding="utf-8", newline="") as handle:
        return handle.read()


def remove_staged_file(path: Path) -> None:
    """Delete a staging file, ignoring errors."""
    try:
        Path(path).unlink()
    except OSError as e:
        logger.debug("Could not remove staging file %s: %s", path, e)


@contextmanager
def staged_file(content: str = "", prefix: str = DEFAULT_PREFIX) -> Iterator[Path]:
    """Yield a staging file that is removed on every exit path."""
    path = create_staged_file(content, prefix=prefix)
    try:
        yield path
    finally:
        remove_staged_file(path)
