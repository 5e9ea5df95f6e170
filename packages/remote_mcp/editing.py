"""Exact-match editing of remote files.

Files are fetched whole into a staging file, edited in memory and written
back with a single upload. Every check runs before that upload, so a
rejected edit (or any failing edit of a sequence) leaves the remote file
untouched.
"""

import logging
from typing import Optional, Sequence

from .exceptions import AmbiguousMatchError, InvalidEditError, MatchNotFoundError
from .matching import occurrence_count, replace
from .models import EditResult, EditSpec, MultiEditResult
from .staging import DEFAULT_PREFIX, read_staged_file, staged_file
from .target import RemoteTarget

logger = logging.getLogger(__name__)

SNIPPET_CONTEXT_LINES = 2


def check_distinct(edit: EditSpec, index: Optional[int] = None) -> None:
    """Reject an edit that cannot change anything."""
    if edit.old_string == edit.new_string:
        raise InvalidEditError("old_string and new_string must be different", edit_index=index)
    if not edit.old_string:
        raise InvalidEditError("old_string must not be empty", edit_index=index)


def apply_edit(content: str, edit: EditSpec, index: Optional[int] = None) -> str:
    """Validate ``edit`` against ``content`` and return the edited content.

    Args:
        content: Current file content
        edit: The replacement to apply
        index: 1-based position of the edit inside a sequence, if any

    Raises:
        InvalidEditError: old_string is empty or equal to new_string
        MatchNotFoundError: old_string does not occur in content
        AmbiguousMatchError: old_string occurs more than once and replace_all is off
    """
    check_distinct(edit, index)

    count = occurrence_count(content, edit.old_string)
    if count == 0:
        raise MatchNotFoundError(
            f"old_string not found in file: {edit.old_string}",
            old_string=edit.old_string,
            edit_index=index
        )

    if not edit.replace_all and count > 1:
        raise AmbiguousMatchError(
            f"old_string appears {count} times in file. Use replace_all=true "
            "or provide more context to make it unique.",
            occurrences=count,
            edit_index=index
        )

    return replace(content, edit.old_string, edit.new_string, edit.replace_all)


def location_hint(content: str, new_string: str, anchor: Optional[int] = None) -> str:
    """Render numbered lines around the first line that holds ``new_string``.

    Multi-line replacements are located by their first non-empty line. When
    ``new_string`` has no non-empty line (a deletion, or only newlines) or is
    not found, ``anchor`` (the character offset where the replaced text
    began) picks the line instead. Returns an empty string when neither
    applies.
    """
    lines = content.split("\n")
    needle = next((line for line in new_string.split("\n") if line), "")

    target_index = -1
    if needle:
        target_index = next((i for i, line in enumerate(lines) if needle in line), -1)
    if target_index == -1 and anchor is not None:
        target_index = content.count("\n", 0, anchor)
    if target_index == -1:
        return ""

    start = max(0, target_index - SNIPPET_CONTEXT_LINES)
    end = min(len(lines), target_index + SNIPPET_CONTEXT_LINES + 1)
    return "\n".join(
        f"{number:6}→{line}"
        for number, line in enumerate(lines[start:end], start=start + 1)
    )


async def _fetch(transport, target: RemoteTarget, file_path: str, prefix: str) -> str:
    with staged_file(prefix=prefix) as download_path:
        logger.info("Downloading %s:%s", target.host, file_path)
        await transport.download(target.host, file_path, download_path)
        return read_staged_file(download_path)


async def _store(transport, target: RemoteTarget, file_path: str, content: str, prefix: str):
    with staged_file(content, prefix=prefix) as upload_path:
        logger.info("Uploading %d characters to %s:%s", len(content), target.host, file_path)
        await transport.upload(target.host, upload_path, file_path)


async def edit_remote_file(
    transport,
    target: RemoteTarget,
    file_path: str,
    old_string: str,
    new_string: str,
    replace_all: bool = False,
    staging_prefix: str = DEFAULT_PREFIX,
) -> EditResult:
    """Replace text in a remote file.

    Args:
        transport: Object providing async download/upload (see SSHTransport)
        target: Host the file lives on
        file_path: Absolute path of the file on the host
        old_string: Literal text to find
        new_string: Replacement text
        replace_all: Replace every occurrence instead of requiring exactly one
        staging_prefix: Prefix for local staging files

    Returns:
        EditResult with the new content and a numbered snippet around the change

    Raises:
        EditError: If the edit is rejected; nothing is uploaded
        TransportError: If the download or upload fails
    """
    edit = EditSpec(old_string=old_string, new_string=new_string, replace_all=replace_all)
    check_distinct(edit)

    content = await _fetch(transport, target, file_path, staging_prefix)
    new_content = apply_edit(content, edit)
    # text before the first match is unchanged, so its offset holds in new_content
    anchor = content.find(old_string)
    await _store(transport, target, file_path, new_content, staging_prefix)

    return EditResult(
        updated_content=new_content,
        location_hint=location_hint(new_content, new_string, anchor=anchor),
    )


async def multi_edit_remote_file(
    transport,
    target: RemoteTarget,
    file_path: str,
    edits: Sequence[EditSpec],
    staging_prefix: str = DEFAULT_PREFIX,
) -> MultiEditResult:
    """Apply a sequence of edits to a remote file as one unit.

    Each edit sees the result of the edits before it. The file is uploaded
    once, after the whole sequence has applied cleanly.

    Raises:
        ValueError: If ``edits`` is empty
        EditError: Identifying the 1-based index of the first failing edit
        TransportError: If the download or upload fails
    """
    if not edits:
        raise ValueError("edits must contain at least one edit")

    content = await _fetch(transport, target, file_path, staging_prefix)

    for index, edit in enumerate(edits, start=1):
        content = apply_edit(content, edit, index=index)

    await _store(transport, target, file_path, content, staging_prefix)
    return MultiEditResult(applied_count=len(edits))
