"""MCP tool implementations for remote-mcp.

Each tool receives the ``host:path`` target the server is bound to, does its
work through an SSHTransport, and converts every failure into a ToolResult
with ``is_error`` set.
"""

import logging
import shlex
from typing import Annotated, List, Optional, Sequence, Union

from pydantic import ValidationError

from .editing import edit_remote_file, multi_edit_remote_file
from .exceptions import (
    ConfigurationError,
    EditError,
    InvalidTargetError,
    TransportError,
)
from .models import (
    BashRemoteInput,
    EditRemoteInput,
    EditSpec,
    GlobRemoteInput,
    GrepRemoteInput,
    LSRemoteInput,
    MultiEditRemoteInput,
    ReadRemoteInput,
    ToolResult,
    WriteRemoteInput,
)
from .staging import staged_file
from .target import parse_target
from .transport import SSHTransport

logger = logging.getLogger(__name__)

NOT_FOUND_MARKER = "No such file or directory"


def _ok(text: str) -> ToolResult:
    return ToolResult(text=text)


def _error(text: str) -> ToolResult:
    return ToolResult(text=text, is_error=True)


def _invalid_arguments(e: ValidationError) -> ToolResult:
    problems = "; ".join(
        f"{'.'.join(str(part) for part in err['loc'])}: {err['msg']}" for err in e.errors()
    )
    return _error(f"Error: invalid arguments: {problems}")


async def edit_remote(
    target: Annotated[str, "host:path the server is bound to"],
    file_path: Annotated[str, "Absolute path of the file on the remote host"],
    old_string: Annotated[str, "The text to replace"],
    new_string: Annotated[str, "The text to replace it with"],
    replace_all: Annotated[bool, "Replace every occurrence of old_string"] = False,
    transport: Optional[SSHTransport] = None,
) -> ToolResult:
    """Replace an exact string in a remote file.

    Without replace_all the string must occur exactly once. On success the
    result shows a numbered snippet around the first changed line.
    """
    try:
        transport = transport or SSHTransport.get_instance()
        params = EditRemoteInput(
            file_path=file_path,
            old_string=old_string,
            new_string=new_string,
            replace_all=replace_all,
        )
        remote_target = parse_target(target)

        result = await edit_remote_file(
            transport,
            remote_target,
            params.file_path,
            params.old_string,
            params.new_string,
            replace_all=params.replace_all,
            staging_prefix=transport.config.staging_prefix,
        )

        return _ok(
            f"The file {params.file_path} has been updated. Here's the result of running "
            f"`cat -n` on a snippet of the edited file:\n{result.location_hint}"
        )

    except ValidationError as e:
        return _invalid_arguments(e)
    except (EditError, InvalidTargetError, ConfigurationError) as e:
        return _error(f"Error: {e}")
    except TransportError as e:
        return _error(f"Error editing file: {e}")
    except Exception as e:
        logger.exception("Unexpected error editing %s", file_path)
        return _error(f"Error editing file: Unexpected error: {e}")


async def multi_edit_remote(
    target: Annotated[str, "host:path the server is bound to"],
    file_path: Annotated[str, "Absolute path of the file on the remote host"],
    edits: Annotated[Sequence[Union[EditSpec, dict]], "Edits applied in order"],
    transport: Optional[SSHTransport] = None,
) -> ToolResult:
    """Apply several edits to one remote file, all or nothing.

    Edits run in order, each against the result of the previous ones. The
    file is written once, only if every edit applies.
    """
    try:
        transport = transport or SSHTransport.get_instance()
        params = MultiEditRemoteInput(file_path=file_path, edits=list(edits))
        remote_target = parse_target(target)

        result = await multi_edit_remote_file(
            transport,
            remote_target,
            params.file_path,
            params.edits,
            staging_prefix=transport.config.staging_prefix,
        )

        return _ok(f"Successfully applied {result.applied_count} edits to {params.file_path}")

    except ValidationError as e:
        return _invalid_arguments(e)
    except EditError as e:
        return _error(f"Error in edit {e.edit_index}: {e}")
    except (InvalidTargetError, ConfigurationError) as e:
        return _error(f"Error: {e}")
    except TransportError as e:
        return _error(f"Error editing file: {e}")
    except Exception as e:
        logger.exception("Unexpected error editing %s", file_path)
        return _error(f"Error editing file: Unexpected error: {e}")


async def write_remote(
    target: Annotated[str, "host:path the server is bound to"],
    file_path: Annotated[str, "Absolute path of the file on the remote host"],
    content: Annotated[str, "The content to write"],
    transport: Optional[SSHTransport] = None,
) -> ToolResult:
    """Create or overwrite a remote file with the given content."""
    try:
        transport = transport or SSHTransport.get_instance()
        params = WriteRemoteInput(file_path=file_path, content=content)
        remote_target = parse_target(target)

        with staged_file(params.content, prefix=transport.config.staging_prefix) as local_path:
            await transport.upload(remote_target.host, local_path, params.file_path)

        return _ok(f"File created successfully at: {params.file_path}")

    except ValidationError as e:
        return _invalid_arguments(e)
    except (InvalidTargetError, ConfigurationError) as e:
        return _error(f"Error: {e}")
    except Exception as e:
        return _error(f"Error writing file: {e}")


def build_read_command(file_path: str, offset: Optional[int], limit: Optional[int], default_limit: int) -> str:
    """Build a command printing numbered lines of a file.

    Numbering always reflects the real line numbers of the file.
    """
    quoted = shlex.quote(file_path)
    if offset and limit:
        return f"cat -n {quoted} | sed -n '{offset},{offset + limit - 1}p'"
    if offset:
        return f"cat -n {quoted} | tail -n +{offset} | head -n {default_limit}"
    return f"head -n {limit or default_limit} {quoted} | cat -n"


async def read_remote(
    target: Annotated[str, "host:path the server is bound to"],
    file_path: Annotated[str, "Absolute path of the file on the remote host"],
    offset: Annotated[Optional[int], "1-based line to start reading from"] = None,
    limit: Annotated[Optional[int], "Number of lines to read"] = None,
    transport: Optional[SSHTransport] = None,
) -> ToolResult:
    """Read a remote file in ``cat -n`` format."""
    try:
        transport = transport or SSHTransport.get_instance()
        params = ReadRemoteInput(file_path=file_path, offset=offset, limit=limit)
        remote_target = parse_target(target)

        command = build_read_command(
            params.file_path, params.offset, params.limit, transport.config.read_line_limit
        )
        result = await transport.run(remote_target.host, command, check=False)

        if NOT_FOUND_MARKER in result.stderr:
            return _error(f"Error: File not found: {params.file_path}")

        if not result.stdout.strip():
            if result.stderr.strip():
                return _error(f"Error reading file: {result.stderr.strip()}")
            return _ok(f"File exists but has empty contents: {params.file_path}")

        return _ok(result.stdout)

    except ValidationError as e:
        return _invalid_arguments(e)
    except (InvalidTargetError, ConfigurationError) as e:
        return _error(f"Error: {e}")
    except Exception as e:
        return _error(f"Error reading file: {e}")


def truncate_output(output: str, max_chars: int) -> str:
    if len(output) > max_chars:
        return output[:max_chars] + "\n[Output truncated...]"
    return output


async def bash_remote(
    target: Annotated[str, "host:path the server is bound to"],
    command: Annotated[str, "The command to execute"],
    timeout: Annotated[Optional[int], "Timeout in milliseconds (max 600000)"] = None,
    description: Annotated[Optional[str], "What the command does in 5-10 words"] = None,
    transport: Optional[SSHTransport] = None,
) -> ToolResult:
    """Run a shell command on the remote host, inside the target directory."""
    try:
        transport = transport or SSHTransport.get_instance()
        params = BashRemoteInput(command=command, timeout=timeout, description=description)
        remote_target = parse_target(target)

        if params.description:
            logger.info("BashRemote: %s", params.description)

        result = await transport.run(
            remote_target.host,
            params.command,
            timeout_ms=params.timeout,
            cwd=remote_target.path or None,
            check=False,
        )

        output = result.stdout
        if result.stderr:
            output += "\n" + result.stderr
        output = truncate_output(output, transport.config.max_output_chars)

        if result.returncode != 0:
            return _error(f"Error executing command (exit code {result.returncode}):\n{output}")

        return _ok(output or "Command executed successfully (no output)")

    except ValidationError as e:
        return _invalid_arguments(e)
    except (InvalidTargetError, ConfigurationError) as e:
        return _error(f"Error: {e}")
    except Exception as e:
        return _error(f"Error executing command: {e}")


def build_ls_command(path: str, ignore: List[str]) -> str:
    command = f"ls -la {shlex.quote(path)}"
    if ignore:
        regex = "|".join(pattern.replace("*", ".*") for pattern in ignore)
        command += f" | grep -v -E {shlex.quote(regex)}"
    return command


async def ls_remote(
    target: Annotated[str, "host:path the server is bound to"],
    path: Annotated[str, "Absolute path of the directory to list"],
    ignore: Annotated[Optional[List[str]], "Glob patterns to leave out"] = None,
    transport: Optional[SSHTransport] = None,
) -> ToolResult:
    """List a remote directory with ``ls -la``."""
    try:
        transport = transport or SSHTransport.get_instance()
        params = LSRemoteInput(path=path, ignore=ignore or [])
        remote_target = parse_target(target)

        command = build_ls_command(params.path, params.ignore)
        result = await transport.run(remote_target.host, command, check=False)

        if NOT_FOUND_MARKER in result.stderr:
            return _error(f"Error: Directory not found: {params.path}")

        return _ok(result.stdout or "Directory is empty")

    except ValidationError as e:
        return _invalid_arguments(e)
    except (InvalidTargetError, ConfigurationError) as e:
        return _error(f"Error: {e}")
    except Exception as e:
        return _error(f"Error listing directory: {e}")


def build_glob_command(pattern: str, working_dir: str) -> str:
    """Translate a glob pattern into a ``find`` invocation.

    Recursive ``**`` patterns are reduced to a match on the last path
    component across the whole tree, so ``src/**/*.py`` also finds ``*.py``
    files outside ``src``.
    """
    cd = f"cd {shlex.quote(working_dir)}"
    if "**" in pattern:
        name = pattern.replace("**", "*").split("/")[-1] or "*"
        logger.debug("Approximating glob %r with find -name %r", pattern, name)
        return f"{cd} && find . -type f -name {shlex.quote(name)} | sort -t/ -k2"

    depth = "10" if "/" in pattern else "1"
    return f"{cd} && find . -maxdepth {depth} -type f -name {shlex.quote(pattern)} | sort"


def to_absolute(line: str, working_dir: str) -> str:
    cleaned = line[2:] if line.startswith("./") else line
    if working_dir == "/":
        return f"/{cleaned}"
    return f"{working_dir.rstrip('/')}/{cleaned}"


async def glob_remote(
    target: Annotated[str, "host:path the server is bound to"],
    pattern: Annotated[str, "Glob pattern such as **/*.py"],
    path: Annotated[Optional[str], "Directory to search (defaults to the target path)"] = None,
    transport: Optional[SSHTransport] = None,
) -> ToolResult:
    """Find remote files by name pattern."""
    try:
        transport = transport or SSHTransport.get_instance()
        params = GlobRemoteInput(pattern=pattern, path=path)
        remote_target = parse_target(target)
        working_dir = params.path or remote_target.path

        command = build_glob_command(params.pattern, working_dir)
        result = await transport.run(remote_target.host, command, check=False)

        if not result.stdout.strip():
            if NOT_FOUND_MARKER in result.stderr:
                return _error(f"Error: Search path not found: {working_dir}")
            return _ok(f"No files found matching pattern: {params.pattern}")

        files = [
            to_absolute(line.strip(), working_dir)
            for line in result.stdout.strip().split("\n")
            if line.strip()
        ]
        return _ok("\n".join(files))

    except ValidationError as e:
        return _invalid_arguments(e)
    except (InvalidTargetError, ConfigurationError) as e:
        return _error(f"Error: {e}")
    except Exception as e:
        return _error(f"Error searching for files: {e}")


def build_grep_command(params: GrepRemoteInput, working_dir: str) -> str:
    parts = ["rg"]

    if params.case_insensitive:
        parts.append("-i")
    if params.multiline:
        parts.append("-U --multiline-dotall")

    if params.output_mode == "files_with_matches":
        parts.append("-l")
    elif params.output_mode == "count":
        parts.append("-c")
    else:
        if params.line_numbers:
            parts.append("-n")
        if params.context:
            parts.append(f"-C {params.context}")
        else:
            if params.after_context:
                parts.append(f"-A {params.after_context}")
            if params.before_context:
                parts.append(f"-B {params.before_context}")

    if params.type:
        parts.append(f"--type {shlex.quote(params.type)}")
    if params.glob:
        parts.append(f"--glob {shlex.quote(params.glob)}")

    parts.append(shlex.quote(params.pattern))
    parts.append(shlex.quote(working_dir))

    command = " ".join(parts)
    if params.head_limit:
        command += f" | head -n {params.head_limit}"
    return command


async def grep_remote(
    target: Annotated[str, "host:path the server is bound to"],
    pattern: Annotated[str, "Regular expression to search for"],
    path: Annotated[Optional[str], "File or directory to search"] = None,
    glob: Annotated[Optional[str], "Glob filter (rg --glob)"] = None,
    type: Annotated[Optional[str], "File type filter (rg --type)"] = None,
    output_mode: Annotated[str, "content, files_with_matches or count"] = "files_with_matches",
    case_insensitive: bool = False,
    line_numbers: bool = False,
    after_context: Optional[int] = None,
    before_context: Optional[int] = None,
    context: Optional[int] = None,
    multiline: bool = False,
    head_limit: Optional[int] = None,
    transport: Optional[SSHTransport] = None,
) -> ToolResult:
    """Search remote file contents with ripgrep."""
    try:
        transport = transport or SSHTransport.get_instance()
        params = GrepRemoteInput(
            pattern=pattern,
            path=path,
            glob=glob,
            type=type,
            output_mode=output_mode,
            case_insensitive=case_insensitive,
            line_numbers=line_numbers,
            after_context=after_context,
            before_context=before_context,
            context=context,
            multiline=multiline,
            head_limit=head_limit,
        )
        remote_target = parse_target(target)
        working_dir = params.path or remote_target.path

        command = build_grep_command(params, working_dir)
        result = await transport.run(remote_target.host, command, check=False)

        if not result.stdout.strip():
            if NOT_FOUND_MARKER in result.stderr:
                return _error(f"Error: Search path not found: {working_dir}")
            # rg exits 1 when nothing matched, 2 on errors
            if result.returncode > 1:
                return _error(f"Error searching files: {result.stderr.strip()}")
            return _ok(f"No matches found for pattern: {params.pattern}")

        return _ok(result.stdout)

    except ValidationError as e:
        return _invalid_arguments(e)
    except (InvalidTargetError, ConfigurationError) as e:
        return _error(f"Error: {e}")
    except Exception as e:
        return _error(f"Error searching files: {e}")
