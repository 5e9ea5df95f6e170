#!/usr/bin/env python3
"""remote-mcp server.

Exposes filesystem and shell tools for one remote host, reached with
ssh/scp, over the MCP stdio transport.

Usage:
    remote-mcp myserver:/home/user/project
    python -m remote_mcp myserver:/home/user/project

Environment Variables:
    REMOTE_MCP_COMMAND_TIMEOUT_MS: Default command timeout (default: 120000)
    REMOTE_MCP_MAX_COMMAND_TIMEOUT_MS: Maximum command timeout (default: 600000)
    REMOTE_MCP_LOG_LEVEL: Log level for stderr logging (default: WARNING)
"""

import argparse
import asyncio
import logging
import sys
from typing import List, Optional

from mcp.server.fastmcp import FastMCP
from mcp.server.fastmcp.exceptions import ToolError
from mcp.types import ToolAnnotations

from . import __version__
from .config import RemoteConfig, configure_logging, get_config, validate_config
from .exceptions import ConfigurationError, ConnectionFailedError, InvalidTargetError
from .models import EditSpec, ToolResult
from .target import RemoteTarget, parse_target
from .tools import (
    bash_remote,
    edit_remote,
    glob_remote,
    grep_remote,
    ls_remote,
    multi_edit_remote,
    read_remote,
    write_remote,
)
from .transport import SSHTransport

logger = logging.getLogger(__name__)


def _unwrap(result: ToolResult) -> str:
    """Return the text of a result, raising ToolError so failures carry isError."""
    if result.is_error:
        raise ToolError(result.text)
    return result.text


def create_server(
    target: RemoteTarget,
    config: Optional[RemoteConfig] = None,
    transport: Optional[SSHTransport] = None,
) -> FastMCP:
    """Create and configure the MCP server bound to ``target``.

    Args:
        target: Remote host and default working directory
        config: Configuration; loaded from environment when omitted
        transport: Transport override; the shared SSHTransport when omitted

    Returns:
        Configured FastMCP server instance
    """
    config = config or get_config()
    transport = transport or SSHTransport.get_instance(config)
    target_spec = str(target)

    mcp = FastMCP(
        name=config.server_name,
        instructions=f"Tools operating on {target.host}; the working directory is {target.path}.",
    )

    @mcp.tool(
        name="BashRemote",
        annotations=ToolAnnotations(
            title="Execute Remote Command",
            destructiveHint=True,
            idempotentHint=False,
            openWorldHint=True,
        ),
    )
    async def bash_tool(
        command: str,
        description: Optional[str] = None,
        timeout: Optional[int] = None,
    ) -> str:
        """Executes a bash command on the remote system via SSH.

        The command runs in the target working directory. timeout is in
        milliseconds (default 120000, max 600000). Output longer than 30000
        characters is truncated. Prefer GrepRemote and GlobRemote over
        running grep or find directly.
        """
        return _unwrap(await bash_remote(target_spec, command, timeout, description, transport=transport))

    @mcp.tool(
        name="ReadRemote",
        annotations=ToolAnnotations(
            title="Read Remote File",
            readOnlyHint=True,
            idempotentHint=True,
            openWorldHint=True,
        ),
    )
    async def read_tool(
        file_path: str,
        offset: Optional[int] = None,
        limit: Optional[int] = None,
    ) -> str:
        """Reads a file from the remote system via SSH.

        file_path must be absolute. Up to 2000 lines are returned by default;
        offset and limit select a range. Output uses cat -n format with line
        numbers starting at 1.
        """
        return _unwrap(await read_remote(target_spec, file_path, offset, limit, transport=transport))

    @mcp.tool(
        name="WriteRemote",
        annotations=ToolAnnotations(
            title="Write Remote File",
            destructiveHint=True,
            idempotentHint=True,
            openWorldHint=True,
        ),
    )
    async def write_tool(file_path: str, content: str) -> str:
        """Writes a file to the remote system via SSH, overwriting any existing file.

        Read an existing file with ReadRemote before overwriting it.
        """
        return _unwrap(await write_remote(target_spec, file_path, content, transport=transport))

    @mcp.tool(
        name="EditRemote",
        annotations=ToolAnnotations(
            title="Edit Remote File",
            destructiveHint=True,
            idempotentHint=False,
            openWorldHint=True,
        ),
    )
    async def edit_tool(
        file_path: str,
        old_string: str,
        new_string: str,
        replace_all: bool = False,
    ) -> str:
        """Performs an exact string replacement in a file on the remote system.

        Preserve the exact indentation shown after the ReadRemote line number
        prefix. The edit FAILS if old_string is not unique in the file: give
        more surrounding context, or set replace_all to change every instance
        (useful for renames). new_string must differ from old_string.
        """
        return _unwrap(await edit_remote(
            target_spec, file_path, old_string, new_string, replace_all, transport=transport
        ))

    @mcp.tool(
        name="MultiEditRemote",
        annotations=ToolAnnotations(
            title="Multi-Edit Remote File",
            destructiveHint=True,
            idempotentHint=False,
            openWorldHint=True,
        ),
    )
    async def multi_edit_tool(file_path: str, edits: List[EditSpec]) -> str:
        """Makes several find-and-replace edits to one remote file in one operation.

        Edits are applied in the order given, each to the result of the
        previous one. If any edit fails none are applied: the file is only
        written after every edit succeeds. Each edit follows the EditRemote
        rules (exact match, unique unless replace_all).
        """
        return _unwrap(await multi_edit_remote(target_spec, file_path, edits, transport=transport))

    @mcp.tool(
        name="LSRemote",
        annotations=ToolAnnotations(
            title="List Remote Directory",
            readOnlyHint=True,
            idempotentHint=True,
            openWorldHint=True,
        ),
    )
    async def ls_tool(path: str, ignore: Optional[List[str]] = None) -> str:
        """Lists files and directories at an absolute path on the remote system.

        ignore takes glob patterns to leave out. Prefer GlobRemote and
        GrepRemote when you know which directories to search.
        """
        return _unwrap(await ls_remote(target_spec, path, ignore, transport=transport))

    @mcp.tool(
        name="GlobRemote",
        annotations=ToolAnnotations(
            title="Find Remote Files",
            readOnlyHint=True,
            idempotentHint=True,
            openWorldHint=True,
        ),
    )
    async def glob_tool(pattern: str, path: Optional[str] = None) -> str:
        """Finds files on the remote system by name pattern, e.g. "**/*.py".

        Searches the target directory unless path is given. Returns absolute
        paths. "**" patterns match the final name component anywhere below
        the search directory.
        """
        return _unwrap(await glob_remote(target_spec, pattern, path, transport=transport))

    @mcp.tool(
        name="GrepRemote",
        annotations=ToolAnnotations(
            title="Search Remote Files",
            readOnlyHint=True,
            idempotentHint=True,
            openWorldHint=True,
        ),
    )
    async def grep_tool(
        pattern: str,
        path: Optional[str] = None,
        glob: Optional[str] = None,
        type: Optional[str] = None,
        output_mode: str = "files_with_matches",
        case_insensitive: bool = False,
        line_numbers: bool = False,
        after_context: Optional[int] = None,
        before_context: Optional[int] = None,
        context: Optional[int] = None,
        multiline: bool = False,
        head_limit: Optional[int] = None,
    ) -> str:
        """Searches file contents on the remote system with ripgrep.

        Supports full regex syntax. Filter files with glob ("*.js") or type
        ("py"). output_mode is "files_with_matches" (default), "content" or
        "count"; line_numbers and the context options apply to content mode.
        """
        return _unwrap(await grep_remote(
            target_spec,
            pattern,
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
            transport=transport,
        ))

    return mcp


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="remote-mcp",
        description="MCP server exposing file and shell tools on a remote host over SSH.",
        epilog="Example: remote-mcp myserver:/home/user/project",
    )
    parser.add_argument("target", help="Remote target as host:path")
    parser.add_argument(
        "--skip-connection-check",
        action="store_true",
        help="Do not probe the SSH connection before starting",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Run the MCP server."""
    args = build_parser().parse_args(argv)

    try:
        config = get_config()
        validate_config(config)
        configure_logging(config.log_level)
        target = parse_target(args.target)
        transport = SSHTransport.get_instance(config)

        if not args.skip_connection_check:
            asyncio.run(transport.test_connection(target.host))

    except (ConfigurationError, InvalidTargetError, ConnectionFailedError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    mcp = create_server(target, config=config, transport=transport)
    logger.info("remote-mcp serving %s on stdio", target)
    mcp.run()
    return 0


if __name__ == "__main__":
    sys.exit(main())
