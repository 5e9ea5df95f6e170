"""Pydantic models for remote-mcp tool input/output schemas."""

from typing import List, Literal, Optional
from pydantic import BaseModel, Field, ConfigDict


class EditSpec(BaseModel):
    """One old -> new replacement.

    Strings are kept exactly as given; whitespace is significant for matching.
    """
    model_config = ConfigDict(extra='forbid')

    old_string: str = Field(..., description="The text to replace")
    new_string: str = Field(..., description="The text to replace it with")
    replace_all: bool = Field(
        default=False,
        description="Replace all occurences of old_string (default false)."
    )


class EditRemoteInput(BaseModel):
    """Input for a single remote edit."""
    model_config = ConfigDict(extra='forbid')

    file_path: str = Field(
        ...,
        description="The absolute path to the file to modify on the remote system",
        min_length=1,
    )
    old_string: str = Field(..., description="The text to replace")
    new_string: str = Field(
        ...,
        description="The text to replace it with (must be different from old_string)"
    )
    replace_all: bool = Field(
        default=False,
        description="Replace all occurences of old_string (default false)"
    )


class MultiEditRemoteInput(BaseModel):
    """Input for a sequence of edits applied to one remote file."""
    model_config = ConfigDict(extra='forbid')

    file_path: str = Field(
        ...,
        description="The absolute path to the file to modify on the remote system",
        min_length=1,
    )
    edits: List[EditSpec] = Field(
        ...,
        description="Array of edit operations to perform sequentially on the file",
        min_length=1,
    )


class BashRemoteInput(BaseModel):
    """Input for remote command execution."""
    model_config = ConfigDict(
        str_strip_whitespace=True,
        validate_assignment=True,
        extra='forbid'
    )

    command: str = Field(
        ...,
        description="The command to execute",
        min_length=1,
        examples=["ls -la", "pwd", "cat /etc/hostname"]
    )
    description: Optional[str] = Field(
        default=None,
        description="Clear, concise description of what this command does in 5-10 words"
    )
    timeout: Optional[int] = Field(
        default=None,
        ge=1,
        le=600000,
        description="Optional timeout in milliseconds (max 600000)"
    )


class ReadRemoteInput(BaseModel):
    """Input for reading a remote file."""
    model_config = ConfigDict(extra='forbid')

    file_path: str = Field(
        ...,
        description="The absolute path to the file to read on the remote system",
        min_length=1,
    )
    offset: Optional[int] = Field(
        default=None,
        ge=1,
        description="The line number to start reading from"
    )
    limit: Optional[int] = Field(
        default=None,
        ge=1,
        description="The number of lines to read"
    )


class WriteRemoteInput(BaseModel):
    """Input for writing a remote file."""
    model_config = ConfigDict(extra='forbid')

    file_path: str = Field(
        ...,
        description="The absolute path to the file to write on the remote system",
        min_length=1,
    )
    content: str = Field(..., description="The content to write to the file")


class LSRemoteInput(BaseModel):
    """Input for listing a remote directory."""
    model_config = ConfigDict(extra='forbid')

    path: str = Field(
        ...,
        description="The absolute path to the directory to list on the remote system",
        min_length=1,
    )
    ignore: List[str] = Field(
        default_factory=list,
        description="List of glob patterns to ignore"
    )


class GlobRemoteInput(BaseModel):
    """Input for remote filename matching."""
    model_config = ConfigDict(extra='forbid')

    pattern: str = Field(
        ...,
        description="The glob pattern to match files against",
        min_length=1,
        examples=["**/*.py", "*.md"]
    )
    path: Optional[str] = Field(
        default=None,
        description="The directory to search in on the remote system. Defaults to the target path."
    )


class GrepRemoteInput(BaseModel):
    """Input for remote content search with ripgrep."""
    model_config = ConfigDict(extra='forbid')

    pattern: str = Field(
        ...,
        description="The regular expression pattern to search for in file contents",
        min_length=1,
    )
    path: Optional[str] = Field(default=None, description="File or directory to search in")
    glob: Optional[str] = Field(default=None, description="Glob pattern to filter files (rg --glob)")
    type: Optional[str] = Field(default=None, description="File type to search (rg --type)")
    output_mode: Literal["content", "files_with_matches", "count"] = Field(
        default="files_with_matches",
        description="Output mode: content, files_with_matches (default) or count"
    )
    case_insensitive: bool = Field(default=False, description="Case insensitive search (rg -i)")
    line_numbers: bool = Field(default=False, description="Show line numbers (content mode only)")
    after_context: Optional[int] = Field(default=None, ge=0, description="Lines after each match (rg -A)")
    before_context: Optional[int] = Field(default=None, ge=0, description="Lines before each match (rg -B)")
    context: Optional[int] = Field(default=None, ge=0, description="Lines around each match (rg -C)")
    multiline: bool = Field(default=False, description="Enable multiline mode (rg -U --multiline-dotall)")
    head_limit: Optional[int] = Field(default=None, ge=1, description="Limit output to first N lines")


class CommandResult(BaseModel):
    """Captured output of a remote command."""
    stdout: str = Field(description="Standard output from the command")
    stderr: str = Field(description="Standard error from the command")
    returncode: int = Field(description="Exit code of the command")

    @property
    def success(self) -> bool:
        return self.returncode == 0


class EditResult(BaseModel):
    """Outcome of a single successful edit."""
    updated_content: str = Field(description="Full file content after the edit")
    location_hint: str = Field(description="Numbered snippet around the change")


class MultiEditResult(BaseModel):
    """Outcome of a successful multi-edit."""
    applied_count: int = Field(description="Number of edits applied")


class ToolResult(BaseModel):
    """Text returned to the MCP client, flagged when it describes a failure."""
    text: str = Field(description="Human-readable result")
    is_error: bool = Field(default=False, description="Whether the call failed")
