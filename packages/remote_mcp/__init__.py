"""remote-mcp server.

Provides MCP tools that read, write, edit and search files and run shell
commands on a single remote host over ssh/scp.

Edits follow a download, edit in memory, upload cycle:
- old_string must match exactly, and exactly once unless replace_all is set
- a multi-edit sequence is uploaded once, only after every edit applies
"""

__version__ = "1.0.0"
