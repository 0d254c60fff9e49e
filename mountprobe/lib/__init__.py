"""Shared utility library for mount checks."""

from mountprobe.lib.filesystem import FileError, read_file, strip_trailing_slash
from mountprobe.lib.process import CommandError, check_tool, run_command
from mountprobe.lib.tables import (
    NO_LIVE_TABLE,
    MountTableRow,
    TableSchema,
    find_row,
    parse_table,
    read_config_table,
    read_live_table,
)

__all__ = [
    "CommandError",
    "FileError",
    "MountTableRow",
    "NO_LIVE_TABLE",
    "TableSchema",
    "check_tool",
    "find_row",
    "parse_table",
    "read_config_table",
    "read_file",
    "read_live_table",
    "run_command",
    "strip_trailing_slash",
]
