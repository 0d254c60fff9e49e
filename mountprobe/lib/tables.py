"""Readers for the static mount configuration and the live mount table."""

import re
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from mountprobe.lib.filesystem import read_file, strip_trailing_slash
from mountprobe.lib.process import run_command

if TYPE_CHECKING:
    from mountprobe.core.context import Context


# Live table path meaning "this OS has no kernel mount table file"
NO_LIVE_TABLE = "none"

# fstab and /proc/mounts escape whitespace in paths as octal
_OCTAL_ESCAPE = re.compile(r"\\([0-7]{3})")

# Lines of mount(8) output, most specific first
MOUNT_LINE_PATTERNS = [
    # Linux: /dev/sda1 on /boot type ext4 (rw,relatime)
    re.compile(r"^(?P<device>\S+) on (?P<mountpoint>\S+) type (?P<fstype>[^\s(]+)"),
    # BSD/macOS: srv:/export on /mnt/nfs (nfs, asynchronous)
    re.compile(r"^(?P<device>\S+) on (?P<mountpoint>\S+) \((?P<fstype>[^,)\s]+)[,)]"),
    # Solaris: /export/home on rpool/export/home read/write/setuid/... on Mon Oct 12
    re.compile(r"^(?P<mountpoint>/\S*) on (?P<device>\S+) (?:\S+/)?read[/-]"),
]


@dataclass(frozen=True)
class TableSchema:
    """
    1-based column numbers of a whitespace separated mount table.

    A column number of 0, or one past the end of a line, reads as empty.
    """

    fstype_field: int
    mountpoint_field: int
    options_field: int
    device_field: int = 1


# Layout of the scratch file written from mount(8) output
LISTING_SCHEMA = TableSchema(fstype_field=3, mountpoint_field=2, options_field=0)


@dataclass
class MountTableRow:
    """One entry of a config or live mount table."""

    device: str
    mountpoint: str
    fstype: str
    options: list[str] = field(default_factory=list)


def _field(parts: list[str], number: int) -> str:
    if number < 1 or number > len(parts):
        return ""
    return parts[number - 1]


def _unescape(value: str) -> str:
    return _OCTAL_ESCAPE.sub(lambda m: chr(int(m.group(1), 8)), value)


def parse_table(content: str, schema: TableSchema) -> list[MountTableRow]:
    """
    Parse mount table text into rows.

    Blank lines and lines starting with '#' are skipped. Mount points lose
    their trailing slash, types are lower-cased and options are split on
    commas.
    """
    rows = []
    for line in content.splitlines():
        stripped = line.strip()
        if not stripped or stripped.startswith("#"):
            continue
        parts = stripped.split()

        mountpoint = _unescape(_field(parts, schema.mountpoint_field))
        if mountpoint:
            mountpoint = strip_trailing_slash(mountpoint)
        options = _field(parts, schema.options_field)

        rows.append(MountTableRow(
            device=_unescape(_field(parts, schema.device_field)),
            mountpoint=mountpoint,
            fstype=_field(parts, schema.fstype_field).lower(),
            options=[o for o in options.split(",") if o],
        ))
    return rows


def find_row(rows: list[MountTableRow], mountpoint: str) -> MountTableRow | None:
    """Return the first row for a mount point, or None."""
    for row in rows:
        if row.mountpoint == mountpoint:
            return row
    return None


def read_config_table(
    path: str,
    schema: TableSchema,
    context: "Context | None" = None,
) -> list[MountTableRow]:
    """
    Read the static mount configuration table.

    Raises:
        FileError: If the table can't be read
    """
    return parse_table(read_file(path, context), schema)


def normalize_mount_output(output: str) -> str:
    """
    Reduce mount(8) output to "device mountpoint fstype" lines.

    Lines that match no known layout are dropped.
    """
    lines = []
    for line in output.splitlines():
        for pattern in MOUNT_LINE_PATTERNS:
            match = pattern.match(line.strip())
            if match:
                # Solaris output has no type column
                fstype = match.groupdict().get("fstype") or "-"
                lines.append(f"{match.group('device')} {match.group('mountpoint')} {fstype}")
                break
    return "\n".join(lines) + ("\n" if lines else "")


def snapshot_mount_listing(
    context: "Context",
    command: list[str] | None = None,
) -> str:
    """
    Write the current mount listing to a scratch file.

    The caller owns the returned path and must remove it.

    Raises:
        CommandError: If the listing command fails
    """
    output = run_command(command or ["mount"], context=context, check=True)
    return context.write_temp(normalize_mount_output(output), prefix="mountprobe.mtab.")


@contextmanager
def read_live_table(
    path: str,
    schema: TableSchema,
    context: "Context",
    mount_command: list[str] | None = None,
) -> Iterator[list[MountTableRow]]:
    """
    Read the live mount table.

    With path set to NO_LIVE_TABLE the table is built from mount(8) output
    through a scratch file, which is removed when the block exits.

    Raises:
        FileError: If the live table can't be read
        CommandError: If the mount listing can't be produced
    """
    scratch = None
    try:
        if path == NO_LIVE_TABLE:
            scratch = snapshot_mount_listing(context, mount_command)
            rows = parse_table(read_file(scratch, context), LISTING_SCHEMA)
        else:
            rows = parse_table(read_file(path, context), schema)
        yield rows
    finally:
        if scratch is not None:
            context.remove_file(scratch)
