"""Synthesize config table rows for ZFS datasets mounted by the pool manager."""

from typing import TYPE_CHECKING

from mountprobe.lib.filesystem import strip_trailing_slash
from mountprobe.lib.process import CommandError, check_tool, run_command
from mountprobe.lib.tables import MountTableRow

if TYPE_CHECKING:
    from mountprobe.core.context import Context
    from mountprobe.core.logging import CheckLogger


# Mount point values that mean "not managed by zfs mount"
UNMANAGED_MOUNTPOINTS = {"legacy", "none", "-", ""}


def list_datasets_command(delegation_property: str | None = None) -> list[str]:
    """Build the zfs list command for the properties we need."""
    properties = ["name", "mountpoint", "canmount", "readonly"]
    if delegation_property:
        properties.append(delegation_property)
    return ["zfs", "list", "-H", "-t", "filesystem", "-o", ",".join(properties)]


def parse_dataset_rows(
    content: str,
    existing: set[str],
    context: "Context",
    delegation_property: str | None = None,
) -> list[MountTableRow]:
    """
    Turn zfs list -H output into config table rows.

    Args:
        content: Tab separated output of list_datasets_command()
        existing: Mount points already present in the config table
        context: Execution context, used to check the mount path exists
        delegation_property: Name of the zoned/jailed column, if requested

    Returns:
        One row per mountable dataset not already in the table
    """
    rows = []
    seen = set(existing)
    for line in content.splitlines():
        if not line.strip():
            continue
        fields = line.split("\t")
        if len(fields) < 4:
            continue
        name, mountpoint, canmount, readonly = fields[:4]

        if mountpoint in UNMANAGED_MOUNTPOINTS or canmount == "off":
            continue
        if delegation_property and len(fields) > 4 and fields[4] == "on":
            continue

        mountpoint = strip_trailing_slash(mountpoint)
        if mountpoint in seen or not context.file_exists(mountpoint):
            continue

        options = ["ro" if readonly == "on" else "rw"]
        if canmount == "noauto":
            options.append("noauto")

        rows.append(MountTableRow(device=name, mountpoint=mountpoint, fstype="zfs", options=options))
        seen.add(mountpoint)
    return rows


def synthesize_zfs_rows(
    config: list[MountTableRow],
    context: "Context",
    delegation_property: str | None = None,
    logger: "CheckLogger | None" = None,
) -> list[MountTableRow]:
    """
    Return rows for ZFS datasets missing from the config table.

    Returns an empty list when the zfs tool is absent or fails.
    """
    if not check_tool("zfs", context=context):
        return []

    try:
        output = run_command(
            list_datasets_command(delegation_property),
            context=context,
            check=True,
        )
    except CommandError as e:
        if logger is not None:
            logger.warning(f"zfs dataset listing failed: {e}")
        return []

    existing = {row.mountpoint for row in config}
    return parse_dataset_rows(output, existing, context, delegation_property)
