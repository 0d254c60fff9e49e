"""Resolve the mount points a run should check."""

import re

from mountprobe.lib.filesystem import strip_trailing_slash
from mountprobe.lib.tables import MountTableRow


# Filesystem types picked up by auto-discovery
SUPPORTED_FS_TYPES = frozenset({
    "auto",
    "btrfs",
    "ceph",
    "cifs",
    "davfs",
    "ext2",
    "ext3",
    "ext4",
    "fuse",
    "fuse.sshfs",
    "glusterfs",
    "gpfs",
    "lustre",
    "nfs",
    "nfs3",
    "nfs4",
    "ocfs2",
    "smbfs",
    "ufs",
    "vxfs",
    "xfs",
    "zfs",
})


def _dedupe(paths: list[str]) -> list[str]:
    seen = set()
    result = []
    for path in paths:
        if path and path not in seen:
            seen.add(path)
            result.append(path)
    return result


def discover_targets(
    config: list[MountTableRow],
    exclude: str | None = None,
    exclude_noauto: bool = False,
    noauto_marker: str = "noauto",
) -> list[str]:
    """
    Pick mount points from the config table.

    Args:
        config: Config table rows, in file order
        exclude: Regular expression; matching mount points are dropped
        exclude_noauto: Drop rows carrying the noauto marker
        noauto_marker: Option that means "not mounted at boot"

    Returns:
        Mount points of supported types, in table order, without duplicates
    """
    pattern = re.compile(exclude) if exclude else None
    selected = []
    for row in config:
        if row.fstype not in SUPPORTED_FS_TYPES:
            continue
        if pattern is not None and pattern.search(row.mountpoint):
            continue
        if exclude_noauto and noauto_marker in row.options:
            continue
        selected.append(strip_trailing_slash(row.mountpoint))
    return _dedupe(selected)


def select_targets(
    config: list[MountTableRow],
    explicit: list[str],
    auto: bool,
    exclude: str | None = None,
    exclude_noauto: bool = False,
    noauto_marker: str = "noauto",
) -> list[str]:
    """
    Resolve the target set.

    With auto off the explicit mount points are used as given, minus
    trailing slashes and repeats. With auto on they are ignored and the
    config table is searched instead.
    """
    if not auto:
        return _dedupe([strip_trailing_slash(p) for p in explicit])
    return discover_targets(config, exclude, exclude_noauto, noauto_marker)
