"""Per operating system defaults for table locations and layouts."""

import platform
from dataclasses import dataclass, field

from mountprobe.lib.tables import NO_LIVE_TABLE, TableSchema


@dataclass(frozen=True)
class PseudoFs:
    """Pseudo filesystem that must be mounted for the live table to exist."""

    table_path: str
    mountpoint: str
    fstype: str


@dataclass(frozen=True)
class PlatformProfile:
    """Table locations, column layouts and markers for one OS family."""

    name: str
    config_path: str
    config_schema: TableSchema
    live_path: str
    live_schema: TableSchema
    noauto_marker: str = "noauto"
    pseudo_fs: PseudoFs | None = None
    container_marker: str | None = None
    zfs_delegation_property: str | None = None
    mount_command: list[str] = field(default_factory=lambda: ["mount"])


FSTAB_SCHEMA = TableSchema(fstype_field=3, mountpoint_field=2, options_field=4)

PROFILES = {
    "linux": PlatformProfile(
        name="linux",
        config_path="/etc/fstab",
        config_schema=FSTAB_SCHEMA,
        live_path="/proc/mounts",
        live_schema=FSTAB_SCHEMA,
        pseudo_fs=PseudoFs(table_path="/proc/mounts", mountpoint="/proc", fstype="proc"),
        container_marker="/proc/vz/veinfo",
        zfs_delegation_property="zoned",
    ),
    # vfstab: device, fsck device, mount point, type, pass, mount at boot, options
    "sunos": PlatformProfile(
        name="sunos",
        config_path="/etc/vfstab",
        config_schema=TableSchema(fstype_field=4, mountpoint_field=3, options_field=6),
        live_path="/etc/mnttab",
        live_schema=FSTAB_SCHEMA,
        noauto_marker="no",
        zfs_delegation_property="zoned",
    ),
    "hp-ux": PlatformProfile(
        name="hp-ux",
        config_path="/etc/fstab",
        config_schema=FSTAB_SCHEMA,
        live_path="/etc/mnttab",
        live_schema=FSTAB_SCHEMA,
    ),
    "freebsd": PlatformProfile(
        name="freebsd",
        config_path="/etc/fstab",
        config_schema=FSTAB_SCHEMA,
        live_path=NO_LIVE_TABLE,
        live_schema=FSTAB_SCHEMA,
        zfs_delegation_property="jailed",
    ),
    "darwin": PlatformProfile(
        name="darwin",
        config_path="/etc/fstab",
        config_schema=FSTAB_SCHEMA,
        live_path=NO_LIVE_TABLE,
        live_schema=FSTAB_SCHEMA,
    ),
}


class UnknownPlatformError(Exception):
    """Requested profile name does not exist."""

    pass


def get_profile(name: str) -> PlatformProfile:
    """
    Look up a profile by name.

    Args:
        name: Profile name, case-insensitive (e.g. "linux", "SunOS")

    Raises:
        UnknownPlatformError: If no profile has that name
    """
    key = name.lower()
    if key not in PROFILES:
        raise UnknownPlatformError(
            f"Unknown platform '{name}' (choose from {', '.join(sorted(PROFILES))})"
        )
    return PROFILES[key]


def detect_profile(system: str | None = None) -> PlatformProfile:
    """
    Select the profile for the running system.

    Unrecognized kernels fall back to the linux layout.
    """
    if system is None:
        system = platform.system()
    return PROFILES.get(system.lower(), PROFILES["linux"])
