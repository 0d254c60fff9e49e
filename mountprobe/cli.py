"""Command-line interface for mountprobe."""

import argparse
import sys
from pathlib import Path

from mountprobe import __version__
from mountprobe.checker import run_check
from mountprobe.core.config import (
    PROJECT_CONFIG,
    ConfigError,
    build_options,
    load_layered_config,
)
from mountprobe.core.context import Context
from mountprobe.core.logging import CheckLogger, get_log_path
from mountprobe.core.output import Severity
from mountprobe.core.platform import UnknownPlatformError


class UsageError(Exception):
    """Malformed invocation."""

    pass


class _Parser(argparse.ArgumentParser):
    """ArgumentParser that raises instead of exiting with status 2."""

    def error(self, message: str) -> None:
        raise UsageError(message)


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = _Parser(
        prog="mountprobe",
        description="Check that nfs/cifs/davfs and other mount points are "
                    "declared, mounted, responsive and optionally writable.",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"mountprobe {__version__}",
    )
    parser.add_argument(
        "mountpoints",
        nargs="*",
        metavar="MOUNTPOINT",
        help="Mount points to check (ignored with -a/-A)",
    )
    parser.add_argument("-m", "--mtab", help="Live mount table ('none' to parse mount output)")
    parser.add_argument("-f", "--fstab", help="Static mount table")
    parser.add_argument("-N", "--fstype-field", type=int, help="fstab column of the fs type")
    parser.add_argument("-M", "--mountpoint-field", type=int, help="fstab column of the mount point")
    parser.add_argument("-O", "--options-field", type=int, help="fstab column of the options")
    parser.add_argument(
        "-T", "--stale",
        type=float,
        help="Seconds after which a mount is declared stale (default: 3)",
    )
    parser.add_argument("-W", "--warning", type=float, help="Response time warning threshold")
    parser.add_argument("-C", "--critical", type=float, help="Response time critical threshold")
    parser.add_argument(
        "-L", "--link-ok",
        action="store_true",
        default=None,
        help="Accept a symlink in place of a mount point",
    )
    parser.add_argument(
        "-i", "--ignore-fstab",
        action="store_true",
        default=None,
        help="Do not fail because a mount is not in fstab",
    )
    parser.add_argument(
        "-a", "--auto",
        action="store_true",
        default=None,
        help="Select mounts from fstab",
    )
    parser.add_argument(
        "-A", "--auto-ignore-empty",
        action="store_true",
        default=None,
        help="Select mounts from fstab, OK if none are found",
    )
    parser.add_argument(
        "-o", "--exclude-noauto",
        action="store_true",
        default=None,
        help="With -a/-A, skip mounts with the noauto option",
    )
    parser.add_argument("-x", "--exclude", help="With -a/-A, skip mount points matching this regex")
    parser.add_argument(
        "-w", "--write-test",
        action="store_true",
        default=None,
        help="Create and remove a marker file on each mount",
    )
    parser.add_argument(
        "-E", "--perfdata",
        action="store_true",
        default=None,
        help="Append response time performance data",
    )
    parser.add_argument(
        "--df-arg",
        action="append",
        dest="df_args",
        help="Extra argument for the df probe (repeatable)",
    )
    parser.add_argument("-P", "--platform", help="Platform profile (linux, sunos, hp-ux, freebsd, darwin)")
    parser.add_argument("--config", type=Path, help=f"Config file (default: {PROJECT_CONFIG})")
    parser.add_argument("--log-dir", help="Write JSONL diagnostics under this directory")
    parser.add_argument(
        "--syslog",
        action="store_true",
        default=None,
        help="Send diagnostics to the system log",
    )
    parser.add_argument(
        "--format",
        choices=["plain", "json"],
        default="plain",
        help="Output format (default: plain)",
    )
    return parser


def parse_args(argv: list[str] | None) -> argparse.Namespace:
    """
    Parse and validate arguments.

    Raises:
        UsageError: On bad flags or relative mount points
    """
    args = create_parser().parse_intermixed_args(argv)
    for mountpoint in args.mountpoints:
        if not mountpoint.startswith("/"):
            raise UsageError(f"mount point must be an absolute path: {mountpoint}")
    return args


def _overrides(args: argparse.Namespace) -> dict:
    names = [
        "mountpoints", "auto", "auto_ignore_empty", "exclude", "exclude_noauto",
        "fstab", "mtab", "fstype_field", "mountpoint_field", "options_field",
        "stale", "warning", "critical", "link_ok", "ignore_fstab", "write_test",
        "perfdata", "df_args", "platform", "log_dir", "syslog",
    ]
    return {name: getattr(args, name) for name in names}


def _unknown(message: str) -> int:
    print(f"UNKNOWN: {message}")
    return int(Severity.UNKNOWN)


def main(argv: list[str] | None = None, context: Context | None = None) -> int:
    """Main entry point."""
    try:
        args = parse_args(argv)
    except UsageError as e:
        print(f"UNKNOWN: {e}")
        create_parser().print_usage()
        return int(Severity.UNKNOWN)

    try:
        if args.config is not None:
            config = load_layered_config(project_config=args.config)
        else:
            config = load_layered_config()
        options = build_options(config, _overrides(args))
    except ConfigError as e:
        return _unknown(str(e))

    if context is None:
        context = Context()
    log_path = get_log_path("mountprobe", Path(options.log_dir)) if options.log_dir else None
    syslog_tag = "mountprobe" if options.syslog else None

    with CheckLogger("mountprobe", log_path=log_path, syslog_tag=syslog_tag, context=context) as logger:
        try:
            logger.open()
        except OSError as e:
            return _unknown(f"cannot open log file {log_path}: {e}")
        try:
            result = run_check(options, context=context, logger=logger)
        except UnknownPlatformError as e:
            return _unknown(str(e))

    if args.format == "json":
        print(result.to_json())
    else:
        print(result.line)
    return result.exit_code


if __name__ == "__main__":
    sys.exit(main())
