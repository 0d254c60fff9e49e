"""
Mount point health check pipeline.

Each target goes through the same stages, in order:

1. declared in the config table (fstab)
2. present in the live mount table
3. answers a free space query before the stale timeout
4. exists as a directory
5. accepts a marker file (optional)

A failing stage records a diagnostic and the next stage still runs.
The run severity is the worst one recorded for any target.
"""

import os
import random
import subprocess
import uuid
from dataclasses import dataclass, field
from datetime import datetime

from mountprobe.core.config import CheckOptions
from mountprobe.core.context import Context
from mountprobe.core.logging import CheckLogger
from mountprobe.core.output import (
    CheckReport,
    MetricSample,
    Severity,
    format_seconds,
    render_report,
    report_to_json,
)
from mountprobe.core.platform import PlatformProfile, detect_profile, get_profile
from mountprobe.core.probe import (
    ProbeError,
    ProbeOutcome,
    run_bounded,
    space_probe_command,
    write_probe_command,
)
from mountprobe.lib.filesystem import FileError
from mountprobe.lib.process import CommandError
from mountprobe.lib.tables import (
    NO_LIVE_TABLE,
    MountTableRow,
    TableSchema,
    find_row,
    read_config_table,
    read_live_table,
)
from mountprobe.lib.zfs import synthesize_zfs_rows
from mountprobe.targets import select_targets


@dataclass
class ProbeMessages:
    """Diagnostics for the graded outcomes of one probe kind."""

    stale: str
    critical: str
    warning: str
    failed: str | None = None


@dataclass
class CheckResult:
    """Final state of a run."""

    report: CheckReport
    targets: list[str] = field(default_factory=list)
    perfdata: bool = False

    @property
    def exit_code(self) -> int:
        """Plugin exit status."""
        return int(self.report.severity)

    @property
    def line(self) -> str:
        """Status line for the monitoring system."""
        return render_report(self.report, self.targets, self.perfdata)

    def to_json(self) -> str:
        """Report as JSON."""
        return report_to_json(self.report, self.targets)


class MountChecker:
    """Runs the check stages for one mount point at a time."""

    def __init__(
        self,
        options: CheckOptions,
        profile: PlatformProfile,
        context: Context,
        config: list[MountTableRow],
        live: list[MountTableRow],
        logger: CheckLogger,
        fstab_path: str,
        in_container: bool = False,
    ):
        self.options = options
        self.profile = profile
        self.context = context
        self.config = config
        self.live = live
        self.logger = logger
        self.fstab_path = fstab_path
        self.in_container = in_container

    def _record(self, report: CheckReport, severity: Severity, message: str) -> None:
        if severity >= Severity.CRITICAL:
            self.logger.critical(message)
        elif severity == Severity.WARNING:
            self.logger.warning(message)
        else:
            self.logger.info(message)
        report.add(severity, message)

    def check(self, mountpoint: str, report: CheckReport) -> None:
        """Run every stage for one mount point, folding results into report."""
        self.check_declared(mountpoint, report)
        self.check_mounted(mountpoint, report)
        outcome = self.probe_responsive(mountpoint, report)
        if outcome is None or not outcome.completed:
            return
        if not self.check_exists(mountpoint, report):
            return
        if self.options.write_test:
            self.probe_writable(mountpoint, report)

    def check_declared(self, mountpoint: str, report: CheckReport) -> None:
        """Stage 1: the mount point must be in the config table."""
        if self.options.auto or self.options.ignore_fstab or self.in_container:
            return
        if find_row(self.config, mountpoint) is None:
            self._record(
                report,
                Severity.CRITICAL,
                f"{mountpoint} doesn't exist in fstab {self.fstab_path}",
            )

    def check_mounted(self, mountpoint: str, report: CheckReport) -> None:
        """Stage 2: the mount point must be in the live table."""
        if find_row(self.live, mountpoint) is not None:
            return
        if self.options.link_ok and self.context.is_symlink(mountpoint):
            self.logger.info(f"{mountpoint} is a symlink, accepted in place of a mount")
            return
        self._record(report, Severity.CRITICAL, f"{mountpoint} is not mounted")

    def probe_responsive(self, mountpoint: str, report: CheckReport) -> ProbeOutcome | None:
        """Stage 3: time a free space query against the thresholds."""
        stale = format_seconds(self.options.stale)
        messages = ProbeMessages(
            stale=f"{mountpoint} did not respond in {stale} sec. Seems to be stale.",
            critical=f"{mountpoint} exceeded critical threshold of "
                     f"{format_seconds(self.options.critical)} sec",
            warning=f"{mountpoint} exceeded warning threshold of "
                    f"{format_seconds(self.options.warning)} sec",
        )
        cmd = space_probe_command(mountpoint, self.options.df_args)
        return self._run_graded(cmd, mountpoint, mountpoint, messages, report)

    def check_exists(self, mountpoint: str, report: CheckReport) -> bool:
        """Stage 4: the mount point must be a directory."""
        if self.context.is_dir(mountpoint):
            return True
        self._record(report, Severity.CRITICAL, f"{mountpoint} doesn't exist on filesystem")
        return False

    def probe_writable(self, mountpoint: str, report: CheckReport) -> ProbeOutcome | None:
        """Stage 5: create, verify and remove a marker file."""
        if self.options.auto:
            row = find_row(self.config, mountpoint)
            if row is not None and "ro" in row.options:
                self._record(report, Severity.CRITICAL, f"{mountpoint} filesystem was mounted RO")
                return None

        marker = self.marker_path(mountpoint)
        stale = format_seconds(self.options.stale)
        messages = ProbeMessages(
            stale=f"Could not write in {mountpoint} in {stale} sec. Seems to be stale.",
            critical=f"write to {mountpoint} exceeded critical threshold of "
                     f"{format_seconds(self.options.critical)} sec",
            warning=f"write to {mountpoint} exceeded warning threshold of "
                    f"{format_seconds(self.options.warning)} sec",
            failed=f"Could not write in {mountpoint}.",
        )
        outcome = self._run_graded(
            write_probe_command(marker), mountpoint, f"{mountpoint}_write", messages, report
        )
        if outcome is not None and outcome.timed_out:
            self.logger.critical(f"{marker} is not writable", marker=marker)
        return outcome

    def marker_path(self, mountpoint: str) -> str:
        """Unique marker file name under a mount point."""
        stamp = datetime.now().strftime("%Y-%m-%d--%H-%M-%S")
        name = (
            f".mount_test_from_{self.context.hostname()}_{stamp}"
            f".{random.randrange(32768)}.{uuid.uuid4().hex[:8]}"
        )
        return os.path.join(mountpoint, name)

    def _run_graded(
        self,
        cmd: list[str],
        mountpoint: str,
        label: str,
        messages: ProbeMessages,
        report: CheckReport,
    ) -> ProbeOutcome | None:
        """Run a bounded probe and grade its elapsed time."""
        opts = self.options
        try:
            outcome = run_bounded(cmd, opts.stale, self.context)
        except ProbeError as e:
            self._record(report, Severity.CRITICAL, f"{mountpoint} could not be probed: {e}")
            return None

        report.add_metric(MetricSample(
            label=label,
            elapsed=outcome.elapsed,
            warning=opts.warning,
            critical=opts.critical,
            stale=opts.stale,
        ))
        self.logger.debug(
            f"probe of {mountpoint} finished",
            label=label,
            elapsed=outcome.elapsed,
            timed_out=outcome.timed_out,
            returncode=outcome.returncode,
        )

        elapsed = f" ({outcome.elapsed:.3f} sec)"
        if outcome.timed_out or outcome.elapsed > opts.stale:
            self._record(report, Severity.CRITICAL, messages.stale)
        elif outcome.elapsed > opts.critical:
            self._record(report, Severity.CRITICAL, messages.critical + elapsed)
        elif outcome.elapsed > opts.warning:
            self._record(report, Severity.WARNING, messages.warning + elapsed)

        if messages.failed and outcome.completed and outcome.returncode != 0:
            self._record(report, Severity.CRITICAL, messages.failed)
        return outcome


def config_schema(options: CheckOptions, profile: PlatformProfile) -> TableSchema:
    """Profile column layout with any configured overrides applied."""
    base = profile.config_schema
    return TableSchema(
        fstype_field=options.fstype_field or base.fstype_field,
        mountpoint_field=options.mountpoint_field or base.mountpoint_field,
        options_field=options.options_field or base.options_field,
        device_field=base.device_field,
    )


def load_config_table(
    path: str,
    schema: TableSchema,
    context: Context,
    profile: PlatformProfile,
    logger: CheckLogger | None = None,
) -> list[MountTableRow]:
    """
    Read the config table and append rows for ZFS datasets.

    Raises:
        FileError: If the config table can't be read
    """
    rows = read_config_table(path, schema, context)
    rows.extend(synthesize_zfs_rows(rows, context, profile.zfs_delegation_property, logger))
    return rows


def ensure_pseudo_fs(
    profile: PlatformProfile,
    live_path: str,
    context: Context,
    report: CheckReport,
    logger: CheckLogger,
) -> None:
    """Mount the pseudo filesystem behind the live table if it is missing."""
    pseudo = profile.pseudo_fs
    if pseudo is None or live_path != pseudo.table_path or context.file_exists(live_path):
        return

    logger.critical(f"{pseudo.mountpoint} wasn't mounted!")
    try:
        result = context.run(
            ["mount", "-t", pseudo.fstype, pseudo.fstype, pseudo.mountpoint],
            timeout=30,
        )
        status = str(result.returncode)
    except (OSError, subprocess.SubprocessError) as e:
        status = f"failed ({e})"
    message = f"mounted {pseudo.mountpoint} {status}"
    logger.critical(message)
    report.add(Severity.CRITICAL, message)


def _stop(report: CheckReport, severity: Severity, message: str, logger: CheckLogger) -> CheckResult:
    if severity == Severity.UNKNOWN:
        logger.error(message)
    else:
        logger.info(message)
    report.add(severity, message)
    return CheckResult(report=report)


def run_check(
    options: CheckOptions,
    context: Context | None = None,
    profile: PlatformProfile | None = None,
    logger: CheckLogger | None = None,
) -> CheckResult:
    """
    Check every target and return the aggregated result.

    Configuration problems (unreadable table, no targets, missing live
    table) end the run early with UNKNOWN. Probe problems are WARNING or
    CRITICAL and never stop other targets from being checked.
    """
    if context is None:
        context = Context()
    if profile is None:
        profile = get_profile(options.platform) if options.platform else detect_profile()
    if logger is None:
        logger = CheckLogger("mountprobe")

    report = CheckReport()
    fstab_path = options.fstab or profile.config_path
    live_path = options.mtab or profile.live_path

    in_container = bool(
        profile.container_marker and context.file_exists(profile.container_marker)
    )
    needs_membership = not (options.auto or options.ignore_fstab or in_container)

    config: list[MountTableRow] = []
    if options.auto or needs_membership:
        try:
            config = load_config_table(
                fstab_path, config_schema(options, profile), context, profile, logger
            )
        except FileError as e:
            if not (options.auto and options.auto_ignore_empty):
                return _stop(report, Severity.UNKNOWN, f"cannot read fstab {fstab_path}: {e}", logger)
            logger.warning(f"cannot read fstab {fstab_path}: {e}")

    targets = select_targets(
        config,
        options.mountpoints,
        options.auto,
        exclude=options.exclude,
        exclude_noauto=options.exclude_noauto,
        noauto_marker=profile.noauto_marker,
    )
    if not targets:
        if options.auto and options.auto_ignore_empty:
            return _stop(
                report, Severity.OK, f"no external mounts were found in {fstab_path}", logger
            )
        return _stop(report, Severity.UNKNOWN, "no mountpoints given!", logger)

    ensure_pseudo_fs(profile, live_path, context, report, logger)
    if live_path != NO_LIVE_TABLE and not context.file_exists(live_path):
        result = _stop(report, Severity.UNKNOWN, f"{live_path} doesn't exist!", logger)
        result.targets = targets
        return result

    try:
        with read_live_table(live_path, profile.live_schema, context, profile.mount_command) as live:
            checker = MountChecker(
                options, profile, context, config, live, logger, fstab_path, in_container
            )
            for mountpoint in targets:
                checker.check(mountpoint, report)
    except (FileError, CommandError) as e:
        result = _stop(report, Severity.UNKNOWN, f"cannot read mount table {live_path}: {e}", logger)
        result.targets = targets
        return result

    if report.ok:
        logger.info(f"all mounts were found ({' '.join(targets)})")

    return CheckResult(report=report, targets=targets, perfdata=options.perfdata)
