"""Bounded execution of probes that may hang on a stale mount."""

import math
import subprocess
from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from mountprobe.core.context import Context


# Seconds between liveness checks of a running probe
POLL_INTERVAL = 0.1

# Seconds to wait for a terminated probe to be reaped
REAP_TIMEOUT = 0.5

# Marker file writer: create, verify, remove
WRITE_PROBE_SCRIPT = 'touch "$1" && test -f "$1" && rm -f "$1"'


class ProbeError(Exception):
    """Probe process could not be started."""

    pass


@dataclass
class ProbeOutcome:
    """Result of one bounded probe."""

    completed: bool
    elapsed: float
    timed_out: bool
    returncode: int | None = None

    @property
    def succeeded(self) -> bool:
        """True if the probe finished in time and exited 0."""
        return self.completed and self.returncode == 0


def space_probe_command(mountpoint: str, extra_args: list[str] | None = None) -> list[str]:
    """Command that queries free space on a mount point."""
    return ["df", "-k", *(extra_args or []), mountpoint]


def write_probe_command(marker: str) -> list[str]:
    """Command that creates, verifies and removes a marker file."""
    return ["sh", "-c", WRITE_PROBE_SCRIPT, "mountprobe", marker]


def _round_up(seconds: float) -> float:
    """Round to milliseconds without ever reporting less than measured."""
    # round() first so float noise like 0.30000000000000004 stays 0.3
    return math.ceil(round(seconds * 1000, 6)) / 1000


def _reclaim(proc: subprocess.Popen) -> None:
    """Send SIGTERM and give the probe a moment to exit."""
    try:
        proc.terminate()
    except ProcessLookupError:
        return
    try:
        proc.wait(timeout=REAP_TIMEOUT)
    except subprocess.TimeoutExpired:
        # Stuck in an uninterruptible syscall; nothing more we can do.
        pass


def run_bounded(
    cmd: list[str],
    deadline: float,
    context: "Context",
    poll_interval: float = POLL_INTERVAL,
) -> ProbeOutcome:
    """
    Run a probe command in a child process with a deadline.

    The child is polled every poll_interval seconds. If it is still
    running at the deadline it is sent SIGTERM and the outcome is marked
    timed out. Elapsed time is taken from one clock and rounded up to the
    millisecond, so it can be compared against thresholds and reported as
    a metric without drift.

    Args:
        cmd: Probe command and arguments
        deadline: Seconds the probe may run
        context: Execution context
        poll_interval: Seconds between polls

    Returns:
        ProbeOutcome for this run

    Raises:
        ProbeError: If the probe process can't be started
    """
    start = context.monotonic()
    try:
        proc = context.spawn(cmd)
    except OSError as e:
        raise ProbeError(f"Unable to start {cmd[0]}: {e}") from e

    while True:
        returncode = proc.poll()
        elapsed = context.monotonic() - start
        if returncode is not None:
            return ProbeOutcome(
                completed=True,
                elapsed=_round_up(elapsed),
                timed_out=False,
                returncode=returncode,
            )
        if elapsed >= deadline:
            _reclaim(proc)
            return ProbeOutcome(
                completed=False,
                elapsed=_round_up(elapsed),
                timed_out=True,
            )
        context.sleep(min(poll_interval, deadline - elapsed))
