"""JSONL and system log output for check diagnostics."""

import json
import os
from datetime import date, datetime, timezone
from pathlib import Path
from typing import TYPE_CHECKING, Any

from mountprobe.lib.process import CommandError, run_command

if TYPE_CHECKING:
    from mountprobe.core.context import Context


# Prefix used on system log lines, per level
SYSLOG_PREFIXES = {"warning": "WARN", "error": "CRIT", "critical": "CRIT"}


def get_log_path(check_name: str, base_path: Path | None = None) -> Path:
    """
    Get the log file path for a check.

    Args:
        check_name: Name of the check
        base_path: Base directory for logs (default: ~/var/log/mountprobe)

    Returns:
        Path to the log file: {base}/{date}/{check}.jsonl
    """
    if base_path is None:
        home = Path(os.environ.get("HOME", "/tmp"))
        base_path = home / "var" / "log" / "mountprobe"

    today = date.today().isoformat()
    return base_path / today / f"{check_name}.jsonl"


class CheckLogger:
    """
    Logger for check diagnostics.

    Writes structured entries to a JSONL file and, when enabled, forwards
    warnings and worse to the system log with the logger(1) tool. Either
    sink may be off; with both off every call is a no-op.
    """

    def __init__(
        self,
        check_name: str,
        log_path: Path | None = None,
        syslog_tag: str | None = None,
        context: "Context | None" = None,
    ):
        """
        Initialize logger.

        Args:
            check_name: Name recorded in every entry
            log_path: Path to JSONL log file (None disables file logging)
            syslog_tag: Tag for system log lines (None disables syslog)
            context: Execution context used to call logger(1)
        """
        self.check_name = check_name
        self.log_path = log_path
        self.syslog_tag = syslog_tag
        self.context = context
        self._file = None
        self._syslog_checked = False
        self._syslog_available = False

    def open(self) -> None:
        """
        Open the log file, creating its directory.

        Raises:
            OSError: If the directory or file can't be created
        """
        if self._file is None and self.log_path is not None:
            self.log_path.parent.mkdir(parents=True, exist_ok=True)
            self._file = open(self.log_path, "a")

    def _syslog(self, level: str, message: str) -> None:
        """Send a line to the system log if logger(1) is available."""
        if self.syslog_tag is None or self.context is None:
            return
        prefix = SYSLOG_PREFIXES.get(level)
        if prefix is None:
            return
        if not self._syslog_checked:
            self._syslog_available = self.context.check_tool("logger")
            self._syslog_checked = True
        if not self._syslog_available:
            return
        try:
            run_command(
                ["logger", "-i", "-p", "kern.warn", "-t", self.syslog_tag, f"{prefix}: {message}"],
                context=self.context,
                timeout=10,
            )
        except CommandError:
            # Keep checking; stop forwarding for the rest of the run
            self._syslog_available = False

    def _log(self, level: str, message: str, **extra: Any) -> None:
        """Write a log entry."""
        if self.log_path is not None:
            self.open()
            entry = {
                "timestamp": datetime.now(timezone.utc).isoformat(),
                "level": level,
                "check": self.check_name,
                "message": message,
                **extra,
            }
            self._file.write(json.dumps(entry) + "\n")
            self._file.flush()
        self._syslog(level, message)

    def debug(self, message: str, **extra: Any) -> None:
        """Log debug message."""
        self._log("debug", message, **extra)

    def info(self, message: str, **extra: Any) -> None:
        """Log info message."""
        self._log("info", message, **extra)

    def warning(self, message: str, **extra: Any) -> None:
        """Log warning message."""
        self._log("warning", message, **extra)

    def error(self, message: str, **extra: Any) -> None:
        """Log error message."""
        self._log("error", message, **extra)

    def critical(self, message: str, **extra: Any) -> None:
        """Log critical message."""
        self._log("critical", message, **extra)

    def close(self) -> None:
        """Close the log file."""
        if self._file is not None:
            self._file.close()
            self._file = None

    def __enter__(self) -> "CheckLogger":
        """Context manager entry."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        """Context manager exit."""
        self.close()
