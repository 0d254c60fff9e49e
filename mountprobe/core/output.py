"""Check result accumulation and rendering."""

import json
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any


# Separator between diagnostics on the status line
MESSAGE_DELIMITER = " ; "


class Severity(IntEnum):
    """Monitoring plugin states, numbered as their exit codes."""

    OK = 0
    WARNING = 1
    CRITICAL = 2
    UNKNOWN = 3


@dataclass
class MetricSample:
    """One timed probe, rendered as a performance data tuple."""

    label: str
    elapsed: float
    warning: float
    critical: float
    stale: float

    def render(self) -> str:
        """Return label=value unit;warn;crit;min;max."""
        label = self.label
        if "=" in label or any(c.isspace() for c in label):
            label = f"'{label}'"
        return (
            f"{label}={self.elapsed:.3f}s;"
            f"{format_seconds(self.warning)};{format_seconds(self.critical)};0;{format_seconds(self.stale)}"
        )


@dataclass
class CheckReport:
    """
    Accumulator for one run.

    Diagnostics are kept in the order they were recorded. Severity only
    ever goes up.
    """

    messages: list[str] = field(default_factory=list)
    severity: Severity = Severity.OK
    metrics: list[MetricSample] = field(default_factory=list)

    def raise_to(self, severity: Severity) -> None:
        """Escalate the run severity, never lowering it."""
        if severity > self.severity:
            self.severity = severity

    def add(self, severity: Severity, message: str) -> None:
        """Record a diagnostic and fold its severity in."""
        self.messages.append(message)
        self.raise_to(severity)

    def add_metric(self, sample: MetricSample) -> None:
        """Record a timing sample."""
        self.metrics.append(sample)

    @property
    def ok(self) -> bool:
        """True if nothing was recorded."""
        return not self.messages and self.severity == Severity.OK


def format_seconds(value: float) -> str:
    """Format a threshold without a pointless fraction."""
    if value == int(value):
        return str(int(value))
    return f"{value:g}"


def render_report(
    report: CheckReport,
    targets: list[str],
    perfdata: bool = False,
) -> str:
    """
    Render the single status line.

    Args:
        report: Finalized check report
        targets: Mount points that were checked, in order
        perfdata: Append the metrics segment when samples exist

    Returns:
        "SEVERITY: summary" optionally followed by " | metrics"
    """
    if report.messages:
        summary = MESSAGE_DELIMITER.join(report.messages)
    else:
        summary = f"all mounts were found ({' '.join(targets)})"

    line = f"{report.severity.name}: {summary}"

    if perfdata and report.metrics:
        line += " | " + " ".join(sample.render() for sample in report.metrics)

    return line


def report_to_dict(report: CheckReport, targets: list[str]) -> dict[str, Any]:
    """Return the report as a JSON-serializable dict."""
    return {
        "status": report.severity.name,
        "exit_code": int(report.severity),
        "targets": targets,
        "messages": report.messages,
        "metrics": [
            {
                "label": s.label,
                "elapsed": s.elapsed,
                "warning": s.warning,
                "critical": s.critical,
                "stale": s.stale,
            }
            for s in report.metrics
        ],
    }


def report_to_json(report: CheckReport, targets: list[str]) -> str:
    """Return the report as a JSON string."""
    return json.dumps(report_to_dict(report, targets), indent=2, default=str)
