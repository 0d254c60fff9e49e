"""Core mountprobe functionality."""

from mountprobe.core.config import CheckOptions, ConfigError
from mountprobe.core.context import Context
from mountprobe.core.logging import CheckLogger
from mountprobe.core.output import CheckReport, MetricSample, Severity, render_report
from mountprobe.core.platform import PlatformProfile, detect_profile, get_profile
from mountprobe.core.probe import ProbeError, ProbeOutcome, run_bounded

__all__ = [
    "CheckLogger",
    "CheckOptions",
    "CheckReport",
    "ConfigError",
    "Context",
    "MetricSample",
    "PlatformProfile",
    "ProbeError",
    "ProbeOutcome",
    "Severity",
    "detect_profile",
    "get_profile",
    "render_report",
    "run_bounded",
]
