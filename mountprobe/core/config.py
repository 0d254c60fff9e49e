"""Configuration loading with layered overrides."""

import math
import re
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any

import yaml


# Seconds after which an unresponsive mount is declared stale
DEFAULT_STALE = 3.0

PROJECT_CONFIG = Path(".mountprobe.yaml")


class ConfigError(Exception):
    """Invalid configuration file or value."""

    pass


@dataclass
class CheckOptions:
    """Settings for one check run, after config and flags are merged."""

    mountpoints: list[str] = field(default_factory=list)
    auto: bool = False
    auto_ignore_empty: bool = False
    exclude: str | None = None
    exclude_noauto: bool = False
    fstab: str | None = None
    mtab: str | None = None
    fstype_field: int | None = None
    mountpoint_field: int | None = None
    options_field: int | None = None
    stale: float = DEFAULT_STALE
    warning: float | None = None
    critical: float | None = None
    link_ok: bool = False
    ignore_fstab: bool = False
    write_test: bool = False
    perfdata: bool = False
    df_args: list[str] = field(default_factory=list)
    platform: str | None = None
    log_dir: str | None = None
    syslog: bool = False

    def __post_init__(self) -> None:
        for name in ("stale", "warning", "critical"):
            value = getattr(self, name)
            if value is not None and not math.isfinite(value):
                raise ConfigError(f"{name} must be a finite number, got {value}")
        if self.stale <= 0:
            raise ConfigError(f"stale timeout must be positive, got {self.stale}")
        if self.auto_ignore_empty:
            self.auto = True
        if self.exclude:
            try:
                re.compile(self.exclude)
            except re.error as e:
                raise ConfigError(f"Invalid exclude pattern '{self.exclude}': {e}") from e
        self.warning, self.critical = clamp_thresholds(self.stale, self.warning, self.critical)


def clamp_thresholds(
    stale: float,
    warning: float | None,
    critical: float | None,
) -> tuple[float, float]:
    """
    Fill in and order the response time thresholds.

    Unset thresholds default to the stale timeout. The result always
    satisfies warning <= critical <= stale.
    """
    critical = stale if critical is None else min(critical, stale)
    warning = critical if warning is None else min(warning, critical)
    return warning, critical


# Option name -> accepted types for values read from YAML
_VALUE_TYPES: dict[str, tuple[type, ...]] = {
    "auto": (bool,),
    "auto_ignore_empty": (bool,),
    "exclude": (str,),
    "exclude_noauto": (bool,),
    "fstab": (str,),
    "mtab": (str,),
    "fstype_field": (int,),
    "mountpoint_field": (int,),
    "options_field": (int,),
    "stale": (int, float),
    "warning": (int, float),
    "critical": (int, float),
    "link_ok": (bool,),
    "ignore_fstab": (bool,),
    "write_test": (bool,),
    "perfdata": (bool,),
    "df_args": (list,),
    "platform": (str,),
    "log_dir": (str,),
    "syslog": (bool,),
}


def load_config_file(path: Path) -> dict[str, Any]:
    """
    Load a YAML config file if it exists.

    Raises:
        ConfigError: If the file is not a valid YAML mapping
    """
    if not path.exists():
        return {}
    try:
        with open(path) as f:
            data = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as e:
        raise ConfigError(f"Invalid config file {path}: {e}") from e
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"Config file must be a YAML mapping: {path}")
    return data


def validate_config(data: dict[str, Any], source: str = "config") -> dict[str, Any]:
    """
    Check keys and value types of a config mapping.

    Raises:
        ConfigError: On unknown keys or values of the wrong type
    """
    valid = {}
    for key, value in data.items():
        if key not in _VALUE_TYPES:
            raise ConfigError(f"Unknown option '{key}' in {source}")
        if value is None:
            continue
        expected = _VALUE_TYPES[key]
        # bool is an int subclass; don't accept it for numbers
        if not isinstance(value, expected) or (isinstance(value, bool) and bool not in expected):
            names = " or ".join(t.__name__ for t in expected)
            raise ConfigError(f"Option '{key}' in {source} must be {names}")
        if key == "df_args":
            value = [str(v) for v in value]
        valid[key] = value
    return valid


def load_layered_config(
    project_config: Path | None = None,
    user_config: Path | None = None,
) -> dict[str, Any]:
    """
    Load config with project -> user precedence.

    Values in the project file win over the user file.
    """
    if project_config is None:
        project_config = PROJECT_CONFIG
    if user_config is None:
        user_config = Path.home() / ".config" / "mountprobe" / "config.yaml"

    merged = validate_config(load_config_file(user_config), str(user_config))
    merged.update(validate_config(load_config_file(project_config), str(project_config)))
    return merged


def build_options(config: dict[str, Any], overrides: dict[str, Any]) -> CheckOptions:
    """
    Merge config values with command-line overrides.

    Overrides set to None are treated as not given.
    """
    known = {f.name for f in fields(CheckOptions)}
    values = {k: v for k, v in config.items() if k in known}
    values.update({k: v for k, v in overrides.items() if k in known and v is not None})
    return CheckOptions(**values)
