"""Configuration for pymon: defaults, optional JSON file, command-line flags."""

import argparse
import json
import logging
import os
from dataclasses import dataclass, fields, replace
from typing import Any

from pymon.errors import ConfigError
from pymon.history import DEFAULT_RETENTION

logger = logging.getLogger(__name__)

MIN_INTERVAL = 0.1

# Chart periods offered by the UI, in seconds
PERIODS = (60, 5 * 60, 30 * 60, 3 * 60 * 60, 6 * 60 * 60, 12 * 60 * 60, 24 * 60 * 60)


@dataclass(slots=True, frozen=True)
class MonitorConfig:
    """Runtime settings."""

    interval: float = 1.0  # Seconds between samples
    retention: int = DEFAULT_RETENTION  # Samples kept in history
    lookback: int = PERIODS[0]  # Seconds shown in the chart
    point_budget: int = 60  # Maximum points per chart
    log_level: str = "WARNING"
    log_file: str | None = None

    def __post_init__(self) -> None:
        if self.interval < MIN_INTERVAL:
            raise ConfigError(f"interval must be at least {MIN_INTERVAL}s, got {self.interval}")
        if self.retention < 1:
            raise ConfigError(f"retention must be at least 1, got {self.retention}")
        if self.lookback < 1:
            raise ConfigError(f"lookback must be at least 1, got {self.lookback}")
        if self.point_budget < 1:
            raise ConfigError(f"point_budget must be at least 1, got {self.point_budget}")
        if not isinstance(self.log_level, str) or not isinstance(
            logging.getLevelName(self.log_level.upper()), int
        ):
            raise ConfigError(f"unknown log level {self.log_level!r}")


def load_config_file(path: str) -> dict[str, Any]:
    """Read overrides from a JSON object file."""
    if not os.path.exists(path):
        raise ConfigError(f"configuration file not found: {path}")
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise ConfigError(f"invalid JSON in configuration file {path}: {e}") from e
    except OSError as e:
        raise ConfigError(f"could not read configuration file {path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigError(f"configuration file {path} does not contain a JSON object")

    known = {f.name for f in fields(MonitorConfig)}
    unknown = sorted(set(data) - known)
    if unknown:
        raise ConfigError(f"unknown configuration keys: {', '.join(unknown)}")
    return data


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="pymon", description="Desktop resource monitor")
    parser.add_argument("--config", metavar="PATH", help="JSON configuration file")
    parser.add_argument("--interval", type=float, help="seconds between samples")
    parser.add_argument("--retention", type=int, help="number of samples kept in history")
    parser.add_argument("--lookback", type=int, help="initial chart period in seconds")
    parser.add_argument("--point-budget", type=int, dest="point_budget", help="maximum points per chart")
    parser.add_argument("--log-level", dest="log_level", help="console log level")
    parser.add_argument("--log-file", dest="log_file", help="write a rotating debug log here")
    return parser


def parse_config(argv: list[str] | None = None) -> MonitorConfig:
    """
    Build the configuration from defaults, then the JSON file, then flags.

    Raises:
        ConfigError: If any source holds an invalid value.
    """
    args = build_parser().parse_args(argv)

    overrides: dict[str, Any] = {}
    if args.config:
        overrides.update(load_config_file(args.config))
        logger.info("Configuration loaded from %s", args.config)

    for name in ("interval", "retention", "lookback", "point_budget", "log_level", "log_file"):
        value = getattr(args, name)
        if value is not None:
            overrides[name] = value

    try:
        return replace(MonitorConfig(), **overrides)
    except TypeError as e:
        raise ConfigError(f"invalid configuration value: {e}") from e
