"""
Configuration loading for statline.

Settings come from a YAML file. A missing file means defaults; a file with
invalid values raises ConfigError naming the offending key.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping

import yaml

DEFAULT_CONFIG_PATH = "statline.yaml"
DEFAULT_BANDWIDTH_URL = "https://speed.cloudflare.com/__down?bytes=10000000"
DISK_STRATEGIES = ("auto", "posix", "windows", "native")
TRAFFIC_SOURCES = ("psutil", "procfs")

FIELD_ORDER = ("os", "cpu", "ram", "disk", "traffic", "bandwidth")


class ConfigError(ValueError):
    """Raised when a configuration value is invalid."""


@dataclass(slots=True, frozen=True)
class DisplayOptions:
    """Which status line fields to show and how to label them."""

    show_os: bool = True
    show_cpu: bool = True
    show_ram: bool = True
    show_disk: bool = True
    show_traffic: bool = True
    show_bandwidth: bool = True
    icon_only: bool = False

    def visible_fields(self) -> list[str]:
        return [name for name in FIELD_ORDER if getattr(self, f"show_{name}")]


@dataclass(slots=True, frozen=True)
class Settings:
    """Complete statline configuration."""

    refresh_interval: int = 1000  # milliseconds
    display: DisplayOptions = field(default_factory=DisplayOptions)
    bandwidth_url: str = DEFAULT_BANDWIDTH_URL
    bandwidth_timeout: float = 5.0
    disk_strategy: str = "auto"
    disk_timeout: float = 3.0
    traffic_source: str = "psutil"
    log_level: str = "INFO"
    log_file: str | None = "statline.log"

    @property
    def poll_rate(self) -> float:
        """Refresh interval in seconds."""
        return self.refresh_interval / 1000


def _section(data: Mapping[str, Any], key: str) -> Mapping[str, Any]:
    value = data.get(key) or {}
    if not isinstance(value, Mapping):
        raise ConfigError(f"'{key}' must be a mapping")
    return value


def _bool(section: Mapping[str, Any], key: str, default: bool) -> bool:
    value = section.get(key, default)
    if not isinstance(value, bool):
        raise ConfigError(f"'display.{key}' must be true or false")
    return value


def _positive_number(value: Any, key: str) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)) or value <= 0:
        raise ConfigError(f"'{key}' must be a positive number")
    return float(value)


def settings_from_mapping(data: Mapping[str, Any]) -> Settings:
    """Build Settings from an already-parsed config mapping."""
    defaults = Settings()

    refresh_interval = data.get("refresh_interval", defaults.refresh_interval)
    if isinstance(refresh_interval, bool) or not isinstance(refresh_interval, int) or refresh_interval <= 0:
        raise ConfigError("'refresh_interval' must be a positive integer (milliseconds)")

    display_cfg = _section(data, "display")
    display = DisplayOptions(
        show_os=_bool(display_cfg, "show_os", True),
        show_cpu=_bool(display_cfg, "show_cpu", True),
        show_ram=_bool(display_cfg, "show_ram", True),
        show_disk=_bool(display_cfg, "show_disk", True),
        show_traffic=_bool(display_cfg, "show_traffic", True),
        show_bandwidth=_bool(display_cfg, "show_bandwidth", True),
        icon_only=_bool(display_cfg, "icon_only", False),
    )

    bandwidth_cfg = _section(data, "bandwidth")
    bandwidth_url = bandwidth_cfg.get("url", defaults.bandwidth_url)
    if not isinstance(bandwidth_url, str) or not bandwidth_url.startswith(("http://", "https://")):
        raise ConfigError("'bandwidth.url' must be an http(s) URL")
    bandwidth_timeout = _positive_number(
        bandwidth_cfg.get("timeout", defaults.bandwidth_timeout), "bandwidth.timeout"
    )

    disk_cfg = _section(data, "disk")
    disk_strategy = disk_cfg.get("strategy", defaults.disk_strategy)
    if disk_strategy not in DISK_STRATEGIES:
        raise ConfigError(f"'disk.strategy' must be one of {', '.join(DISK_STRATEGIES)}")
    disk_timeout = _positive_number(disk_cfg.get("timeout", defaults.disk_timeout), "disk.timeout")

    traffic_cfg = _section(data, "traffic")
    traffic_source = traffic_cfg.get("source", defaults.traffic_source)
    if traffic_source not in TRAFFIC_SOURCES:
        raise ConfigError(f"'traffic.source' must be one of {', '.join(TRAFFIC_SOURCES)}")

    logging_cfg = _section(data, "logging")
    log_level = str(logging_cfg.get("level", defaults.log_level)).upper()
    log_file = logging_cfg.get("file", defaults.log_file)
    if log_file is not None:
        log_file = os.fspath(log_file)

    return Settings(
        refresh_interval=refresh_interval,
        display=display,
        bandwidth_url=bandwidth_url,
        bandwidth_timeout=bandwidth_timeout,
        disk_strategy=disk_strategy,
        disk_timeout=disk_timeout,
        traffic_source=traffic_source,
        log_level=log_level,
        log_file=log_file,
    )


def load_settings(path: os.PathLike[str] | str | None = None) -> Settings:
    """
    Load settings from a YAML file.

    Parameters
    ----------
    path:
        Path to the YAML file. Defaults to ``$STATLINE_CONFIG`` or
        ``statline.yaml`` in the working directory.
    """
    resolved = Path(path or os.environ.get("STATLINE_CONFIG", DEFAULT_CONFIG_PATH))
    if not resolved.exists():
        if path is not None:
            raise FileNotFoundError(f"Configuration file '{resolved}' does not exist.")
        return Settings()

    with resolved.open("r", encoding="utf-8") as handle:
        try:
            data = yaml.safe_load(handle) or {}
        except yaml.YAMLError as exc:
            raise ConfigError(f"Cannot parse '{resolved}': {exc}") from exc

    if not isinstance(data, Mapping):
        raise ConfigError(f"'{resolved}' must contain a mapping at the top level")
    return settings_from_mapping(data)
