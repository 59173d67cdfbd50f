"""Probe configuration.

Command-line flags describe one check (which server, which channel, how
fresh). Everything that describes the deployment (where caches live,
how long they stay valid, how hard to poll) lives in `ProbeConfig`,
which can be loaded from a YAML file and is passed explicitly to the
components that need it.

Example ``configs/default.yaml``::

    cache_dir: /var/tmp/check_trassir/
    cache_life_hours: 12
    retry_count: 10
    settings:
      gpu_usage:
        disabled: false
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from monitoring.errors import ConfigurationError


@dataclass
class ProbeConfig:
    cache_dir: str = "/var/tmp/check_trassir/"
    cache_life_hours: float = 12  # channel list cache lifetime
    density_hours: float = 1  # trailing window for archive density
    density_max: int = 200
    retry_count: int = 10  # timeline polls after an archive seek
    connect_timeout: float = 5
    read_timeout: float = 10
    stream_port: int = 555
    metrics_textfile: Optional[str] = None
    settings: Dict[str, Dict[str, Any]] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if self.retry_count < 1:
            raise ConfigurationError("retry_count must be at least 1")
        if self.cache_life_hours < 0 or self.density_hours <= 0:
            raise ConfigurationError("cache_life_hours and density_hours must be positive")
        if not isinstance(self.settings, dict):
            raise ConfigurationError("settings must be a mapping of setting name to overrides")


def load_config(config_path: Optional[str | Path]) -> ProbeConfig:
    """Load a `ProbeConfig` from YAML; defaults when no path is given."""
    if config_path is None:
        return ProbeConfig()
    try:
        with open(config_path, "r") as f:
            raw = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as exc:
        raise ConfigurationError(f"Cannot read config file {config_path}: {exc}") from exc
    raw = raw or {}
    if not isinstance(raw, dict):
        raise ConfigurationError(f"Config file {config_path} must contain a mapping")
    known = {f.name for f in fields(ProbeConfig)}
    unknown = set(raw) - known
    if unknown:
        raise ConfigurationError(f"Unknown config keys: {', '.join(sorted(unknown))}")
    try:
        return ProbeConfig(**raw)
    except TypeError as exc:
        raise ConfigurationError(f"Invalid config file {config_path}: {exc}") from exc
