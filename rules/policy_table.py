"""Server health setting policies.

Each entry describes how one `/settings/health/<name>` value returned by
the server is judged:

* ``kind`` selects the evaluation logic. Boolean settings report only
  when they are in a problem state; integer settings always print their
  value and, when a threshold is set, also emit perfdata.
* ``invert`` flips the meaning. For booleans a zero becomes the problem;
  for integers the problem condition becomes ``value < threshold``
  instead of ``value >= threshold``.
* ``severity`` is the status raised when the setting is in a problem
  state. OK-severity settings are informational.
* ``disabled`` removes the setting from evaluation entirely.

The table is fixed at import time. Deployments tune it through the
``settings`` section of the YAML config, which produces a new table via
`apply_overrides` rather than mutating this one.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Dict, Iterable, Mapping, Optional, Tuple

from monitoring.errors import ConfigurationError
from monitoring.report import Status


class SettingKind(Enum):
    BOOLEAN = "bool"
    INTEGER = "int"


@dataclass(frozen=True)
class SettingPolicy:
    """Evaluation rule for a single health setting."""

    name: str
    description: str
    severity: Status = Status.OK
    invert: bool = False
    disabled: bool = False
    kind: SettingKind = SettingKind.BOOLEAN
    threshold: Optional[int] = None

    def __post_init__(self) -> None:
        if self.severity not in (Status.OK, Status.WARNING, Status.CRITICAL):
            raise ValueError(f"Setting '{self.name}': severity must be OK, WARNING or CRITICAL")
        if self.kind is SettingKind.BOOLEAN and self.threshold is not None:
            raise ValueError(f"Setting '{self.name}': boolean settings take no threshold")

    @property
    def informational(self) -> bool:
        return self.kind is SettingKind.INTEGER and self.threshold is None


def coerce_value(raw: Any) -> Optional[float]:
    """Turn a raw API value into a number, or ``None`` if it is not one.

    Integers, floats and numeric strings are accepted. JSON booleans, NaN
    and infinities are rejected along with everything else.
    """
    if isinstance(raw, bool):
        return None
    if isinstance(raw, (int, float)):
        value = float(raw)
    elif isinstance(raw, str):
        try:
            value = float(raw.strip())
        except ValueError:
            return None
    else:
        return None
    if not math.isfinite(value):
        return None
    return value


DEFAULT_POLICIES: Tuple[SettingPolicy, ...] = (
    SettingPolicy("amerge_error", "There is an archive synchronization error on server", Status.WARNING),
    SettingPolicy("channels_bitrate_exceeded", "Bitrate exceeded on channel", Status.CRITICAL),
    SettingPolicy("channels_detector_error", "Server has channels with detector errors", Status.CRITICAL),
    SettingPolicy("channels_detector_warning", "Server has channels with detector warnings", Status.WARNING),
    SettingPolicy("db_connected", "Database disconnected", Status.CRITICAL, invert=True),
    SettingPolicy("db_is_slow", "Databases work slowly", Status.WARNING),
    SettingPolicy("disks_error_count", "Disks have errors", Status.CRITICAL),
    SettingPolicy("disks_is_slow", "Disks work slowly", Status.WARNING),
    SettingPolicy("plugins_ok", "Plugins have errors", Status.WARNING, invert=True, disabled=True),
    SettingPolicy("scripts_ok", "Scripts have errors", Status.WARNING, invert=True, disabled=True),
    SettingPolicy("cpu_usage", "CPU load, %", Status.WARNING, kind=SettingKind.INTEGER, threshold=85),
    SettingPolicy(
        "gpu_usage", "GPU load, %", Status.WARNING, disabled=True, kind=SettingKind.INTEGER, threshold=85
    ),
    SettingPolicy("channels_network_online", "Network channels online", kind=SettingKind.INTEGER),
    SettingPolicy(
        "disks_stat_main_days",
        "Main stream archive depth, days",
        Status.WARNING,
        invert=True,
        kind=SettingKind.INTEGER,
        threshold=30,
    ),
    SettingPolicy("disks_stat_main_gb", "Main stream archive volume, GB", kind=SettingKind.INTEGER),
)

_OVERRIDABLE = {"disabled", "severity", "threshold", "invert"}


def apply_overrides(
    policies: Iterable[SettingPolicy], overrides: Mapping[str, Mapping[str, Any]]
) -> Tuple[SettingPolicy, ...]:
    """Return a copy of `policies` with per-setting overrides applied.

    Parameters
    ----------
    policies : iterable of SettingPolicy
        The base table, in declaration order.
    overrides : mapping
        Setting name to a mapping of fields to change. Only ``disabled``,
        ``severity`` (a status name), ``threshold`` and ``invert`` may be
        overridden.

    Raises
    ------
    ConfigurationError
        If an override names an unknown setting or field, or produces an
        invalid policy.
    """
    table = list(policies)
    known = {policy.name: index for index, policy in enumerate(table)}
    for name, changes in overrides.items():
        if name not in known:
            raise ConfigurationError(f"Unknown health setting in config: {name}")
        unknown_fields = set(changes) - _OVERRIDABLE
        if unknown_fields:
            raise ConfigurationError(
                f"Setting '{name}': cannot override {', '.join(sorted(unknown_fields))}"
            )
        fields: Dict[str, Any] = dict(changes)
        if "severity" in fields:
            try:
                fields["severity"] = Status[str(fields["severity"]).upper()]
            except KeyError:
                raise ConfigurationError(f"Setting '{name}': invalid severity {fields['severity']!r}")
        index = known[name]
        try:
            table[index] = replace(table[index], **fields)
        except ValueError as exc:
            raise ConfigurationError(str(exc)) from exc
    return tuple(table)
