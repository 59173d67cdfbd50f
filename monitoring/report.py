"""Check result aggregation and plugin output rendering.

A monitoring check answers with a status (which doubles as the process
exit code), one or more human readable lines and an optional perfdata
line. `CheckResult` collects these while a check runs; the status can
only be escalated, never lowered, so the order in which findings arrive
does not matter for the final verdict.

The rendered text follows the classic plugin convention::

    WARNING: CPU load, % = 91.00
    OK: Main stream archive depth, days = 42.00
    | cpu_usage=91;;;;85 disks_stat_main_days=42;;;;30
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import IntEnum
from typing import List, Optional


class Status(IntEnum):
    """Plugin states, valued as their exit codes."""

    OK = 0
    WARNING = 1
    CRITICAL = 2
    UNKNOWN = 3


def _format_number(value: Optional[float]) -> str:
    if value is None:
        return ""
    if float(value).is_integer():
        return str(int(value))
    return f"{value:g}"


@dataclass(frozen=True)
class Metric:
    """A single perfdata token."""

    name: str
    value: float
    warn: Optional[float] = None
    crit: Optional[float] = None
    minimum: Optional[float] = None
    maximum: Optional[float] = None
    uom: str = ""

    def render(self) -> str:
        fields = [
            f"{_format_number(self.value)}{self.uom}",
            _format_number(self.warn),
            _format_number(self.crit),
            _format_number(self.minimum),
            _format_number(self.maximum),
        ]
        return f"{self.name}=" + ";".join(fields).rstrip(";")


@dataclass
class CheckResult:
    """Aggregated status, findings and metrics of one check run."""

    status: Status = Status.OK
    findings: List[str] = field(default_factory=list)
    metrics: List[Metric] = field(default_factory=list)

    def escalate(self, status: Status) -> None:
        """Raise the running status to `status` if it is more severe."""
        if status > self.status:
            self.status = Status(status)

    def add_finding(self, text: str, status: Optional[Status] = None) -> None:
        self.findings.append(text)
        if status is not None:
            self.escalate(status)

    def add_metric(self, metric: Metric) -> None:
        self.metrics.append(metric)

    def finalize(self) -> "CheckResult":
        """Guarantee that a non-OK status never goes out unexplained."""
        if not self.findings and self.status > Status.OK:
            self.findings.append(f"{self.status.name}: Inconsistent output.")
        return self

    def render(self) -> str:
        lines = list(self.findings)
        if not lines:
            lines.append(f"{self.status.name}: No problems detected.")
        if self.metrics:
            lines.append("| " + " ".join(metric.render() for metric in self.metrics))
        return "\n".join(lines)
