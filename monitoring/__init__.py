"""Monitoring package.

Plugin status handling: the `Status` enum and `CheckResult` aggregate
that every check mode reports through, the exception taxonomy that maps
failures onto plugin states, and optional Prometheus textfile export.
"""

from .report import CheckResult, Metric, Status
from .errors import CheckError
from .metrics import MetricsExporter

__all__ = ["CheckResult", "Metric", "Status", "CheckError", "MetricsExporter"]
