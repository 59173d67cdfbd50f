"""Prometheus textfile export of check results.

The plugin runs once and exits, so there is no HTTP endpoint to scrape.
Instead the gauges are collected into a private registry and written to
a file for the node_exporter textfile collector. The write is atomic on
the prometheus_client side (temp file then rename), which keeps
concurrent checks from publishing half-written files.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

from prometheus_client import CollectorRegistry, Gauge, write_to_textfile

from .report import Status


class MetricsExporter:
    """Expose check results as Prometheus gauges."""

    def __init__(self, host: str, registry: Optional[CollectorRegistry] = None) -> None:
        self.host = host
        self.registry = registry or CollectorRegistry()

        self.check_status = Gauge(
            "trassir_check_status",
            "Check status (0=OK, 1=WARNING, 2=CRITICAL, 3=UNKNOWN)",
            ["host", "mode"],
            registry=self.registry,
        )
        self.setting_value = Gauge(
            "trassir_setting_value",
            "Raw value of a server health setting",
            ["host", "setting"],
            registry=self.registry,
        )
        self.archive_density = Gauge(
            "trassir_archive_density",
            "Archived events overlapping the density window",
            ["host", "channel"],
            registry=self.registry,
        )
        self.last_event_age = Gauge(
            "trassir_last_event_age_seconds",
            "Age of the newest archived event",
            ["host", "channel"],
            registry=self.registry,
        )

    def record_status(self, mode: str, status: Status) -> None:
        self.check_status.labels(self.host, mode).set(int(status))

    def record_setting(self, setting: str, value: float) -> None:
        self.setting_value.labels(self.host, setting).set(value)

    def record_archive(self, channel: str, density: int, age_seconds: float) -> None:
        self.archive_density.labels(self.host, channel).set(max(density, 0))
        self.last_event_age.labels(self.host, channel).set(age_seconds)

    def write(self, path: str | Path) -> None:
        """Write all gauges to `path` in the text exposition format."""
        target = Path(path)
        target.parent.mkdir(parents=True, exist_ok=True)
        write_to_textfile(str(target), self.registry)
