from __future__ import annotations

from monitoring.metrics import MetricsExporter
from monitoring.report import Status


def _sample(text: str, name: str, **labels: str) -> str:
    """Return the value of the sample `name` carrying all `labels`."""
    for line in text.splitlines():
        if not line.startswith(name + "{"):
            continue
        if all(f'{key}="{value}"' in line for key, value in labels.items()):
            return line.rsplit(" ", 1)[1]
    raise AssertionError(f"{name} {labels} not exported")


def test_exporters_use_private_registries(tmp_path) -> None:
    first = MetricsExporter("nvr-1")
    second = MetricsExporter("nvr-2")
    first.record_status("server", Status.CRITICAL)
    second.record_status("server", Status.OK)

    path = tmp_path / "nested" / "first.prom"
    first.write(path)
    text = path.read_text()
    assert _sample(text, "trassir_check_status", host="nvr-1", mode="server") == "2.0"
    assert "nvr-2" not in text


def test_archive_gauges(tmp_path) -> None:
    exporter = MetricsExporter("nvr-1")
    exporter.record_archive("Camera-1", density=-3, age_seconds=125.0)
    path = tmp_path / "archive.prom"
    exporter.write(path)
    text = path.read_text()
    assert _sample(text, "trassir_archive_density", host="nvr-1", channel="Camera-1") == "0.0"
    assert _sample(text, "trassir_last_event_age_seconds", host="nvr-1", channel="Camera-1") == "125.0"
