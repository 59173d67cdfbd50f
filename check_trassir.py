#!/usr/bin/env python3
"""Icinga/Nagios check command for Trassir CCTV servers.

Two modes, selected by ``--channel``:

* server health (no channel): evaluates the server's health settings
  and reports the most severe finding;
* channel archive: verifies that the named channel's archive holds an
  event recent enough for ``--hours`` and reports archive density.

Usage
-----
```bash
check_trassir.py --host 10.0.1.1 --port 8080 --username user --password secret
check_trassir.py --host 10.0.1.1 --port 8080 --username user --password secret \\
    --channel Camera-1 --hours 8 --timezone 3
```

Exit codes follow the plugin convention: 0 OK, 1 WARNING, 2 CRITICAL,
3 UNKNOWN.
"""

from __future__ import annotations

import argparse
import logging
import sys
import time
from typing import Callable, List, Optional

from analytics.archive_session import ArchiveSessionController, StreamFactory
from analytics.timeline_analyzer import TimelineAnalysis, analyze
from analytics.timeline_poller import TimelinePoller
from camera_adapters.mjpeg_stream import MJPEGStream
from camera_adapters.session import SessionResolver
from camera_adapters.trassir_api import TrassirClient
from config.probe_config import ProbeConfig, load_config
from monitoring.errors import ArchiveStale, CheckError, ConfigurationError, TimelineUnavailable
from monitoring.metrics import MetricsExporter
from monitoring.report import CheckResult, Metric, Status
from rules.policy_table import DEFAULT_POLICIES, apply_overrides
from rules.rule_engine import RuleEngine
from storage.api_cache import ApiCache

logger = logging.getLogger("check_trassir")


class PluginArgumentParser(argparse.ArgumentParser):
    """Argument parser that reports bad input as UNKNOWN instead of exit 2."""

    def error(self, message: str) -> None:  # type: ignore[override]
        raise ConfigurationError(f"Invalid input parameters: {message}")


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = PluginArgumentParser(description="Check Trassir server health or channel archive.")
    parser.add_argument("--host", help="Trassir server address.")
    parser.add_argument("--port", help="Trassir SDK HTTPS port.")
    parser.add_argument("--username", help="SDK user name.")
    parser.add_argument("--password", help="SDK password.")
    parser.add_argument("--channel", help="Channel name (substring match); selects archive mode.")
    parser.add_argument("--hours", type=int, default=24, help="Freshness window for archive events.")
    parser.add_argument("--timezone", type=int, default=0, help="Server timezone offset in hours.")
    parser.add_argument("--delay", type=int, default=700, help="Pause before each timeline poll, ms.")
    parser.add_argument("--config", help="Optional YAML file with deployment settings.")
    parser.add_argument("--metrics-file", help="Write Prometheus textfile metrics to this path.")
    parser.add_argument("--debug", action="store_true", help="Print diagnostic output to stderr.")
    args = parser.parse_args(argv)
    if not (args.host and args.port and args.username and args.password):
        raise ConfigurationError("Missing required input parameters.")
    return args


def configure_logging(debug: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.WARNING,
        format="[%(levelname)s] %(message)s",
        stream=sys.stderr,
        force=True,
    )
    # urllib3 logs every connection at DEBUG; the API client logs what matters.
    logging.getLogger("urllib3").setLevel(logging.WARNING)


def run_server_check(
    client: TrassirClient,
    sid: str,
    engine: RuleEngine,
    metrics: Optional[MetricsExporter] = None,
) -> CheckResult:
    logger.debug("Channel not provided, performing server health check")
    on_value = metrics.record_setting if metrics is not None else None
    return engine.evaluate(lambda name: client.health_setting(sid, name), on_value=on_value)


def archive_report(analysis: TimelineAnalysis, hours: int, config: ProbeConfig) -> CheckResult:
    """Render a channel analysis, raising `ArchiveStale` when not fresh."""
    metrics = [
        Metric("archive_density", analysis.density_count, warn=0, crit=config.density_max),
        Metric("last_event_age", int(analysis.last_event_age_seconds), warn=hours * 3600, uom="s"),
    ]
    if not analysis.fresh:
        raise ArchiveStale(f"No timeline events found in last {hours} hours timespan.", metrics=metrics)
    when = time.strftime("%Y-%m-%d %H:%M:%S", time.localtime(analysis.last_event_timestamp))
    result = CheckResult(metrics=metrics)
    result.add_finding(
        f"OK: Last timeline event {analysis.last_event_age_minutes} minutes ago at {when}. "
        f"Archive Density: {analysis.density_count} events in last {config.density_hours:g} hours."
    )
    return result


def run_channel_check(
    client: TrassirClient,
    sid: str,
    resolver: SessionResolver,
    args: argparse.Namespace,
    config: ProbeConfig,
    stream_factory: StreamFactory,
    sleep: Callable[[float], None] = time.sleep,
    clock: Callable[[], float] = time.time,
    metrics: Optional[MetricsExporter] = None,
) -> CheckResult:
    identity = resolver.resolve_channel_id(sid, args.channel, config.cache_life_hours)
    logger.debug("Channel %s resolved to %s", identity.name, identity.guid)
    offset = args.timezone * 3600

    controller = ArchiveSessionController(client, stream_factory)
    with controller.prepare(sid, identity.guid, clock() + offset) as session:
        poller = TimelinePoller(
            lambda: client.timeline(sid),
            max_attempts=config.retry_count,
            delay_ms=args.delay,
            sleep=sleep,
            clock=clock,
        )
        entry = poller.poll(session.token)
        if entry is None:
            raise TimelineUnavailable(f"No valid timeline data found for channel {args.channel}.")
        analysis = analyze(entry, clock() + offset, args.hours, config.density_hours)

    logger.debug(
        "Last event ended %d minutes ago; archive density (last %g hours): %d",
        analysis.last_event_age_minutes,
        config.density_hours,
        analysis.density_count,
    )
    if metrics is not None:
        metrics.record_archive(args.channel, analysis.density_count, analysis.last_event_age_seconds)
    return archive_report(analysis, args.hours, config)


def mjpeg_stream_factory(host: str, config: ProbeConfig) -> StreamFactory:
    def build(token: str) -> MJPEGStream:
        return MJPEGStream(host, config.stream_port, token, timeout=config.connect_timeout)

    return build


def run(
    args: argparse.Namespace,
    config: ProbeConfig,
    client: Optional[TrassirClient] = None,
    stream_factory: Optional[StreamFactory] = None,
    sleep: Callable[[float], None] = time.sleep,
    clock: Callable[[], float] = time.time,
) -> CheckResult:
    """Run the check selected by `args` and return its result."""
    if client is None:
        client = TrassirClient(args.host, args.port, config.connect_timeout, config.read_timeout)
    if stream_factory is None:
        stream_factory = mjpeg_stream_factory(args.host, config)

    mode = "channel" if args.channel else "server"
    metrics = MetricsExporter(args.host) if config.metrics_textfile else None
    try:
        engine = RuleEngine(apply_overrides(DEFAULT_POLICIES, config.settings))
        resolver = SessionResolver(client, ApiCache(config.cache_dir, args.host))
        sid = resolver.resolve_session(args.username, args.password)
        if args.channel:
            result = run_channel_check(
                client, sid, resolver, args, config, stream_factory, sleep, clock, metrics
            )
        else:
            result = run_server_check(client, sid, engine, metrics)
    except CheckError as exc:
        result = error_result(exc)
    finally:
        client.close()

    if metrics is not None:
        metrics.record_status(mode, result.status)
        try:
            metrics.write(config.metrics_textfile)  # type: ignore[arg-type]
        except OSError as exc:
            logger.warning("Cannot write metrics textfile %s: %s", config.metrics_textfile, exc)
    return result


def error_result(exc: CheckError) -> CheckResult:
    result = CheckResult(metrics=list(exc.metrics))
    result.add_finding(f"{exc.status.name}: {exc.message}", exc.status)
    return result


def main(argv: Optional[List[str]] = None) -> int:
    try:
        args = parse_args(argv)
        configure_logging(args.debug)
        config = load_config(args.config)
        if args.metrics_file:
            config.metrics_textfile = args.metrics_file
    except CheckError as exc:
        result = error_result(exc)
    else:
        try:
            result = run(args, config)
        except Exception as exc:
            logger.debug("Unexpected failure", exc_info=True)
            result = CheckResult()
            result.add_finding(f"UNKNOWN: Unexpected error: {exc}", Status.UNKNOWN)
    print(result.render())
    return int(result.status)


if __name__ == "__main__":
    sys.exit(main())
