"""Archive freshness and density analysis.

Given the selected timeline entry, the analyzer answers two questions:

* How long ago did the newest recorded event end? The newest event is
  the last one in the feed, which the server delivers in chronological
  order. If it ended within the freshness window the archive is fresh.
* How many events overlap the trailing density window? A camera that
  records only every few hours is alive but suspicious; the count is
  exported as perfdata.

All instants are compared against a "now" that the caller has already
shifted by the operator's timezone offset, because the server reports
day boundaries in its own local time.
"""

from __future__ import annotations

from dataclasses import dataclass

from .timeline_poller import TimelineEntry


@dataclass(frozen=True)
class TimelineAnalysis:
    last_event_age_seconds: float
    last_event_timestamp: float
    density_count: int
    fresh: bool

    @property
    def last_event_age_minutes(self) -> int:
        return int(self.last_event_age_seconds // 60)


def count_events_since(entry: TimelineEntry, window_start: float) -> int:
    """Count events with either endpoint at or after `window_start`.

    Events that began before the window and are still running count too.
    """
    base = entry.day_start_timestamp
    count = 0
    for event in entry.events:
        begin_ts = base + event.begin
        end_ts = base + event.end
        if begin_ts >= window_start or end_ts >= window_start:
            count += 1
    return count


def analyze(
    entry: TimelineEntry,
    now_adjusted: float,
    freshness_hours: float,
    density_hours: float,
) -> TimelineAnalysis:
    """Compute last-event age, density and the freshness verdict."""
    last_event = entry.events[-1]
    last_event_ts = entry.day_start_timestamp + last_event.end
    freshness_start = now_adjusted - freshness_hours * 3600
    density_start = now_adjusted - density_hours * 3600
    return TimelineAnalysis(
        last_event_age_seconds=now_adjusted - last_event_ts,
        last_event_timestamp=last_event_ts,
        density_count=count_events_since(entry, density_start),
        fresh=last_event_ts >= freshness_start,
    )
