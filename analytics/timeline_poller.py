"""Archive timeline polling.

After a seek the server needs a moment to build the timeline index for
the playback token, and the timeline endpoint is only eventually
consistent. `TimelinePoller` therefore sleeps a fixed delay before every
attempt (pacing, not backoff) and gives up after a bounded number of
attempts.

Each poll returns every timeline the server knows about: one entry per
day per playback token. Entries for other tokens and entries without
events are dropped; of the rest, the one whose day is closest to now
wins. The server has a known defect of reporting today's entry with a
``1970-01-01`` day, which is repaired to today's date before comparing.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from datetime import date, datetime
from datetime import time as dtime
from typing import Any, Callable, List, Optional

logger = logging.getLogger(__name__)

EPOCH_DAY = "1970-01-01"


@dataclass(frozen=True)
class TimelineEvent:
    """A recorded interval, in seconds from the entry's local midnight."""

    begin: int
    end: int


@dataclass(frozen=True)
class TimelineEntry:
    token: str
    day_start: date
    events: List[TimelineEvent]

    @property
    def day_start_timestamp(self) -> float:
        """Epoch seconds of local midnight at the start of `day_start`."""
        return datetime.combine(self.day_start, dtime.min).timestamp()


def _parse_events(raw_events: List[Any]) -> List[TimelineEvent]:
    events = []
    for raw in raw_events:
        if not isinstance(raw, dict):
            continue
        try:
            events.append(TimelineEvent(int(raw["begin"]), int(raw["end"])))
        except (KeyError, TypeError, ValueError):
            continue
    return events


def parse_entry(raw: Any, token: str, today: date) -> Optional[TimelineEntry]:
    """Validate one raw timeline entry for `token`.

    Returns ``None`` when the entry belongs to another token, is
    malformed, has an unparsable day or carries no events.
    """
    if not isinstance(raw, dict):
        return None
    if "token" not in raw or "day_start" not in raw or not isinstance(raw.get("timeline"), list):
        return None
    # Tokens may arrive as JSON numbers; the session holds them as text.
    if str(raw["token"]) != token:
        return None
    events = _parse_events(raw["timeline"])
    if not events:
        return None

    day_text = raw["day_start"]
    if day_text == EPOCH_DAY:
        day = today
    else:
        try:
            day = date.fromisoformat(str(day_text))
        except ValueError:
            return None
    return TimelineEntry(token=token, day_start=day, events=events)


def select_entry(raw_entries: List[Any], token: str, now: float) -> Optional[TimelineEntry]:
    """Pick the entry for `token` whose day starts closest to `now`.

    Ties go to the entry encountered first.
    """
    today = date.fromtimestamp(now)
    best: Optional[TimelineEntry] = None
    best_distance = float("inf")
    for raw in raw_entries:
        entry = parse_entry(raw, token, today)
        if entry is None:
            continue
        distance = abs(now - entry.day_start_timestamp)
        if distance < best_distance:
            best, best_distance = entry, distance
    return best


class TimelinePoller:
    """Poll the timeline endpoint until an entry for a token appears.

    Parameters
    ----------
    fetch_timeline : callable
        Returns the raw decoded timeline collection (expected: a list).
    max_attempts : int
        Upper bound on fetches; the poller never blocks longer than
        ``max_attempts * delay_ms`` plus request time.
    delay_ms : int
        Pause before each attempt, in milliseconds.
    sleep, clock : callable, optional
        Injection points for tests; default to `time.sleep`/`time.time`.
    """

    def __init__(
        self,
        fetch_timeline: Callable[[], Any],
        max_attempts: int = 10,
        delay_ms: int = 700,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.fetch_timeline = fetch_timeline
        self.max_attempts = max_attempts
        self.delay_ms = delay_ms
        self.sleep = sleep
        self.clock = clock
        self.attempts = 0

    def poll(self, token: str) -> Optional[TimelineEntry]:
        """Return the selected entry, or ``None`` after all attempts fail."""
        self.attempts = 0
        for attempt in range(self.max_attempts):
            self.sleep(self.delay_ms / 1000.0)
            self.attempts += 1
            data = self.fetch_timeline()
            if not isinstance(data, list):
                logger.debug("Invalid timeline response format (attempt %d).", attempt)
                continue
            entry = select_entry(data, token, self.clock())
            if entry is not None:
                logger.debug("Valid timeline found with date %s", entry.day_start.isoformat())
                return entry
            logger.debug("No valid timeline data found on attempt %d", attempt)
        logger.debug("Failed to get timeline data after %d attempts", self.max_attempts)
        return None
