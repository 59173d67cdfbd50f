"""Analytics package.

Channel archive checks: preparing an archive playback session, polling
the eventually consistent timeline endpoint and deriving event recency
and density from the selected timeline entry.
"""

from .archive_session import ArchiveSession, ArchiveSessionController
from .timeline_analyzer import TimelineAnalysis, analyze
from .timeline_poller import TimelineEntry, TimelineEvent, TimelinePoller

__all__ = [
    "ArchiveSession",
    "ArchiveSessionController",
    "TimelineAnalysis",
    "analyze",
    "TimelineEntry",
    "TimelineEvent",
    "TimelinePoller",
]
