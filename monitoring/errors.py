"""Failures that end a check run.

Every failure a check can hit is terminal for that run: the scheduler
invokes the plugin again on its own cadence, so nothing here is retried.
Each exception knows which plugin status it maps to. Almost all of them
are UNKNOWN (the probe could not determine the state of the server);
`ArchiveStale` is the exception, being a fully determined negative
answer that still carries its perfdata.
"""

from __future__ import annotations

from typing import List, Optional

from .report import Metric, Status


class CheckError(Exception):
    """Base class for failures that terminate a check."""

    status: Status = Status.UNKNOWN

    def __init__(self, message: str, metrics: Optional[List[Metric]] = None) -> None:
        super().__init__(message)
        self.message = message
        self.metrics: List[Metric] = list(metrics or [])


class ConfigurationError(CheckError):
    """Required parameters are missing or the config file is invalid."""


class TransportError(CheckError):
    """DNS, TLS, connect or read failure talking to the server API."""


class AuthenticationFailure(CheckError):
    """Login did not yield a session id."""


class ChannelListUnavailable(CheckError):
    """The server returned no usable channel list."""


class ChannelNotFound(CheckError):
    """No channel name contains the requested name."""


class TokenAcquisitionFailure(CheckError):
    """The server refused to issue an archive playback token."""


class StreamConnectFailure(CheckError):
    """The raw MJPEG stream connection could not be opened."""


class SeekFailure(CheckError):
    """The archive seek command was rejected."""


class TimelineUnavailable(CheckError):
    """No timeline entry for the playback token appeared in time."""


class ArchiveStale(CheckError):
    """The newest archived event is older than the freshness window."""

    status = Status.WARNING
